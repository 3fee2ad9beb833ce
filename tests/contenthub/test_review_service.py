"""Tests for ReviewService."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from contenthub.dao.review_dao import ReviewDAO
from contenthub.models.review import Review
from contenthub.services import AuthorizationError, NotFoundError, ValidationError
from contenthub.services.review_service import ReviewService


def _make_review(**overrides) -> Review:
    defaults = {
        "id": 1,
        "property_id": 100,
        "user_id": 1,
        "rating": 4,
        "content": "Great location.",
        "likes": 0,
        "dislikes": 0,
        "created_at": datetime.now(timezone.utc),
        "updated_at": datetime.now(timezone.utc),
    }
    defaults.update(overrides)
    return Review(**defaults)


def _make_service() -> tuple[ReviewService, ReviewDAO]:
    dao = ReviewDAO()
    return ReviewService(dao), dao


class TestCreate:
    async def test_creates_review(self):
        service, dao = _make_service()
        dao.create = AsyncMock(return_value=_make_review(id=5))

        review_id = await service.create(
            AsyncMock(),
            {"property_id": "100", "rating": "5", "content": "Lovely", "likes": 1000},
            user_id=2,
        )

        assert review_id == 5
        kwargs = dao.create.call_args.kwargs
        assert kwargs == {"property_id": 100, "rating": 5, "content": "Lovely", "user_id": 2}

    @pytest.mark.parametrize("rating", [0, 6, "4.5", "five"])
    async def test_rating_out_of_range(self, rating):
        service, dao = _make_service()
        dao.create = AsyncMock()

        with pytest.raises(ValidationError) as exc_info:
            await service.create(
                AsyncMock(), {"property_id": 1, "rating": rating, "content": "x"}, user_id=2
            )
        assert exc_info.value.fields == ["rating"]
        dao.create.assert_not_awaited()

    async def test_missing_fields(self):
        service, _ = _make_service()
        with pytest.raises(ValidationError) as exc_info:
            await service.create(AsyncMock(), {}, user_id=2)
        assert exc_info.value.fields == ["property_id", "rating", "content"]


class TestOwnership:
    async def test_non_author_cannot_update(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=_make_review(user_id=1))
        dao.update = AsyncMock()

        with pytest.raises(AuthorizationError, match="not authorized to update this review"):
            await service.update(AsyncMock(), 1, {"rating": 1}, user_id=2)

    async def test_author_updates_rating(self):
        service, dao = _make_service()
        review = _make_review(user_id=1)
        dao.get_by_id = AsyncMock(return_value=review)
        dao.update = AsyncMock(return_value=review)

        await service.update(AsyncMock(), 1, {"rating": "2", "dislikes": 50}, user_id=1)

        assert dao.update.call_args.kwargs == {"rating": 2}


class TestVotes:
    async def test_like(self):
        service, dao = _make_service()
        dao.increment_vote = AsyncMock(return_value=(3, 1))

        result = await service.like(AsyncMock(), "7")

        assert result == {"id": 7, "likes": 3, "dislikes": 1}
        assert dao.increment_vote.call_args.args[1:] == (7, "likes")

    async def test_dislike(self):
        service, dao = _make_service()
        dao.increment_vote = AsyncMock(return_value=(3, 2))

        await service.dislike(AsyncMock(), 7)

        assert dao.increment_vote.call_args.args[1:] == (7, "dislikes")

    async def test_unknown_review(self):
        service, dao = _make_service()
        dao.increment_vote = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError, match="review not found"):
            await service.like(AsyncMock(), 404)


class TestPropertyRating:
    async def test_average_rounded(self):
        service, dao = _make_service()
        dao.rating_summary = AsyncMock(return_value=(11 / 3, 3))

        result = await service.property_rating(AsyncMock(), "100")

        assert result == {"property_id": 100, "average_rating": 3.67, "review_count": 3}

    async def test_no_reviews(self):
        service, dao = _make_service()
        dao.rating_summary = AsyncMock(return_value=(None, 0))

        result = await service.property_rating(AsyncMock(), 100)

        assert result["average_rating"] == 0.0
        assert result["review_count"] == 0
