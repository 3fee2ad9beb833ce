"""Tests for ReviewDAO."""

import pytest
from sqlalchemy.exc import IntegrityError

from contenthub.dao.review_dao import ReviewDAO


@pytest.fixture
def dao():
    return ReviewDAO()


def _review(user_id, property_id=100, rating=4, **overrides) -> dict:
    values = {"property_id": property_id, "user_id": user_id, "rating": rating, "content": "ok"}
    values.update(overrides)
    return values


class TestVotes:
    async def test_counters_start_at_zero(self, dao, session, user):
        review = await dao.create(session, **_review(user.id))
        assert (review.likes, review.dislikes) == (0, 0)

    async def test_increment(self, dao, session, user):
        review = await dao.create(session, **_review(user.id))

        assert await dao.increment_vote(session, review.id, "likes") == (1, 0)
        assert await dao.increment_vote(session, review.id, "likes") == (2, 0)
        assert await dao.increment_vote(session, review.id, "dislikes") == (2, 1)

    async def test_unknown_review(self, dao, session):
        assert await dao.increment_vote(session, 4242, "likes") is None

    async def test_rejects_other_columns(self, dao, session):
        with pytest.raises(ValueError):
            await dao.increment_vote(session, 1, "rating")


class TestRatingSummary:
    async def test_average_and_count(self, dao, session, user, other_user):
        await dao.create(session, **_review(user.id, rating=5))
        await dao.create(session, **_review(other_user.id, rating=4))
        await dao.create(session, **_review(user.id, rating=2))
        await dao.create(session, **_review(user.id, property_id=200, rating=1))

        average, count = await dao.rating_summary(session, 100)

        assert count == 3
        assert average == pytest.approx(11 / 3)

    async def test_no_reviews(self, dao, session):
        assert await dao.rating_summary(session, 999) == (None, 0)


class TestFilters:
    async def test_property_and_rating(self, dao, session, user):
        await dao.create(session, **_review(user.id, rating=5))
        await dao.create(session, **_review(user.id, rating=3))
        await dao.create(session, **_review(user.id, property_id=200, rating=5))

        assert await dao.count(session, dao.build_query(property_id=100)) == 2
        assert await dao.count(session, dao.build_query(property_id=100, rating=5)) == 1
        assert await dao.count(session, dao.build_query(user_id=user.id)) == 3


class TestConstraints:
    async def test_rating_range_enforced(self, dao, session, user):
        with pytest.raises(IntegrityError):
            await dao.create(session, **_review(user.id, rating=6))
