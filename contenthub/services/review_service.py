"""ReviewService — property reviews, anonymous votes and rating summaries."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from contenthub.dao.review_dao import ReviewDAO
from contenthub.models.review import Review
from contenthub.services import NotFoundError, ValidationError, translate_errors
from contenthub.services.base import OwnedResourceService, coerce_int, int_filter

log = structlog.get_logger("contenthub.service")

RATING_MIN = 1
RATING_MAX = 5


def validate_rating(value: Any) -> int:
    rating = coerce_int(value, "rating")
    if not RATING_MIN <= rating <= RATING_MAX:
        raise ValidationError(
            f"rating must be between {RATING_MIN} and {RATING_MAX}", fields=["rating"]
        )
    return rating


class ReviewService(OwnedResourceService[Review]):
    """Stateless service for reviews. The owner is ``user_id``.

    Likes and dislikes are anonymous: no identity, no duplicate-vote check.
    """

    resource_name = "review"
    owner_field = "user_id"
    required_fields = ("property_id", "rating", "content")
    filter_fields = {
        "property_id": int_filter("property_id"),
        "user_id": int_filter("user_id"),
        "rating": int_filter("rating"),
    }

    def __init__(self, review_dao: ReviewDAO) -> None:
        super().__init__(review_dao)
        self._review_dao = review_dao

    def _normalize(self, values: dict[str, Any]) -> dict[str, Any]:
        if "rating" in values:
            values["rating"] = validate_rating(values["rating"])
        if "property_id" in values:
            values["property_id"] = coerce_int(values["property_id"], "property_id")
        # vote counters only move through like/dislike
        values.pop("likes", None)
        values.pop("dislikes", None)
        return values

    # ── CRUD ──────────────────────────────────────────────────────────────

    @translate_errors("failed to create review")
    async def create(self, session: AsyncSession, data: Mapping[str, Any], user_id: int) -> int:
        return await self._create(session, data, user_id)

    @translate_errors("failed to update review")
    async def update(
        self,
        session: AsyncSession,
        review_id: int,
        data: Mapping[str, Any],
        user_id: int,
    ) -> Review:
        return await self._update(session, review_id, data, user_id)

    @translate_errors("failed to delete review")
    async def delete(self, session: AsyncSession, review_id: int, user_id: int) -> None:
        await self._delete(session, review_id, user_id)

    @translate_errors("failed to fetch review")
    async def get(self, session: AsyncSession, review_id: int) -> Review:
        return await self._get_existing(session, review_id)

    @translate_errors("failed to list reviews")
    async def list(self, session: AsyncSession, filters: Mapping[str, Any] | None = None) -> dict:
        return await self._list(session, filters)

    @translate_errors("failed to list reviews for administration")
    async def list_admin(
        self, session: AsyncSession, filters: Mapping[str, Any] | None = None
    ) -> dict:
        return await self._list(session, filters, include_hidden=True)

    # ── votes / aggregates ────────────────────────────────────────────────

    @translate_errors("failed to like review")
    async def like(self, session: AsyncSession, review_id: int) -> dict:
        return await self._vote(session, review_id, "likes")

    @translate_errors("failed to dislike review")
    async def dislike(self, session: AsyncSession, review_id: int) -> dict:
        return await self._vote(session, review_id, "dislikes")

    @translate_errors("failed to compute property rating")
    async def property_rating(self, session: AsyncSession, property_id: Any) -> dict:
        """Average rating (two decimals, 0.0 without reviews) and review count."""
        pid = coerce_int(property_id, "property_id")
        average, count = await self._review_dao.rating_summary(session, pid)
        return {
            "property_id": pid,
            "average_rating": round(average, 2) if average is not None else 0.0,
            "review_count": count,
        }

    async def _vote(self, session: AsyncSession, review_id: Any, column: str) -> dict:
        pk = coerce_int(review_id, "id")
        counters = await self._review_dao.increment_vote(session, pk, column)
        if counters is None:
            raise NotFoundError("review not found")
        likes, dislikes = counters
        log.info("review.voted", id=pk, column=column)
        return {"id": pk, "likes": likes, "dislikes": dislikes}
