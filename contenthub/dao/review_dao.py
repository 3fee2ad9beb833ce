"""ReviewDAO — reviews table operations."""

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from contenthub.dao.base import BaseDAO
from contenthub.models.review import Review

VOTE_COLUMNS = ("likes", "dislikes")


class ReviewDAO(BaseDAO[Review]):
    model = Review

    def build_query(
        self,
        *,
        include_hidden: bool = False,
        property_id: int | None = None,
        user_id: int | None = None,
        rating: int | None = None,
    ) -> Select:
        """Filtered review query. Reviews have no hidden state."""
        query = select(Review)
        if property_id is not None:
            query = query.where(Review.property_id == property_id)
        if user_id is not None:
            query = query.where(Review.user_id == user_id)
        if rating is not None:
            query = query.where(Review.rating == rating)
        return query

    async def increment_vote(
        self, session: AsyncSession, pk: int, column: str
    ) -> tuple[int, int] | None:
        """Atomically add one to ``likes`` or ``dislikes``.

        Returns the (likes, dislikes) pair after the update, or None when
        the review does not exist.
        """
        self._require_pk(pk)
        if column not in VOTE_COLUMNS:
            raise ValueError(f"not a vote column: {column!r}")
        counter = getattr(Review, column)
        stmt = (
            update(Review)
            .where(Review.id == pk)
            .values({counter: counter + 1})
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        if result.rowcount == 0:
            return None
        row = (
            await session.execute(
                select(Review.likes, Review.dislikes).where(Review.id == pk)
            )
        ).one()
        return row.likes, row.dislikes

    async def rating_summary(
        self, session: AsyncSession, property_id: int
    ) -> tuple[float | None, int]:
        """Return (average rating, review count) for one property."""
        stmt = select(func.avg(Review.rating), func.count(Review.id)).where(
            Review.property_id == property_id
        )
        avg, count = (await session.execute(stmt)).one()
        return (float(avg) if avg is not None else None), count
