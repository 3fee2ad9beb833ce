"""BlogDAO — blogs table operations."""

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from contenthub.dao.base import BaseDAO
from contenthub.models.blog import Blog


class BlogDAO(BaseDAO[Blog]):
    model = Blog

    def build_query(
        self,
        *,
        include_hidden: bool = False,
        active: bool | None = None,
        category: str | None = None,
        author_id: int | None = None,
        is_featured: bool | None = None,
    ) -> Select:
        """Filtered blog query shared by the listing and its count.

        Without *include_hidden* only active blogs are visible and the
        *active* filter is ignored.
        """
        query = select(Blog)
        if not include_hidden:
            query = query.where(Blog.active.is_(True))
        elif active is not None:
            query = query.where(Blog.active.is_(active))
        if category is not None:
            query = query.where(Blog.category == category)
        if author_id is not None:
            query = query.where(Blog.author_id == author_id)
        if is_featured is not None:
            query = query.where(Blog.is_featured.is_(is_featured))
        return query

    async def list_featured(self, session: AsyncSession, limit: int) -> list[Blog]:
        """Active featured blogs, newest first."""
        stmt = (
            select(Blog)
            .where(Blog.active.is_(True), Blog.is_featured.is_(True))
            .order_by(Blog.created_at.desc(), Blog.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def list_categories(self, session: AsyncSession) -> list[str]:
        """Distinct categories among active blogs."""
        return await self.distinct_values(session, "category", Blog.active.is_(True))
