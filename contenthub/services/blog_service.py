"""BlogService — blog posts, their visibility and featured status."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from contenthub.dao.base import clamp_page_size
from contenthub.dao.blog_dao import BlogDAO
from contenthub.dao.user_dao import UserDAO
from contenthub.models.blog import Blog
from contenthub.services import AuthorizationError, ValidationError, translate_errors
from contenthub.services.base import (
    OwnedResourceService,
    coerce_bool,
    coerce_int,
    int_filter,
    same_identity,
)


class BlogService(OwnedResourceService[Blog]):
    """Stateless service for blogs. The owner is ``author_id``.

    Featured status is the one exception to strict ownership: admins may
    change it on any blog.
    """

    resource_name = "blog"
    owner_field = "author_id"
    required_fields = ("title", "category", "content")
    filter_fields = {
        "active": coerce_bool,
        "category": str,
        "author_id": int_filter("author_id"),
        "is_featured": coerce_bool,
    }

    def __init__(self, blog_dao: BlogDAO, user_dao: UserDAO) -> None:
        super().__init__(blog_dao)
        self._blog_dao = blog_dao
        self._user_dao = user_dao

    def _normalize(self, values: dict[str, Any]) -> dict[str, Any]:
        for flag in ("is_featured", "active"):
            if flag in values:
                values[flag] = coerce_bool(values[flag])
        return values

    # ── CRUD ──────────────────────────────────────────────────────────────

    @translate_errors("failed to create blog")
    async def create(self, session: AsyncSession, data: Mapping[str, Any], user_id: int) -> int:
        """Create a blog authored by *user_id*; returns the new id."""
        return await self._create(session, data, user_id)

    @translate_errors("failed to update blog")
    async def update(
        self,
        session: AsyncSession,
        blog_id: int,
        data: Mapping[str, Any],
        user_id: int,
    ) -> Blog:
        return await self._update(session, blog_id, data, user_id)

    @translate_errors("failed to delete blog")
    async def delete(self, session: AsyncSession, blog_id: int, user_id: int) -> None:
        await self._delete(session, blog_id, user_id)

    @translate_errors("failed to fetch blog")
    async def get(self, session: AsyncSession, blog_id: int) -> Blog:
        return await self._get_existing(session, blog_id)

    @translate_errors("failed to list blogs")
    async def list(self, session: AsyncSession, filters: Mapping[str, Any] | None = None) -> dict:
        """Public listing: active blogs only."""
        return await self._list(session, filters)

    @translate_errors("failed to list blogs for administration")
    async def list_admin(
        self, session: AsyncSession, filters: Mapping[str, Any] | None = None
    ) -> dict:
        """Admin listing: active and inactive blogs, optional ``active`` filter."""
        return await self._list(session, filters, include_hidden=True)

    # ── status mutators ───────────────────────────────────────────────────

    @translate_errors("failed to update blog status")
    async def update_status(
        self, session: AsyncSession, blog_id: int, active: Any, user_id: int
    ) -> Blog:
        """Activate or deactivate a blog (author only)."""
        return await self._set_fields(session, blog_id, user_id, active=coerce_bool(active))

    @translate_errors("failed to update blog featured status")
    async def update_featured_status(
        self, session: AsyncSession, blog_id: int, is_featured: Any, user_id: int
    ) -> Blog:
        """Feature or unfeature a blog (author or admin)."""
        blog = await self._get_existing(session, blog_id)
        if not same_identity(blog.author_id, user_id):
            requester = (
                await self._user_dao.get_by_id(session, user_id) if user_id is not None else None
            )
            if requester is None or not requester.is_admin:
                raise AuthorizationError("not authorized to update this blog")
        return await self._blog_dao.update(session, blog.id, is_featured=coerce_bool(is_featured))

    # ── curated reads ─────────────────────────────────────────────────────

    @translate_errors("failed to fetch featured blogs")
    async def list_featured(self, session: AsyncSession, limit: Any = 2) -> list[Blog]:
        return await self._blog_dao.list_featured(
            session, clamp_page_size(coerce_int(limit, "limit"))
        )

    @translate_errors("failed to fetch blog categories")
    async def list_categories(self, session: AsyncSession) -> list[str]:
        return await self._blog_dao.list_categories(session)

    @translate_errors("failed to fetch author blogs")
    async def list_by_author(
        self, session: AsyncSession, author_id: int | None, limit: Any = 10
    ) -> list[Blog]:
        """Latest active blogs of one author."""
        if author_id in (None, ""):
            raise ValidationError("author id is required", fields=["author_id"])
        page = await self._list(session, {"author_id": author_id, "limit": limit})
        return page["data"]
