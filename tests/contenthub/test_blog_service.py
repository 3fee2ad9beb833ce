"""Tests for BlogService."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from contenthub.dao.blog_dao import BlogDAO
from contenthub.dao.user_dao import UserDAO
from contenthub.models.blog import Blog
from contenthub.models.user import User
from contenthub.services import AuthorizationError, NotFoundError, ValidationError
from contenthub.services.blog_service import BlogService


def _make_blog(**overrides) -> Blog:
    defaults = {
        "id": 1,
        "title": "Spring market report",
        "category": "market",
        "content": "Prices are up.",
        "author_id": 1,
        "is_featured": False,
        "active": True,
        "created_at": datetime.now(timezone.utc),
        "updated_at": datetime.now(timezone.utc),
    }
    defaults.update(overrides)
    return Blog(**defaults)


def _make_user(user_id: int, role: str = "user") -> User:
    return User(
        id=user_id,
        first_name="Test",
        last_name="User",
        email=f"user{user_id}@example.com",
        role=role,
    )


def _make_service() -> tuple[BlogService, BlogDAO, UserDAO]:
    blog_dao = BlogDAO()
    user_dao = UserDAO()
    return BlogService(blog_dao, user_dao), blog_dao, user_dao


class TestCreate:
    async def test_author_is_the_caller(self):
        service, blog_dao, _ = _make_service()
        blog_dao.create = AsyncMock(return_value=_make_blog(id=8))

        blog_id = await service.create(
            AsyncMock(),
            {"title": "T", "category": "c", "content": "body", "author_id": 99, "active": "false"},
            user_id=3,
        )

        assert blog_id == 8
        kwargs = blog_dao.create.call_args.kwargs
        assert kwargs["author_id"] == 3
        assert kwargs["active"] is False

    async def test_missing_fields(self):
        service, blog_dao, _ = _make_service()
        blog_dao.create = AsyncMock()

        with pytest.raises(ValidationError) as exc_info:
            await service.create(AsyncMock(), {"title": "T"}, user_id=3)

        assert exc_info.value.fields == ["category", "content"]


class TestOwnership:
    async def test_non_author_cannot_update(self):
        service, blog_dao, _ = _make_service()
        blog_dao.get_by_id = AsyncMock(return_value=_make_blog(author_id=1))
        blog_dao.update = AsyncMock()

        with pytest.raises(AuthorizationError, match="not authorized to update this blog"):
            await service.update(AsyncMock(), 1, {"title": "Hijacked"}, user_id=2)
        blog_dao.update.assert_not_awaited()

    async def test_non_author_cannot_delete(self):
        service, blog_dao, _ = _make_service()
        blog_dao.get_by_id = AsyncMock(return_value=_make_blog(author_id=1))
        blog_dao.delete = AsyncMock()

        with pytest.raises(AuthorizationError):
            await service.delete(AsyncMock(), 1, user_id=2)
        blog_dao.delete.assert_not_awaited()

    async def test_status_change_is_author_only(self):
        service, blog_dao, _ = _make_service()
        blog = _make_blog(author_id=1)
        blog_dao.get_by_id = AsyncMock(return_value=blog)
        blog_dao.update = AsyncMock(return_value=blog)

        await service.update_status(AsyncMock(), 1, "0", user_id=1)
        assert blog_dao.update.call_args.kwargs == {"active": False}

        with pytest.raises(AuthorizationError):
            await service.update_status(AsyncMock(), 1, True, user_id=2)


class TestUpdateFeaturedStatus:
    async def test_author_may_feature(self):
        service, blog_dao, user_dao = _make_service()
        blog = _make_blog(author_id=1)
        blog_dao.get_by_id = AsyncMock(return_value=blog)
        blog_dao.update = AsyncMock(return_value=blog)
        user_dao.get_by_id = AsyncMock()

        await service.update_featured_status(AsyncMock(), 1, True, user_id=1)

        assert blog_dao.update.call_args.kwargs == {"is_featured": True}
        user_dao.get_by_id.assert_not_awaited()

    async def test_admin_may_feature_any_blog(self):
        service, blog_dao, user_dao = _make_service()
        blog = _make_blog(author_id=1)
        blog_dao.get_by_id = AsyncMock(return_value=blog)
        blog_dao.update = AsyncMock(return_value=blog)
        user_dao.get_by_id = AsyncMock(return_value=_make_user(9, role="admin"))

        await service.update_featured_status(AsyncMock(), 1, "true", user_id=9)

        blog_dao.update.assert_awaited_once()

    async def test_plain_user_may_not(self):
        service, blog_dao, user_dao = _make_service()
        blog_dao.get_by_id = AsyncMock(return_value=_make_blog(author_id=1))
        blog_dao.update = AsyncMock()
        user_dao.get_by_id = AsyncMock(return_value=_make_user(2))

        with pytest.raises(AuthorizationError):
            await service.update_featured_status(AsyncMock(), 1, True, user_id=2)
        blog_dao.update.assert_not_awaited()

    async def test_unknown_requester(self):
        service, blog_dao, user_dao = _make_service()
        blog_dao.get_by_id = AsyncMock(return_value=_make_blog(author_id=1))
        user_dao.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(AuthorizationError):
            await service.update_featured_status(AsyncMock(), 1, True, user_id=2)

    async def test_missing_blog(self):
        service, blog_dao, _ = _make_service()
        blog_dao.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError, match="blog not found"):
            await service.update_featured_status(AsyncMock(), 1, True, user_id=1)


class TestReads:
    async def test_list_admin_includes_inactive(self):
        service, blog_dao, _ = _make_service()
        blog_dao.list_page = AsyncMock(return_value=[])
        blog_dao.count = AsyncMock(return_value=0)

        result = await service.list_admin(AsyncMock(), {"active": "false", "offset": 40})

        assert result == {"data": [], "total": 0, "page": 3, "limit": 20}

    async def test_list_featured_default_limit(self):
        service, blog_dao, _ = _make_service()
        blog_dao.list_featured = AsyncMock(return_value=[])

        await service.list_featured(AsyncMock())

        assert blog_dao.list_featured.call_args.args[1] == 2

    async def test_list_by_author(self):
        service, blog_dao, _ = _make_service()
        blogs = [_make_blog(id=i, author_id=4) for i in range(3)]
        blog_dao.list_page = AsyncMock(return_value=blogs)
        blog_dao.count = AsyncMock(return_value=3)

        assert await service.list_by_author(AsyncMock(), 4) == blogs
        assert blog_dao.list_page.call_args.args[2] == 10

    async def test_list_by_author_requires_id(self):
        service, _, _ = _make_service()
        with pytest.raises(ValidationError, match="author id is required"):
            await service.list_by_author(AsyncMock(), "")
