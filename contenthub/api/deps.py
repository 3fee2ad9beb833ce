"""Dependency injection — session provider, caller resolution and the auth service."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from contenthub.dao.credential_dao import CredentialDAO
from contenthub.dao.user_dao import UserDAO
from contenthub.models.user import User
from contenthub.services import AuthenticationError, AuthorizationError
from contenthub.services.auth_service import AuthService

# ---------------------------------------------------------------------------
# DAO singletons
# ---------------------------------------------------------------------------
_user_dao = UserDAO()
_credential_dao = CredentialDAO()

# ---------------------------------------------------------------------------
# Service singleton
# ---------------------------------------------------------------------------
_auth_service = AuthService(_user_dao, _credential_dao)

# ---------------------------------------------------------------------------
# Engine / session factory (initialised by app lifespan)
# ---------------------------------------------------------------------------
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_session_factory(database_url: str | None = None) -> async_sessionmaker[AsyncSession]:
    """Create the async engine and session factory. Called once at startup."""
    global _engine, _session_factory  # noqa: PLW0603
    url = database_url or os.environ.get(
        "CONTENTHUB_DATABASE_URL", "postgresql+asyncpg://localhost/contenthub"
    )
    engine_options: dict = {"pool_pre_ping": True}
    if not url.startswith("sqlite"):
        engine_options.update(pool_size=10, max_overflow=20, pool_recycle=1800)
    _engine = create_async_engine(url, **engine_options)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _session_factory


async def dispose_engine() -> None:
    """Dispose the async engine, closing all pooled connections."""
    global _engine  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None


def set_session_factory(factory: async_sessionmaker[AsyncSession]) -> None:
    """Override session factory (for testing)."""
    global _session_factory  # noqa: PLW0603
    _session_factory = factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a per-request session; commit on success, roll back on error."""
    if _session_factory is None:
        raise RuntimeError("call init_session_factory() before handling requests")
    async with _session_factory() as session:
        async with session.begin():
            yield session


# ---------------------------------------------------------------------------
# Caller resolution
# ---------------------------------------------------------------------------

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    session: AsyncSession = Depends(get_session),
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> User:
    """Extract and validate the Bearer access token, return the caller."""
    if credentials is None:
        raise AuthenticationError("missing authorization header")
    return await _auth_service.get_current_user(session, credentials.credentials)


async def get_optional_user(
    session: AsyncSession = Depends(get_session),
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> User | None:
    """Like :func:`get_current_user` but anonymous callers resolve to None.

    A token that is present but invalid still fails.
    """
    if credentials is None:
        return None
    return await _auth_service.get_current_user(session, credentials.credentials)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise AuthorizationError("admin role required")
    return user


# ---------------------------------------------------------------------------
# Service getter (for Depends())
# ---------------------------------------------------------------------------


def get_auth_service() -> AuthService:
    return _auth_service
