"""UserDAO — users table operations."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from contenthub.dao.base import BaseDAO
from contenthub.models.user import User


class UserDAO(BaseDAO[User]):
    model = User

    async def get_by_email(self, session: AsyncSession, email: str) -> User | None:
        """Look up a user by email (login / registration flow)."""
        return await self.get_by_field(session, email=email)

    async def get_by_refresh_token(
        self, session: AsyncSession, pk: int, refresh_token: str
    ) -> User | None:
        """Return the user only if *refresh_token* is the one currently stored."""
        self._require_pk(pk)
        stmt = select(User).where(User.id == pk, User.refresh_token == refresh_token)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def record_login(
        self,
        session: AsyncSession,
        pk: int,
        *,
        refresh_token: str,
        logged_in_at: datetime,
    ) -> None:
        """Persist the issued refresh token and the login timestamp."""
        self._require_pk(pk)
        stmt = (
            update(User)
            .where(User.id == pk)
            .values(refresh_token=refresh_token, last_login=logged_in_at)
        )
        await session.execute(stmt)

    async def clear_refresh_token(self, session: AsyncSession, pk: int) -> None:
        """Revoke the stored refresh token. A no-op for unknown ids."""
        self._require_pk(pk)
        stmt = update(User).where(User.id == pk).values(refresh_token=None)
        await session.execute(stmt)
