"""CredentialDAO — auth_credentials table operations."""

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from contenthub.dao.base import BaseDAO
from contenthub.models.credential import Credential


class CredentialDAO(BaseDAO[Credential]):
    model = Credential

    async def get_by_user_id(self, session: AsyncSession, user_id: int) -> Credential | None:
        return await self.get_by_field(session, user_id=user_id)

    async def get_by_reset_token(self, session: AsyncSession, token: str) -> Credential | None:
        return await self.get_by_field(session, reset_token=token)

    async def set_reset_token(
        self,
        session: AsyncSession,
        user_id: int,
        *,
        token: str,
        expires_at: datetime,
    ) -> int:
        """Store a reset token on the user's credential row.

        Returns the number of rows touched (0 when the user has no credential).
        """
        stmt = (
            update(Credential)
            .where(Credential.user_id == user_id)
            .values(reset_token=token, reset_token_expires=expires_at)
        )
        result = await session.execute(stmt)
        return result.rowcount

    async def set_password(
        self,
        session: AsyncSession,
        user_id: int,
        password_hash: str,
        *,
        clear_reset_token: bool = False,
    ) -> int:
        """Replace the password hash; optionally consume the reset token."""
        values: dict = {"password_hash": password_hash}
        if clear_reset_token:
            values.update(reset_token=None, reset_token_expires=None)
        stmt = update(Credential).where(Credential.user_id == user_id).values(**values)
        result = await session.execute(stmt)
        return result.rowcount
