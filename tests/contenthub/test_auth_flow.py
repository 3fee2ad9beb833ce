"""End-to-end credential lifecycle against a real database."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from contenthub.dao.credential_dao import CredentialDAO
from contenthub.dao.user_dao import UserDAO
from contenthub.models.credential import Credential
from contenthub.models.user import User
from contenthub.services import AuthenticationError, DatabaseError, ValidationError
from contenthub.services.auth_service import AuthService, UserProfile


@pytest.fixture
def service():
    return AuthService(UserDAO(), CredentialDAO())


def _profile(email="carol@example.com") -> UserProfile:
    return UserProfile(first_name="Carol", last_name="White", email=email)


async def _password_hash(session, user_id) -> str:
    result = await session.execute(
        select(Credential.password_hash).where(Credential.user_id == user_id)
    )
    return result.scalar_one()


class TestRegistration:
    async def test_register_then_login(self, service, session):
        user = await service.register(session, _profile(), "correct-horse")

        result = await service.login(session, "carol@example.com", "correct-horse")

        assert result.user.id == user.id
        stored = await session.execute(select(User.refresh_token).where(User.id == user.id))
        assert stored.scalar_one() == result.refresh_token

    async def test_duplicate_registration_leaves_one_account(self, service, session):
        await service.register(session, _profile(), "correct-horse")

        with pytest.raises(ValidationError, match="already registered"):
            await service.register(session, _profile(email="CAROL@example.com"), "other-pass")

        users = await session.execute(select(User).where(User.email == "carol@example.com"))
        assert len(users.scalars().all()) == 1

    @pytest.mark.parametrize(
        "failure",
        [
            RuntimeError("connection reset"),
            IntegrityError("INSERT INTO auth_credentials", {}, Exception("fk")),
        ],
    )
    async def test_failed_credential_insert_leaves_no_user(self, service, session, failure):
        service._credential_dao.create = AsyncMock(side_effect=failure)

        with pytest.raises(DatabaseError, match="failed to register user"):
            await service.register(session, _profile(), "correct-horse")

        count = await session.execute(select(func.count()).select_from(User))
        assert count.scalar_one() == 0

    async def test_session_usable_after_failed_registration(self, service, session):
        service._credential_dao.create = AsyncMock(side_effect=RuntimeError("boom"))
        with pytest.raises(DatabaseError):
            await service.register(session, _profile(), "correct-horse")

        del service._credential_dao.create
        user = await service.register(session, _profile(), "correct-horse")

        result = await service.login(session, "carol@example.com", "correct-horse")
        assert result.user.id == user.id


class TestTokenLifecycle:
    async def test_logout_revokes_refresh_token(self, service, session):
        user = await service.register(session, _profile(), "correct-horse")
        result = await service.login(session, "carol@example.com", "correct-horse")

        refreshed = await service.refresh_token(session, result.refresh_token)
        assert service.validate_token(refreshed.access_token)["id"] == user.id

        await service.logout(session, user.id)

        with pytest.raises(AuthenticationError):
            await service.refresh_token(session, result.refresh_token)


class TestPasswordReset:
    async def test_reset_flow(self, service, session):
        user = await service.register(session, _profile(), "correct-horse")
        token = await service.request_password_reset(session, "carol@example.com")

        await service.reset_password(session, token, "brand-new-pass")

        await service.login(session, "carol@example.com", "brand-new-pass")
        with pytest.raises(AuthenticationError):
            await service.login(session, "carol@example.com", "correct-horse")
        # single use
        with pytest.raises(ValidationError):
            await service.reset_password(session, token, "another-pass")
        assert user.id is not None

    async def test_expired_token_changes_nothing(self, service, session):
        user = await service.register(session, _profile(), "correct-horse")
        token = await service.request_password_reset(session, "carol@example.com")
        await session.execute(
            update(Credential)
            .where(Credential.user_id == user.id)
            .values(reset_token_expires=datetime.now(timezone.utc) - timedelta(minutes=1))
        )
        before = await _password_hash(session, user.id)

        with pytest.raises(ValidationError, match="invalid or expired"):
            await service.reset_password(session, token, "brand-new-pass")

        assert await _password_hash(session, user.id) == before

    async def test_change_password(self, service, session):
        user = await service.register(session, _profile(), "correct-horse")

        await service.change_password(session, user.id, "correct-horse", "battery-staple")

        await service.login(session, "carol@example.com", "battery-staple")
