"""AuthService — accounts, password credentials and JWT session tokens."""

from __future__ import annotations

import os
import secrets
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import structlog
from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from contenthub.dao.credential_dao import CredentialDAO
from contenthub.dao.user_dao import UserDAO
from contenthub.models.user import User
from contenthub.services import (
    AuthenticationError,
    NotFoundError,
    ValidationError,
    translate_errors,
)
from contenthub.services.base import missing_fields

log = structlog.get_logger("contenthub.auth")

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

_BCRYPT_ROUNDS = 10
# bcrypt only looks at the first 72 bytes; longer input is refused outright.
_BCRYPT_MAX_BYTES = 72
_MIN_PASSWORD_LENGTH = 8


def _hash_password(password: str) -> str:
    """Hash a plaintext password with bcrypt (cost factor 10)."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode()


def _verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against a bcrypt hash."""
    encoded = (password or "").encode()
    if len(encoded) > _BCRYPT_MAX_BYTES:
        return False
    return bcrypt.checkpw(encoded, password_hash.encode())


def _check_new_password(password: str | None, field: str = "password") -> None:
    if not password or len(password) < _MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"{field} must be at least {_MIN_PASSWORD_LENGTH} characters", fields=[field]
        )
    if len(password.encode()) > _BCRYPT_MAX_BYTES:
        raise ValidationError(
            f"{field} must be at most {_BCRYPT_MAX_BYTES} bytes", fields=[field]
        )


# Pre-computed bcrypt hash for timing-safe login (user-not-found path)
_DUMMY_HASH = bcrypt.hashpw(b"dummy", bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode()

# ---------------------------------------------------------------------------
# JWT configuration
# ---------------------------------------------------------------------------

_ALGORITHM = "HS256"
_RESET_TOKEN_BYTES = 32
_RESET_TOKEN_TTL = timedelta(hours=1)
_INVALID_CREDENTIALS = "invalid email or password"

# Environment variable keys
_ENV_JWT_SECRET = "CONTENTHUB_JWT_SECRET"
_ENV_JWT_REFRESH_SECRET = "CONTENTHUB_JWT_REFRESH_SECRET"
_ENV_ACCESS_EXPIRE_MINUTES = "CONTENTHUB_ACCESS_TOKEN_EXPIRE_MINUTES"
_ENV_REFRESH_EXPIRE_DAYS = "CONTENTHUB_REFRESH_TOKEN_EXPIRE_DAYS"
_ENV_RUNTIME = "CONTENTHUB_ENV"
_ENV_ADMIN_EMAIL = "CONTENTHUB_ADMIN_EMAIL"
_ENV_ADMIN_PASSWORD = "CONTENTHUB_ADMIN_PASSWORD"
_ENV_ADMIN_FIRST_NAME = "CONTENTHUB_ADMIN_FIRST_NAME"
_ENV_ADMIN_LAST_NAME = "CONTENTHUB_ADMIN_LAST_NAME"

# Development fallbacks. Refused when CONTENTHUB_ENV=production.
_FALLBACK_SECRETS = {
    _ENV_JWT_SECRET: "changeme-jwt-secret",
    _ENV_JWT_REFRESH_SECRET: "changeme-jwt-refresh-secret",
}
_DEFAULT_ACCESS_EXPIRE_MINUTES = 24 * 60
_DEFAULT_REFRESH_EXPIRE_DAYS = 7


def _get_secret(env_key: str) -> str:
    """Read a signing secret from the environment, falling back outside production."""
    secret = os.environ.get(env_key)
    if secret:
        return secret
    if os.environ.get(_ENV_RUNTIME, "").lower() == "production":
        raise RuntimeError(f"{env_key} environment variable is required in production")
    log.warning("auth.fallback_secret_in_use", variable=env_key)
    return _FALLBACK_SECRETS[env_key]


def _env_int(env_key: str, default: int) -> int:
    raw = os.environ.get(env_key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{env_key} must be an integer, got {raw!r}") from None


def access_token_ttl() -> timedelta:
    return timedelta(minutes=_env_int(_ENV_ACCESS_EXPIRE_MINUTES, _DEFAULT_ACCESS_EXPIRE_MINUTES))


def refresh_token_ttl() -> timedelta:
    return timedelta(days=_env_int(_ENV_REFRESH_EXPIRE_DAYS, _DEFAULT_REFRESH_EXPIRE_DAYS))


def _issue_access_token(user: User, now: datetime) -> str:
    return jwt.encode(
        {
            "id": user.id,
            "email": user.email,
            "role": user.role,
            "type": "access",
            "exp": now + access_token_ttl(),
        },
        _get_secret(_ENV_JWT_SECRET),
        algorithm=_ALGORITHM,
    )


def _issue_refresh_token(user: User, now: datetime) -> str:
    return jwt.encode(
        {
            "id": user.id,
            "type": "refresh",
            "exp": now + refresh_token_ttl(),
        },
        _get_secret(_ENV_JWT_REFRESH_SECRET),
        algorithm=_ALGORITHM,
    )


def _decode(token: str | None, env_key: str, token_type: str, message: str) -> dict[str, Any]:
    """Verify signature, expiry, token type and the ``id`` claim."""
    if not token or not isinstance(token, str):
        raise AuthenticationError(message)
    try:
        payload = jwt.decode(token, _get_secret(env_key), algorithms=[_ALGORITHM])
    except JWTError:
        raise AuthenticationError(message) from None
    if payload.get("type") != token_type:
        raise AuthenticationError(message)
    if not isinstance(payload.get("id"), int):
        raise AuthenticationError(message)
    return payload


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _is_expired(expires_at: datetime | None, now: datetime) -> bool:
    if expires_at is None:
        return True
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= now


# ---------------------------------------------------------------------------
# Input / result data classes
# ---------------------------------------------------------------------------


@dataclass
class UserProfile:
    """Registration input (the password travels separately)."""

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None


class LoginResult:
    """User plus the access + refresh token pair returned by login."""

    __slots__ = ("user", "access_token", "refresh_token", "token_type")

    def __init__(self, user: User, access_token: str, refresh_token: str) -> None:
        self.user = user
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.token_type = "bearer"


class AccessToken:
    """Single access token returned by refresh."""

    __slots__ = ("access_token", "token_type")

    def __init__(self, access_token: str) -> None:
        self.access_token = access_token
        self.token_type = "bearer"


# ---------------------------------------------------------------------------
# AuthService
# ---------------------------------------------------------------------------


class AuthService:
    """Stateless authentication service.

    Owns registration, the login / refresh / logout token lifecycle,
    password reset and change, and admin bootstrapping.
    """

    def __init__(self, user_dao: UserDAO, credential_dao: CredentialDAO) -> None:
        self._user_dao = user_dao
        self._credential_dao = credential_dao

    # -- Accounts ----------------------------------------------------------

    async def _create_account(
        self, session: AsyncSession, profile: UserProfile, password: str, role: str
    ) -> User:
        """Insert the user and its credential row atomically (savepoint)."""
        password_hash = _hash_password(password)
        async with session.begin_nested():
            try:
                user = await self._user_dao.create(
                    session,
                    first_name=profile.first_name,
                    last_name=profile.last_name,
                    email=_normalize_email(profile.email),
                    phone=profile.phone or None,
                    status="active",
                    role=role,
                )
            except IntegrityError:
                # required fields are checked upfront, so this is the unique email
                # lost to a concurrent registration
                raise ValidationError("email is already registered", fields=["email"]) from None
            # credential failures are not the caller's fault: translate_errors reports them
            await self._credential_dao.create(
                session, user_id=user.id, password_hash=password_hash
            )
        return user

    @translate_errors("failed to register user")
    async def register(self, session: AsyncSession, profile: UserProfile, password: str) -> User:
        """Create a user and its credential; returns the user (no hash on it).

        Raises :class:`ValidationError` when required fields are missing, the
        password is too short or the email is already registered.
        """
        missing = missing_fields(asdict(profile), ("first_name", "last_name", "email"))
        if not password:
            missing.append("password")
        if missing:
            raise ValidationError(
                f"incomplete registration data, missing: {', '.join(missing)}", fields=missing
            )
        _check_new_password(password)

        email = _normalize_email(profile.email)
        if await self._user_dao.get_by_email(session, email) is not None:
            raise ValidationError("email is already registered", fields=["email"])

        user = await self._create_account(session, profile, password, role="user")
        log.info("auth.registered", user_id=user.id)
        return user

    @translate_errors("failed to fetch user")
    async def get_user_by_id(self, session: AsyncSession, user_id: int) -> User:
        """Raises :class:`NotFoundError` if the user does not exist."""
        user = await self._user_dao.get_by_id(session, user_id)
        if user is None:
            raise NotFoundError("user not found")
        return user

    @translate_errors("failed to bootstrap admin user")
    async def ensure_admin_exists(self, session: AsyncSession) -> User | None:
        """Create the initial admin user from environment variables.

        Reads ``CONTENTHUB_ADMIN_EMAIL`` and ``CONTENTHUB_ADMIN_PASSWORD``
        (names from ``CONTENTHUB_ADMIN_FIRST_NAME`` / ``_LAST_NAME``).
        Silently skips if email or password is missing; returns the existing
        user untouched when the email is already registered.
        """
        email = os.environ.get(_ENV_ADMIN_EMAIL)
        password = os.environ.get(_ENV_ADMIN_PASSWORD)
        if not all([email, password]):
            return None

        existing = await self._user_dao.get_by_email(session, _normalize_email(email))
        if existing is not None:
            return existing

        profile = UserProfile(
            first_name=os.environ.get(_ENV_ADMIN_FIRST_NAME, "Admin"),
            last_name=os.environ.get(_ENV_ADMIN_LAST_NAME, "User"),
            email=email,
        )
        user = await self._create_account(session, profile, password, role="admin")
        log.info("auth.admin_created", user_id=user.id)
        return user

    # -- Login / Token -----------------------------------------------------

    @translate_errors("failed to process login")
    async def login(self, session: AsyncSession, email: str, password: str) -> LoginResult:
        """Verify credentials, issue tokens and remember the refresh token.

        Raises :class:`AuthenticationError` on invalid credentials. Unknown
        email, missing credential row and wrong password are reported with
        the same message.
        """
        user = await self._user_dao.get_by_email(session, _normalize_email(email))
        credential = None
        if user is not None:
            credential = await self._credential_dao.get_by_user_id(session, user.id)

        if credential is None:
            # Constant-time: run bcrypt even when there is nothing to compare
            _verify_password(password, _DUMMY_HASH)
            log.info("auth.login_failed", user_id=user.id if user else None)
            raise AuthenticationError(_INVALID_CREDENTIALS)
        if not _verify_password(password, credential.password_hash):
            log.info("auth.login_failed", user_id=user.id)
            raise AuthenticationError(_INVALID_CREDENTIALS)

        now = datetime.now(timezone.utc)
        access_token = _issue_access_token(user, now)
        refresh_token = _issue_refresh_token(user, now)
        await self._user_dao.record_login(
            session, user.id, refresh_token=refresh_token, logged_in_at=now
        )

        log.info("auth.login", user_id=user.id)
        return LoginResult(user, access_token, refresh_token)

    @translate_errors("failed to process logout")
    async def logout(self, session: AsyncSession, user_id: int) -> None:
        """Forget the stored refresh token. Idempotent."""
        await self._user_dao.clear_refresh_token(session, user_id)
        log.info("auth.logout", user_id=user_id)

    @translate_errors("failed to refresh token")
    async def refresh_token(self, session: AsyncSession, refresh_token: str) -> AccessToken:
        """Issue a new access token for a valid, still-stored refresh token.

        The refresh token itself is not rotated. A token that verifies but is
        no longer stored (logout, newer login) is rejected.

        Raises :class:`AuthenticationError` on any failure.
        """
        payload = _decode(
            refresh_token, _ENV_JWT_REFRESH_SECRET, "refresh", "invalid refresh token"
        )
        user = await self._user_dao.get_by_refresh_token(session, payload["id"], refresh_token)
        if user is None:
            raise AuthenticationError("invalid refresh token")
        return AccessToken(_issue_access_token(user, datetime.now(timezone.utc)))

    def validate_token(self, token: str) -> dict[str, Any]:
        """Verify an access token and return its claims.

        Raises :class:`AuthenticationError` on a bad signature, expiry or
        token type.
        """
        return _decode(token, _ENV_JWT_SECRET, "access", "invalid token")

    @translate_errors("failed to authenticate request")
    async def get_current_user(self, session: AsyncSession, token: str) -> User:
        """Decode an access token and return the corresponding user.

        Raises :class:`AuthenticationError` on invalid token or unknown user.
        """
        payload = self.validate_token(token)
        user = await self._user_dao.get_by_id(session, payload["id"])
        if user is None:
            raise AuthenticationError("user not found")
        return user

    # -- Passwords ---------------------------------------------------------

    @translate_errors("failed to process password reset request")
    async def request_password_reset(self, session: AsyncSession, email: str) -> str:
        """Store a fresh one-hour reset token and return it for delivery.

        Raises :class:`NotFoundError` for unknown emails.
        """
        user = await self._user_dao.get_by_email(session, _normalize_email(email))
        if user is None:
            log.info("auth.reset_requested_unknown_email")
            raise NotFoundError("user not found")

        token = secrets.token_hex(_RESET_TOKEN_BYTES)
        expires_at = datetime.now(timezone.utc) + _RESET_TOKEN_TTL
        updated = await self._credential_dao.set_reset_token(
            session, user.id, token=token, expires_at=expires_at
        )
        if not updated:
            raise NotFoundError("user credentials not found")

        log.info("auth.reset_requested", user_id=user.id)
        return token

    @translate_errors("failed to reset password")
    async def reset_password(self, session: AsyncSession, token: str, new_password: str) -> None:
        """Replace the password of the credential holding *token*.

        Expiry is checked here, when the token is looked up: unknown and
        expired tokens both raise :class:`ValidationError` and nothing is
        written. The token is consumed on success.
        """
        credential = None
        if token:
            credential = await self._credential_dao.get_by_reset_token(session, token)
        if credential is None or _is_expired(
            credential.reset_token_expires, datetime.now(timezone.utc)
        ):
            raise ValidationError("invalid or expired reset token", fields=["token"])
        _check_new_password(new_password, "new_password")

        await self._credential_dao.set_password(
            session,
            credential.user_id,
            _hash_password(new_password),
            clear_reset_token=True,
        )
        log.info("auth.password_reset", user_id=credential.user_id)

    @translate_errors("failed to change password")
    async def change_password(
        self,
        session: AsyncSession,
        user_id: int,
        current_password: str,
        new_password: str,
    ) -> None:
        """Raises :class:`NotFoundError` without a credential row and
        :class:`ValidationError` when *current_password* does not verify."""
        credential = await self._credential_dao.get_by_user_id(session, user_id)
        if credential is None:
            raise NotFoundError("user credentials not found")
        if not _verify_password(current_password, credential.password_hash):
            raise ValidationError("current password is incorrect", fields=["current_password"])
        _check_new_password(new_password, "new_password")

        await self._credential_dao.set_password(session, user_id, _hash_password(new_password))
        log.info("auth.password_changed", user_id=user_id)
