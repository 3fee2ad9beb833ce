"""Service layer — business logic orchestration and the domain error taxonomy."""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable, Sequence
from typing import ParamSpec, TypeVar

import structlog

log = structlog.get_logger("contenthub.service")

P = ParamSpec("P")
R = TypeVar("R")


class ServiceError(Exception):
    """Base service exception."""


class ValidationError(ServiceError):
    """Malformed, missing or illegal input (-> HTTP 422).

    *fields* names every offending field when the failure is field-level.
    """

    def __init__(self, message: str, fields: Sequence[str] | None = None) -> None:
        super().__init__(message)
        self.fields = list(fields or [])


class NotFoundError(ServiceError):
    """Resource not found, or deliberately hidden (-> HTTP 404)."""


class AuthenticationError(ServiceError):
    """Authentication failure (-> HTTP 401)."""


class AuthorizationError(ServiceError):
    """Authenticated but not permitted (-> HTTP 403)."""


class DatabaseError(ServiceError):
    """Unexpected persistence failure (-> HTTP 500).

    ``str(exc)`` is safe to show to users. ``detail`` keeps the original
    error message for server-side diagnostics only.
    """

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail


def translate_errors(
    message: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Wrap an async service operation so only domain errors escape it.

    :class:`ServiceError` subclasses propagate unchanged. Anything else is
    logged with its original message and re-raised as
    :class:`DatabaseError` carrying *message*.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await func(*args, **kwargs)
            except ServiceError:
                raise
            except Exception as exc:
                log.error(
                    "service.database_error",
                    operation=func.__qualname__,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                raise DatabaseError(message, detail=str(exc)) from exc

        return wrapper

    return decorator
