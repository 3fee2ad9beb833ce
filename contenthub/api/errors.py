"""Boundary error translation — ServiceError + RequestValidationError → JSON."""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from contenthub.services import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    ServiceError,
    ValidationError,
)

log = structlog.get_logger("contenthub.api")

_STATUS_MAP: dict[type[ServiceError], int] = {
    ValidationError: 422,
    NotFoundError: 404,
    AuthenticationError: 401,
    AuthorizationError: 403,
    DatabaseError: 500,
}

_GENERIC_FAILURE = "internal server error"


def status_for(exc: ServiceError) -> int:
    """HTTP status of *exc*, resolved through its class hierarchy (default 500)."""
    for cls in type(exc).__mro__:
        if cls in _STATUS_MAP:
            return _STATUS_MAP[cls]
    return 500


async def _service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500 and not isinstance(exc, DatabaseError):
        # unmapped ServiceError subclass: don't leak its message
        log.error("api.unmapped_service_error", error_type=type(exc).__name__, error=str(exc))
        return JSONResponse(status_code=status, content={"detail": _GENERIC_FAILURE})

    content: dict = {"detail": str(exc)}
    if isinstance(exc, ValidationError) and exc.fields:
        content["fields"] = exc.fields
    return JSONResponse(status_code=status, content=content)


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = []
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err["loc"]]
        messages.append(f"{'.'.join(loc)}: {err['msg']}")
        if loc:
            fields.append(loc[-1])
    return JSONResponse(
        status_code=422,
        content={"detail": "; ".join(messages), "fields": fields},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the app."""
    app.add_exception_handler(ServiceError, _service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
