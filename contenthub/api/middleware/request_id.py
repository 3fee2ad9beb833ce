"""Request ID middleware — tags every request and its log lines with an id."""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

log = structlog.get_logger("contenthub.api")

REQUEST_ID_HEADER = "X-Request-ID"


def resolve_request_id(raw: str | None) -> str:
    """Reuse a caller-supplied UUID, otherwise mint a new one."""
    if raw:
        try:
            return str(uuid.UUID(raw))
        except ValueError:
            pass
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind request_id, method and path into structlog contextvars."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        tokens = structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            log.exception("request.failed", elapsed_ms=_elapsed_ms(start))
            raise
        else:
            log.info(
                "request.completed",
                status_code=response.status_code,
                elapsed_ms=_elapsed_ms(start),
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            structlog.contextvars.reset_contextvars(**tokens)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 1)
