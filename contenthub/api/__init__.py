"""contenthub HTTP boundary — FastAPI application factory."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contenthub.api.deps import dispose_engine, get_auth_service, init_session_factory
from contenthub.api.errors import register_error_handlers
from contenthub.api.middleware.request_id import RequestIDMiddleware
from contenthub.core.logging import setup_logging

log = structlog.get_logger("contenthub.api")


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: init DB, bootstrap the admin account. Shutdown: dispose engine."""
    factory = init_session_factory()
    async with factory() as session:
        async with session.begin():
            await get_auth_service().ensure_admin_exists(session)
    log.info("app.started")
    yield
    await dispose_engine()


def create_app(*, lifespan: bool = True) -> FastAPI:
    """Build and return the FastAPI application.

    Tests pass ``lifespan=False`` and install their own session factory.
    """
    setup_logging()

    app = FastAPI(title="contenthub", lifespan=_lifespan if lifespan else None)

    register_error_handlers(app)

    cors_origins = os.environ.get("CONTENTHUB_CORS_ORIGINS", "http://localhost:3000")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health", tags=["ops"])
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return app
