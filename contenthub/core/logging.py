"""Structured logging configuration — structlog + stdlib logging."""

from __future__ import annotations

import logging
import logging.config
import os
from collections.abc import MutableMapping
from typing import Any

import structlog

# Event-dict keys that must never reach a log sink.
SENSITIVE_KEYS = frozenset(
    {
        "password",
        "new_password",
        "current_password",
        "password_hash",
        "access_token",
        "refresh_token",
        "reset_token",
        "token",
    }
)

_REDACTED = "***"


def redact_secrets(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor: mask credential material bound into an event."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = _REDACTED
    return event_dict


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure structlog and stdlib logging.

    Explicit arguments win over the environment:
        CONTENTHUB_LOG_LEVEL  — log level for the ``contenthub`` tree (default: INFO)
        CONTENTHUB_LOG_FORMAT — console | json (default: console)
    """
    log_level = (level or os.environ.get("CONTENTHUB_LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.environ.get("CONTENTHUB_LOG_FORMAT", "console")).lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Third-party loggers stay quiet unless something is wrong.
    quiet = {name: {"level": "WARNING"} for name in ("sqlalchemy.engine", "asyncpg", "aiosqlite")}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "structlog",
                },
            },
            "root": {"handlers": ["default"], "level": "WARNING"},
            "loggers": {
                "contenthub": {"level": log_level},
                "uvicorn.error": {"level": "INFO"},
                **quiet,
            },
        }
    )
