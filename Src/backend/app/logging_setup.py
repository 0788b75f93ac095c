"""Loguru configuration for the FunnelHQ API."""

from __future__ import annotations

import sys
from typing import Any

from loguru import logger

from app.config import settings

# Context every record carries; routes and middleware bind the real values.
CONTEXT_FIELDS = ("req", "route", "org", "user")

_TEXT_FORMAT = (
    "{time:YYYY-MM-DDTHH:mm:ss.SSS} | {level:<7} | "
    "req={extra[req]} org={extra[org]} user={extra[user]} {extra[route]} | {message}"
)


def _with_context(record: dict[str, Any]) -> None:
    extra = record.setdefault("extra", {})
    for field in CONTEXT_FIELDS:
        extra.setdefault(field, "")


def setup_logging() -> None:
    """Route all application logs to stdout.

    ``LOG_JSON`` switches to loguru's serialized records for log shippers.
    Records are queued through a background thread except under tests, where
    the capture must stay synchronous.
    """

    logger.remove()
    logger.configure(extra={field: "" for field in CONTEXT_FIELDS}, patcher=_with_context)
    sink_options: dict[str, Any] = {
        "level": (settings.log_level or "INFO").upper(),
        "enqueue": settings.env != "test",
        "backtrace": False,
        "diagnose": settings.env == "dev",
    }
    if settings.log_json:
        logger.add(sys.stdout, serialize=True, **sink_options)
    else:
        logger.add(sys.stdout, format=_TEXT_FORMAT, **sink_options)
    logger.bind(route="startup").info("Logging configured for env={} level={}", settings.env, sink_options["level"])
