"""Structured trace events for request handling and access decisions.

Events are single-line JSON log records, emitted only when ``TRACE_MODE`` is
on. Ordinary tracepoints are sampled with ``TRACE_SAMPLING``; errors and access
denials are always written.
"""

from __future__ import annotations

import json
import random
import traceback
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict

from loguru import logger

from app.config import settings

_request_id_ctx: ContextVar[str | None] = ContextVar("trace_request_id", default=None)


def push_request_id(request_id: str) -> Token[str | None]:
    return _request_id_ctx.set(request_id)


def reset_request_id(token: Token[str | None]) -> None:
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(key): _plain(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(item) for item in value]
    if hasattr(value, "value") and isinstance(value.value, str):
        return value.value
    return str(value)


def _sampled() -> bool:
    rate = max(0.0, min(float(settings.trace_sampling or 0.0), 1.0))
    return rate >= 1.0 or (rate > 0.0 and random.random() <= rate)


def _write(kind: str, name: str, fields: Dict[str, Any], *, always: bool = False) -> None:
    if not settings.trace_mode:
        return
    if not always and not _sampled():
        return
    event: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        "kind": kind,
        "name": name,
        "request_id": get_request_id() or "",
    }
    event.update({key: _plain(value) for key, value in fields.items()})
    organization_id = event.get("organization_id") or ""
    logger.bind(req=event["request_id"], org=organization_id).info(
        json.dumps(event, default=str, ensure_ascii=False, separators=(",", ":"))
    )


def tracepoint(name: str, **fields: Any) -> None:
    """Record a sampled domain event such as ``client.created``."""

    _write("event", name, fields)


def trace_exception(name: str, exc: Exception, **fields: Any) -> None:
    """Record an error with its type, taxonomy code and the final traceback lines."""

    lines = traceback.format_exception_only(exc.__class__, exc)
    error: Dict[str, Any] = {
        "type": exc.__class__.__name__,
        "message": str(exc),
        "stack": [line.strip() for line in lines if line.strip()][:4],
    }
    for attr in ("code", "status_code"):
        value = getattr(exc, attr, None)
        if value is not None:
            error[attr] = value
    _write("error", name, {"error": error, **fields}, always=True)


def trace_access(decision: Any, *, permission: str | None, organization_id: str | None) -> None:
    """Record a policy verdict; denials bypass sampling."""

    _write(
        "access",
        "policy.decision",
        {
            "verdict": decision.verdict,
            "reason": decision.reason,
            "permission": permission or "",
            "organization_id": organization_id or "",
        },
        always=not decision.allowed,
    )
