"""Structured audit logging helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Normalized context fields expected in audit logs."""

    deal_id: str | None = None
    actor_role: str | None = None
    user_id: str | None = None
    trace_id: str | None = None


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload.

    The result is passed as ``extra`` to a logger call, so keys must not
    collide with ``logging.LogRecord`` attributes.
    """
    payload: dict[str, Any] = {
        "audit_timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "deal_id": context.deal_id,
        "actor_role": context.actor_role,
        "user_id": context.user_id,
        "trace_id": context.trace_id,
    }
    payload.update(fields)
    return payload
