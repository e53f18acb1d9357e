# src/logging/context.py - v2
"""Contextual logging: attach user_id, request_id and cache tier to records.

Values live in contextvars, so concurrent requests handled on one event loop
each see their own context.
"""

from __future__ import annotations

import contextvars
from dataclasses import asdict, dataclass
from typing import Any

_user_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "user_id", default=None
)
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_tier: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "tier", default=None
)


@dataclass(frozen=True)
class LogContext:
    """Snapshot of the current logging context."""

    user_id: str | None = None
    request_id: str | None = None
    tier: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Non-None fields only, for JSON log injection."""
        return {k: v for k, v in asdict(self).items() if v is not None}


def get_context() -> LogContext:
    return LogContext(
        user_id=_user_id.get(),
        request_id=_request_id.get(),
        tier=_tier.get(),
    )


def set_request_context(user_id: str | None, request_id: str | None = None) -> None:
    """Set per-request context (once per generation/lookup request)."""
    _user_id.set(user_id)
    _request_id.set(request_id)


def set_tier_context(tier: str | None) -> None:
    """Mark which cache tier is being consulted (exact, similar, ...)."""
    _tier.set(tier)


def clear_context() -> None:
    _user_id.set(None)
    _request_id.set(None)
    _tier.set(None)
