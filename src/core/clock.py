# src/core/clock.py - v1
"""Wall-clock source shared by the cache tiers.

Components take a ``Clock`` argument so tests can freeze or advance time.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)
