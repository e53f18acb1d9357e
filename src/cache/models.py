# src/cache/models.py - v2
"""Cache domain models: CacheEntry, CacheLookupResult, CacheStats."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel

HitLevel = Literal["memory", "exact", "similar"]


class CacheEntry(BaseModel):
    """Memory-tier entry. Mutated in place on every hit."""

    key: str
    artifact: Any
    owner_id: str | None = None
    stored_at: datetime
    last_accessed: datetime
    access_count: int = 0


class CacheLookupResult(BaseModel):
    """Outcome of one orchestrated lookup."""

    cache_key: str
    hit_level: HitLevel | None = None
    artifact: Any = None
    similarity_score: float | None = None

    @property
    def is_hit(self) -> bool:
        return self.hit_level is not None


class CacheStats(BaseModel):
    """Diagnostic snapshot of the memory tier. No correctness contract."""

    size: int
    max_size: int
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    avg_access_count: float = 0.0
    oldest_entry_age_s: float | None = None
    newest_entry_age_s: float | None = None
