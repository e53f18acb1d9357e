# src/cache/memory_cache.py - v1
"""Bounded in-process cache tier with TTL and approximate-LRU eviction.

When full, a whole batch (ceil(eviction_fraction * max_size)) of the least
recently accessed entries is dropped at once instead of one per insert.
Expiry is enforced lazily on get() and by sweep_expired().

All map mutations hold ``self._lock``. Sweeps and explicit evictions take a
snapshot under the lock, decide outside it, then delete under the lock only
the entries that were not touched in between.
"""

from __future__ import annotations

import logging
import math
import threading
from datetime import datetime, timedelta
from typing import Any

from roadmapcache.cache.models import CacheEntry
from roadmapcache.core.clock import Clock, utc_now

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1000
DEFAULT_TTL = timedelta(hours=24)
DEFAULT_EVICTION_FRACTION = 0.1


class MemoryCache:
    """Process-local map from cache key to CacheEntry."""

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl: timedelta = DEFAULT_TTL,
        eviction_fraction: float = DEFAULT_EVICTION_FRACTION,
        clock: Clock = utc_now,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be > 0")
        if not 0 < eviction_fraction <= 1:
            raise ValueError("eviction_fraction must be in (0, 1]")
        self._max_size = max_size
        self._ttl = ttl
        self._eviction_batch = max(1, math.ceil(round(max_size * eviction_fraction, 9)))
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def eviction_batch(self) -> int:
        """Number of entries dropped when an insert hits capacity."""
        return self._eviction_batch

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> CacheEntry | None:
        """Return a copy of the live entry, or None if absent or expired.

        A hit bumps last_accessed and access_count on the stored entry.
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry, now):
                del self._entries[key]
                logger.debug("Memory cache entry expired on read: %s", key)
                return None
            entry.last_accessed = now
            entry.access_count += 1
            return entry.model_copy()

    def put(self, key: str, artifact: Any, owner_id: str | None = None) -> CacheEntry:
        """Insert or replace an entry, evicting a batch first if full."""
        now = self._clock()
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_size:
                evicted = self._evict_locked(self._eviction_batch)
                logger.debug("Memory cache full, evicted %d entries", evicted)
            entry = CacheEntry(
                key=key,
                artifact=artifact,
                owner_id=owner_id,
                stored_at=now,
                last_accessed=now,
                access_count=1,
            )
            self._entries[key] = entry
            return entry.model_copy()

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def remove_owner(self, owner_id: str) -> int:
        """Drop every entry whose artifact belongs to owner_id."""
        snapshot = self._snapshot()
        doomed = [(k, e) for k, e in snapshot if e.owner_id == owner_id]
        return self._delete_unchanged(doomed)

    def sweep_expired(self) -> int:
        """Remove all entries older than the TTL. Returns the count removed."""
        now = self._clock()
        snapshot = self._snapshot()
        doomed = [(k, e) for k, e in snapshot if self._is_expired(e, now)]
        removed = self._delete_unchanged(doomed)
        if removed:
            logger.info("Swept %d expired memory cache entries", removed)
        return removed

    def evict_oldest(self, count: int) -> int:
        """Remove the ``count`` entries with the smallest last_accessed."""
        if count <= 0:
            return 0
        snapshot = self._snapshot()
        snapshot.sort(key=lambda item: item[1].last_accessed)
        return self._delete_unchanged(snapshot[:count])

    def entries(self) -> list[CacheEntry]:
        """Copies of all current entries (expired ones included)."""
        with self._lock:
            return [entry.model_copy() for entry in self._entries.values()]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    # --- internals ---

    def _is_expired(self, entry: CacheEntry, now: datetime) -> bool:
        return now - entry.stored_at > self._ttl

    def _evict_locked(self, count: int) -> int:
        # Caller holds the lock.
        oldest = sorted(self._entries.items(), key=lambda item: item[1].last_accessed)
        for key, _ in oldest[:count]:
            del self._entries[key]
        return min(count, len(oldest))

    def _snapshot(self) -> list[tuple[str, CacheEntry]]:
        """(key, entry-copy) pairs taken under the lock."""
        with self._lock:
            return [(k, e.model_copy()) for k, e in self._entries.items()]

    def _delete_unchanged(self, items: list[tuple[str, CacheEntry]]) -> int:
        """Delete keys whose live entry still matches the snapshot copy."""
        removed = 0
        with self._lock:
            for key, seen in items:
                live = self._entries.get(key)
                if (
                    live is not None
                    and live.stored_at == seen.stored_at
                    and live.last_accessed == seen.last_accessed
                ):
                    del self._entries[key]
                    removed += 1
        return removed
