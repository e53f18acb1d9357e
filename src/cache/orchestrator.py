# src/cache/orchestrator.py - v2
"""Two-tier roadmap cache: memory tier in front of the persistent store.

Lookup order for a profile:
  1. memory tier, by derived key
  2. store exact match (active, within TTL)
  3. store candidates (same level/stage/time) scored by similarity
  4. miss: the caller generates and calls store()

Similarity hits are cached under the *requested* key, so the next lookup for
that profile is a memory hit even though the roadmap was generated for a
slightly different one.

Store failures never reach the caller: they are logged and treated as a miss
(or a no-op for invalidation and maintenance).
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

from roadmapcache.cache.base_roadmap_store import (
    DEFAULT_CANDIDATE_LIMIT,
    BaseRoadmapStore,
)
from roadmapcache.cache.cache_key import derive_cache_key
from roadmapcache.cache.memory_cache import (
    DEFAULT_EVICTION_FRACTION,
    DEFAULT_MAX_SIZE,
    DEFAULT_TTL,
    MemoryCache,
)
from roadmapcache.cache.models import CacheLookupResult, CacheStats
from roadmapcache.cache.similarity import DEFAULT_THRESHOLD, find_similar
from roadmapcache.core.clock import Clock, utc_now
from roadmapcache.core.normalizer import normalize
from roadmapcache.logging.context import set_tier_context

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_S = 60 * 60.0
DEFAULT_PRELOAD_INTERVAL_S = 6 * 60 * 60.0
DEFAULT_PRELOAD_LIMIT = 50
DEFAULT_PRELOAD_MIN_ACCESS_COUNT = 5


def owner_of(artifact: Any) -> str | None:
    """Owner id carried by an artifact (attribute or mapping key user_id)."""
    if isinstance(artifact, dict):
        owner = artifact.get("user_id", artifact.get("userId"))
    else:
        owner = getattr(artifact, "user_id", None)
    return str(owner) if owner is not None else None


class RoadmapCacheService:
    """Cache orchestrator. Build once per process and pass it around.

    Construction has no side effects; call start() from a running event loop
    to launch the periodic sweep and preload tasks, and stop() on shutdown.
    """

    def __init__(
        self,
        store: BaseRoadmapStore,
        memory: MemoryCache | None = None,
        ttl: timedelta = DEFAULT_TTL,
        similarity_threshold: float = DEFAULT_THRESHOLD,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
        sweep_interval_s: float = DEFAULT_SWEEP_INTERVAL_S,
        preload_interval_s: float = DEFAULT_PRELOAD_INTERVAL_S,
        preload_limit: int = DEFAULT_PRELOAD_LIMIT,
        preload_min_access_count: int = DEFAULT_PRELOAD_MIN_ACCESS_COUNT,
        maintenance_enabled: bool = True,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock
        self._ttl = ttl
        self._memory = memory if memory is not None else MemoryCache(
            max_size=DEFAULT_MAX_SIZE,
            ttl=ttl,
            eviction_fraction=DEFAULT_EVICTION_FRACTION,
            clock=clock,
        )
        self._threshold = similarity_threshold
        self._candidate_limit = candidate_limit
        self._sweep_interval_s = sweep_interval_s
        self._preload_interval_s = preload_interval_s
        self._preload_limit = preload_limit
        self._preload_min_access_count = preload_min_access_count
        self._maintenance_enabled = maintenance_enabled

        self._hits = 0
        self._misses = 0
        self._counter_lock = threading.Lock()
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def memory(self) -> MemoryCache:
        return self._memory

    @property
    def store_backend(self) -> BaseRoadmapStore:
        return self._store

    # --- lookup path ---

    async def lookup(self, raw_profile: Any) -> Any | None:
        """Cached roadmap for a profile, or None on a miss."""
        result = await self.lookup_detailed(raw_profile)
        return result.artifact

    async def lookup_detailed(self, raw_profile: Any) -> CacheLookupResult:
        """Run the full lookup and report which tier answered."""
        profile = normalize(raw_profile)
        key = derive_cache_key(profile)

        entry = self._memory.get(key)
        if entry is not None:
            return self._hit(key, "memory", entry.artifact)

        since = self._clock() - self._ttl

        try:
            set_tier_context("exact")
            exact = await self._store.find_exact(key, since)
            if exact is not None:
                self._memory.put(key, exact, owner_id=owner_of(exact))
                return self._hit(key, "exact", exact)

            set_tier_context("similar")
            candidates = await self._store.find_candidates(
                profile, since, limit=self._candidate_limit
            )
            match = find_similar(
                profile,
                ((normalize(c.user_profile), c) for c in candidates),
                threshold=self._threshold,
            )
            if match is not None:
                self._memory.put(key, match.item, owner_id=owner_of(match.item))
                return self._hit(key, "similar", match.item, score=match.score)
        except Exception as e:
            logger.warning("Roadmap cache lookup failed for %s: %s", key, e)
        finally:
            set_tier_context(None)

        self._count(hit=False)
        logger.debug("Roadmap cache miss: %s", key)
        return CacheLookupResult(cache_key=key)

    def store(
        self, raw_profile: Any, artifact: Any, cache_key: str | None = None
    ) -> str:
        """Write an artifact to the memory tier. Returns the key used.

        Persisting the artifact is the caller's job; ``cache_key`` lets the
        caller pass the key it actually persisted under.
        """
        key = derive_cache_key(normalize(raw_profile), override=cache_key)
        self._memory.put(key, artifact, owner_id=owner_of(artifact))
        return key

    async def invalidate(self, user_id: str) -> None:
        """Forget every cached roadmap owned by ``user_id``.

        Must run whenever the user's profile changes; otherwise the stale
        roadmap keeps being served through similarity matches.
        """
        removed = self._memory.remove_owner(str(user_id))
        try:
            archived = await self._store.mark_archived(str(user_id))
        except Exception as e:
            logger.warning("Roadmap cache invalidation failed for user %s: %s", user_id, e)
            return
        logger.info(
            "Cache invalidated for user %s: %d memory entries, %d records archived",
            user_id, removed, archived,
        )

    # --- maintenance ---

    def sweep_expired(self) -> int:
        return self._memory.sweep_expired()

    async def preload_popular(self) -> int:
        """Warm the memory tier with the most accessed active roadmaps."""
        since = self._clock() - self._ttl
        try:
            popular = await self._store.find_popular(
                limit=self._preload_limit,
                min_access_count=self._preload_min_access_count,
                since=since,
            )
        except Exception as e:
            logger.warning("Roadmap preload failed: %s", e)
            return 0

        loaded = 0
        for record in popular:
            if record.cache_key:
                self._memory.put(record.cache_key, record, owner_id=owner_of(record))
                loaded += 1
        logger.info("Preloaded %d popular roadmaps into cache", loaded)
        return loaded

    def start(self) -> None:
        """Launch the periodic sweep and preload tasks."""
        if not self._maintenance_enabled:
            logger.debug("Periodic cache maintenance disabled")
            return
        if self._tasks:
            return
        loop = asyncio.get_running_loop()
        self._tasks = [
            loop.create_task(
                self._run_periodically(self._sweep_interval_s, self._sweep_async),
                name="roadmap-cache-sweep",
            ),
            loop.create_task(
                self._run_periodically(self._preload_interval_s, self.preload_popular),
                name="roadmap-cache-preload",
            ),
        ]
        logger.info("Periodic cache maintenance started")

    async def stop(self) -> None:
        """Cancel maintenance tasks and wait for them to finish."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if tasks:
            logger.info("Periodic cache maintenance stopped")

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    # --- diagnostics ---

    def stats(self) -> CacheStats:
        entries = self._memory.entries()
        now = self._clock()
        with self._counter_lock:
            hits, misses = self._hits, self._misses
        lookups = hits + misses

        stats = CacheStats(
            size=len(entries),
            max_size=self._memory.max_size,
            hits=hits,
            misses=misses,
            hit_rate=hits / lookups if lookups else 0.0,
        )
        if entries:
            stored = [e.stored_at for e in entries]
            stats.avg_access_count = sum(e.access_count for e in entries) / len(entries)
            stats.oldest_entry_age_s = (now - min(stored)).total_seconds()
            stats.newest_entry_age_s = (now - max(stored)).total_seconds()
        return stats

    # --- internals ---

    def _hit(
        self, key: str, level: str, artifact: Any, score: float | None = None
    ) -> CacheLookupResult:
        self._count(hit=True)
        logger.debug("Roadmap cache %s hit: %s", level, key)
        return CacheLookupResult(
            cache_key=key,
            hit_level=level,  # type: ignore[arg-type]
            artifact=artifact,
            similarity_score=1.0 if score is None else score,
        )

    def _count(self, hit: bool) -> None:
        with self._counter_lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    async def _sweep_async(self) -> None:
        self.sweep_expired()

    async def _run_periodically(
        self, interval_s: float, job: Callable[[], Awaitable[Any]]
    ) -> None:
        while True:
            await asyncio.sleep(interval_s)
            try:
                await job()
            except Exception as e:
                logger.error("Cache maintenance job failed: %s", e)
