# src/roadmap/service.py - v1
"""Roadmap generation workflow: the cache's only caller.

generate_roadmap() serves from the cache when it can and otherwise generates,
persists and caches a fresh roadmap. regenerate_roadmap() is what a profile
change triggers: invalidate, then always generate.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from roadmapcache.cache.base_roadmap_store import BaseRoadmapStore, DuplicateCacheKeyError
from roadmapcache.cache.cache_key import derive_cache_key, with_unique_suffix
from roadmapcache.cache.orchestrator import RoadmapCacheService
from roadmapcache.core.clock import Clock, utc_now
from roadmapcache.core.normalizer import snapshot
from roadmapcache.logging.context import set_request_context
from roadmapcache.roadmap.generator import BaseRoadmapGenerator
from roadmapcache.roadmap.models import GenerationMetadata, PersistedRoadmap

logger = logging.getLogger(__name__)

DEFAULT_REGENERATION_REASON = "User profile updated"


class RoadmapGenerationService:
    """Cache-first roadmap generation."""

    def __init__(
        self,
        cache: RoadmapCacheService,
        store: BaseRoadmapStore,
        generator: BaseRoadmapGenerator,
        clock: Clock = utc_now,
    ) -> None:
        self._cache = cache
        self._store = store
        self._generator = generator
        self._clock = clock

    @property
    def cache(self) -> RoadmapCacheService:
        return self._cache

    async def generate_roadmap(self, user_id: str, raw_user: Any) -> Any:
        """Roadmap for a user: cached if possible, freshly generated otherwise.

        Args:
            user_id: Owner of a newly generated roadmap.
            raw_user: User record / onboarding answers in any supported shape.

        Returns:
            The cached artifact (normally a PersistedRoadmap) or the new record.
        """
        user_id = str(user_id)
        set_request_context(user_id, uuid.uuid4().hex[:12])

        result = await self._cache.lookup_detailed(raw_user)
        if result.is_hit:
            logger.info(
                "Using cached roadmap (%s, score=%.3f)",
                result.hit_level, result.similarity_score or 0.0,
            )
            return await self._record_access(result.artifact)

        logger.info("Generating new roadmap")
        return await self._generate_and_persist(user_id, raw_user)

    async def regenerate_roadmap(
        self,
        user_id: str,
        raw_user: Any,
        reason: str = DEFAULT_REGENERATION_REASON,
    ) -> PersistedRoadmap:
        """Invalidate the user's cached roadmaps and generate a new version."""
        user_id = str(user_id)
        set_request_context(user_id, uuid.uuid4().hex[:12])
        await self._cache.invalidate(user_id)
        return await self._generate_and_persist(user_id, raw_user, reason=reason)

    # --- internals ---

    async def _record_access(self, artifact: Any) -> Any:
        if not isinstance(artifact, PersistedRoadmap):
            return artifact
        try:
            updated = await self._store.record_access(artifact.id, self._clock())
        except Exception as e:
            logger.warning("Failed to record access for roadmap %s: %s", artifact.id, e)
            return artifact
        return updated or artifact

    async def _generate_and_persist(
        self, user_id: str, raw_user: Any, reason: str | None = None
    ) -> PersistedRoadmap:
        profile = snapshot(raw_user)
        cache_key = derive_cache_key(profile)

        draft = await self._generator.generate(profile)
        now = self._clock()
        record = PersistedRoadmap(
            user_id=user_id,
            cache_key=cache_key,
            version=await self._store.latest_version(user_id) + 1,
            title=draft.title,
            description=draft.description,
            content=draft.content,
            user_profile=profile,
            generated_by=GenerationMetadata(
                model=draft.model,
                prompt=draft.prompt,
                generated_at=now,
                regeneration_reason=reason,
            ),
            access_count=0,
            last_accessed=now,
            created_at=now,
        )

        try:
            await self._store.insert(record)
        except DuplicateCacheKeyError:
            # Another roadmap (possibly archived) owns the key: retry once.
            record = record.model_copy(update={"cache_key": with_unique_suffix(cache_key)})
            logger.info("Duplicate cache key %s, retrying as %s", cache_key, record.cache_key)
            await self._store.insert(record)

        # Cached under the requested profile's key even if persisted under a suffixed one.
        self._cache.store(profile, record, cache_key=cache_key)
        logger.info("Stored roadmap %s (version %d)", record.id, record.version)
        return record
