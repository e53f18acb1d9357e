# src/api/facade.py - v2
"""Public API facade: build the cache and generation services from settings.

Usage:
    from roadmapcache.api.facade import build_generation_service
    service = build_generation_service(settings)
    service.cache.start()
    roadmap = await service.generate_roadmap(user_id, user_record)
    ...
    await service.cache.stop()

Build these once per process and pass them to whatever needs them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from roadmapcache.cache.memory_cache import MemoryCache
from roadmapcache.cache.orchestrator import RoadmapCacheService
from roadmapcache.cache.store_factory import create_roadmap_store
from roadmapcache.config.settings import Settings
from roadmapcache.core.clock import Clock, utc_now
from roadmapcache.roadmap.service import RoadmapGenerationService

if TYPE_CHECKING:
    from roadmapcache.cache.base_roadmap_store import BaseRoadmapStore
    from roadmapcache.roadmap.generator import BaseRoadmapGenerator

logger = logging.getLogger(__name__)


def build_cache_service(
    settings: Settings | None = None,
    store: BaseRoadmapStore | None = None,
    clock: Clock = utc_now,
) -> RoadmapCacheService:
    """Cache orchestrator wired from settings.

    Args:
        settings: Global settings. Loaded from .env if None.
        store: Persistent store. Built from settings if None.
        clock: Time source shared by both tiers.
    """
    settings = settings or Settings()
    store = store or create_roadmap_store(settings)
    memory = MemoryCache(
        max_size=settings.memory_cache_max_size,
        ttl=settings.cache_ttl,
        eviction_fraction=settings.memory_cache_eviction_fraction,
        clock=clock,
    )
    logger.debug(
        "Building roadmap cache: backend=%s, max_size=%d, ttl=%s",
        settings.store_backend, settings.memory_cache_max_size, settings.cache_ttl,
    )
    return RoadmapCacheService(
        store=store,
        memory=memory,
        ttl=settings.cache_ttl,
        similarity_threshold=settings.similarity_threshold,
        candidate_limit=settings.similarity_candidate_limit,
        sweep_interval_s=settings.cache_sweep_interval_s,
        preload_interval_s=settings.cache_preload_interval_s,
        preload_limit=settings.cache_preload_limit,
        preload_min_access_count=settings.cache_preload_min_access_count,
        maintenance_enabled=settings.cache_maintenance_enabled,
        clock=clock,
    )


def build_generation_service(
    settings: Settings | None = None,
    store: BaseRoadmapStore | None = None,
    generator: BaseRoadmapGenerator | None = None,
    clock: Clock = utc_now,
) -> RoadmapGenerationService:
    """Generation workflow sharing one store between cache and persistence.

    When ``generator`` is None an LLMRoadmapGenerator is built from the
    configured provider, which needs its API key.
    """
    settings = settings or Settings()
    store = store or create_roadmap_store(settings)
    if generator is None:
        from roadmapcache.llm.client_factory import create_llm_client_from_settings
        from roadmapcache.roadmap.generator import LLMRoadmapGenerator

        generator = LLMRoadmapGenerator(
            create_llm_client_from_settings(settings),
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )
    cache = build_cache_service(settings, store=store, clock=clock)
    return RoadmapGenerationService(cache=cache, store=store, generator=generator, clock=clock)
