# src/cache/store_factory.py - v1
"""Factory for roadmap store instantiation (STORE_BACKEND)."""

from __future__ import annotations

from roadmapcache.cache.base_roadmap_store import BaseRoadmapStore
from roadmapcache.config.settings import Settings

_DEFAULT_ROOT = "~/.roadmapcache/store"


def create_roadmap_store(settings: Settings | None = None) -> BaseRoadmapStore:
    """Instantiate the configured store backend.

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseRoadmapStore implementation.

    Raises:
        ValueError: If the backend is unknown or misconfigured.
    """
    backend = "json" if settings is None else settings.store_backend
    store_root = _DEFAULT_ROOT if settings is None else str(settings.store_root)

    if backend == "json":
        from roadmapcache.cache.json_store import JsonRoadmapStore
        return JsonRoadmapStore(store_root=store_root)

    if backend == "sqlite":
        from roadmapcache.cache.sqlite_store import SqliteRoadmapStore
        return SqliteRoadmapStore(db_path=f"{store_root}/roadmaps.db")

    if backend == "redis":
        from roadmapcache.cache.redis_store import RedisRoadmapStore
        if settings is None or not settings.store_redis_url:
            raise ValueError(
                "STORE_REDIS_URL must be set when STORE_BACKEND=redis"
            )
        return RedisRoadmapStore(redis_url=settings.store_redis_url)

    raise ValueError(f"Unsupported store backend: {backend!r}")
