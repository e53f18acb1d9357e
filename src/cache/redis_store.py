# src/cache/redis_store.py - v3
"""Redis-based roadmap store (STORE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for multi-instance deployments sharing one roadmap collection.
Records are JSON strings; an index set lists record ids and a SETNX claim
per cache key enforces key uniqueness across instances.
"""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import ValidationError

from roadmapcache.cache.base_roadmap_store import (
    DEFAULT_CANDIDATE_LIMIT,
    BaseRoadmapStore,
    DuplicateCacheKeyError,
    is_fresh_active,
    rank_by_popularity,
    shares_categories,
)
from roadmapcache.core.models import UserProfile
from roadmapcache.roadmap.models import PersistedRoadmap

logger = logging.getLogger(__name__)

_RECORD_PREFIX = "roadmapcache:roadmap:"
_KEY_CLAIM_PREFIX = "roadmapcache:cachekey:"
_INDEX_KEY = "roadmapcache:roadmap:__index__"


class RedisRoadmapStore(BaseRoadmapStore):
    """Redis-backed roadmap store."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def insert(self, record: PersistedRoadmap) -> PersistedRoadmap:
        claim_key = f"{_KEY_CLAIM_PREFIX}{record.cache_key}"
        if not self._client.setnx(claim_key, record.id):
            raise DuplicateCacheKeyError(record.cache_key)
        try:
            self._save(record)
            self._client.sadd(_INDEX_KEY, record.id)
        except Exception:
            # Release the claim so the key is not blocked by a record that never landed.
            self._client.delete(claim_key)
            raise
        return record

    async def get(self, record_id: str) -> PersistedRoadmap | None:
        data = self._client.get(f"{_RECORD_PREFIX}{record_id}")
        if data is None:
            return None
        try:
            return PersistedRoadmap.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Failed to deserialize roadmap %s: %s", record_id, e)
            return None

    async def find_exact(
        self, cache_key: str, since: datetime
    ) -> PersistedRoadmap | None:
        # The key claim points at the single record that owns the key.
        record_id = self._client.get(f"{_KEY_CLAIM_PREFIX}{cache_key}")
        if record_id is None:
            return None
        record = await self.get(record_id)
        if record is None or not is_fresh_active(record, since):
            return None
        return record

    async def find_candidates(
        self,
        profile: UserProfile,
        since: datetime,
        limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> list[PersistedRoadmap]:
        # No secondary indexes: scan. Fine up to a few thousand roadmaps.
        matches = [
            r for r in await self.list_records()
            if is_fresh_active(r, since) and shares_categories(r, profile)
        ]
        return rank_by_popularity(matches)[:limit]

    async def mark_archived(self, user_id: str) -> int:
        archived = 0
        for record in await self.list_records():
            if record.user_id == user_id and record.is_active:
                self._save(record.model_copy(update={"status": "archived"}))
                archived += 1
        return archived

    async def record_access(
        self, record_id: str, at: datetime
    ) -> PersistedRoadmap | None:
        record = await self.get(record_id)
        if record is None:
            return None
        updated = record.model_copy(
            update={"access_count": record.access_count + 1, "last_accessed": at}
        )
        self._save(updated)
        return updated

    async def find_popular(
        self, limit: int, min_access_count: int, since: datetime
    ) -> list[PersistedRoadmap]:
        matches = [
            r for r in await self.list_records()
            if is_fresh_active(r, since) and r.access_count >= min_access_count
        ]
        return rank_by_popularity(matches)[:limit]

    async def latest_version(self, user_id: str) -> int:
        versions = [r.version for r in await self.list_records() if r.user_id == user_id]
        return max(versions, default=0)

    async def list_records(self) -> list[PersistedRoadmap]:
        records: list[PersistedRoadmap] = []
        for record_id in self._client.smembers(_INDEX_KEY):
            record = await self.get(record_id)
            if record is not None:
                records.append(record)
        return records

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()

    def _save(self, record: PersistedRoadmap) -> None:
        self._client.set(f"{_RECORD_PREFIX}{record.id}", record.model_dump_json())
