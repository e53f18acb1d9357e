# src/cache/base_roadmap_store.py - v2
"""Abstract persistent roadmap store.

The cache only needs a narrow slice of the roadmap collection: exact lookup
by cache key, a pre-filtered candidate list for similarity matching, bulk
archiving by owner, and access bookkeeping. Backends implement that slice;
the record type lives in roadmap.models and carries no store logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime

from roadmapcache.core.models import UserProfile
from roadmapcache.roadmap.models import PersistedRoadmap

DEFAULT_CANDIDATE_LIMIT = 20


class RoadmapStoreError(Exception):
    """Base error raised by roadmap store backends."""


class DuplicateCacheKeyError(RoadmapStoreError):
    """Insert rejected because another record already owns the cache key."""

    def __init__(self, cache_key: str) -> None:
        self.cache_key = cache_key
        super().__init__(f"Cache key already in use: {cache_key!r}")


class BaseRoadmapStore(ABC):
    """Unified interface for roadmap persistence backends."""

    @abstractmethod
    async def insert(self, record: PersistedRoadmap) -> PersistedRoadmap:
        """Persist a new record.

        Raises:
            DuplicateCacheKeyError: If any record already uses record.cache_key.
        """

    @abstractmethod
    async def get(self, record_id: str) -> PersistedRoadmap | None:
        """Fetch a record by id."""

    @abstractmethod
    async def find_exact(
        self, cache_key: str, since: datetime
    ) -> PersistedRoadmap | None:
        """Active record with this key created at or after ``since``.

        Most accessed first, then most recent.
        """

    @abstractmethod
    async def find_candidates(
        self,
        profile: UserProfile,
        since: datetime,
        limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> list[PersistedRoadmap]:
        """Active, fresh records sharing level, stage and time commitment.

        Ordered most accessed first, then most recent.
        """

    @abstractmethod
    async def mark_archived(self, user_id: str) -> int:
        """Archive every active record owned by ``user_id``. Returns count."""

    @abstractmethod
    async def record_access(
        self, record_id: str, at: datetime
    ) -> PersistedRoadmap | None:
        """Increment access_count and set last_accessed. None if unknown."""

    @abstractmethod
    async def find_popular(
        self, limit: int, min_access_count: int, since: datetime
    ) -> list[PersistedRoadmap]:
        """Most accessed active records, for cache preloading."""

    @abstractmethod
    async def latest_version(self, user_id: str) -> int:
        """Highest roadmap version stored for a user (0 if none)."""

    @abstractmethod
    async def list_records(self) -> list[PersistedRoadmap]:
        """All stored records regardless of status."""

    def close(self) -> None:
        """Release backend resources. No-op by default."""


# --- helpers shared by backends that filter in Python ---


def is_fresh_active(record: PersistedRoadmap, since: datetime) -> bool:
    return record.is_active and record.created_at >= since


def shares_categories(record: PersistedRoadmap, profile: UserProfile) -> bool:
    """Same level, stage and time commitment: the high-weight features."""
    snap = record.user_profile
    return (
        snap.current_level == profile.current_level
        and snap.career_stage == profile.career_stage
        and snap.time_commitment == profile.time_commitment
    )


def rank_by_popularity(records: Iterable[PersistedRoadmap]) -> list[PersistedRoadmap]:
    """Sort by access_count desc, then created_at desc."""
    return sorted(
        records,
        key=lambda r: (r.access_count, r.created_at),
        reverse=True,
    )
