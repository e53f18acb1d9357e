# src/cache/json_store.py - v2
"""JSON file-based roadmap store (default STORE_BACKEND=json).

One JSON file per record under STORE_ROOT. Every query scans the directory,
which is fine for development and small deployments.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

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


class JsonRoadmapStore(BaseRoadmapStore):
    """File-based roadmap store using JSON files."""

    def __init__(self, store_root: Path | str) -> None:
        self._root = Path(store_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def insert(self, record: PersistedRoadmap) -> PersistedRoadmap:
        for existing in self._load_all():
            if existing.cache_key == record.cache_key:
                raise DuplicateCacheKeyError(record.cache_key)
        self._write(record)
        return record

    async def get(self, record_id: str) -> PersistedRoadmap | None:
        path = self._record_path(record_id)
        if not path.exists():
            return None
        return self._read(path)

    async def find_exact(
        self, cache_key: str, since: datetime
    ) -> PersistedRoadmap | None:
        matches = [
            r for r in self._load_all()
            if r.cache_key == cache_key and is_fresh_active(r, since)
        ]
        ranked = rank_by_popularity(matches)
        return ranked[0] if ranked else None

    async def find_candidates(
        self,
        profile: UserProfile,
        since: datetime,
        limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> list[PersistedRoadmap]:
        matches = [
            r for r in self._load_all()
            if is_fresh_active(r, since) and shares_categories(r, profile)
        ]
        return rank_by_popularity(matches)[:limit]

    async def mark_archived(self, user_id: str) -> int:
        archived = 0
        for record in self._load_all():
            if record.user_id == user_id and record.is_active:
                self._write(record.model_copy(update={"status": "archived"}))
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
        self._write(updated)
        return updated

    async def find_popular(
        self, limit: int, min_access_count: int, since: datetime
    ) -> list[PersistedRoadmap]:
        matches = [
            r for r in self._load_all()
            if is_fresh_active(r, since) and r.access_count >= min_access_count
        ]
        return rank_by_popularity(matches)[:limit]

    async def latest_version(self, user_id: str) -> int:
        versions = [r.version for r in self._load_all() if r.user_id == user_id]
        return max(versions, default=0)

    async def list_records(self) -> list[PersistedRoadmap]:
        return self._load_all()

    # --- internals ---

    def _load_all(self) -> list[PersistedRoadmap]:
        records: list[PersistedRoadmap] = []
        if not self._root.is_dir():
            return records
        for path in sorted(self._root.glob("*.json")):
            record = self._read(path)
            if record is not None:
                records.append(record)
        return records

    def _read(self, path: Path) -> PersistedRoadmap | None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return PersistedRoadmap.model_validate(data)
        except (json.JSONDecodeError, ValidationError, OSError) as e:
            logger.warning("Failed to read roadmap record %s: %s", path.name, e)
            return None

    def _write(self, record: PersistedRoadmap) -> None:
        path = self._record_path(record.id)
        path.write_text(record.model_dump_json(indent=2), encoding="utf-8")

    def _record_path(self, record_id: str) -> Path:
        safe_id = record_id.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_id}.json"
