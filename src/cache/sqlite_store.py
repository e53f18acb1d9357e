# src/cache/sqlite_store.py - v2
"""SQLite-based roadmap store (STORE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency. The matching columns are
denormalized out of the JSON payload so lookups run on indexes; the
UNIQUE constraint on cache_key is what surfaces duplicate inserts.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from roadmapcache.cache.base_roadmap_store import (
    DEFAULT_CANDIDATE_LIMIT,
    BaseRoadmapStore,
    DuplicateCacheKeyError,
)
from roadmapcache.core.models import UserProfile
from roadmapcache.roadmap.models import PersistedRoadmap

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS roadmaps (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    cache_key TEXT NOT NULL UNIQUE,
    status TEXT NOT NULL,
    current_level TEXT,
    career_stage TEXT,
    time_commitment TEXT,
    version INTEGER NOT NULL DEFAULT 1,
    access_count INTEGER NOT NULL DEFAULT 0,
    created_ts REAL NOT NULL,
    data TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_roadmaps_user_status ON roadmaps(user_id, status);
CREATE INDEX IF NOT EXISTS idx_roadmaps_profile
    ON roadmaps(current_level, career_stage, time_commitment);
"""

_ORDER = "ORDER BY access_count DESC, created_ts DESC"


class SqliteRoadmapStore(BaseRoadmapStore):
    """SQLite-backed roadmap store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def insert(self, record: PersistedRoadmap) -> PersistedRoadmap:
        snap = record.user_profile
        try:
            self._conn.execute(
                """INSERT INTO roadmaps
                   (id, user_id, cache_key, status, current_level, career_stage,
                    time_commitment, version, access_count, created_ts, data)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    record.id,
                    record.user_id,
                    record.cache_key,
                    record.status,
                    snap.current_level,
                    snap.career_stage,
                    snap.time_commitment,
                    record.version,
                    record.access_count,
                    record.created_at.timestamp(),
                    record.model_dump_json(),
                ),
            )
            self._conn.commit()
        except sqlite3.IntegrityError as e:
            self._conn.rollback()
            if "cache_key" in str(e):
                raise DuplicateCacheKeyError(record.cache_key) from e
            raise
        return record

    async def get(self, record_id: str) -> PersistedRoadmap | None:
        row = self._conn.execute(
            "SELECT data FROM roadmaps WHERE id = ?", (record_id,)
        ).fetchone()
        return self._decode(row[0]) if row else None

    async def find_exact(
        self, cache_key: str, since: datetime
    ) -> PersistedRoadmap | None:
        row = self._conn.execute(
            f"""SELECT data FROM roadmaps
                WHERE cache_key = ? AND status = 'active' AND created_ts >= ?
                {_ORDER} LIMIT 1""",
            (cache_key, since.timestamp()),
        ).fetchone()
        return self._decode(row[0]) if row else None

    async def find_candidates(
        self,
        profile: UserProfile,
        since: datetime,
        limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> list[PersistedRoadmap]:
        cursor = self._conn.execute(
            f"""SELECT data FROM roadmaps
                WHERE status = 'active' AND created_ts >= ?
                  AND current_level = ? AND career_stage = ?
                  AND time_commitment = ?
                {_ORDER} LIMIT ?""",
            (
                since.timestamp(),
                profile.current_level,
                profile.career_stage,
                profile.time_commitment,
                limit,
            ),
        )
        return self._decode_rows(cursor.fetchall())

    async def mark_archived(self, user_id: str) -> int:
        rows = self._conn.execute(
            "SELECT data FROM roadmaps WHERE user_id = ? AND status = 'active'",
            (user_id,),
        ).fetchall()
        archived = 0
        for record in self._decode_rows(rows):
            updated = record.model_copy(update={"status": "archived"})
            self._conn.execute(
                "UPDATE roadmaps SET status = 'archived', data = ? WHERE id = ?",
                (updated.model_dump_json(), record.id),
            )
            archived += 1
        self._conn.commit()
        return archived

    async def record_access(
        self, record_id: str, at: datetime
    ) -> PersistedRoadmap | None:
        cursor = self._conn.execute(
            "UPDATE roadmaps SET access_count = access_count + 1 WHERE id = ?",
            (record_id,),
        )
        if cursor.rowcount == 0:
            self._conn.rollback()
            return None
        row = self._conn.execute(
            "SELECT data, access_count FROM roadmaps WHERE id = ?", (record_id,)
        ).fetchone()
        record = self._decode(row[0])
        if record is None:
            self._conn.commit()
            return None
        updated = record.model_copy(
            update={"access_count": row[1], "last_accessed": at}
        )
        self._conn.execute(
            "UPDATE roadmaps SET data = ? WHERE id = ?",
            (updated.model_dump_json(), record_id),
        )
        self._conn.commit()
        return updated

    async def find_popular(
        self, limit: int, min_access_count: int, since: datetime
    ) -> list[PersistedRoadmap]:
        cursor = self._conn.execute(
            f"""SELECT data FROM roadmaps
                WHERE status = 'active' AND access_count >= ? AND created_ts >= ?
                {_ORDER} LIMIT ?""",
            (min_access_count, since.timestamp(), limit),
        )
        return self._decode_rows(cursor.fetchall())

    async def latest_version(self, user_id: str) -> int:
        row = self._conn.execute(
            "SELECT MAX(version) FROM roadmaps WHERE user_id = ?", (user_id,)
        ).fetchone()
        return row[0] or 0

    async def list_records(self) -> list[PersistedRoadmap]:
        cursor = self._conn.execute("SELECT data FROM roadmaps")
        return self._decode_rows(cursor.fetchall())

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # --- internals ---

    def _decode(self, data: str) -> PersistedRoadmap | None:
        try:
            return PersistedRoadmap.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Failed to deserialize roadmap record: %s", e)
            return None

    def _decode_rows(self, rows: list[tuple]) -> list[PersistedRoadmap]:
        records = []
        for row in rows:
            record = self._decode(row[0])
            if record is not None:
                records.append(record)
        return records
