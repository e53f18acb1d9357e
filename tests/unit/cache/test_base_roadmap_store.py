# tests/unit/cache/test_base_roadmap_store.py - v1
"""Tests for cache/base_roadmap_store.py - ABC contract and shared helpers."""

from __future__ import annotations

from datetime import timedelta

import pytest

from roadmapcache.cache.base_roadmap_store import (
    BaseRoadmapStore,
    DuplicateCacheKeyError,
    RoadmapStoreError,
    is_fresh_active,
    rank_by_popularity,
    shares_categories,
)
from roadmapcache.core.normalizer import normalize

from conftest import T0, make_record


class TestBaseRoadmapStore:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseRoadmapStore()  # type: ignore[abstract]

    def test_has_required_methods(self):
        for name in (
            "insert", "get", "find_exact", "find_candidates", "mark_archived",
            "record_access", "find_popular", "latest_version", "list_records", "close",
        ):
            assert hasattr(BaseRoadmapStore, name)

    def test_duplicate_error(self):
        err = DuplicateCacheKeyError("roadmap_x")
        assert isinstance(err, RoadmapStoreError)
        assert err.cache_key == "roadmap_x"
        assert "roadmap_x" in str(err)


class TestHelpers:
    def test_is_fresh_active(self, profile_a):
        record = make_record(profile_a)
        assert is_fresh_active(record, since=T0)
        assert not is_fresh_active(record, since=T0 + timedelta(seconds=1))
        archived = record.model_copy(update={"status": "archived"})
        assert not is_fresh_active(archived, since=T0 - timedelta(days=1))

    def test_shares_categories(self, profile_a, profile_b, profile_far):
        record = make_record(profile_a)
        assert shares_categories(record, normalize(profile_b))
        assert not shares_categories(record, normalize(profile_far))

    def test_shares_categories_ignores_style(self, profile_a):
        record = make_record(profile_a)
        other = normalize({**profile_a, "preferredLearningStyle": "reading"})
        assert shares_categories(record, other)

    def test_rank_by_popularity(self, profile_a):
        old_popular = make_record(profile_a, cache_key="a", access_count=9)
        new_popular = make_record(
            profile_a, cache_key="b", access_count=9, created_at=T0 + timedelta(hours=1),
        )
        unpopular = make_record(profile_a, cache_key="c", access_count=1)
        ranked = rank_by_popularity([unpopular, old_popular, new_popular])
        assert [r.cache_key for r in ranked] == ["b", "a", "c"]
