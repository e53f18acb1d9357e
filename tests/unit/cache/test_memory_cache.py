# tests/unit/cache/test_memory_cache.py - v1
"""Tests for cache/memory_cache.py - TTL, bulk eviction, owner removal."""

from __future__ import annotations

from datetime import timedelta

import pytest

from roadmapcache.cache.memory_cache import MemoryCache


@pytest.fixture
def cache(clock):
    return MemoryCache(max_size=10, ttl=timedelta(hours=24), eviction_fraction=0.1, clock=clock)


class TestConstruction:
    def test_invalid_max_size(self):
        with pytest.raises(ValueError, match="max_size"):
            MemoryCache(max_size=0)

    @pytest.mark.parametrize("fraction", [0, -0.1, 1.5])
    def test_invalid_fraction(self, fraction):
        with pytest.raises(ValueError, match="eviction_fraction"):
            MemoryCache(eviction_fraction=fraction)

    def test_eviction_batch_rounds_up(self):
        assert MemoryCache(max_size=1000, eviction_fraction=0.1).eviction_batch == 100
        assert MemoryCache(max_size=5, eviction_fraction=0.1).eviction_batch == 1
        assert MemoryCache(max_size=15, eviction_fraction=0.1).eviction_batch == 2


class TestGetPut:
    def test_put_then_get(self, cache):
        cache.put("k", {"title": "R"}, owner_id="u1")
        entry = cache.get("k")
        assert entry is not None
        assert entry.artifact == {"title": "R"}
        assert entry.owner_id == "u1"

    def test_get_missing(self, cache):
        assert cache.get("nope") is None

    def test_hit_increments_access_count(self, cache, clock):
        cache.put("k", "artifact")
        clock.advance(minutes=5)
        entry = cache.get("k")
        assert entry.access_count == 2
        assert entry.last_accessed == clock.now
        assert cache.get("k").access_count == 3

    def test_returned_entry_is_a_copy(self, cache):
        cache.put("k", "artifact")
        entry = cache.get("k")
        entry.access_count = 99
        assert cache.get("k").access_count == 3

    def test_put_replaces(self, cache):
        cache.put("k", "old")
        cache.put("k", "new")
        assert cache.get("k").artifact == "new"
        assert len(cache) == 1


class TestExpiry:
    def test_exactly_ttl_is_still_fresh(self, cache, clock):
        cache.put("k", "a")
        clock.advance(hours=24)
        assert cache.get("k") is not None

    def test_expired_entry_removed_on_get(self, cache, clock):
        cache.put("k", "a")
        clock.advance(hours=24, seconds=1)
        assert cache.get("k") is None
        assert "k" not in cache

    def test_one_millisecond_past_ttl(self, cache, clock):
        cache.put("k", "a")
        clock.advance(hours=24, milliseconds=1)
        assert cache.get("k") is None

    def test_access_does_not_extend_ttl(self, cache, clock):
        cache.put("k", "a")
        clock.advance(hours=23)
        assert cache.get("k") is not None
        clock.advance(hours=2)
        assert cache.get("k") is None

    def test_sweep_expired(self, cache, clock):
        cache.put("old", "a")
        clock.advance(hours=20)
        cache.put("new", "b")
        clock.advance(hours=5)
        assert cache.sweep_expired() == 1
        assert "old" not in cache
        assert "new" in cache

    def test_sweep_nothing(self, cache):
        cache.put("k", "a")
        assert cache.sweep_expired() == 0


class TestEviction:
    def test_full_cache_evicts_batch_of_least_recent(self, clock):
        cache = MemoryCache(max_size=10, eviction_fraction=0.3, clock=clock)
        for i in range(10):
            cache.put(f"k{i}", i)
            clock.advance(seconds=1)
        # Touch k0 so it is no longer among the oldest.
        cache.get("k0")
        clock.advance(seconds=1)

        cache.put("k10", 10)

        assert len(cache) == 8
        assert "k0" in cache
        for gone in ("k1", "k2", "k3"):
            assert gone not in cache
        assert "k10" in cache

    def test_max_size_plus_one_keeps_most_recent(self, clock):
        cache = MemoryCache(max_size=20, clock=clock)
        for i in range(21):
            cache.put(f"k{i}", i)
            clock.advance(seconds=1)
        assert len(cache) <= 20
        assert "k0" not in cache
        assert "k19" in cache
        assert "k20" in cache

    def test_overwrite_at_capacity_does_not_evict(self, clock):
        cache = MemoryCache(max_size=3, eviction_fraction=0.5, clock=clock)
        for i in range(3):
            cache.put(f"k{i}", i)
        cache.put("k1", "again")
        assert len(cache) == 3

    def test_evict_oldest(self, cache, clock):
        for i in range(4):
            cache.put(f"k{i}", i)
            clock.advance(seconds=1)
        assert cache.evict_oldest(2) == 2
        assert sorted(e.key for e in cache.entries()) == ["k2", "k3"]

    def test_evict_oldest_non_positive(self, cache):
        cache.put("k", 1)
        assert cache.evict_oldest(0) == 0
        assert len(cache) == 1


class TestRemoval:
    def test_remove(self, cache):
        cache.put("k", 1)
        assert cache.remove("k") is True
        assert cache.remove("k") is False

    def test_remove_owner(self, cache):
        cache.put("a", 1, owner_id="u1")
        cache.put("b", 2, owner_id="u2")
        cache.put("c", 3, owner_id="u1")
        assert cache.remove_owner("u1") == 2
        assert [e.key for e in cache.entries()] == ["b"]

    def test_clear(self, cache):
        cache.put("a", 1)
        cache.clear()
        assert len(cache) == 0
