# tests/integration/roadmap/test_int_cache_scenarios.py - v1
"""End-to-end cache scenarios through the public facade.

Real JSON/SQLite stores, fake generator, controllable clock.
"""

from __future__ import annotations

import pytest

from roadmapcache.api.facade import build_cache_service, build_generation_service
from roadmapcache.cache.cache_key import derive_cache_key
from roadmapcache.config.settings import Settings
from roadmapcache.core.normalizer import normalize

from conftest import make_record


@pytest.fixture(params=["json", "sqlite"])
def settings(request, tmp_path):
    return Settings(_env_file=None, store_backend=request.param, store_root=tmp_path / "store")


class TestCacheScenarios:

    @pytest.mark.asyncio
    async def test_identical_profile_hits(self, settings, clock, profile_a):
        cache = build_cache_service(settings, clock=clock)
        artifact = make_record(profile_a, user_id="u1", created_at=clock.now)
        key = cache.store(profile_a, artifact)
        assert key == derive_cache_key(normalize(profile_a))

        same = {**profile_a, "interests": list(reversed(profile_a["interests"]))}
        result = await cache.lookup_detailed(same)

        assert result.hit_level == "memory"
        assert result.artifact.id == artifact.id
        assert cache.memory.entries()[0].access_count == 2
        cache.store_backend.close()

    @pytest.mark.asyncio
    async def test_similar_profile_served_from_store(self, settings, clock, profile_a, profile_b):
        cache = build_cache_service(settings, clock=clock)
        record = make_record(profile_a, user_id="u1", created_at=clock.now)
        await cache.store_backend.insert(record)

        result = await cache.lookup_detailed(profile_b)

        assert result.hit_level == "similar"
        assert result.similarity_score == pytest.approx(0.925)
        assert result.artifact.id == record.id
        cache.store_backend.close()

    @pytest.mark.asyncio
    async def test_invalidate_then_miss(self, settings, clock, profile_a):
        cache = build_cache_service(settings, clock=clock)
        record = make_record(profile_a, user_id="u1", created_at=clock.now)
        await cache.store_backend.insert(record)
        cache.store(profile_a, record)

        await cache.invalidate("u1")

        assert not (await cache.lookup_detailed(profile_a)).is_hit
        assert (await cache.store_backend.get(record.id)).status == "archived"
        cache.store_backend.close()

    @pytest.mark.asyncio
    async def test_expired_everywhere(self, settings, clock, profile_a):
        cache = build_cache_service(settings, clock=clock)
        record = make_record(profile_a, user_id="u1", created_at=clock.now)
        await cache.store_backend.insert(record)
        cache.store(profile_a, record)

        clock.advance(hours=24, minutes=1)

        assert not (await cache.lookup_detailed(profile_a)).is_hit
        cache.store_backend.close()


class TestGenerationWorkflow:

    @pytest.mark.asyncio
    async def test_generate_reuse_regenerate(self, settings, clock, fake_generator, profile_a, profile_b):
        service = build_generation_service(settings, generator=fake_generator, clock=clock)

        first = await service.generate_roadmap("u1", profile_a)
        reused = await service.generate_roadmap("u2", profile_b)
        assert reused.id == first.id
        assert len(fake_generator.calls) == 1

        # A restarted process has an empty memory tier but the same store.
        restarted = build_generation_service(
            settings, store=service.cache.store_backend, generator=fake_generator, clock=clock,
        )
        again = await restarted.generate_roadmap("u1", profile_a)
        assert again.id == first.id
        assert again.access_count == 2

        regenerated = await restarted.regenerate_roadmap("u1", profile_a)
        assert regenerated.version == 2
        assert len(fake_generator.calls) == 2
        assert (await restarted.cache.lookup(profile_b)).id == regenerated.id
        service.cache.store_backend.close()

    @pytest.mark.asyncio
    async def test_preload_after_restart(self, settings, clock, fake_generator, profile_a):
        service = build_generation_service(settings, generator=fake_generator, clock=clock)
        first = await service.generate_roadmap("u1", profile_a)
        for _ in range(5):
            service.cache.memory.clear()
            await service.generate_roadmap("u1", profile_a)

        fresh = build_cache_service(settings, store=service.cache.store_backend, clock=clock)
        assert await fresh.preload_popular() == 1
        assert first.cache_key in fresh.memory
        service.cache.store_backend.close()
