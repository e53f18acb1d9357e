# tests/unit/api/test_unit_facade.py - v1
"""Tests for api/facade.py - service wiring from settings."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from roadmapcache.api.facade import build_cache_service, build_generation_service
from roadmapcache.cache.json_store import JsonRoadmapStore
from roadmapcache.cache.sqlite_store import SqliteRoadmapStore
from roadmapcache.config.settings import Settings
from roadmapcache.roadmap.generator import LLMRoadmapGenerator


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        store_root=tmp_path / "store",
        cache_ttl_hours=6,
        memory_cache_max_size=200,
        memory_cache_eviction_fraction=0.25,
        similarity_threshold=0.8,
        cache_preload_min_access_count=3,
    )


class TestBuildCacheService:
    def test_wires_settings(self, settings):
        service = build_cache_service(settings)
        assert isinstance(service.store_backend, JsonRoadmapStore)
        assert service.memory.max_size == 200
        assert service.memory.ttl == timedelta(hours=6)
        assert service.memory.eviction_batch == 50
        assert service._threshold == 0.8
        assert service._preload_min_access_count == 3
        assert not service.running

    @pytest.mark.asyncio
    async def test_maintenance_flag(self, tmp_path):
        s = Settings(_env_file=None, store_root=tmp_path, cache_maintenance_enabled=False)
        service = build_cache_service(s)
        service.start()
        assert not service.running

        assert not service.running

    def test_explicit_store(self, settings, tmp_path):
        store = SqliteRoadmapStore(tmp_path / "x.db")
        try:
            assert build_cache_service(settings, store=store).store_backend is store
        finally:
            store.close()

    def test_shared_clock(self, settings, clock):
        service = build_cache_service(settings, clock=clock)
        service.store({"currentLevel": "college"}, "a")
        assert service.memory.entries()[0].stored_at == clock.now


class TestBuildGenerationService:
    @pytest.mark.asyncio
    async def test_with_generator(self, settings, fake_generator, profile_a):
        service = build_generation_service(settings, generator=fake_generator)
        roadmap = await service.generate_roadmap("u1", profile_a)
        assert roadmap.title.startswith("Your Career Roadmap")
        assert (await service.cache.store_backend.get(roadmap.id)) is not None

    def test_builds_llm_generator_from_settings(self, settings):
        client = MagicMock()
        with patch(
            "roadmapcache.llm.client_factory.create_llm_client_from_settings",
            return_value=client,
        ) as factory:
            service = build_generation_service(settings)
        factory.assert_called_once_with(settings)
        assert isinstance(service._generator, LLMRoadmapGenerator)
        assert service._generator._client is client

    def test_missing_api_key(self, settings):
        settings.google_api_key = ""
        with pytest.raises(ValueError, match="GOOGLE_API_KEY"):
            build_generation_service(settings)
