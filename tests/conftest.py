# tests/conftest.py - v2
"""Shared test fixtures for all unit and integration tests.

Provides a controllable clock, sample onboarding profiles, roadmap records,
a fake generator and temp-dir stores. No network: the LLM is never called.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from roadmapcache.cache.json_store import JsonRoadmapStore
from roadmapcache.core.normalizer import snapshot
from roadmapcache.logging.context import clear_context
from roadmapcache.roadmap.generator import BaseRoadmapGenerator
from roadmapcache.roadmap.models import GenerationMetadata, PersistedRoadmap, RoadmapDraft

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeGenerator(BaseRoadmapGenerator):
    """Returns a canned draft and records every profile it was asked for."""

    def __init__(self, title: str = "Your Career Roadmap") -> None:
        self.title = title
        self.calls: list[Any] = []

    async def generate(self, profile):
        self.calls.append(profile)
        return RoadmapDraft(
            title=f"{self.title} #{len(self.calls)}",
            description="Twelve months of focused steps.",
            content={"phases": [{"name": "Foundations", "months": 3}]},
            model="fake-model",
            prompt="prompt",
        )


def make_record(
    raw_profile: dict[str, Any],
    user_id: str = "user_1",
    cache_key: str | None = None,
    created_at: datetime = T0,
    **overrides: Any,
) -> PersistedRoadmap:
    """PersistedRoadmap for a raw profile, keyed like the service would key it."""
    from roadmapcache.cache.cache_key import derive_cache_key

    profile = snapshot(raw_profile)
    fields: dict[str, Any] = dict(
        user_id=user_id,
        cache_key=cache_key or derive_cache_key(profile),
        title="Roadmap",
        description="A roadmap",
        content={"phases": []},
        user_profile=profile,
        generated_by=GenerationMetadata(model="fake-model", generated_at=created_at),
        last_accessed=created_at,
        created_at=created_at,
    )
    fields.update(overrides)
    return PersistedRoadmap(**fields)


# === FIXTURES: Clock and profiles ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def profile_a() -> dict[str, Any]:
    """Onboarding answers as the web client sends them (camelCase)."""
    return {
        "currentLevel": "college",
        "careerStage": "exploring",
        "interests": ["tech", "business"],
        "goals": ["growth"],
        "timeCommitment": "3-5h",
        "preferredLearningStyle": "visual",
    }


@pytest.fixture
def profile_b(profile_a: dict[str, Any]) -> dict[str, Any]:
    """Same as profile_a except one of two interests differs."""
    return {**profile_a, "interests": ["tech", "design"]}


@pytest.fixture
def profile_far() -> dict[str, Any]:
    return {
        "currentLevel": "senior",
        "careerStage": "transitioning",
        "interests": ["healthcare"],
        "goals": ["leadership"],
        "timeCommitment": "10h+",
        "preferredLearningStyle": "reading",
    }


# === FIXTURES: Stores and generators ===


@pytest.fixture
def json_store(tmp_path) -> JsonRoadmapStore:
    return JsonRoadmapStore(store_root=tmp_path / "store")


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()
