# src/roadmap/models.py - v1
"""Roadmap domain models: PersistedRoadmap, RoadmapDraft, GenerationMetadata.

The roadmap body produced by the generator is opaque to the cache layer and
kept in ``content``. Only ownership, status, the profile snapshot and the
access counters are read by the cache.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from roadmapcache.core.models import ProfileSnapshot

RoadmapStatus = Literal["active", "archived", "completed"]


def new_roadmap_id() -> str:
    return uuid.uuid4().hex


class GenerationMetadata(BaseModel):
    """Which model produced a roadmap, and why."""

    model: str
    prompt: str = ""
    generated_at: datetime
    regeneration_reason: str | None = None


class RoadmapDraft(BaseModel):
    """Generator output before it is persisted."""

    title: str
    description: str
    content: dict[str, Any] = Field(default_factory=dict)
    model: str = "unknown"
    prompt: str = ""


class PersistedRoadmap(BaseModel):
    """Durable roadmap record, as kept by a BaseRoadmapStore."""

    id: str = Field(default_factory=new_roadmap_id)
    user_id: str
    cache_key: str
    status: RoadmapStatus = "active"
    version: int = 1
    title: str
    description: str
    content: dict[str, Any] = Field(default_factory=dict)
    user_profile: ProfileSnapshot
    generated_by: GenerationMetadata
    access_count: int = 0
    last_accessed: datetime
    created_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status == "active"
