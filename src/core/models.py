# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

UserProfile is the six-field projection every cache and similarity decision
is made on. ProfileSnapshot is the richer copy persisted next to a roadmap.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Value used for any scalar profile field the caller did not provide.
# It compares equal to itself, so two profiles both missing a field match on it.
UNKNOWN = "unknown"

SCALAR_FIELDS: tuple[str, ...] = (
    "current_level",
    "career_stage",
    "time_commitment",
    "preferred_learning_style",
)
TAG_FIELDS: tuple[str, ...] = ("interests", "goals")


class UserProfile(BaseModel):
    """Normalized, immutable user profile used for cache decisions."""

    model_config = ConfigDict(frozen=True)

    current_level: str = UNKNOWN
    career_stage: str = UNKNOWN
    interests: frozenset[str] = Field(default_factory=frozenset)
    goals: frozenset[str] = Field(default_factory=frozenset)
    time_commitment: str = UNKNOWN
    preferred_learning_style: str = UNKNOWN

    def as_profile(self) -> UserProfile:
        """Project down to the six matching fields."""
        return UserProfile(
            current_level=self.current_level,
            career_stage=self.career_stage,
            interests=self.interests,
            goals=self.goals,
            time_commitment=self.time_commitment,
            preferred_learning_style=self.preferred_learning_style,
        )


class ProfileSnapshot(UserProfile):
    """Profile copy stored with a roadmap (regeneration context)."""

    current_skills: list[str] = Field(default_factory=list)
    experience: str = ""
