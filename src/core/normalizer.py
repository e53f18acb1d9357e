# src/core/normalizer.py - v1
"""Profile normalizer: raw user record -> UserProfile.

Accepts whatever shape the caller holds (API payload dict, ORM-like object,
an existing UserProfile) and always returns a value. Missing scalars become
UNKNOWN, missing tag lists become empty sets.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from roadmapcache.core.models import (
    SCALAR_FIELDS,
    TAG_FIELDS,
    UNKNOWN,
    ProfileSnapshot,
    UserProfile,
)

# Nested blocks in which the original user documents keep onboarding answers.
_NESTED_BLOCKS = ("onboardingData", "onboarding_data")
_DETAIL_BLOCKS = ("profile",)


def normalize(raw: Any) -> UserProfile:
    """Extract the six comparable fields from a raw user record.

    Args:
        raw: Mapping, attribute object, UserProfile, or None.

    Returns:
        UserProfile with defaults applied. Never raises.
    """
    if isinstance(raw, UserProfile):
        return raw.as_profile()
    return UserProfile(**_extract(raw))


def snapshot(raw: Any) -> ProfileSnapshot:
    """Normalize and keep the non-matching context fields (skills, experience)."""
    if isinstance(raw, ProfileSnapshot):
        return raw
    fields = _extract(raw)
    skills = _find(raw, "current_skills", _DETAIL_BLOCKS)
    experience = _find(raw, "experience", _DETAIL_BLOCKS)
    return ProfileSnapshot(
        **fields,
        current_skills=sorted(_to_tags(skills)),
        experience=_to_text(experience, default=""),
    )


def _extract(raw: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for name in SCALAR_FIELDS:
        fields[name] = _to_text(_find(raw, name, _NESTED_BLOCKS), default=UNKNOWN)
    for name in TAG_FIELDS:
        fields[name] = _to_tags(_find(raw, name, _NESTED_BLOCKS))
    return fields


def _find(source: Any, field: str, blocks: tuple[str, ...]) -> Any:
    """Look a field up at top level, then inside the nested blocks."""
    value = _get(source, field)
    if value is not None:
        return value
    for block in blocks:
        nested = _get(source, block)
        if nested is not None:
            value = _get(nested, field)
            if value is not None:
                return value
    return None


def _get(source: Any, field: str) -> Any:
    """Read snake_case or camelCase key/attribute, None if absent."""
    if source is None:
        return None
    for name in (field, _camel(field)):
        if isinstance(source, Mapping):
            if name in source:
                return source[name]
        elif hasattr(source, name):
            return getattr(source, name)
    return None


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _to_text(value: Any, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, Enum):
        value = value.value
    text = str(value).strip()
    return text or default


def _to_tags(value: Any) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        value = [value]
    tags = set()
    for item in value:
        text = _to_text(item, default="")
        if text:
            tags.add(text)
    return frozenset(tags)
