# src/cache/cache_key.py - v1
"""Deterministic cache-key derivation from a normalized profile.

Interests and goals are sorted before joining, so the key does not depend on
the order the user picked them in. Keys are not hashes: two profiles giving
the same key are treated as cache-equivalent.
"""

from __future__ import annotations

import re
import uuid

from roadmapcache.core.models import UserProfile

KEY_PREFIX = "roadmap"
_SEPARATOR = "_"
_DISALLOWED = re.compile(r"[^a-zA-Z0-9_]")
_SUFFIX_LENGTH = 9


def derive_cache_key(profile: UserProfile, override: str | None = None) -> str:
    """Derive the cache key for a profile.

    Args:
        profile: Normalized profile.
        override: Pre-supplied key (e.g. a suffixed key after a duplicate
            insert). Returned as-is when set.

    Returns:
        Lower-cased key containing only [a-z0-9_].
    """
    if override:
        return override

    parts = [
        KEY_PREFIX,
        profile.current_level,
        profile.career_stage,
        _SEPARATOR.join(sorted(profile.interests)),
        _SEPARATOR.join(sorted(profile.goals)),
        profile.time_commitment,
        profile.preferred_learning_style,
    ]
    return clean_key(_SEPARATOR.join(parts))


def clean_key(key: str) -> str:
    """Strip characters outside [A-Za-z0-9_] and lower-case."""
    return _DISALLOWED.sub("", key).lower()


def with_unique_suffix(key: str) -> str:
    """Append a random 9-char suffix, used to retry a duplicate insert."""
    return f"{key}{_SEPARATOR}{uuid.uuid4().hex[:_SUFFIX_LENGTH]}"
