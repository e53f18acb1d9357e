# src/cache/similarity.py - v2
"""Weighted multi-feature similarity between two normalized profiles.

score = sum(weight_i * match_i) / sum(weight_i), so the result stays in
[0, 1] even if a feature is ever made conditional.

| feature                  | weight | match                     |
|--------------------------|--------|---------------------------|
| current_level            | 0.30   | equality                  |
| career_stage             | 0.20   | equality                  |
| time_commitment          | 0.15   | equality                  |
| preferred_learning_style | 0.10   | equality                  |
| interests                | 0.15   | overlap()                 |
| goals                    | 0.10   | overlap()                 |
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from roadmapcache.core.models import UserProfile

T = TypeVar("T")

DEFAULT_THRESHOLD = 0.7

CATEGORICAL_WEIGHTS: dict[str, float] = {
    "current_level": 0.30,
    "career_stage": 0.20,
    "time_commitment": 0.15,
    "preferred_learning_style": 0.10,
}
SET_WEIGHTS: dict[str, float] = {
    "interests": 0.15,
    "goals": 0.10,
}


@dataclass(frozen=True)
class SimilarityMatch(Generic[T]):
    """Best candidate found by find_similar()."""

    item: T
    profile: UserProfile
    score: float


def overlap(a: Iterable[str], b: Iterable[str]) -> float:
    """|A ∩ B| / max(|A|, |B|); 0 when either side is empty.

    Not the standard Jaccard index: the denominator is the larger set,
    not the union.
    """
    set_a, set_b = set(a), set(b)
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / max(len(set_a), len(set_b))


def similarity_score(a: UserProfile, b: UserProfile) -> float:
    """Symmetric weighted similarity in [0, 1]."""
    score = 0.0
    total_weight = 0.0

    for field, weight in CATEGORICAL_WEIGHTS.items():
        if getattr(a, field) == getattr(b, field):
            score += weight
        total_weight += weight

    for field, weight in SET_WEIGHTS.items():
        score += weight * overlap(getattr(a, field), getattr(b, field))
        total_weight += weight

    if total_weight <= 0:
        return 0.0
    # Rounded so weight sums such as 0.30+0.20+0.15+0.05 compare equal to 0.70.
    return round(score / total_weight, 9)


def find_similar(
    profile: UserProfile,
    candidates: Iterable[tuple[UserProfile, T]],
    threshold: float = DEFAULT_THRESHOLD,
) -> SimilarityMatch[T] | None:
    """Return the best-scoring candidate strictly above ``threshold``.

    Candidates are (profile, item) pairs. On equal scores the first one seen
    wins, so callers should pass them most-popular / most-recent first.
    """
    best: SimilarityMatch[T] | None = None
    best_score = threshold

    for candidate_profile, item in candidates:
        score = similarity_score(profile, candidate_profile)
        if score > best_score:
            best_score = score
            best = SimilarityMatch(item=item, profile=candidate_profile, score=score)

    return best
