# tests/unit/core/test_normalizer.py - v1
"""Tests for core/normalizer.py - raw user records to UserProfile."""

from __future__ import annotations

from enum import Enum
from types import SimpleNamespace

from roadmapcache.core.models import UNKNOWN, ProfileSnapshot, UserProfile
from roadmapcache.core.normalizer import normalize, snapshot


class Level(Enum):
    COLLEGE = "college"


class TestNormalize:
    def test_camel_case_mapping(self, profile_a):
        p = normalize(profile_a)
        assert p.current_level == "college"
        assert p.career_stage == "exploring"
        assert p.interests == frozenset({"tech", "business"})
        assert p.goals == frozenset({"growth"})
        assert p.time_commitment == "3-5h"
        assert p.preferred_learning_style == "visual"

    def test_snake_case_mapping(self):
        p = normalize({"current_level": "college", "preferred_learning_style": "visual"})
        assert p.current_level == "college"
        assert p.preferred_learning_style == "visual"

    def test_nested_onboarding_block(self):
        raw = {"name": "Ana", "onboardingData": {"careerStage": "exploring", "goals": ["growth"]}}
        p = normalize(raw)
        assert p.career_stage == "exploring"
        assert p.goals == frozenset({"growth"})

    def test_top_level_wins_over_nested(self):
        raw = {"currentLevel": "senior", "onboardingData": {"currentLevel": "college"}}
        assert normalize(raw).current_level == "senior"

    def test_attribute_object(self):
        raw = SimpleNamespace(current_level="college", interests=["tech"])
        p = normalize(raw)
        assert p.current_level == "college"
        assert p.interests == frozenset({"tech"})

    def test_none_gives_all_defaults(self):
        assert normalize(None) == UserProfile()

    def test_missing_and_blank_fields_default(self):
        p = normalize({"currentLevel": "  ", "interests": None})
        assert p.current_level == UNKNOWN
        assert p.career_stage == UNKNOWN
        assert p.interests == frozenset()

    def test_scalar_tag_is_wrapped(self):
        assert normalize({"interests": "tech"}).interests == frozenset({"tech"})

    def test_blank_tags_dropped(self):
        assert normalize({"goals": ["growth", "", " "]}).goals == frozenset({"growth"})

    def test_enum_values(self):
        assert normalize({"currentLevel": Level.COLLEGE}).current_level == "college"

    def test_user_profile_passthrough(self):
        snap = ProfileSnapshot(current_level="college", current_skills=["sql"])
        p = normalize(snap)
        assert type(p) is UserProfile
        assert p.current_level == "college"

    def test_tag_order_irrelevant(self):
        a = normalize({"interests": ["tech", "business"]})
        b = normalize({"interests": ["business", "tech"]})
        assert a == b


class TestSnapshot:
    def test_keeps_skills_and_experience(self):
        raw = {
            "currentLevel": "college",
            "profile": {"currentSkills": ["sql", "python"], "experience": "Intern"},
        }
        snap = snapshot(raw)
        assert snap.current_level == "college"
        assert snap.current_skills == ["python", "sql"]
        assert snap.experience == "Intern"

    def test_defaults(self):
        snap = snapshot({})
        assert snap.current_skills == []
        assert snap.experience == ""
        assert snap.as_profile() == UserProfile()

    def test_snapshot_passthrough(self):
        snap = ProfileSnapshot(current_level="college")
        assert snapshot(snap) is snap
