"""Tests for profile completeness evaluation."""

import itertools

import pytest

from src.domain.models.profile import ChildProfile, ParentProfile
from src.services import profile_completeness
from src.services.profile_completeness import (
    CHILD_DETAILS,
    CHILD_PROFILES,
    PARENT_INFO,
    SCHOOL_INFO,
    TREATMENT_INFO,
    evaluate,
    primary_child,
    progress_message,
)

USER = "user-1"


def full_child(**overrides) -> ChildProfile:
    data = dict(
        user_id=USER,
        child_name="Sam",
        child_age=9,
        main_challenges=["mornings"],
        strengths=["lego"],
        school_type="public",
        grade_level="4",
        medication_status="stimulant",
        therapy_status="weekly CBT",
    )
    data.update(overrides)
    return ChildProfile(**data)


class TestEvaluate:
    def test_empty_profile(self):
        result = evaluate(None, [])

        assert result.completion_percentage == 0
        assert result.missing_fields == [
            PARENT_INFO,
            CHILD_PROFILES,
            CHILD_DETAILS,
            SCHOOL_INFO,
            TREATMENT_INFO,
        ]
        assert result.completed_fields == []

    def test_complete_profile(self):
        result = evaluate(ParentProfile(user_id=USER, parent_name="Alex"), [full_child()])

        assert result.completion_percentage == 100
        assert result.missing_fields == []
        assert result.is_complete

    def test_child_with_name_and_age_only(self):
        """One child with name and age: only the children tier is met."""
        parent = ParentProfile(user_id=USER, parent_name="Alex")
        child = ChildProfile(user_id=USER, child_name="Sam", child_age=9)

        result = evaluate(parent, [child])

        assert result.has_children is True
        assert result.has_child_details is False
        assert result.has_school_info is False
        assert result.has_treatment_info is False
        assert result.missing_fields == [CHILD_DETAILS, SCHOOL_INFO, TREATMENT_INFO]
        assert result.completion_percentage == 40

    def test_child_without_age_does_not_count(self):
        result = evaluate(None, [ChildProfile(user_id=USER, child_name="Sam")])
        assert result.has_children is False

    def test_parent_info_from_family_context_alone(self):
        parent = ParentProfile(user_id=USER, family_context="Two parents, one child")
        assert evaluate(parent, []).has_parent_info is True

    def test_blank_strings_are_not_present(self):
        parent = ParentProfile(user_id=USER, parent_name="   ")
        assert evaluate(parent, []).has_parent_info is False

    def test_details_need_challenge_and_strength(self):
        child = full_child(strengths=[])
        assert evaluate(None, [child]).has_child_details is False

    def test_school_tier_accepts_grade_only(self):
        child = full_child(school_type=None)
        assert evaluate(None, [child]).has_school_info is True

    def test_treatment_tier_accepts_therapy_only(self):
        child = full_child(medication_status=None)
        assert evaluate(None, [child]).has_treatment_info is True

    def test_tiers_use_primary_child(self):
        first = ChildProfile(user_id=USER, child_name="Ada", child_age=6)
        second = full_child(child_name="Ben", is_primary=True)

        result = evaluate(None, [first, second])

        assert result.has_child_details is True
        assert result.has_school_info is True


class TestPrimaryChild:
    def test_flagged_child_wins(self):
        a = ChildProfile(user_id=USER, child_name="A")
        b = ChildProfile(user_id=USER, child_name="B", is_primary=True)
        assert primary_child([a, b]) is b

    def test_falls_back_to_first(self):
        a = ChildProfile(user_id=USER, child_name="A")
        b = ChildProfile(user_id=USER, child_name="B")
        assert primary_child([a, b]) is a

    def test_no_children(self):
        assert primary_child([]) is None


# Each field that can be added, as (parent fields, child fields)
FIELDS = [
    ("parent_name", None),
    ("family_context", None),
    (None, "child_name"),
    (None, "child_age"),
    (None, "main_challenges"),
    (None, "strengths"),
    (None, "school_type"),
    (None, "grade_level"),
    (None, "medication_status"),
    (None, "therapy_status"),
]
VALUES = {
    "parent_name": "Alex",
    "family_context": "Single parent",
    "child_name": "Sam",
    "child_age": 9,
    "main_challenges": ["focus"],
    "strengths": ["music"],
    "school_type": "public",
    "grade_level": "4",
    "medication_status": "none",
    "therapy_status": "OT",
}


def _build(field_set):
    parent_fields = {p: VALUES[p] for p, _ in field_set if p}
    child_fields = {c: VALUES[c] for _, c in field_set if c}
    parent = ParentProfile(user_id=USER, **parent_fields) if parent_fields else None
    children = [ChildProfile(user_id=USER, **child_fields)] if child_fields else []
    return evaluate(parent, children).completion_percentage


def test_completion_is_monotonic():
    """Adding fields never lowers the percentage."""
    for size in range(len(FIELDS)):
        for subset in itertools.combinations(FIELDS, size):
            base = _build(subset)
            for extra in FIELDS:
                if extra in subset:
                    continue
                assert _build(subset + (extra,)) >= base


@pytest.mark.parametrize(
    "pct,expected",
    [
        (0, "Let's get started with your profile."),
        (100, "Your profile is complete."),
    ],
)
def test_progress_message_extremes(pct, expected):
    snapshot = profile_completeness.ProfileCompleteness(completion_percentage=pct)
    assert progress_message(snapshot) == expected


def test_progress_message_partial():
    snapshot = evaluate(ParentProfile(user_id=USER, parent_name="Alex"), [])
    message = progress_message(snapshot)

    assert message.startswith("Your profile is 20% complete.")
    assert "child profiles" in message
    assert "and 2 more" in message
