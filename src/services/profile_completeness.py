"""
Profile completeness evaluation.

Five equally weighted intake tiers, each worth 20%:

    1. Parent information   - parent name or family context
    2. Child profiles       - at least one child with both name and age
    3. Child details        - primary child has a challenge and a strength
    4. School information   - primary child has school type or grade level
    5. Treatment information - primary child has medication or therapy status

The primary child is the first child flagged is_primary, else the first
child. Adding information can only raise the percentage.
"""

from typing import List, Optional, Sequence

from src.domain.models.profile import (
    ChildProfile,
    ParentProfile,
    ProfileCompleteness,
)

PARENT_INFO = "Parent information"
CHILD_PROFILES = "Child profiles"
CHILD_DETAILS = "Child age, challenges, or strengths"
SCHOOL_INFO = "School information"
TREATMENT_INFO = "Treatment information"

TIERS = (PARENT_INFO, CHILD_PROFILES, CHILD_DETAILS, SCHOOL_INFO, TREATMENT_INFO)


def _present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def primary_child(children: Sequence[ChildProfile]) -> Optional[ChildProfile]:
    for child in children:
        if child.is_primary:
            return child
    return children[0] if children else None


def evaluate(
    parent: Optional[ParentProfile], children: Sequence[ChildProfile]
) -> ProfileCompleteness:
    """Compute the completeness snapshot for a parent's intake profile."""
    child = primary_child(children)

    has_parent_info = parent is not None and (
        _present(parent.parent_name) or _present(parent.family_context)
    )
    has_children = any(
        _present(c.child_name) and c.child_age is not None for c in children
    )
    has_child_details = child is not None and bool(
        child.main_challenges and child.strengths
    )
    has_school_info = child is not None and (
        _present(child.school_type) or _present(child.grade_level)
    )
    has_treatment_info = child is not None and (
        _present(child.medication_status) or _present(child.therapy_status)
    )

    flags = (
        has_parent_info,
        has_children,
        has_child_details,
        has_school_info,
        has_treatment_info,
    )
    missing: List[str] = [tier for tier, ok in zip(TIERS, flags) if not ok]
    completed: List[str] = [tier for tier, ok in zip(TIERS, flags) if ok]

    return ProfileCompleteness(
        completion_percentage=round(sum(flags) / len(TIERS) * 100),
        missing_fields=missing,
        completed_fields=completed,
        has_parent_info=has_parent_info,
        has_children=has_children,
        has_child_details=has_child_details,
        has_school_info=has_school_info,
        has_treatment_info=has_treatment_info,
    )


def progress_message(completeness: ProfileCompleteness) -> str:
    """Short human-readable summary of intake progress."""
    pct = completeness.completion_percentage
    if pct == 0:
        return "Let's get started with your profile."
    if pct >= 100:
        return "Your profile is complete."
    missing = completeness.missing_fields
    head = ", ".join(m.lower() for m in missing[:2])
    more = f" and {len(missing) - 2} more" if len(missing) > 2 else ""
    return f"Your profile is {pct}% complete. Still to add: {head}{more}."
