"""
Prompts for intake (discovery) sessions.

Two stances:
- discovery: structured intake from scratch
- partial-discovery: resumed intake that asks only for missing tiers and
  acknowledges what is already on file
"""

from typing import List, Optional

from src.domain.models.profile import ProfileCompleteness, ProfileFacts
from src.services.profile_completeness import (
    CHILD_DETAILS,
    CHILD_PROFILES,
    PARENT_INFO,
    SCHOOL_INFO,
    TREATMENT_INFO,
)

DISCOVERY_PROMPT = """You are running a short intake conversation to set up a parent's profile. This is not a coaching session: you are gathering information so later sessions can be personalised.

## Your role
- Warm but efficient, like a friendly intake coordinator
- Ask direct questions and move through them in order
- No coaching, no advice, no deep exploration

## Ask about all children first
Start with "How many children do you have?" and then collect each child in turn.

## Information to collect per child
1. Basics: name (always first), age or grade, ADHD diagnosis status
2. Main challenges: the top two or three right now, and what they are good at
3. School: type of school, grade, any support plan such as an IEP or 504
4. Treatment and support: medication, therapy or counselling, who else helps

## After all children
5. Family context: family setup and key support people

## Pacing
About ten minutes in total. Keep replies short and keep it moving."""


def _child_label(facts: Optional[ProfileFacts]) -> str:
    child = facts.primary_child if facts else None
    return child.child_name if child and child.child_name else "your child"


def missing_field_questions(
    completeness: ProfileCompleteness, facts: Optional[ProfileFacts] = None
) -> List[str]:
    """One suggested question per missing tier, in tier order."""
    name = _child_label(facts)
    questions = {
        PARENT_INFO: (
            "What's your first name? And briefly, what does your family setup look like?"
        ),
        CHILD_PROFILES: (
            "How many children do you have? Starting with the first, what's their name and age?"
        ),
        CHILD_DETAILS: (
            f"What are the top two or three challenges with {name} right now? "
            f"And what are some of {name}'s strengths?"
        ),
        SCHOOL_INFO: (
            f"Tell me about {name}'s school: what type of school and what grade?"
        ),
        TREATMENT_INFO: (
            f"Is {name} taking any medication for ADHD, or working with a therapist or counsellor?"
        ),
    }
    return [f"- {field}: {questions[field]}" for field in completeness.missing_fields]


def summarize_existing_profile(facts: Optional[ProfileFacts]) -> str:
    """Facts already on file, so the model does not ask for them again."""
    lines: List[str] = []
    if facts is not None:
        if facts.parent and facts.parent.parent_name:
            lines.append(f"- Parent name: {facts.parent.parent_name}")
        if facts.parent and facts.parent.family_context:
            lines.append(f"- Family context: {facts.parent.family_context}")
        for child in facts.children:
            details = []
            if child.child_age is not None:
                details.append(f"age {child.child_age}")
            if child.main_challenges:
                details.append(f"challenges: {', '.join(child.main_challenges)}")
            if child.strengths:
                details.append(f"strengths: {', '.join(child.strengths)}")
            if child.school_type or child.grade_level:
                school = " ".join(x for x in (child.school_type, child.grade_level) if x)
                details.append(f"school: {school}")
            if child.medication_status:
                details.append(f"medication: {child.medication_status}")
            if child.therapy_status:
                details.append(f"therapy: {child.therapy_status}")
            suffix = f" ({'; '.join(details)})" if details else ""
            lines.append(f"- Child: {child.child_name or 'unnamed'}{suffix}")
    return "\n".join(lines) if lines else "- Nothing recorded yet"


def get_discovery_system_prompt() -> str:
    return DISCOVERY_PROMPT


def get_partial_discovery_system_prompt(
    completeness: ProfileCompleteness, facts: Optional[ProfileFacts] = None
) -> str:
    """
    Build the resumed-intake system prompt.

    Only the missing tiers are asked about; everything already known is
    listed so it is acknowledged rather than re-asked.
    """
    return f"""You are continuing an intake conversation this parent started earlier. Their profile is {completeness.completion_percentage}% complete. Collect only the missing information.

## What we already have
{summarize_existing_profile(facts)}

## What we still need
{chr(10).join(missing_field_questions(completeness, facts))}

## Your role
- Start by acknowledging what you already know, for example "I see you've already told me about {_child_label(facts)}"
- Ask only about the missing items above, in that order
- Never re-ask for information we already have
- Keep it brief: two to four exchanges

## Tone
Efficient and appreciative of their time: "Just a couple more quick questions to finish your profile." """
