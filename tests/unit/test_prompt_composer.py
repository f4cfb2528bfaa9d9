"""Tests for prompt composition."""

import pytest

from src.core.config import CoachingConfig
from src.domain.models.profile import ChildProfile, ParentProfile, ProfileFacts
from src.domain.models.session import CoachingPhase, PhaseState, SessionMode
from src.llm.prompts.check_in import CHECK_IN_PROMPT
from src.llm.prompts.discovery import DISCOVERY_PROMPT
from src.services import profile_completeness
from src.services.prompt_composer import PromptComposer

USER = "user-1"
HISTORY = [
    {"role": "user", "content": "Mornings are chaos."},
    {"role": "assistant", "content": "What does a typical morning look like?"},
]


@pytest.fixture
def composer():
    return PromptComposer(CoachingConfig())


@pytest.fixture
def partial_facts():
    parent = ParentProfile(user_id=USER, parent_name="Alex")
    children = [ChildProfile(user_id=USER, child_name="Sam", child_age=9)]
    return ProfileFacts(
        parent=parent,
        children=children,
        primary_child=children[0],
        completeness=profile_completeness.evaluate(parent, children),
    )


def test_discovery_template(composer):
    result = composer.compose(SessionMode.DISCOVERY, None, None, HISTORY)

    assert result.template == "discovery"
    assert result.system == DISCOVERY_PROMPT
    assert result.messages == HISTORY


def test_check_in_template_has_no_facts(composer, partial_facts):
    result = composer.compose(SessionMode.CHECK_IN, None, partial_facts, [])

    assert result.system == CHECK_IN_PROMPT
    assert "Sam" not in result.system


def test_partial_discovery_asks_only_missing_tiers(composer, partial_facts):
    result = composer.compose(SessionMode.PARTIAL_DISCOVERY, None, partial_facts, [])
    system = result.system

    assert "40% complete" in system
    assert "- Parent name: Alex" in system
    assert "- Child: Sam (age 9)" in system
    # Missing tiers, in fixed order
    details = system.index(profile_completeness.CHILD_DETAILS)
    school = system.index(profile_completeness.SCHOOL_INFO)
    treatment = system.index(profile_completeness.TREATMENT_INFO)
    assert details < school < treatment
    # Known tiers are not asked again
    assert "What's your first name?" not in system
    assert "How many children do you have?" not in system


def test_partial_discovery_requires_completeness(composer):
    with pytest.raises(ValueError, match="completeness"):
        composer.compose(SessionMode.PARTIAL_DISCOVERY, None, ProfileFacts(), [])


def test_coaching_injects_phase_and_time(composer, partial_facts):
    state = PhaseState(
        current_phase=CoachingPhase.REALITY,
        reality_exploration_depth=3,
        time_budget_minutes=15,
        time_elapsed_minutes=7,
    )
    result = composer.compose(SessionMode.COACHING, state, partial_facts, HISTORY)

    assert result.template == "coaching"
    assert "- Phase: reality" in result.system
    assert "- Reality exploration depth: 3 exchanges" in result.system
    assert "- Time budget: 15 minutes" in result.system
    assert "Approaching time limit" not in result.system
    assert "Sam" in result.system


def test_coaching_approaching_limit_notice(composer):
    state = PhaseState(
        current_phase=CoachingPhase.REALITY,
        time_budget_minutes=15,
        time_elapsed_minutes=11,
    )
    result = composer.compose(SessionMode.COACHING, state, None, [])
    assert "Approaching time limit" in result.system

    offered = state.model_copy(update={"time_extension_offered": True})
    result = composer.compose(SessionMode.COACHING, offered, None, [])
    assert "Approaching time limit" not in result.system


def test_coaching_requires_phase_state(composer):
    with pytest.raises(ValueError, match="phase state"):
        composer.compose(SessionMode.COACHING, None, None, [])


@pytest.mark.parametrize("mode", list(SessionMode))
def test_compose_is_deterministic(composer, partial_facts, mode):
    """Identical inputs give byte-identical instruction text."""
    state = PhaseState(current_phase=CoachingPhase.REALITY, reality_exploration_depth=2)

    first = composer.compose(mode, state, partial_facts, HISTORY)
    second = composer.compose(mode, state, partial_facts, HISTORY)

    assert first.system == second.system
    assert first.messages == second.messages
    assert first.model_dump() == second.model_dump()


def test_history_keeps_only_chat_roles(composer):
    history = HISTORY + [{"role": "system", "content": "ignored"}]
    result = composer.compose(SessionMode.CHECK_IN, None, None, history)
    assert result.messages == HISTORY
