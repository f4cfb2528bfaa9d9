"""Tests for PhaseUpdateStage and ProfileEvaluationStage contracts."""

from unittest.mock import AsyncMock

import pytest

from src.core.config import CoachingConfig
from src.domain.models.pipeline_contracts import PhaseUpdateOutput, SessionLoadingOutput
from src.domain.models.profile import ChildProfile, ParentProfile
from src.domain.models.session import CoachingPhase, PhaseState, SessionMode
from src.services.phase_controller import PhaseController
from src.services.turn_pipeline.context import PipelineContext
from src.services.turn_pipeline.stages.phase_update_stage import PhaseUpdateStage
from src.services.turn_pipeline.stages.profile_evaluation_stage import (
    ProfileEvaluationStage,
)


def loaded(session):
    context = PipelineContext(user_id=session.user_id, message="hello")
    context.session_loading_output = SessionLoadingOutput(
        session=session, created=False, turn_number=session.turn_count + 1
    )
    return context


@pytest.fixture
def phase_stage():
    return PhaseUpdateStage(PhaseController(CoachingConfig()))


class TestPhaseUpdateStage:
    @pytest.mark.asyncio
    async def test_skips_non_coaching(self, phase_stage, session_factory):
        context = await phase_stage.process(loaded(session_factory(SessionMode.CHECK_IN)))

        assert context.phase_update_output is None
        # Falls back to the stored state
        assert context.phase_state == context.session.phase

    @pytest.mark.asyncio
    async def test_reality_turn_increments_depth(self, phase_stage, session_factory):
        phase = PhaseState(
            current_phase=CoachingPhase.REALITY,
            reality_exploration_depth=3,
            time_budget_minutes=30,
        )
        session = session_factory(phase=phase)

        context = await phase_stage.process(loaded(session))

        output = context.phase_update_output
        assert isinstance(output, PhaseUpdateOutput)
        assert output.previous.reality_exploration_depth == 3
        assert output.updated.reality_exploration_depth == 4
        assert output.updated.time_elapsed_minutes == 9
        # Stored session untouched until persistence
        assert session.phase.reality_exploration_depth == 3

    @pytest.mark.asyncio
    async def test_gate_needs_signals(self, phase_stage, session_factory):
        phase = PhaseState(
            current_phase=CoachingPhase.REALITY,
            reality_exploration_depth=1,
            time_budget_minutes=5,
        )
        context = await phase_stage.process(loaded(session_factory(phase=phase)))

        output = context.phase_update_output
        assert output.updated.ready_for_options is True
        assert output.can_advance_to_options is False

    @pytest.mark.asyncio
    async def test_gate_open_with_signals(self, phase_stage, session_factory):
        phase = PhaseState(
            current_phase=CoachingPhase.REALITY,
            reality_exploration_depth=1,
            time_budget_minutes=5,
            emotions_reflected=True,
            exceptions_explored=True,
        )
        context = await phase_stage.process(loaded(session_factory(phase=phase)))

        assert context.phase_update_output.can_advance_to_options is True

    @pytest.mark.asyncio
    async def test_approaching_time_limit(self, phase_stage, session_factory):
        phase = PhaseState(
            current_phase=CoachingPhase.REALITY,
            reality_exploration_depth=1,
            time_budget_minutes=5,
        )
        context = await phase_stage.process(loaded(session_factory(phase=phase)))
        assert context.phase_update_output.approaching_time_limit is True

    @pytest.mark.asyncio
    async def test_no_time_signal_after_extension_offered(self, phase_stage, session_factory):
        phase = PhaseState(
            current_phase=CoachingPhase.REALITY,
            reality_exploration_depth=1,
            time_budget_minutes=5,
            time_extension_offered=True,
        )
        context = await phase_stage.process(loaded(session_factory(phase=phase)))
        assert context.phase_update_output.approaching_time_limit is False


@pytest.fixture
def profile_store():
    store = AsyncMock()
    store.get_parent = AsyncMock(
        return_value=ParentProfile(user_id="user-1", parent_name="Alex")
    )
    store.get_children = AsyncMock(
        return_value=[
            ChildProfile(user_id="user-1", child_name="Ava", child_age=7),
            ChildProfile(user_id="user-1", child_name="Sam", child_age=9, is_primary=True),
        ]
    )
    return store


class TestProfileEvaluationStage:
    @pytest.mark.asyncio
    async def test_check_in_reads_nothing(self, profile_store, session_factory):
        stage = ProfileEvaluationStage(profile_store)
        context = await stage.process(loaded(session_factory(SessionMode.CHECK_IN)))

        assert context.profile_evaluation_output.facts.parent is None
        profile_store.get_parent.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_coaching_loads_facts_without_completeness(
        self, profile_store, session_factory
    ):
        stage = ProfileEvaluationStage(profile_store)
        context = await stage.process(loaded(session_factory(SessionMode.COACHING)))

        output = context.profile_evaluation_output
        assert output.completeness is None
        assert output.facts.parent.parent_name == "Alex"
        assert output.facts.primary_child.child_name == "Sam"

    @pytest.mark.asyncio
    async def test_discovery_evaluates_completeness(self, profile_store, session_factory):
        stage = ProfileEvaluationStage(profile_store)
        context = await stage.process(loaded(session_factory(SessionMode.DISCOVERY)))

        output = context.profile_evaluation_output
        assert output.completeness.completion_percentage == 40
        assert output.facts.completeness is output.completeness
