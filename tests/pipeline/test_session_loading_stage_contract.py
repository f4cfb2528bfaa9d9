"""Tests for SessionLoadingStage contract."""

from unittest.mock import AsyncMock

import pytest

from src.core.config import CoachingConfig
from src.core.exceptions import SessionNotFoundError
from src.domain.models.pipeline_contracts import SessionLoadingOutput
from src.domain.models.profile import ChildProfile, ParentProfile
from src.domain.models.session import SessionMode, SessionStatus
from src.domain.models.utterance import Speaker, Utterance
from src.services.turn_pipeline.context import PipelineContext
from src.services.turn_pipeline.stages.session_loading_stage import SessionLoadingStage

USER = "user-1"


@pytest.fixture
def session_store():
    store = AsyncMock()
    store.get = AsyncMock(return_value=None)
    store.get_active_for_user = AsyncMock(return_value=None)
    store.close_active_for_user = AsyncMock(return_value=0)
    store.create = AsyncMock(side_effect=lambda session: session)
    return store


@pytest.fixture
def turn_store():
    store = AsyncMock()
    store.get_recent = AsyncMock(return_value=[])
    return store


@pytest.fixture
def profile_store():
    store = AsyncMock()
    store.get_parent = AsyncMock(return_value=None)
    store.get_children = AsyncMock(return_value=[])
    return store


@pytest.fixture
def stage(session_store, turn_store, profile_store):
    return SessionLoadingStage(session_store, turn_store, profile_store, CoachingConfig())


def complete_profile(profile_store):
    profile_store.get_parent.return_value = ParentProfile(user_id=USER, parent_name="Alex")
    profile_store.get_children.return_value = [
        ChildProfile(
            user_id=USER,
            child_name="Sam",
            child_age=9,
            main_challenges=["focus"],
            strengths=["music"],
            school_type="public",
            medication_status="none",
        )
    ]


@pytest.mark.asyncio
async def test_creates_check_in_session_for_new_user(stage, session_store):
    context = await stage.process(PipelineContext(user_id=USER, message="hi"))

    output = context.session_loading_output
    assert isinstance(output, SessionLoadingOutput)
    assert output.created is True
    assert output.turn_number == 1
    assert output.session.mode == SessionMode.CHECK_IN
    assert output.session.phase.time_budget_minutes == 15
    assert output.completeness.completion_percentage == 0
    session_store.create.assert_awaited_once()


@pytest.mark.asyncio
async def test_coaching_session_uses_requested_budget(stage, profile_store):
    complete_profile(profile_store)
    context = await stage.process(
        PipelineContext(
            user_id=USER,
            message="hi",
            explicit_mode=SessionMode.COACHING,
            time_budget_minutes=50,
        )
    )

    session = context.session
    assert session.mode == SessionMode.COACHING
    assert session.phase.time_budget_minutes == 50


@pytest.mark.asyncio
async def test_coaching_default_budget(stage, profile_store):
    complete_profile(profile_store)
    context = await stage.process(
        PipelineContext(user_id=USER, message="hi", explicit_mode=SessionMode.COACHING)
    )
    assert context.session.phase.time_budget_minutes == 30


@pytest.mark.asyncio
async def test_discovery_budget_is_fixed(stage):
    context = await stage.process(
        PipelineContext(
            user_id=USER,
            message="hi",
            explicit_mode=SessionMode.DISCOVERY,
            time_budget_minutes=50,
        )
    )
    assert context.session.mode == SessionMode.DISCOVERY
    assert context.session.phase.time_budget_minutes == 10


@pytest.mark.asyncio
async def test_resumes_active_session(stage, session_store, turn_store, session_factory):
    active = session_factory(SessionMode.CHECK_IN, turn_count=3)
    session_store.get_active_for_user.return_value = active
    turn_store.get_recent.return_value = [
        Utterance(id="u1", session_id=active.id, turn_number=3, speaker=Speaker.USER, text="a"),
        Utterance(
            id="u2", session_id=active.id, turn_number=3, speaker=Speaker.ASSISTANT, text="b"
        ),
    ]

    context = await stage.process(PipelineContext(user_id=USER, message="hi"))

    assert context.session_loading_output.created is False
    assert context.session is active
    assert context.turn_number == 4
    assert context.history == [
        {"role": "user", "content": "a"},
        {"role": "assistant", "content": "b"},
    ]
    session_store.create.assert_not_awaited()
    turn_store.get_recent.assert_awaited_once_with(active.id, limit=50)


@pytest.mark.asyncio
async def test_force_new_closes_active(stage, session_store, session_factory):
    session_store.get_active_for_user.return_value = session_factory()

    context = await stage.process(PipelineContext(user_id=USER, message="hi", force_new=True))

    session_store.close_active_for_user.assert_awaited_once_with(USER)
    session_store.get_active_for_user.assert_not_awaited()
    assert context.session_loading_output.created is True


@pytest.mark.asyncio
async def test_explicit_session_id(stage, session_store, session_factory):
    session = session_factory(session_id="s-9")
    session_store.get.return_value = session

    context = await stage.process(
        PipelineContext(user_id=USER, message="hi", requested_session_id="s-9")
    )
    assert context.session is session


@pytest.mark.asyncio
async def test_other_users_session_not_found(stage, session_store, session_factory):
    session_store.get.return_value = session_factory(user_id="someone-else")

    with pytest.raises(SessionNotFoundError):
        await stage.process(
            PipelineContext(user_id=USER, message="hi", requested_session_id="session-1")
        )


@pytest.mark.asyncio
async def test_unknown_session_not_found(stage):
    with pytest.raises(SessionNotFoundError):
        await stage.process(
            PipelineContext(user_id=USER, message="hi", requested_session_id="missing")
        )


@pytest.mark.asyncio
async def test_completed_session_starts_new(stage, session_store, session_factory):
    """A completed discovery session hands off to a new session."""
    session_store.get.return_value = session_factory(
        SessionMode.DISCOVERY, status=SessionStatus.COMPLETE
    )

    context = await stage.process(
        PipelineContext(user_id=USER, message="hi", requested_session_id="session-1")
    )

    assert context.session_loading_output.created is True
    assert context.session.id != "session-1"


@pytest.mark.asyncio
async def test_partial_profile_selects_partial_discovery(stage, profile_store):
    profile_store.get_parent.return_value = ParentProfile(user_id=USER, parent_name="Alex")
    profile_store.get_children.return_value = [
        ChildProfile(user_id=USER, child_name="Sam", child_age=9)
    ]

    context = await stage.process(
        PipelineContext(user_id=USER, message="hi", explicit_mode=SessionMode.COACHING)
    )
    assert context.session.mode == SessionMode.PARTIAL_DISCOVERY
    assert context.session_loading_output.completeness.missing_fields[0] == (
        "Child age, challenges, or strengths"
    )
