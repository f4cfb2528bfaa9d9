"""
Stage 7: Persist session state and the turn.

Writes the post-turn phase state, crisis level and turn count first, then
the parent message and assistant reply. The two writes are reported
separately (state_persisted, history_persisted); either failure is logged
and the reply is still returned. When the state write fails the turn is
not written either, so history never holds a turn the session count does
not include.

Discovery handoff: after a discovery or partial-discovery turn the profile
is re-read, and at 100% completeness the session is marked complete so the
next message starts a new session.
"""

import uuid
from typing import TYPE_CHECKING

import structlog

from ..base import TurnStage
from src.domain.models.pipeline_contracts import SessionPersistenceOutput
from src.domain.models.session import SessionStatus
from src.domain.models.utterance import Speaker, Utterance
from src.services import profile_completeness
from src.services.protocols import IProfileStore, ISessionStore, ITurnStore

log = structlog.get_logger(__name__)

if TYPE_CHECKING:
    from ..context import PipelineContext


class SessionPersistenceStage(TurnStage):
    def __init__(
        self,
        session_store: ISessionStore,
        turn_store: ITurnStore,
        profile_store: IProfileStore,
    ):
        self.sessions = session_store
        self.turns = turn_store
        self.profiles = profile_store

    async def process(self, context: "PipelineContext") -> "PipelineContext":
        session = context.session
        updated = session.model_copy(
            update={
                "phase": context.phase_state,
                "crisis_level": context.crisis_level,
                "turn_count": context.turn_number,
            }
        )

        try:
            await self.sessions.save_state(updated)
        except Exception as e:
            log.error(
                "session_persist_failed",
                session_id=session.id,
                turn_number=context.turn_number,
                error=str(e),
                exc_info=True,
            )
            context.session_persistence_output = SessionPersistenceOutput(
                state_persisted=False, history_persisted=False
            )
            return context

        output = SessionPersistenceOutput(
            state_persisted=True,
            history_persisted=await self._save_turn(context),
        )
        if session.mode.is_discovery:
            output = await self._check_discovery_complete(context, output)

        context.session_persistence_output = output
        return context

    async def _save_turn(self, context: "PipelineContext") -> bool:
        session_id = context.session.id
        reply = context.reply_generation_output
        try:
            await self.turns.save_turn(
                Utterance(
                    id=str(uuid.uuid4()),
                    session_id=session_id,
                    turn_number=context.turn_number,
                    speaker=Speaker.USER,
                    text=context.message,
                ),
                Utterance(
                    id=str(uuid.uuid4()),
                    session_id=session_id,
                    turn_number=context.turn_number,
                    speaker=Speaker.ASSISTANT,
                    text=reply.reply_text,
                    input_tokens=reply.usage.get("input_tokens", 0),
                    output_tokens=reply.usage.get("output_tokens", 0),
                ),
            )
        except Exception as e:
            log.error(
                "turn_history_persist_failed",
                session_id=session_id,
                turn_number=context.turn_number,
                error=str(e),
                exc_info=True,
            )
            return False
        return True

    async def _check_discovery_complete(
        self, context: "PipelineContext", output: SessionPersistenceOutput
    ) -> SessionPersistenceOutput:
        session_id = context.session.id
        try:
            parent = await self.profiles.get_parent(context.user_id)
            children = await self.profiles.get_children(context.user_id)
            completeness = profile_completeness.evaluate(parent, children)
            output.completeness = completeness
            if completeness.is_complete:
                await self.sessions.update(session_id, {"status": SessionStatus.COMPLETE})
                output.session_completed = True
                log.info("discovery_session_completed", session_id=session_id)
        except Exception as e:
            log.error(
                "discovery_completion_check_failed",
                session_id=session_id,
                error=str(e),
                exc_info=True,
            )
        return output
