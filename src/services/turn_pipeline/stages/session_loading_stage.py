"""
Stage 1: Load or create the session.

Resolution order:
    1. An explicit session id (must belong to the user). A completed
       session is never resumed; a new one is started instead.
    2. The user's most recent active session, unless force_new.
    3. A new session, with the mode selected once from profile completeness.

Also loads the history window used by crisis assessment and generation.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import structlog

from ..base import TurnStage
from src.core.config import CoachingConfig, coaching_config
from src.core.exceptions import SessionNotFoundError
from src.core.logging import bind_context
from src.domain.models.pipeline_contracts import SessionLoadingOutput
from src.domain.models.profile import ProfileCompleteness
from src.domain.models.session import PhaseState, Session, SessionMode
from src.services import profile_completeness
from src.services.mode_selector import select_mode
from src.services.protocols import IProfileStore, ISessionStore, ITurnStore

log = structlog.get_logger(__name__)

if TYPE_CHECKING:
    from ..context import PipelineContext


class SessionLoadingStage(TurnStage):
    def __init__(
        self,
        session_store: ISessionStore,
        turn_store: ITurnStore,
        profile_store: IProfileStore,
        config: Optional[CoachingConfig] = None,
    ):
        self.sessions = session_store
        self.turns = turn_store
        self.profiles = profile_store
        self.config = config or coaching_config

    async def process(self, context: "PipelineContext") -> "PipelineContext":
        session = await self._resolve_existing(context)
        completeness: Optional[ProfileCompleteness] = None
        created = session is None

        if session is None:
            session, completeness = await self._create(context)

        bind_context(session_id=session.id)

        recent = await self.turns.get_recent(
            session.id, limit=self.config.session_service.history_window
        )
        history = [u.as_message() for u in recent]

        context.session_loading_output = SessionLoadingOutput(
            session=session,
            created=created,
            turn_number=session.turn_count + 1,
            history=history,
            completeness=completeness,
        )

        log.info(
            "session_loaded",
            session_id=session.id,
            mode=session.mode.value,
            created=created,
            turn_number=session.turn_count + 1,
            history_length=len(history),
        )
        return context

    async def _resolve_existing(self, context: "PipelineContext") -> Optional[Session]:
        if context.requested_session_id:
            session = await self.sessions.get(context.requested_session_id)
            # Another user's session is reported as missing
            if session is None or session.user_id != context.user_id:
                raise SessionNotFoundError(
                    f"Session {context.requested_session_id} not found"
                )
            if session.is_active:
                return session
            log.info(
                "session_not_active_starting_new",
                session_id=session.id,
                status=session.status.value,
            )
            return None

        if context.force_new:
            closed = await self.sessions.close_active_for_user(context.user_id)
            if closed:
                log.info("active_sessions_closed", count=closed)
            return None

        return await self.sessions.get_active_for_user(context.user_id)

    async def _create(self, context: "PipelineContext"):
        parent = await self.profiles.get_parent(context.user_id)
        children = await self.profiles.get_children(context.user_id)
        completeness = profile_completeness.evaluate(parent, children)

        mode = select_mode(
            context.explicit_mode,
            completeness,
            threshold=self.config.modes.partial_discovery_threshold,
        )
        budget = self._resolve_budget(mode, context.time_budget_minutes)

        now = datetime.now(timezone.utc)
        session = await self.sessions.create(
            Session(
                id=str(uuid.uuid4()),
                user_id=context.user_id,
                mode=mode,
                phase=PhaseState(time_budget_minutes=budget),
                created_at=now,
                updated_at=now,
            )
        )
        log.info(
            "session_created",
            session_id=session.id,
            mode=mode.value,
            time_budget_minutes=budget,
            completion_percentage=completeness.completion_percentage,
        )
        return session, completeness

    def _resolve_budget(self, mode: SessionMode, requested: Optional[int]) -> int:
        budgets = self.config.budgets
        if mode == SessionMode.DISCOVERY:
            return budgets.discovery_minutes
        if requested is not None:
            return requested
        return budgets.default_by_mode.get(mode.value, budgets.allowed[-1])
