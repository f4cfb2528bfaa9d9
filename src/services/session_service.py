"""
Session orchestration service.

Main entry point for parent messages, delegating to a pipeline of
composable stages: session loading, crisis screening, profile evaluation,
GROW phase update, prompt composition, reply generation and persistence.

Failure handling lives here, not in the stages:
    - invalid input is rejected before anything is read or written
    - a failed crisis assessment returns a technical-difficulty reply that
      carries fallback crisis resources and is never reported as "clear"
    - a failed generation call returns a technical-difficulty reply and
      leaves the session as it was before the message
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog

from src.core.config import CoachingConfig, coaching_config
from src.core.crisis_lexicon_loader import load_crisis_lexicon
from src.core.exceptions import (
    AuthenticationError,
    CrisisAssessmentError,
    LLMError,
    SessionCompletedError,
    SessionError,
    SessionNotFoundError,
    ValidationError,
)
from src.domain.models.crisis import CrisisLexicon
from src.domain.models.session import (
    CoachingPhase,
    Session,
    SessionMode,
    SessionStatus,
)
from src.llm.client import LLMClient
from src.persistence.repositories.session_repo import SessionRepository
from src.services.crisis_assessment_service import CrisisAssessmentService
from src.services.crisis_classifier import CrisisClassifier
from src.services.phase_controller import PhaseController
from src.services.prompt_composer import PromptComposer
from src.services.protocols import ICrisisAssessor, IProfileStore, ITurnStore
from src.services.reply_service import ReplyService
from src.services.turn_pipeline import PipelineContext, TurnPipeline, TurnResult
from src.services.turn_pipeline.result import (
    CRISIS_ASSESSED,
    CRISIS_CLEAR,
    CRISIS_INDETERMINATE,
    CRISIS_NOT_RUN,
)
from src.services.turn_pipeline.stages import (
    CrisisScreeningStage,
    PhaseUpdateStage,
    ProfileEvaluationStage,
    PromptCompositionStage,
    ReplyGenerationStage,
    SessionLoadingStage,
    SessionPersistenceStage,
)

log = structlog.get_logger(__name__)

TECHNICAL_DIFFICULTY = "technical_difficulty"


class SessionService:
    """Orchestrates coaching session turn processing.

    Built per deployment from injected stores and LLM clients; holds no
    session state between requests.
    """

    def __init__(
        self,
        session_repo: SessionRepository,
        turn_store: ITurnStore,
        profile_store: IProfileStore,
        generation_llm_client: Optional[LLMClient] = None,
        crisis_llm_client: Optional[LLMClient] = None,
        reply_service: Optional[ReplyService] = None,
        crisis_assessor: Optional[ICrisisAssessor] = None,
        lexicon: Optional[CrisisLexicon] = None,
        config: Optional[CoachingConfig] = None,
    ):
        """
        Initialize session service with pipeline.

        Args:
            session_repo: Session store
            turn_store: Conversation history store
            profile_store: Parent/child profile store
            generation_llm_client: LLM client for replies (required if
                reply_service not provided)
            crisis_llm_client: LLM client for crisis assessment (required if
                crisis_assessor not provided)
            reply_service: Reply service (created from generation client if None)
            crisis_assessor: Crisis assessor (created from crisis client if None)
            lexicon: Crisis lexicon (loaded from config/crisis if None)
            config: Coaching configuration (defaults to coaching_config.yaml)
        """
        self.session_repo = session_repo
        self.turn_store = turn_store
        self.profile_store = profile_store
        self.config = config or coaching_config
        self.lexicon = lexicon or load_crisis_lexicon()

        if reply_service is None:
            if generation_llm_client is None:
                raise ValueError(
                    "generation_llm_client is required when reply_service is not provided"
                )
            reply_service = ReplyService(generation_llm_client)
        self.replies = reply_service

        if crisis_assessor is None:
            if crisis_llm_client is None:
                raise ValueError(
                    "crisis_llm_client is required when crisis_assessor is not provided"
                )
            crisis_assessor = CrisisAssessmentService(crisis_llm_client, self.lexicon)
        self.crisis_assessor = crisis_assessor

        self.phase_controller = PhaseController(self.config)
        self.pipeline = self._build_pipeline()

        log.debug(
            "session_service_initialized",
            pipeline_stages=len(self.pipeline.stages),
            lexicon_version=self.lexicon.version,
        )

    def _build_pipeline(self) -> TurnPipeline:
        """
        Build the turn processing pipeline.

        Returns:
            TurnPipeline configured with 7 stages
        """
        return TurnPipeline(
            stages=[
                SessionLoadingStage(
                    session_store=self.session_repo,
                    turn_store=self.turn_store,
                    profile_store=self.profile_store,
                    config=self.config,
                ),
                CrisisScreeningStage(
                    classifier=CrisisClassifier(self.lexicon),
                    assessor=self.crisis_assessor,
                    session_store=self.session_repo,
                    turn_store=self.turn_store,
                    config=self.config,
                ),
                ProfileEvaluationStage(profile_store=self.profile_store),
                PhaseUpdateStage(controller=self.phase_controller),
                PromptCompositionStage(composer=PromptComposer(self.config)),
                ReplyGenerationStage(reply_service=self.replies),
                SessionPersistenceStage(
                    session_store=self.session_repo,
                    turn_store=self.turn_store,
                    profile_store=self.profile_store,
                ),
            ]
        )

    # =========================================================================
    # Turn processing
    # =========================================================================

    async def submit_message(
        self,
        user_id: Optional[str],
        message: Optional[str],
        session_id: Optional[str] = None,
        time_budget_minutes: Optional[int] = None,
        explicit_mode: Optional[SessionMode] = None,
        force_new: bool = False,
    ) -> TurnResult:
        """Process one parent message.

        Args:
            user_id: Authenticated user id
            message: Parent message text
            session_id: Session to continue (must belong to the user)
            time_budget_minutes: Budget for a newly created session
            explicit_mode: Requested mode for a newly created session
            force_new: Close any active session and start a new one

        Returns:
            TurnResult for normal, crisis, and technical-difficulty replies

        Raises:
            AuthenticationError: No user id
            ValidationError: Empty or oversized message, unsupported budget
            SessionNotFoundError: session_id unknown or owned by another user
        """
        self._validate(user_id, message, time_budget_minutes)

        context = PipelineContext(
            user_id=user_id,
            message=message.strip(),
            requested_session_id=session_id,
            time_budget_minutes=time_budget_minutes,
            explicit_mode=explicit_mode,
            force_new=force_new,
        )

        log.info(
            "message_received",
            user_id=user_id,
            session_id=session_id,
            message_length=len(context.message),
        )

        try:
            result = await self.pipeline.execute(context)
        except CrisisAssessmentError as e:
            log.error(
                "crisis_assessment_indeterminate",
                session_id=context.session_id,
                error=str(e),
            )
            return self._technical_difficulty(
                context,
                crisis_status=CRISIS_INDETERMINATE,
                resources=list(self.lexicon.fallback_resources),
            )
        except (LLMError, httpx.HTTPError) as e:
            log.error(
                "reply_generation_unavailable",
                session_id=context.session_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return self._technical_difficulty(context)

        log.info(
            "message_processed",
            session_id=result.session_id,
            mode=result.mode,
            turn_number=result.turn_number,
            crisis_status=result.crisis_status,
            state_persisted=result.state_persisted,
            history_persisted=result.history_persisted,
            latency_ms=result.latency_ms,
        )
        return result

    def _validate(
        self,
        user_id: Optional[str],
        message: Optional[str],
        time_budget_minutes: Optional[int],
    ) -> None:
        if not user_id or not user_id.strip():
            raise AuthenticationError("No authenticated user")

        if message is None or not message.strip():
            raise ValidationError("Message must not be empty")

        max_length = self.config.session_service.max_message_length
        if len(message) > max_length:
            raise ValidationError(
                f"Message exceeds maximum length of {max_length} characters"
            )

        allowed = self.config.budgets.allowed
        if time_budget_minutes is not None and time_budget_minutes not in allowed:
            raise ValidationError(
                f"time_budget_minutes must be one of {allowed}, got {time_budget_minutes}"
            )

    def _technical_difficulty(
        self,
        context: PipelineContext,
        crisis_status: Optional[str] = None,
        resources: Optional[List[str]] = None,
    ) -> TurnResult:
        if crisis_status is None:
            screening = context.crisis_screening_output
            if screening is None:
                crisis_status = CRISIS_NOT_RUN
            elif screening.assessment is not None:
                crisis_status = CRISIS_ASSESSED
            else:
                crisis_status = CRISIS_CLEAR

        loaded = context.session_loading_output
        return TurnResult(
            reply_text=self.config.session_service.technical_difficulty_message,
            session_id=context.session_id,
            crisis_flag=crisis_status == CRISIS_INDETERMINATE,
            crisis_status=crisis_status,
            crisis_level=loaded.session.crisis_level.value if loaded else "none",
            resources=resources or [],
            mode=loaded.session.mode.value if loaded else None,
            turn_number=loaded.turn_number if loaded else None,
            state_persisted=False,
            history_persisted=False,
            error=TECHNICAL_DIFFICULTY,
        )

    # =========================================================================
    # Session queries and caller-driven state changes
    # =========================================================================

    async def get_session(self, session_id: str, user_id: str) -> Session:
        """
        Raises:
            SessionNotFoundError: Unknown session or owned by another user
        """
        session = await self.session_repo.get(session_id)
        if session is None or session.user_id != user_id:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    async def get_token_usage(self, session_id: str, user_id: str) -> Dict[str, int]:
        """Token totals for one of the caller's sessions."""
        await self.get_session(session_id, user_id)
        return await self.turn_store.get_token_totals(session_id)

    async def list_sessions(
        self, user_id: str, status: Optional[SessionStatus] = None
    ) -> List[Session]:
        return await self.session_repo.list_for_user(user_id, status=status)

    async def _get_active_coaching_session(self, session_id: str, user_id: str) -> Session:
        session = await self.get_session(session_id, user_id)
        if not session.is_active:
            raise SessionCompletedError(f"Session {session_id} is complete")
        if session.mode != SessionMode.COACHING:
            raise SessionError(
                f"Session {session_id} is a {session.mode.value} session; "
                "phase state only applies to coaching"
            )
        return session

    async def mark_time_extension_offered(self, session_id: str, user_id: str) -> Session:
        """Record that the caller actually offered a time extension."""
        session = await self._get_active_coaching_session(session_id, user_id)
        phase = self.phase_controller.mark_extension_offered(session.phase)
        await self.session_repo.update(session_id, {"time_extension_offered": True})

        log.info("time_extension_offered", session_id=session_id)
        return session.model_copy(update={"phase": phase})

    async def record_coaching_signals(
        self,
        session_id: str,
        user_id: str,
        emotions_reflected: Optional[bool] = None,
        exceptions_explored: Optional[bool] = None,
        advance_to: Optional[CoachingPhase] = None,
    ) -> Session:
        """Latch content-driven signals and optionally advance the GROW phase.

        Raises:
            SessionNotFoundError: Unknown session or owned by another user
            SessionCompletedError: Session is no longer active
            SessionError: Session is not a coaching session
            PhaseTransitionError: advance_to is not a legal next phase
        """
        session = await self._get_active_coaching_session(session_id, user_id)
        phase = self.phase_controller.apply_signals(
            session.phase,
            emotions_reflected=emotions_reflected,
            exceptions_explored=exceptions_explored,
        )
        if advance_to is not None:
            phase = self.phase_controller.advance_phase(phase, advance_to)

        fields: Dict[str, Any] = {
            "emotions_reflected": phase.emotions_reflected,
            "exceptions_explored": phase.exceptions_explored,
            "current_phase": phase.current_phase,
            "phase_turns": phase.phase_turns,
        }
        await self.session_repo.update(session_id, fields)

        log.info(
            "coaching_signals_recorded",
            session_id=session_id,
            emotions_reflected=phase.emotions_reflected,
            exceptions_explored=phase.exceptions_explored,
            phase=phase.current_phase.value,
        )
        return session.model_copy(update={"phase": phase})
