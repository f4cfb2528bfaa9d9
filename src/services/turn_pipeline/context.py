"""
Turn processing pipeline context for contract-based state accumulation.

Carries the inbound request and every stage's contract output through the
pipeline. Convenience properties raise RuntimeError when read before the
producing stage has run, so ordering mistakes fail loudly instead of
reading stale or default state.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from src.domain.models.pipeline_contracts import (
    CrisisScreeningOutput,
    PhaseUpdateOutput,
    ProfileEvaluationOutput,
    PromptCompositionOutput,
    ReplyGenerationOutput,
    SessionLoadingOutput,
    SessionPersistenceOutput,
)
from src.domain.models.session import CrisisLevel, PhaseState, Session, SessionMode


@dataclass
class PipelineContext:
    """Pipeline context for one parent message.

    Stage outputs (contracts):
    - Stage 1: SessionLoadingOutput - session, turn number, history window
    - Stage 2: CrisisScreeningOutput - screen, optional assessment, level
    - Stage 3: ProfileEvaluationOutput - family facts, completeness
    - Stage 4: PhaseUpdateOutput - GROW state after this turn (coaching only)
    - Stage 5: PromptCompositionOutput - instruction set
    - Stage 6: ReplyGenerationOutput - reply text and usage
    - Stage 7: SessionPersistenceOutput - write outcome, discovery handoff
    """

    # =========================================================================
    # Request (immutable after creation)
    # =========================================================================
    user_id: str
    message: str
    requested_session_id: Optional[str] = None
    time_budget_minutes: Optional[int] = None
    explicit_mode: Optional[SessionMode] = None
    force_new: bool = False

    # =========================================================================
    # Stage Outputs (Contracts)
    # =========================================================================
    session_loading_output: Optional[SessionLoadingOutput] = None
    crisis_screening_output: Optional[CrisisScreeningOutput] = None
    profile_evaluation_output: Optional[ProfileEvaluationOutput] = None
    phase_update_output: Optional[PhaseUpdateOutput] = None
    prompt_composition_output: Optional[PromptCompositionOutput] = None
    reply_generation_output: Optional[ReplyGenerationOutput] = None
    session_persistence_output: Optional[SessionPersistenceOutput] = None

    # Set by CrisisScreeningStage on a confirmed high/critical assessment
    short_circuit: bool = False

    stage_timings: Dict[str, float] = field(default_factory=dict)

    # =========================================================================
    # Convenience properties
    # =========================================================================

    def _violation(self, name: str, stage: str) -> RuntimeError:
        return RuntimeError(
            f"Pipeline contract violation: {name} accessed before {stage} completed. "
            f"User: {self.user_id}"
        )

    @property
    def session(self) -> Session:
        """Session as loaded or created by SessionLoadingStage (Stage 1)."""
        if self.session_loading_output:
            return self.session_loading_output.session
        raise self._violation("session", "SessionLoadingStage (Stage 1)")

    @property
    def session_id(self) -> Optional[str]:
        """Session id if known yet; safe to read at any point (for logging)."""
        if self.session_loading_output:
            return self.session_loading_output.session.id
        return self.requested_session_id

    @property
    def mode(self) -> SessionMode:
        return self.session.mode

    @property
    def turn_number(self) -> int:
        if self.session_loading_output:
            return self.session_loading_output.turn_number
        raise self._violation("turn_number", "SessionLoadingStage (Stage 1)")

    @property
    def history(self) -> List[Dict[str, str]]:
        if self.session_loading_output:
            return self.session_loading_output.history
        raise self._violation("history", "SessionLoadingStage (Stage 1)")

    @property
    def crisis_level(self) -> CrisisLevel:
        """Session crisis level after screening (Stage 2)."""
        if self.crisis_screening_output:
            return self.crisis_screening_output.crisis_level
        raise self._violation("crisis_level", "CrisisScreeningStage (Stage 2)")

    @property
    def phase_state(self) -> PhaseState:
        """Phase state to use for this turn.

        The updated state in coaching mode, otherwise the stored state.
        """
        if self.phase_update_output:
            return self.phase_update_output.updated
        return self.session.phase

    @property
    def reply_text(self) -> str:
        if self.reply_generation_output:
            return self.reply_generation_output.reply_text
        raise self._violation("reply_text", "ReplyGenerationStage (Stage 6)")
