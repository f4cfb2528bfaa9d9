"""Pipeline stage contracts.

Pydantic models for stage outputs, giving type safety and runtime
validation to the turn processing pipeline. Each stage writes exactly one
of these onto the PipelineContext.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.domain.models.crisis import CrisisAssessment, CrisisScreenResult
from src.domain.models.profile import ProfileCompleteness, ProfileFacts
from src.domain.models.session import CrisisLevel, PhaseState, Session


class InstructionSet(BaseModel):
    """Everything handed to the generation call besides the new message."""

    template: str = Field(description="Template name (the session mode)")
    system: str
    messages: List[Dict[str, str]] = Field(
        default_factory=list, description="History window, oldest first"
    )


class SessionLoadingOutput(BaseModel):
    """Contract: SessionLoadingStage output (Stage 1)."""

    session: Session
    created: bool = Field(description="True when this turn started a new session")
    turn_number: int = Field(ge=1, description="Turn number for this message")
    history: List[Dict[str, str]] = Field(
        default_factory=list, description="Recent turns as role/content dicts"
    )
    completeness: Optional[ProfileCompleteness] = Field(
        default=None, description="Completeness used for mode selection on creation"
    )


class CrisisScreeningOutput(BaseModel):
    """Contract: CrisisScreeningStage output (Stage 2)."""

    screen: CrisisScreenResult
    assessment: Optional[CrisisAssessment] = None
    crisis_level: CrisisLevel = Field(
        description="Session level after this turn (max of prior and assessed)"
    )
    short_circuit: bool = False
    level_persisted: bool = Field(
        default=True, description="False if a severe level could not be written"
    )
    history_persisted: bool = Field(
        default=True, description="False if the crisis turn could not be written"
    )


class ProfileEvaluationOutput(BaseModel):
    """Contract: ProfileEvaluationStage output (Stage 3)."""

    completeness: Optional[ProfileCompleteness] = None
    facts: ProfileFacts


class PhaseUpdateOutput(BaseModel):
    """Contract: PhaseUpdateStage output (Stage 4). Computed, not yet persisted."""

    previous: PhaseState
    updated: PhaseState
    can_advance_to_options: bool = False
    approaching_time_limit: bool = False


class PromptCompositionOutput(BaseModel):
    """Contract: PromptCompositionStage output (Stage 5)."""

    instructions: InstructionSet


class ReplyGenerationOutput(BaseModel):
    """Contract: ReplyGenerationStage output (Stage 6)."""

    reply_text: str
    model: str
    usage: Dict[str, int] = Field(default_factory=dict)
    latency_ms: float = 0.0


class SessionPersistenceOutput(BaseModel):
    """Contract: SessionPersistenceStage output (Stage 7)."""

    state_persisted: bool = Field(
        description="Session state (phase, depth, turn count) written"
    )
    history_persisted: bool = Field(description="Parent message and reply written")
    session_completed: bool = False
    completeness: Optional[ProfileCompleteness] = None
