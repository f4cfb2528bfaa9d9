"""
API request/response schemas.

Pydantic models for API validation and serialization.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.domain.models.profile import ChildProfile, ParentProfile
from src.domain.models.session import (
    CoachingPhase,
    PhaseState,
    Session,
    SessionMode,
)


# ============ MESSAGE SCHEMAS ============


class MessageRequest(BaseModel):
    """One parent message.

    Length is checked by the session service so that the limit stays in
    coaching_config.yaml.
    """

    message: str
    session_id: Optional[str] = None
    time_budget_minutes: Optional[int] = Field(
        default=None, description="Budget for a new session (5, 15, 30 or 50)"
    )
    explicit_mode: Optional[SessionMode] = Field(
        default=None, description="Requested mode for a new session"
    )
    force_new: bool = Field(
        default=False, description="Close the active session and start a new one"
    )


class MessageResponse(BaseModel):
    """Mirrors TurnResult."""

    reply_text: str
    session_id: Optional[str]
    crisis_flag: bool
    crisis_status: str
    crisis_level: str
    resources: List[str] = Field(default_factory=list)
    urgency: Optional[str] = None
    mode: Optional[str] = None
    turn_number: Optional[int] = None
    phase: Optional[PhaseState] = None
    can_advance_to_options: bool = False
    approaching_time_limit: bool = False
    session_completed: bool = False
    state_persisted: bool = True
    history_persisted: bool = True
    usage: Dict[str, int] = Field(default_factory=dict)
    latency_ms: int = 0
    error: Optional[str] = None


# ============ SESSION SCHEMAS ============


class SessionResponse(BaseModel):
    """Session details response."""

    id: str
    mode: SessionMode
    status: str
    crisis_level: str
    turn_count: int
    phase: PhaseState
    time_remaining_minutes: int
    created_at: datetime
    updated_at: datetime
    # Summed input_tokens/output_tokens; only filled on single-session reads
    usage: Dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_session(
        cls, session: Session, usage: Optional[Dict[str, int]] = None
    ) -> "SessionResponse":
        return cls(
            id=session.id,
            mode=session.mode,
            status=session.status.value,
            crisis_level=session.crisis_level.value,
            turn_count=session.turn_count,
            phase=session.phase,
            time_remaining_minutes=session.phase.time_remaining_minutes,
            created_at=session.created_at,
            updated_at=session.updated_at,
            usage=usage or {},
        )


class SessionListResponse(BaseModel):
    """List of sessions response."""

    sessions: List[SessionResponse]
    total: int


class SignalsRequest(BaseModel):
    """Content-driven coaching signals; None leaves a latch unchanged."""

    emotions_reflected: Optional[bool] = None
    exceptions_explored: Optional[bool] = None
    advance_to: Optional[CoachingPhase] = None


# ============ PROFILE SCHEMAS ============


class ParentProfileUpdate(BaseModel):
    parent_name: Optional[str] = Field(default=None, max_length=200)
    family_context: Optional[str] = Field(default=None, max_length=5000)
    support_network: List[str] = Field(default_factory=list)

    def to_profile(self, user_id: str) -> ParentProfile:
        return ParentProfile(user_id=user_id, **self.model_dump())


class ChildProfileUpdate(BaseModel):
    child_name: str = Field(..., min_length=1, max_length=200)
    child_age: Optional[int] = Field(default=None, ge=0, le=30)
    main_challenges: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    school_type: Optional[str] = None
    grade_level: Optional[str] = None
    medication_status: Optional[str] = None
    therapy_status: Optional[str] = None
    is_primary: bool = False

    def to_profile(self, user_id: str) -> ChildProfile:
        return ChildProfile(user_id=user_id, **self.model_dump())


class ChildrenUpdateRequest(BaseModel):
    children: List[ChildProfileUpdate] = Field(..., min_length=1)


class CompletenessResponse(BaseModel):
    completion_percentage: int
    missing_fields: List[str]
    completed_fields: List[str]
    has_parent_info: bool
    has_children: bool
    has_child_details: bool
    has_school_info: bool
    has_treatment_info: bool
    progress_message: str
