"""Session domain models for coaching lifecycle management.

Core Models:
    - Session: one conversation with a parent, fixed mode and time budget
    - PhaseState: GROW phase, reality depth and time tracking for coaching

Session Lifecycle:
    1. Created with a mode chosen once by the mode selector
    2. PhaseState updated on each coaching turn by the phase controller
    3. Discovery sessions are marked complete when the profile reaches 100%;
       the next message then starts a new session
    4. Status: active -> complete

Monotonic fields (never decrease within a session):
    - crisis_level
    - reality_exploration_depth, time_elapsed_minutes
    - emotions_reflected, exceptions_explored, ready_for_options,
      time_extension_offered
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SessionMode(str, Enum):
    """Conversational mode, decided once at session creation."""

    DISCOVERY = "discovery"
    PARTIAL_DISCOVERY = "partial-discovery"
    CHECK_IN = "check-in"
    COACHING = "coaching"

    @property
    def is_discovery(self) -> bool:
        return self in (SessionMode.DISCOVERY, SessionMode.PARTIAL_DISCOVERY)


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETE = "complete"


class CoachingPhase(str, Enum):
    """GROW phases in the only order they may be visited."""

    GOAL = "goal"
    REALITY = "reality"
    OPTIONS = "options"
    WILL = "will"
    CLOSING = "closing"

    @property
    def next(self) -> Optional["CoachingPhase"]:
        order = list(CoachingPhase)
        index = order.index(self)
        return order[index + 1] if index + 1 < len(order) else None


class CrisisLevel(str, Enum):
    """Ordered risk levels: none < low < medium < high < critical."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(CrisisLevel).index(self)

    @property
    def is_severe(self) -> bool:
        """High and critical short-circuit the coaching pipeline."""
        return self.rank >= CrisisLevel.HIGH.rank

    @classmethod
    def max(cls, a: "CrisisLevel", b: "CrisisLevel") -> "CrisisLevel":
        return a if a.rank >= b.rank else b


class PhaseState(BaseModel):
    """GROW phase and time tracking for a coaching session.

    Treated as a value: the phase controller always returns a new instance.
    """

    current_phase: CoachingPhase = CoachingPhase.GOAL
    phase_turns: int = Field(
        default=0, ge=0, description="Assistant turns spent in the current phase"
    )
    reality_exploration_depth: int = Field(default=0, ge=0)
    emotions_reflected: bool = False
    exceptions_explored: bool = False
    ready_for_options: bool = False
    time_budget_minutes: int = Field(default=30, ge=1)
    time_elapsed_minutes: int = Field(default=0, ge=0)
    time_extension_offered: bool = False

    @property
    def time_remaining_minutes(self) -> int:
        return max(self.time_budget_minutes - self.time_elapsed_minutes, 0)


class Session(BaseModel):
    """Top-level coaching session entity.

    Stored in the sessions table (phase fields flattened into columns) and
    loaded by SessionLoadingStage.
    """

    id: str
    user_id: str
    mode: SessionMode
    status: SessionStatus = SessionStatus.ACTIVE
    crisis_level: CrisisLevel = CrisisLevel.NONE
    phase: PhaseState = Field(default_factory=PhaseState)
    turn_count: int = Field(default=0, ge=0)
    created_at: datetime
    updated_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE
