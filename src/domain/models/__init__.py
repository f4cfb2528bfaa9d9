"""Domain models package."""

from .session import (
    CoachingPhase,
    CrisisLevel,
    PhaseState,
    Session,
    SessionMode,
    SessionStatus,
)
from .profile import ChildProfile, ParentProfile, ProfileCompleteness, ProfileFacts
from .crisis import CrisisAssessment, CrisisLexicon, CrisisScreenResult, CrisisType, Urgency
from .utterance import Speaker, Utterance

__all__ = [
    "CoachingPhase",
    "CrisisLevel",
    "PhaseState",
    "Session",
    "SessionMode",
    "SessionStatus",
    "ChildProfile",
    "ParentProfile",
    "ProfileCompleteness",
    "ProfileFacts",
    "CrisisAssessment",
    "CrisisLexicon",
    "CrisisScreenResult",
    "CrisisType",
    "Urgency",
    "Speaker",
    "Utterance",
]
