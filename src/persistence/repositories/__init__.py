"""Repository implementations."""

from src.persistence.repositories.profile_repo import ProfileRepository
from src.persistence.repositories.session_repo import SessionRepository
from src.persistence.repositories.utterance_repo import UtteranceRepository

__all__ = [
    "ProfileRepository",
    "SessionRepository",
    "UtteranceRepository",
]
