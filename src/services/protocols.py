"""
Service protocol definitions (interfaces).

The orchestration core depends on these structural interfaces rather than
on the SQLite repositories, so any store with the same CRUD surface can be
swapped in (and tests can use in-memory fakes).
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence

from src.domain.models.crisis import CrisisAssessment
from src.domain.models.profile import ChildProfile, ParentProfile
from src.domain.models.session import Session
from src.domain.models.utterance import Utterance


class ISessionStore(Protocol):
    """
    Protocol for the session state store.

    Last write wins; callers must not assume read-then-write atomicity.
    """

    async def get(self, session_id: str) -> Optional[Session]:
        ...

    async def create(self, session: Session) -> Session:
        ...

    async def update(self, session_id: str, fields: Dict[str, Any]) -> None:
        """Write a partial set of mutable fields."""
        ...

    async def save_state(self, session: Session) -> None:
        """Write all mutable fields of the session."""
        ...

    async def get_active_for_user(self, user_id: str) -> Optional[Session]:
        ...

    async def close_active_for_user(self, user_id: str) -> int:
        ...


class ITurnStore(Protocol):
    """Protocol for conversation history storage."""

    async def save_turn(self, *utterances: Utterance) -> None:
        ...

    async def get_recent(self, session_id: str, limit: int = 50) -> List[Utterance]:
        """Most recent utterances, oldest first."""
        ...

    async def get_token_totals(self, session_id: str) -> Dict[str, int]:
        """Summed input/output tokens across the session's replies."""
        ...


class IProfileStore(Protocol):
    """Protocol for parent/child intake profiles."""

    async def get_parent(self, user_id: str) -> Optional[ParentProfile]:
        ...

    async def get_children(self, user_id: str) -> List[ChildProfile]:
        ...

    async def upsert_parent(self, profile: ParentProfile) -> ParentProfile:
        ...

    async def upsert_child(self, child: ChildProfile) -> ChildProfile:
        ...


class ICrisisAssessor(Protocol):
    """Protocol for the second-stage crisis assessment."""

    async def assess(
        self, message: str, history: Sequence[Dict[str, str]]
    ) -> CrisisAssessment:
        """
        Raises:
            CrisisAssessmentError: Assessment could not be completed
        """
        ...
