"""Profile intake writes and completeness queries.

Profile records may only be written through an active discovery or
partial-discovery session owned by the same user. Coaching and check-in
sessions read the profile but never change it.
"""

from typing import List

import aiosqlite
import structlog

from src.core.exceptions import (
    PersistenceError,
    SessionCompletedError,
    SessionError,
    SessionNotFoundError,
)
from src.domain.models.profile import ChildProfile, ParentProfile, ProfileCompleteness
from src.domain.models.session import Session
from src.services import profile_completeness
from src.services.protocols import IProfileStore, ISessionStore

log = structlog.get_logger(__name__)


class ProfileService:
    def __init__(self, profile_store: IProfileStore, session_store: ISessionStore):
        self.profiles = profile_store
        self.sessions = session_store

    async def get_completeness(self, user_id: str) -> ProfileCompleteness:
        parent = await self.profiles.get_parent(user_id)
        children = await self.profiles.get_children(user_id)
        return profile_completeness.evaluate(parent, children)

    async def update_parent(self, session_id: str, profile: ParentProfile) -> ParentProfile:
        """
        Merge parent fields into the stored profile.

        Raises:
            SessionNotFoundError: Unknown session or owned by another user
            SessionCompletedError: Session is no longer active
            SessionError: Session is not a discovery session
            PersistenceError: Write failed
        """
        await self._require_discovery_session(session_id, profile.user_id)
        try:
            saved = await self.profiles.upsert_parent(profile)
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to save parent profile: {e}") from e

        log.info("parent_profile_updated", session_id=session_id)
        return saved

    async def upsert_children(
        self, session_id: str, user_id: str, children: List[ChildProfile]
    ) -> List[ChildProfile]:
        """Insert or merge children by name. Same errors as update_parent."""
        await self._require_discovery_session(session_id, user_id)

        saved = []
        try:
            for child in children:
                saved.append(
                    await self.profiles.upsert_child(
                        child.model_copy(update={"user_id": user_id})
                    )
                )
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to save child profile: {e}") from e

        log.info(
            "child_profiles_updated", session_id=session_id, count=len(saved)
        )
        return saved

    async def _require_discovery_session(self, session_id: str, user_id: str) -> Session:
        session = await self.sessions.get(session_id)
        if session is None or session.user_id != user_id:
            raise SessionNotFoundError(f"Session {session_id} not found")
        if not session.is_active:
            raise SessionCompletedError(f"Session {session_id} is complete")
        if not session.mode.is_discovery:
            raise SessionError(
                f"Profile updates require a discovery session, "
                f"got {session.mode.value}"
            )
        return session
