"""
Session API routes.

Read access to the caller's sessions plus the two caller-driven state
changes: recording coaching signals and confirming a time-extension offer.
"""

from fastapi import APIRouter

from src.api.dependencies import SessionServiceDep, UserIdDep
from src.api.schemas import SessionListResponse, SessionResponse, SignalsRequest
from src.domain.models.session import SessionStatus

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    user_id: UserIdDep,
    service: SessionServiceDep,
    include_completed: bool = False,
):
    """List the caller's sessions, newest first (active only by default)."""
    status = None if include_completed else SessionStatus.ACTIVE
    sessions = await service.list_sessions(user_id, status=status)
    return SessionListResponse(
        sessions=[SessionResponse.from_session(s) for s in sessions],
        total=len(sessions),
    )


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, user_id: UserIdDep, service: SessionServiceDep):
    """Session details plus token usage summed over its replies."""
    session = await service.get_session(session_id, user_id)
    usage = await service.get_token_usage(session_id, user_id)
    return SessionResponse.from_session(session, usage=usage)


@router.post("/{session_id}/signals", response_model=SessionResponse)
async def record_signals(
    session_id: str,
    request: SignalsRequest,
    user_id: UserIdDep,
    service: SessionServiceDep,
):
    """Latch emotions/exceptions signals and optionally advance the GROW phase.

    Returns 409 for an illegal phase transition or a non-coaching session.
    """
    session = await service.record_coaching_signals(
        session_id,
        user_id,
        emotions_reflected=request.emotions_reflected,
        exceptions_explored=request.exceptions_explored,
        advance_to=request.advance_to,
    )
    return SessionResponse.from_session(session)


@router.post("/{session_id}/time-extension", response_model=SessionResponse)
async def mark_time_extension_offered(
    session_id: str, user_id: UserIdDep, service: SessionServiceDep
):
    """Record that the parent was actually offered a time extension."""
    session = await service.mark_time_extension_offered(session_id, user_id)
    return SessionResponse.from_session(session)
