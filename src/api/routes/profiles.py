"""
Profile API routes.

Completeness can be read at any time. Writes go through an active
discovery or partial-discovery session.
"""

from fastapi import APIRouter

from src.api.dependencies import ProfileServiceDep, UserIdDep
from src.api.schemas import (
    ChildrenUpdateRequest,
    CompletenessResponse,
    ParentProfileUpdate,
)
from src.domain.models.profile import ChildProfile, ParentProfile
from src.services.profile_completeness import progress_message

router = APIRouter(tags=["profiles"])


@router.get("/profiles/me/completeness", response_model=CompletenessResponse)
async def get_completeness(user_id: UserIdDep, service: ProfileServiceDep):
    completeness = await service.get_completeness(user_id)
    return CompletenessResponse(
        **completeness.model_dump(),
        progress_message=progress_message(completeness),
    )


@router.put("/sessions/{session_id}/profile/parent", response_model=ParentProfile)
async def update_parent_profile(
    session_id: str,
    request: ParentProfileUpdate,
    user_id: UserIdDep,
    service: ProfileServiceDep,
):
    """Merge parent fields; empty fields keep the stored value."""
    return await service.update_parent(session_id, request.to_profile(user_id))


@router.put(
    "/sessions/{session_id}/profile/children", response_model=list[ChildProfile]
)
async def upsert_children(
    session_id: str,
    request: ChildrenUpdateRequest,
    user_id: UserIdDep,
    service: ProfileServiceDep,
):
    """Insert children, or merge into an existing child with the same name."""
    children = [child.to_profile(user_id) for child in request.children]
    return await service.upsert_children(session_id, user_id, children)
