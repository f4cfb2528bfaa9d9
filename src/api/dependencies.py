"""Dependency injection for API routes."""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header

from src.core.config import settings
from src.core.exceptions import AuthenticationError
from src.llm.client import LLMClient, get_crisis_llm_client, get_generation_llm_client
from src.persistence.repositories.profile_repo import ProfileRepository
from src.persistence.repositories.session_repo import SessionRepository
from src.persistence.repositories.utterance_repo import UtteranceRepository
from src.services.profile_service import ProfileService
from src.services.session_service import SessionService


def get_session_repository() -> SessionRepository:
    """FastAPI dependency injection for SessionRepository.

    Each request gets a new repository pointed at the configured database.
    """
    return SessionRepository(str(settings.database_path))


def get_utterance_repository() -> UtteranceRepository:
    return UtteranceRepository(str(settings.database_path))


def get_profile_repository() -> ProfileRepository:
    return ProfileRepository(str(settings.database_path))


@lru_cache(maxsize=1)
def get_shared_generation_client() -> LLMClient:
    """Cached LLM client for reply generation.

    Created once per process and reused across requests.
    """
    return get_generation_llm_client()


@lru_cache(maxsize=1)
def get_shared_crisis_client() -> LLMClient:
    """Cached LLM client for structured crisis assessment."""
    return get_crisis_llm_client()


def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header(alias="X-User-ID")] = None,
) -> str:
    """Identify the caller.

    Authentication happens upstream; this service only trusts the forwarded
    user id header.

    Raises:
        AuthenticationError: Header missing or blank
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError("Missing X-User-ID header")
    return x_user_id.strip()


SessionRepoDep = Annotated[SessionRepository, Depends(get_session_repository)]
UtteranceRepoDep = Annotated[UtteranceRepository, Depends(get_utterance_repository)]
ProfileRepoDep = Annotated[ProfileRepository, Depends(get_profile_repository)]
GenerationClientDep = Annotated[LLMClient, Depends(get_shared_generation_client)]
CrisisClientDep = Annotated[LLMClient, Depends(get_shared_crisis_client)]
UserIdDep = Annotated[str, Depends(get_current_user_id)]


def get_session_service(
    session_repo: SessionRepoDep,
    utterance_repo: UtteranceRepoDep,
    profile_repo: ProfileRepoDep,
    generation_client: GenerationClientDep,
    crisis_client: CrisisClientDep,
) -> SessionService:
    """FastAPI dependency injection for SessionService.

    Built per request from fresh repositories and the shared LLM clients.
    """
    return SessionService(
        session_repo=session_repo,
        turn_store=utterance_repo,
        profile_store=profile_repo,
        generation_llm_client=generation_client,
        crisis_llm_client=crisis_client,
    )


def get_profile_service(
    session_repo: SessionRepoDep,
    profile_repo: ProfileRepoDep,
) -> ProfileService:
    return ProfileService(profile_store=profile_repo, session_store=session_repo)


SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]
ProfileServiceDep = Annotated[ProfileService, Depends(get_profile_service)]
