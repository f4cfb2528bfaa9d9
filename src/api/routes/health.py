"""
Health check endpoints.

Provides system health information for monitoring.
"""

from fastapi import APIRouter, HTTPException
import structlog

from src.core.config import settings
from src.core.crisis_lexicon_loader import load_crisis_lexicon
from src.core.exceptions import ConfigurationError
from src.persistence.database import check_database_health

log = structlog.get_logger(__name__)

router = APIRouter()

VERSION = "0.1.0"


def _lexicon_health() -> dict:
    try:
        lexicon = load_crisis_lexicon()
    except ConfigurationError as e:
        log.error("crisis_lexicon_unavailable", error=e.message)
        return {"status": "unhealthy", "error": e.message}
    return {
        "status": "healthy",
        "version": lexicon.version,
        "keywords": len(lexicon.keywords),
        "patterns": len(lexicon.patterns),
    }


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        System health status including database connectivity and the
        loaded crisis lexicon.
    """
    components = {
        "database": await check_database_health(),
        "crisis_lexicon": _lexicon_health(),
    }
    healthy = all(c["status"] == "healthy" for c in components.values())

    return {
        "status": "healthy" if healthy else "unhealthy",
        "version": VERSION,
        "debug": settings.debug,
        "components": components,
    }


@router.get("/health/live")
async def liveness():
    """
    Kubernetes-style liveness probe.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness():
    """
    Kubernetes-style readiness probe.

    Not ready without a database or a crisis lexicon: messages cannot be
    screened safely.
    """
    db_health = await check_database_health()
    if db_health["status"] != "healthy":
        raise HTTPException(status_code=503, detail="Database not ready")

    if _lexicon_health()["status"] != "healthy":
        raise HTTPException(status_code=503, detail="Crisis lexicon not loaded")

    return {"status": "ready"}
