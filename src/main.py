"""
FastAPI application entry point.

Run with: uvicorn src.main:app --reload
"""

from contextlib import asynccontextmanager
import uuid

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from src.core.config import settings
from src.core.crisis_lexicon_loader import load_crisis_lexicon
from src.core.exceptions import ConfigurationError
from src.core.logging import configure_logging, get_logger, bind_context, clear_context
from src.llm.client import get_llm_client
from src.persistence.database import init_database
from src.api.routes import health, messages, profiles, sessions
from src.api.exception_handlers import setup_exception_handlers

# Configure logging before anything else
configure_logging()
log = get_logger(__name__)


# =============================================================================
# Correlation ID Middleware
# =============================================================================


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique correlation ID to each request.

    - Generates a UUID4 request_id for each incoming request
    - Binds it to structlog context for all logs in that request
    - Adds X-Request-ID header to responses
    """

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        bind_context(request_id=request_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()


def validate_startup_config() -> None:
    """
    Fail fast on configuration that would break every request.

    Builds both LLM clients (provider known, API key present) and loads the
    crisis lexicon.

    Raises:
        RuntimeError: Listing every problem found
    """
    errors = []

    for client_type in ("generation", "crisis"):
        try:
            get_llm_client(client_type)
        except ConfigurationError as e:
            errors.append(f"{client_type} client: {e.message}")

    try:
        lexicon = load_crisis_lexicon()
    except ConfigurationError as e:
        errors.append(f"crisis lexicon: {e.message}")
    else:
        log.info("crisis_lexicon_loaded", version=lexicon.version)

    if errors:
        error_msg = "Startup validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise RuntimeError(error_msg)

    log.info("startup_config_validated")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    log.info(
        "application_starting",
        debug=settings.debug,
        database_path=str(settings.database_path),
    )

    validate_startup_config()
    await init_database()

    log.info("application_started")

    yield

    log.info("application_shutting_down")


app = FastAPI(
    title="Parent Coach Orchestrator",
    description="Session orchestration core for ADHD parent coaching",
    version=health.VERSION,
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware for development
if settings.debug:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(CorrelationIDMiddleware)

setup_exception_handlers(app)

app.include_router(health.router, tags=["system"])
app.include_router(messages.router)
app.include_router(sessions.router)
app.include_router(profiles.router)


@app.get("/")
async def root():
    """Root endpoint with basic info."""
    return {"name": "Parent Coach Orchestrator", "version": health.VERSION, "status": "running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
