"""
Custom exception hierarchy for the coaching system.

All application exceptions inherit from CoachingSystemError.
"""


class CoachingSystemError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(CoachingSystemError):
    """Invalid or missing configuration."""

    pass


# =============================================================================
# Request Errors
# =============================================================================


class ValidationError(CoachingSystemError):
    """Input validation failed."""

    pass


class AuthenticationError(CoachingSystemError):
    """No authenticated user attached to the request."""

    pass


# =============================================================================
# LLM Errors
# =============================================================================


class LLMError(CoachingSystemError):
    """Base for LLM-related errors."""

    pass


class LLMTimeoutError(LLMError):
    """LLM call timed out."""

    pass


class LLMRateLimitError(LLMError):
    """LLM rate limit exceeded."""

    pass


class LLMResponseParseError(LLMError):
    """Failed to parse LLM response."""

    pass


# =============================================================================
# Crisis Errors
# =============================================================================


class CrisisAssessmentError(CoachingSystemError):
    """Structured crisis assessment could not be completed.

    Never interpreted as "no crisis": the caller must treat the turn as
    indeterminate and surface fallback resources.
    """

    pass


# =============================================================================
# Session Errors
# =============================================================================


class SessionError(CoachingSystemError):
    """Session-related error."""

    pass


class SessionNotFoundError(SessionError):
    """Session does not exist."""

    pass


class SessionCompletedError(SessionError):
    """Attempted operation on completed session."""

    pass


class PhaseTransitionError(SessionError):
    """Requested GROW phase change is not allowed from the current state."""

    pass


# =============================================================================
# Persistence Errors
# =============================================================================


class PersistenceError(CoachingSystemError):
    """Session or turn could not be written to the store."""

    pass
