"""Tests for the exception hierarchy."""

import pytest

from src.core.exceptions import (
    AuthenticationError,
    CoachingSystemError,
    ConfigurationError,
    CrisisAssessmentError,
    LLMError,
    LLMRateLimitError,
    LLMResponseParseError,
    LLMTimeoutError,
    PersistenceError,
    PhaseTransitionError,
    SessionCompletedError,
    SessionError,
    SessionNotFoundError,
    ValidationError,
)


@pytest.mark.parametrize(
    "exc_class",
    [
        ConfigurationError,
        ValidationError,
        AuthenticationError,
        LLMError,
        CrisisAssessmentError,
        SessionError,
        PersistenceError,
    ],
)
def test_all_inherit_from_base(exc_class):
    assert issubclass(exc_class, CoachingSystemError)


@pytest.mark.parametrize(
    "exc_class", [LLMTimeoutError, LLMRateLimitError, LLMResponseParseError]
)
def test_llm_errors(exc_class):
    assert issubclass(exc_class, LLMError)


@pytest.mark.parametrize(
    "exc_class", [SessionNotFoundError, SessionCompletedError, PhaseTransitionError]
)
def test_session_errors(exc_class):
    assert issubclass(exc_class, SessionError)


def test_crisis_assessment_error_is_not_an_llm_error():
    """Crisis failures are handled separately from generation failures."""
    assert not issubclass(CrisisAssessmentError, LLMError)


def test_message_attribute():
    exc = SessionNotFoundError("Session abc not found")
    assert exc.message == "Session abc not found"
    assert str(exc) == "Session abc not found"
