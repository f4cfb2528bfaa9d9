"""
Shared test fixtures.

A temp SQLite database with the real schema, repositories bound to it,
and a scripted LLM client so no test reaches the network.
"""

import json
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from unittest.mock import patch

import pytest

from src.core.crisis_lexicon_loader import load_crisis_lexicon
from src.domain.models.session import PhaseState, Session, SessionMode
from src.llm.client import LLMResponse
from src.persistence.database import init_database
from src.persistence.repositories.profile_repo import ProfileRepository
from src.persistence.repositories.session_repo import SessionRepository
from src.persistence.repositories.utterance_repo import UtteranceRepository


class ScriptedLLMClient:
    """Stands in for an LLMClient: returns queued replies, records calls."""

    def __init__(self, replies: Optional[List] = None, model: str = "test-model"):
        self.replies = list(replies or [])
        self.model = model
        self.calls: List[dict] = []

    async def complete(self, prompt, system=None, history=None, **kwargs):
        self.calls.append({"prompt": prompt, "system": system, "history": history})
        reply = self.replies.pop(0) if self.replies else "Tell me more about that."
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        return LLMResponse(
            content=reply,
            model=self.model,
            usage={"input_tokens": 12, "output_tokens": 8},
            latency_ms=5.0,
        )


def crisis_verdict(risk_level: str, reply: str = "Please reach out for support now.", **extra):
    """JSON body the crisis model would return."""
    return {
        "riskLevel": risk_level,
        "crisisType": extra.get("crisisType", "self_harm" if risk_level != "none" else "none"),
        "urgency": extra.get("urgency", "immediate" if risk_level == "critical" else "today"),
        "recommendedResources": extra.get("recommendedResources", []),
        "reply": reply,
    }


def make_session(
    mode: SessionMode = SessionMode.COACHING,
    user_id: str = "user-1",
    session_id: str = "session-1",
    **fields,
) -> Session:
    now = datetime.now(timezone.utc)
    phase = fields.pop("phase", None) or PhaseState(
        time_budget_minutes=fields.pop("time_budget_minutes", 30)
    )
    return Session(
        id=session_id,
        user_id=user_id,
        mode=mode,
        phase=phase,
        created_at=now,
        updated_at=now,
        **fields,
    )


@pytest.fixture
async def test_db():
    """Create and initialize test database."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        await init_database(db_path)

        from src.core import config

        original_path = config.settings.database_path
        config.settings.database_path = db_path

        with patch("src.persistence.database.settings", config.settings):
            yield db_path

        config.settings.database_path = original_path


@pytest.fixture
async def session_repo(test_db):
    return SessionRepository(str(test_db))


@pytest.fixture
async def utterance_repo(test_db):
    return UtteranceRepository(str(test_db))


@pytest.fixture
async def profile_repo(test_db):
    return ProfileRepository(str(test_db))


@pytest.fixture
def lexicon():
    return load_crisis_lexicon()


@pytest.fixture
def llm_factory():
    """Build a ScriptedLLMClient from a list of replies (str, dict or Exception)."""
    return ScriptedLLMClient


@pytest.fixture
def verdict():
    return crisis_verdict


@pytest.fixture
def session_factory():
    return make_session
