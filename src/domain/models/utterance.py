"""Utterance domain model for conversation history.

One row per message: the parent's message and the assistant reply share a
turn_number. Token usage is recorded on assistant rows only.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class Speaker(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Utterance(BaseModel):
    id: str
    session_id: str
    turn_number: int
    speaker: Speaker
    text: str
    is_crisis: bool = False
    input_tokens: int = 0
    output_tokens: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"from_attributes": True}

    def as_message(self) -> dict:
        """Chat-completions style message dict."""
        return {"role": self.speaker.value, "content": self.text}
