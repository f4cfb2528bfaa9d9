"""
Prompts and parsing for the structured crisis assessment.

The assessment model must answer with one JSON object:

    {
      "riskLevel": "none|low|medium|high|critical",
      "crisisType": "none|parental_burnout|child_safety|self_harm|violence",
      "urgency": "routine|today|within_hour|immediate",
      "recommendedResources": ["..."],
      "reply": "safety-first message to the parent"
    }
"""

import json
import re
from typing import Any, Dict, List, Sequence

import structlog

from src.core.exceptions import LLMResponseParseError

log = structlog.get_logger(__name__)

CRISIS_SYSTEM_PROMPT = """You are a crisis assessment specialist supporting an ADHD parent coaching service. Safety comes before conversation flow.

Assess the parent's latest message, in the context of the recent conversation, for:
- Suicidal ideation or self-harm intent
- Violence toward the child or other family members
- Child safety concerns
- Severe parental burnout needing urgent support

Respond with a single JSON object and nothing else:
{
  "riskLevel": "none" | "low" | "medium" | "high" | "critical",
  "crisisType": "none" | "parental_burnout" | "child_safety" | "self_harm" | "violence",
  "urgency": "routine" | "today" | "within_hour" | "immediate",
  "recommendedResources": [list of specific UK support resources],
  "reply": "a calm, compassionate message to the parent that acknowledges what they said, encourages them to reach out to the resources now, and does not continue coaching"
}

Use "critical" when there is intent, a plan or immediate danger. Use "high" when there is serious risk without immediacy. Figures of speech about ordinary frustration are "none" or "low"."""

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


def get_crisis_user_prompt(message: str, history: Sequence[Dict[str, str]]) -> str:
    """Latest message plus a compact transcript of recent turns."""
    transcript = "\n".join(f"{turn['role']}: {turn['content']}" for turn in history)
    return (
        f"Recent conversation:\n{transcript or '(none)'}\n\n"
        f"Latest parent message:\n{message}"
    )


def parse_crisis_response(content: str) -> Dict[str, Any]:
    """
    Parse the assessment JSON.

    Raises:
        LLMResponseParseError: Not a JSON object, or riskLevel missing
    """
    text = _FENCE.sub("", content.strip())
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        log.warning("crisis_response_not_json", content_length=len(content))
        raise LLMResponseParseError(f"Crisis assessment was not valid JSON: {e}") from e

    if not isinstance(data, dict) or "riskLevel" not in data:
        raise LLMResponseParseError("Crisis assessment missing riskLevel")
    return data


def merge_resources(recommended: Sequence[str], standard: Sequence[str]) -> List[str]:
    """Recommended first, then standard, without duplicates."""
    merged: List[str] = []
    for resource in [*recommended, *standard]:
        if resource and resource not in merged:
            merged.append(resource)
    return merged
