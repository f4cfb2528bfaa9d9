"""Second-stage crisis assessment.

Runs only after the lexical screen escalates. Calls the crisis LLM client,
parses its structured verdict and merges the standard resources for the
returned risk level. Any failure is raised as CrisisAssessmentError; an
assessment that could not be completed is never reported as "none".
"""

from typing import Dict, Optional, Sequence

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from src.core.crisis_lexicon_loader import load_crisis_lexicon
from src.core.exceptions import CrisisAssessmentError, LLMError
from src.domain.models.crisis import CrisisAssessment, CrisisLexicon, CrisisVerdict
from src.llm.client import LLMClient
from src.llm.prompts.crisis import (
    CRISIS_SYSTEM_PROMPT,
    get_crisis_user_prompt,
    merge_resources,
    parse_crisis_response,
)

log = structlog.get_logger(__name__)

# Shown when the model returns a severe level without its own reply text
DEFAULT_CRISIS_REPLY = (
    "I'm really concerned about what you've shared, and your safety matters most "
    "right now. Please reach out to one of these services straight away. "
    "You don't have to handle this alone."
)


class CrisisAssessmentService:
    """Structured crisis assessment backed by the crisis LLM client."""

    def __init__(self, llm_client: LLMClient, lexicon: Optional[CrisisLexicon] = None):
        self.llm = llm_client
        self.lexicon = lexicon or load_crisis_lexicon()

    async def assess(
        self, message: str, history: Sequence[Dict[str, str]]
    ) -> CrisisAssessment:
        """Assess a message that tripped the screen.

        Args:
            message: Latest parent message
            history: Recent turns as role/content dicts, oldest first

        Returns:
            CrisisAssessment with standard resources merged in

        Raises:
            CrisisAssessmentError: LLM unreachable or erroring, or a verdict
                that is unparseable or of the wrong shape
        """
        try:
            response = await self.llm.complete(
                prompt=get_crisis_user_prompt(message, history),
                system=CRISIS_SYSTEM_PROMPT,
            )
            verdict = CrisisVerdict.model_validate(
                parse_crisis_response(response.content)
            )
            assessment = self._to_assessment(verdict)
        except (
            LLMError,
            httpx.HTTPError,
            PydanticValidationError,
            ValueError,
            TypeError,
            AttributeError,
        ) as e:
            log.error(
                "crisis_assessment_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            raise CrisisAssessmentError(f"Crisis assessment unavailable: {e}") from e

        log.info(
            "crisis_assessed",
            risk_level=assessment.risk_level.value,
            crisis_type=assessment.crisis_type.value,
            urgency=assessment.urgency.value,
            resource_count=len(assessment.resources),
            latency_ms=round(response.latency_ms, 2),
        )
        return assessment

    def _to_assessment(self, verdict: CrisisVerdict) -> CrisisAssessment:
        resources = merge_resources(
            verdict.recommended_resources,
            self.lexicon.standard_resources.get(verdict.risk_level, []),
        )
        reply = verdict.reply.strip()
        if verdict.risk_level.is_severe and not reply:
            reply = DEFAULT_CRISIS_REPLY

        return CrisisAssessment(
            risk_level=verdict.risk_level,
            crisis_type=verdict.crisis_type,
            urgency=verdict.urgency,
            resources=resources,
            reply=reply,
        )
