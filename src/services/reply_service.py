"""Reply generation for non-crisis turns.

Thin wrapper over the generation LLM client: instruction text plus history
in, reply text plus usage out. Errors propagate to the pipeline, which
turns them into a technical-difficulty response.
"""

import structlog

from src.core.exceptions import LLMResponseParseError
from src.domain.models.pipeline_contracts import InstructionSet
from src.llm.client import LLMClient, LLMResponse

log = structlog.get_logger(__name__)


class ReplyService:
    def __init__(self, llm_client: LLMClient):
        self.llm = llm_client

    async def generate(self, message: str, instructions: InstructionSet) -> LLMResponse:
        """
        Generate the assistant reply.

        Raises:
            LLMError: Timeout, rate limit, or an empty reply
            httpx.HTTPError: Other transport or API errors
        """
        response = await self.llm.complete(
            prompt=message,
            system=instructions.system,
            history=instructions.messages,
        )
        if not response.content.strip():
            raise LLMResponseParseError("Generation returned an empty reply")

        log.info(
            "reply_generated",
            template=instructions.template,
            reply_length=len(response.content),
            input_tokens=response.usage.get("input_tokens", 0),
            output_tokens=response.usage.get("output_tokens", 0),
        )
        return response
