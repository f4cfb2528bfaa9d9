"""
Stage 6: Generate the reply.

Generation errors propagate unchanged; nothing has been written for this
turn yet, so the session stays as it was before the message.
"""

from typing import TYPE_CHECKING

from ..base import TurnStage
from src.domain.models.pipeline_contracts import ReplyGenerationOutput
from src.services.reply_service import ReplyService

if TYPE_CHECKING:
    from ..context import PipelineContext


class ReplyGenerationStage(TurnStage):
    def __init__(self, reply_service: ReplyService):
        self.replies = reply_service

    async def process(self, context: "PipelineContext") -> "PipelineContext":
        if context.prompt_composition_output is None:
            raise RuntimeError(
                "Pipeline contract violation: ReplyGenerationStage ran before "
                "PromptCompositionStage (Stage 5) completed. "
                f"Session: {context.session_id}"
            )

        response = await self.replies.generate(
            context.message, context.prompt_composition_output.instructions
        )
        context.reply_generation_output = ReplyGenerationOutput(
            reply_text=response.content.strip(),
            model=response.model,
            usage=response.usage,
            latency_ms=response.latency_ms,
        )
        return context
