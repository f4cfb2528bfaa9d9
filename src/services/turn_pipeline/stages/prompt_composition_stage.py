"""Stage 5: Compose the instruction set for the generation call."""

from typing import TYPE_CHECKING

from ..base import TurnStage
from src.domain.models.pipeline_contracts import PromptCompositionOutput
from src.services.prompt_composer import PromptComposer

if TYPE_CHECKING:
    from ..context import PipelineContext


class PromptCompositionStage(TurnStage):
    def __init__(self, composer: PromptComposer):
        self.composer = composer

    async def process(self, context: "PipelineContext") -> "PipelineContext":
        facts = (
            context.profile_evaluation_output.facts
            if context.profile_evaluation_output
            else None
        )
        instructions = self.composer.compose(
            context.mode,
            context.phase_state,
            facts,
            context.history,
        )
        context.prompt_composition_output = PromptCompositionOutput(
            instructions=instructions
        )
        return context
