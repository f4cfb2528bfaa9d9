"""
Stage 3: Load family facts and evaluate profile completeness.

- discovery / partial-discovery: facts and completeness
- coaching: facts only (for the parent context section)
- check-in: nothing is read
"""

from typing import TYPE_CHECKING

import structlog

from ..base import TurnStage
from src.domain.models.pipeline_contracts import ProfileEvaluationOutput
from src.domain.models.profile import ProfileFacts
from src.domain.models.session import SessionMode
from src.services import profile_completeness
from src.services.protocols import IProfileStore

log = structlog.get_logger(__name__)

if TYPE_CHECKING:
    from ..context import PipelineContext


class ProfileEvaluationStage(TurnStage):
    def __init__(self, profile_store: IProfileStore):
        self.profiles = profile_store

    async def process(self, context: "PipelineContext") -> "PipelineContext":
        mode = context.mode
        if mode == SessionMode.CHECK_IN:
            context.profile_evaluation_output = ProfileEvaluationOutput(
                facts=ProfileFacts()
            )
            return context

        parent = await self.profiles.get_parent(context.user_id)
        children = await self.profiles.get_children(context.user_id)

        completeness = None
        if mode.is_discovery:
            completeness = profile_completeness.evaluate(parent, children)
            log.info(
                "profile_evaluated",
                session_id=context.session_id,
                completion_percentage=completeness.completion_percentage,
                missing_count=len(completeness.missing_fields),
            )

        context.profile_evaluation_output = ProfileEvaluationOutput(
            completeness=completeness,
            facts=ProfileFacts(
                parent=parent,
                children=children,
                primary_child=profile_completeness.primary_child(children),
                completeness=completeness,
            ),
        )
        return context
