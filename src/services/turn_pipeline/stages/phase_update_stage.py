"""
Stage 4: GROW phase and depth update (coaching sessions only).

Computes the post-turn PhaseState but does not write it; persistence only
happens after a reply has been generated, so a failed generation leaves no
partial depth increment behind.
"""

from typing import TYPE_CHECKING

import structlog

from ..base import TurnStage
from src.domain.models.pipeline_contracts import PhaseUpdateOutput
from src.domain.models.session import SessionMode
from src.services.phase_controller import PhaseController

log = structlog.get_logger(__name__)

if TYPE_CHECKING:
    from ..context import PipelineContext


class PhaseUpdateStage(TurnStage):
    def __init__(self, controller: PhaseController):
        self.controller = controller

    async def process(self, context: "PipelineContext") -> "PipelineContext":
        if context.mode != SessionMode.COACHING:
            return context

        previous = context.session.phase
        updated = self.controller.record_turn(previous)

        context.phase_update_output = PhaseUpdateOutput(
            previous=previous,
            updated=updated,
            can_advance_to_options=self.controller.can_advance_to_options(updated),
            approaching_time_limit=self.controller.approaching_time_limit(updated),
        )

        if updated.ready_for_options and not previous.ready_for_options:
            log.info(
                "ready_for_options",
                session_id=context.session_id,
                depth=updated.reality_exploration_depth,
                time_budget_minutes=updated.time_budget_minutes,
            )
        log.debug(
            "phase_updated",
            session_id=context.session_id,
            phase=updated.current_phase.value,
            depth=updated.reality_exploration_depth,
            time_elapsed_minutes=updated.time_elapsed_minutes,
        )
        return context
