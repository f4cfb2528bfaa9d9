"""
Stage 2: Crisis screening.

Runs before any coaching logic. On a lexical hit (or when the session is
already high/critical) the structured assessment is awaited. A confirmed
high/critical level is written immediately, together with the crisis turn,
and the pipeline is short-circuited: no phase, depth or mode logic runs.

Assessment failures propagate as CrisisAssessmentError so the session
service can fail safe.
"""

import uuid
from typing import TYPE_CHECKING, Optional

import structlog

from ..base import TurnStage
from src.core.config import CoachingConfig, coaching_config
from src.domain.models.pipeline_contracts import CrisisScreeningOutput
from src.domain.models.session import CrisisLevel
from src.domain.models.utterance import Speaker, Utterance
from src.services.crisis_classifier import CrisisClassifier
from src.services.protocols import ICrisisAssessor, ISessionStore, ITurnStore

log = structlog.get_logger(__name__)

if TYPE_CHECKING:
    from ..context import PipelineContext


class CrisisScreeningStage(TurnStage):
    def __init__(
        self,
        classifier: CrisisClassifier,
        assessor: ICrisisAssessor,
        session_store: ISessionStore,
        turn_store: ITurnStore,
        config: Optional[CoachingConfig] = None,
    ):
        self.classifier = classifier
        self.assessor = assessor
        self.sessions = session_store
        self.turns = turn_store
        self.config = config or coaching_config

    async def process(self, context: "PipelineContext") -> "PipelineContext":
        session = context.session
        prior = session.crisis_level
        screen = self.classifier.screen(context.message, prior)

        if not screen.should_escalate:
            context.crisis_screening_output = CrisisScreeningOutput(
                screen=screen, crisis_level=prior
            )
            return context

        window = self.config.session_service.crisis_history_window
        history = context.history[-window:] if window else []
        assessment = await self.assessor.assess(context.message, history)

        # No automatic de-escalation within a session
        level = CrisisLevel.max(prior, assessment.risk_level)
        output = CrisisScreeningOutput(
            screen=screen, assessment=assessment, crisis_level=level
        )

        if assessment.risk_level.is_severe:
            output.short_circuit = True
            await self._persist_crisis(context, output)
            context.short_circuit = True
            log.warning(
                "crisis_confirmed",
                session_id=session.id,
                risk_level=assessment.risk_level.value,
                crisis_level=level.value,
                urgency=assessment.urgency.value,
                level_persisted=output.level_persisted,
                history_persisted=output.history_persisted,
            )

        context.crisis_screening_output = output
        return context

    async def _persist_crisis(
        self,
        context: "PipelineContext",
        output: CrisisScreeningOutput,
    ) -> None:
        """Write the crisis level, then the crisis turn.

        Outcomes go to output.level_persisted and output.history_persisted.
        The turn is skipped when the level write fails.
        """
        session = context.session
        level = output.crisis_level
        assessment = output.assessment
        turn_number = context.turn_number
        try:
            await self.sessions.update(
                session.id, {"crisis_level": level, "turn_count": turn_number}
            )
        except Exception as e:
            log.error(
                "crisis_level_persist_failed",
                session_id=session.id,
                crisis_level=level.value,
                error=str(e),
                exc_info=True,
            )
            output.level_persisted = False
            output.history_persisted = False
            return

        try:
            await self.turns.save_turn(
                Utterance(
                    id=str(uuid.uuid4()),
                    session_id=session.id,
                    turn_number=turn_number,
                    speaker=Speaker.USER,
                    text=context.message,
                    is_crisis=True,
                ),
                Utterance(
                    id=str(uuid.uuid4()),
                    session_id=session.id,
                    turn_number=turn_number,
                    speaker=Speaker.ASSISTANT,
                    text=assessment.reply,
                    is_crisis=True,
                ),
            )
        except Exception as e:
            log.error(
                "crisis_turn_persist_failed",
                session_id=session.id,
                error=str(e),
                exc_info=True,
            )
            output.history_persisted = False
