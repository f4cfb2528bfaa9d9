"""
Pipeline orchestrator for turn processing.

TurnPipeline executes stages sequentially with timing and error handling,
and stops early when a stage sets context.short_circuit.
"""

import time
from typing import List

import structlog

from src.domain.models.session import SessionMode

from .base import TurnStage
from .context import PipelineContext
from .result import (
    CRISIS_ASSESSED,
    CRISIS_CLEAR,
    CRISIS_ESCALATED,
    TurnResult,
)

log = structlog.get_logger(__name__)


class TurnPipeline:
    """
    Orchestrates execution of pipeline stages.

    Executes stages sequentially, tracking timing and handling errors.
    """

    def __init__(self, stages: List[TurnStage]):
        self.stages = stages
        self.logger = log

    async def execute(self, context: PipelineContext) -> TurnResult:
        """
        Execute stages sequentially until done or short-circuited.

        Raises:
            Exception: If any stage fails (logged, then re-raised)
        """
        start_time = time.perf_counter()

        self.logger.info(
            "pipeline_started",
            user_id=context.user_id,
            session_id=context.session_id,
            num_stages=len(self.stages),
        )

        for stage in self.stages:
            if context.short_circuit:
                self.logger.info(
                    "pipeline_short_circuited",
                    session_id=context.session_id,
                    skipped_from=stage.stage_name,
                )
                break

            stage_start = time.perf_counter()
            try:
                self.logger.debug(
                    "stage_started",
                    stage_name=stage.stage_name,
                    session_id=context.session_id,
                )

                context = await stage.process(context)

                stage_elapsed = (time.perf_counter() - stage_start) * 1000
                context.stage_timings[stage.stage_name] = stage_elapsed

                self.logger.debug(
                    "stage_completed",
                    stage_name=stage.stage_name,
                    duration_ms=stage_elapsed,
                )

            except Exception as e:
                self.logger.error(
                    "stage_failed",
                    stage_name=stage.stage_name,
                    session_id=context.session_id,
                    error_type=type(e).__name__,
                    error=str(e),
                    exc_info=True,
                )
                raise

        latency_ms = int((time.perf_counter() - start_time) * 1000)

        self.logger.info(
            "pipeline_completed",
            session_id=context.session_id,
            turn_number=context.turn_number,
            short_circuit=context.short_circuit,
            latency_ms=latency_ms,
            stage_timings=context.stage_timings,
        )

        if context.short_circuit:
            return self._build_crisis_result(context, latency_ms)
        return self._build_result(context, latency_ms)

    def _build_crisis_result(self, context: PipelineContext, latency_ms: int) -> TurnResult:
        screening = context.crisis_screening_output
        assessment = screening.assessment
        return TurnResult(
            reply_text=assessment.reply,
            session_id=context.session_id,
            crisis_flag=True,
            crisis_status=CRISIS_ESCALATED,
            crisis_level=screening.crisis_level.value,
            resources=list(assessment.resources),
            urgency=assessment.urgency.value,
            mode=context.mode.value,
            turn_number=context.turn_number,
            state_persisted=screening.level_persisted,
            history_persisted=screening.history_persisted,
            latency_ms=latency_ms,
        )

    def _build_result(self, context: PipelineContext, latency_ms: int) -> TurnResult:
        screening = context.crisis_screening_output
        reply = context.reply_generation_output
        persistence = context.session_persistence_output

        crisis_status = CRISIS_CLEAR
        urgency = None
        if screening and screening.assessment is not None:
            crisis_status = CRISIS_ASSESSED
            urgency = screening.assessment.urgency.value

        result = TurnResult(
            reply_text=reply.reply_text,
            session_id=context.session_id,
            crisis_status=crisis_status,
            crisis_level=context.crisis_level.value,
            urgency=urgency,
            mode=context.mode.value,
            turn_number=context.turn_number,
            session_completed=persistence.session_completed if persistence else False,
            state_persisted=persistence.state_persisted if persistence else False,
            history_persisted=persistence.history_persisted if persistence else False,
            usage=dict(reply.usage),
            latency_ms=latency_ms,
        )

        if context.mode == SessionMode.COACHING and context.phase_update_output:
            update = context.phase_update_output
            result.phase = update.updated.model_dump(mode="json")
            result.can_advance_to_options = update.can_advance_to_options
            result.approaching_time_limit = update.approaching_time_limit

        return result
