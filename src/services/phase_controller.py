"""
GROW phase and Reality-depth controller for coaching sessions.

All functions are pure: they take a PhaseState and return a new one.

Per assistant turn (record_turn):
    - goal: counts turns; after goal_turns the phase moves to reality
    - reality: depth += 1
    - ready_for_options latches once depth >= minimum for the budget
    - elapsed = min(budget, floor(depth * minutes_per_turn) + setup_minutes)

Advancing to options additionally requires emotions_reflected and
exceptions_explored. Closing is only reached through an explicit
advance_phase call.
"""

import math
from typing import Optional

from src.core.config import CoachingConfig, coaching_config
from src.core.exceptions import PhaseTransitionError
from src.domain.models.session import CoachingPhase, PhaseState


class PhaseController:
    def __init__(self, config: Optional[CoachingConfig] = None):
        self.config = config or coaching_config

    def min_depth(self, budget_minutes: int) -> int:
        return self.config.depth.min_depth_for(budget_minutes)

    def estimate_elapsed(self, depth: int, budget_minutes: int) -> int:
        model = self.config.time_model
        return min(
            budget_minutes,
            math.floor(depth * model.minutes_per_turn) + model.setup_minutes,
        )

    def record_turn(self, state: PhaseState) -> PhaseState:
        """Apply one coaching assistant turn."""
        phase = state.current_phase
        phase_turns = state.phase_turns + 1
        depth = state.reality_exploration_depth

        if phase == CoachingPhase.REALITY:
            depth += 1
        elif phase == CoachingPhase.GOAL and phase_turns >= self.config.phases.goal_turns:
            phase = CoachingPhase.REALITY
            phase_turns = 0

        ready = state.ready_for_options or depth >= self.min_depth(
            state.time_budget_minutes
        )
        elapsed = max(
            state.time_elapsed_minutes,
            self.estimate_elapsed(depth, state.time_budget_minutes),
        )

        return state.model_copy(
            update={
                "current_phase": phase,
                "phase_turns": phase_turns,
                "reality_exploration_depth": depth,
                "ready_for_options": ready,
                "time_elapsed_minutes": elapsed,
            }
        )

    @staticmethod
    def can_advance_to_options(state: PhaseState) -> bool:
        return (
            state.ready_for_options
            and state.emotions_reflected
            and state.exceptions_explored
        )

    def approaching_time_limit(self, state: PhaseState) -> bool:
        """Signal only; the caller decides whether to offer an extension."""
        window = self.config.time_model.extension_window_minutes
        return (
            state.time_remaining_minutes <= window
            and not state.time_extension_offered
        )

    @staticmethod
    def apply_signals(
        state: PhaseState,
        emotions_reflected: Optional[bool] = None,
        exceptions_explored: Optional[bool] = None,
    ) -> PhaseState:
        """Latch coaching signals. A False never clears an earlier True."""
        return state.model_copy(
            update={
                "emotions_reflected": state.emotions_reflected or bool(emotions_reflected),
                "exceptions_explored": state.exceptions_explored
                or bool(exceptions_explored),
            }
        )

    @staticmethod
    def mark_extension_offered(state: PhaseState) -> PhaseState:
        return state.model_copy(update={"time_extension_offered": True})

    def advance_phase(self, state: PhaseState, target: CoachingPhase) -> PhaseState:
        """Move to the next GROW phase.

        Raises:
            PhaseTransitionError: target is not the next phase, or options
                is requested before the depth and signal gates are met
        """
        if state.current_phase.next != target:
            raise PhaseTransitionError(
                f"Cannot move from {state.current_phase.value} to {target.value}"
            )
        if target == CoachingPhase.OPTIONS and not self.can_advance_to_options(state):
            raise PhaseTransitionError(
                "Options requires sufficient reality depth, reflected emotions "
                "and explored exceptions"
            )
        return state.model_copy(update={"current_phase": target, "phase_turns": 0})
