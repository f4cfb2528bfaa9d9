"""
Prompt composition.

Selects one of four fixed templates by session mode and injects only the
facts that template needs:

    discovery          -> structured intake, no injected facts
    partial-discovery  -> what is on file + prompts for missing tiers only
    check-in           -> light listening, no injected facts
    coaching           -> family context + GROW phase and time state

compose() is pure: identical inputs produce identical system text and
message list. History is passed through as role/content dicts so the
generation call sees exactly what was composed.
"""

from typing import Dict, List, Optional, Sequence

from src.core.config import CoachingConfig
from src.domain.models.pipeline_contracts import InstructionSet
from src.domain.models.profile import ProfileFacts
from src.domain.models.session import PhaseState, SessionMode
from src.llm.prompts.check_in import get_check_in_system_prompt
from src.llm.prompts.coaching import get_coaching_system_prompt
from src.llm.prompts.discovery import (
    get_discovery_system_prompt,
    get_partial_discovery_system_prompt,
)
from src.services.phase_controller import PhaseController


class PromptComposer:
    def __init__(self, config: Optional[CoachingConfig] = None):
        self.phase_controller = PhaseController(config)

    def compose(
        self,
        mode: SessionMode,
        phase_state: Optional[PhaseState],
        profile_facts: Optional[ProfileFacts],
        history_window: Sequence[Dict[str, str]],
    ) -> InstructionSet:
        """
        Build the instruction set for one generation call.

        Args:
            mode: Session mode (fixed at creation)
            phase_state: Post-update phase state; required for coaching
            profile_facts: Known family facts; completeness required for
                partial-discovery
            history_window: Recent turns, oldest first

        Raises:
            ValueError: Required input for the mode is missing
        """
        if mode == SessionMode.DISCOVERY:
            system = get_discovery_system_prompt()
        elif mode == SessionMode.PARTIAL_DISCOVERY:
            if profile_facts is None or profile_facts.completeness is None:
                raise ValueError("partial-discovery requires profile completeness")
            system = get_partial_discovery_system_prompt(
                profile_facts.completeness, profile_facts
            )
        elif mode == SessionMode.COACHING:
            if phase_state is None:
                raise ValueError("coaching requires phase state")
            system = get_coaching_system_prompt(
                phase_state,
                profile_facts,
                approaching_limit=self.phase_controller.approaching_time_limit(
                    phase_state
                ),
            )
        else:
            system = get_check_in_system_prompt()

        messages: List[Dict[str, str]] = [
            {"role": turn["role"], "content": turn["content"]}
            for turn in history_window
            if turn.get("role") in ("user", "assistant")
        ]
        return InstructionSet(template=mode.value, system=system, messages=messages)
