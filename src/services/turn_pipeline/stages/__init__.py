"""
Pipeline stages for turn processing.

Each stage encapsulates one logical step, from loading the session through
persisting the turn. Stages execute sequentially in the TurnPipeline
orchestrator; CrisisScreeningStage may stop the sequence early.
"""

from .session_loading_stage import SessionLoadingStage
from .crisis_screening_stage import CrisisScreeningStage
from .profile_evaluation_stage import ProfileEvaluationStage
from .phase_update_stage import PhaseUpdateStage
from .prompt_composition_stage import PromptCompositionStage
from .reply_generation_stage import ReplyGenerationStage
from .session_persistence_stage import SessionPersistenceStage

__all__ = [
    "SessionLoadingStage",
    "CrisisScreeningStage",
    "ProfileEvaluationStage",
    "PhaseUpdateStage",
    "PromptCompositionStage",
    "ReplyGenerationStage",
    "SessionPersistenceStage",
]
