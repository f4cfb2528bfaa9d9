"""
Turn processing pipeline.

One inbound parent message is processed by a fixed sequence of stages,
each producing a typed contract on the shared PipelineContext. A confirmed
high or critical crisis short-circuits the remaining stages.
"""

from .base import TurnStage
from .context import PipelineContext
from .pipeline import TurnPipeline
from .result import TurnResult

__all__ = [
    "TurnStage",
    "PipelineContext",
    "TurnPipeline",
    "TurnResult",
]
