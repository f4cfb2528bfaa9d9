"""
Result object for turn processing pipeline.

Returned for every accepted message: normal replies, crisis replies, and
technical-difficulty fallbacks alike.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# crisis_status values
CRISIS_CLEAR = "clear"  # screen did not escalate
CRISIS_ASSESSED = "assessed"  # escalated, assessed below high
CRISIS_ESCALATED = "escalated"  # confirmed high/critical, pipeline short-circuited
CRISIS_INDETERMINATE = "indeterminate"  # assessment failed; never read as "clear"
CRISIS_NOT_RUN = "not_run"  # turn failed before screening


@dataclass
class TurnResult:
    """Result of processing a single parent message."""

    reply_text: str
    session_id: Optional[str]
    crisis_flag: bool = False
    crisis_status: str = CRISIS_CLEAR
    crisis_level: str = "none"
    resources: List[str] = field(default_factory=list)
    urgency: Optional[str] = None
    mode: Optional[str] = None
    turn_number: Optional[int] = None
    # Phase/time snapshot after this turn (coaching sessions)
    phase: Optional[Dict[str, Any]] = None
    can_advance_to_options: bool = False
    approaching_time_limit: bool = False
    # Discovery handoff: profile reached 100% and the session was closed
    session_completed: bool = False
    # False when the reply was produced but the session state write failed
    state_persisted: bool = True
    # False when the parent message and reply were not added to history
    history_persisted: bool = True
    usage: Dict[str, int] = field(default_factory=dict)
    latency_ms: int = 0
    # Set on fallback replies, e.g. "technical_difficulty"
    error: Optional[str] = None
