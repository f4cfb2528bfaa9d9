"""Mode selection at session creation.

Rules, first match wins:
    1. explicit discovery                      -> discovery
    2. 0 < completeness < threshold            -> partial-discovery
    3. completeness >= threshold and explicit
       coaching                                -> coaching
    4. otherwise                               -> check-in

The mode is fixed for the life of the session.
"""

from typing import Optional

import structlog

from src.core.config import coaching_config
from src.domain.models.profile import ProfileCompleteness
from src.domain.models.session import SessionMode

log = structlog.get_logger(__name__)


def select_mode(
    explicit_mode: Optional[SessionMode],
    completeness: ProfileCompleteness,
    threshold: Optional[int] = None,
) -> SessionMode:
    if threshold is None:
        threshold = coaching_config.modes.partial_discovery_threshold
    pct = completeness.completion_percentage

    if explicit_mode == SessionMode.DISCOVERY:
        mode = SessionMode.DISCOVERY
    elif 0 < pct < threshold:
        mode = SessionMode.PARTIAL_DISCOVERY
    elif pct >= threshold and explicit_mode == SessionMode.COACHING:
        mode = SessionMode.COACHING
    else:
        mode = SessionMode.CHECK_IN

    log.debug(
        "mode_selected",
        mode=mode.value,
        explicit_mode=explicit_mode.value if explicit_mode else None,
        completion_percentage=pct,
        threshold=threshold,
    )
    return mode
