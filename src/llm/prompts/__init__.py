# noqa
from src.llm.prompts.check_in import get_check_in_system_prompt
from src.llm.prompts.coaching import get_coaching_system_prompt
from src.llm.prompts.crisis import (
    CRISIS_SYSTEM_PROMPT,
    get_crisis_user_prompt,
    parse_crisis_response,
)
from src.llm.prompts.discovery import (
    get_discovery_system_prompt,
    get_partial_discovery_system_prompt,
)

__all__ = [
    "get_check_in_system_prompt",
    "get_coaching_system_prompt",
    "CRISIS_SYSTEM_PROMPT",
    "get_crisis_user_prompt",
    "parse_crisis_response",
    "get_discovery_system_prompt",
    "get_partial_discovery_system_prompt",
]
