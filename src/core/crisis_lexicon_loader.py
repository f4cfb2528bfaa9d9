"""Crisis lexicon loader.

Loads the versioned crisis keyword/pattern asset from YAML. The lexicon is
reviewed and swapped as a file, never edited in code. Results are cached
per path after first load.
"""

import re
from pathlib import Path
from typing import Dict, Optional

import structlog
import yaml

from src.core.config import settings
from src.core.exceptions import ConfigurationError
from src.domain.models.crisis import CrisisLexicon

log = structlog.get_logger(__name__)

DEFAULT_LEXICON_PATH = (
    Path(__file__).parent.parent.parent / "config" / "crisis" / "lexicon_v1.yaml"
)

# Module-level cache (lexicon doesn't change at runtime)
_cache: Dict[Path, CrisisLexicon] = {}


def load_crisis_lexicon(path: Optional[Path] = None) -> CrisisLexicon:
    """Load and validate the crisis lexicon.

    Args:
        path: Override lexicon path (defaults to settings.crisis_lexicon_path,
            then config/crisis/lexicon_v1.yaml)

    Returns:
        Validated CrisisLexicon

    Raises:
        ConfigurationError: File missing, empty, or containing an invalid pattern
    """
    path = Path(path or settings.crisis_lexicon_path or DEFAULT_LEXICON_PATH).resolve()
    if path in _cache:
        return _cache[path]

    if not path.exists():
        raise ConfigurationError(f"Crisis lexicon not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if not data:
        raise ConfigurationError(f"Crisis lexicon is empty: {path}")

    lexicon = CrisisLexicon(**data)
    if not lexicon.keywords and not lexicon.patterns:
        raise ConfigurationError(f"Crisis lexicon has no keywords or patterns: {path}")

    for pattern in lexicon.patterns:
        try:
            re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid crisis pattern {pattern!r} in {path}: {e}"
            ) from e

    _cache[path] = lexicon
    log.info(
        "crisis_lexicon_loaded",
        version=lexicon.version,
        keyword_count=len(lexicon.keywords),
        pattern_count=len(lexicon.patterns),
    )
    return lexicon


def clear_cache() -> None:
    _cache.clear()
