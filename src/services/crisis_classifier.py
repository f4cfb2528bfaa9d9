"""
First-stage crisis screen.

Cheap lexical pass run before anything else on every parent message. It
decides only whether the structured assessment must run; it never decides
that a message is safe once a session has been flagged high or critical.

Errs toward sensitivity: a single keyword or pattern hit escalates.
"""

import re
from typing import List, Optional, Pattern

import structlog

from src.core.crisis_lexicon_loader import load_crisis_lexicon
from src.domain.models.crisis import CrisisLexicon, CrisisScreenResult
from src.domain.models.session import CrisisLevel

log = structlog.get_logger(__name__)

# Typographic apostrophes are normalized so "can’t" matches "can't"
_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "ʼ": "'"})


def normalize_message(message: str) -> str:
    return message.translate(_APOSTROPHES).lower()


class CrisisClassifier:
    """Keyword and regex screen backed by a versioned lexicon."""

    def __init__(self, lexicon: Optional[CrisisLexicon] = None):
        self.lexicon = lexicon or load_crisis_lexicon()
        self._keywords: List[str] = [k.lower() for k in self.lexicon.keywords]
        self._patterns: List[Pattern[str]] = [
            re.compile(p, re.IGNORECASE) for p in self.lexicon.patterns
        ]

    def screen(
        self, message: str, prior_crisis_level: CrisisLevel = CrisisLevel.NONE
    ) -> CrisisScreenResult:
        """Decide whether the structured assessment must run for this message.

        Args:
            message: Raw parent message
            prior_crisis_level: Level already recorded on the session

        Returns:
            CrisisScreenResult; should_escalate is True on any lexical hit,
            or unconditionally when the session is already high/critical
        """
        text = normalize_message(message)

        matched = [k for k in self._keywords if k in text]
        for pattern in self._patterns:
            hit = pattern.search(text)
            if hit:
                matched.append(hit.group(0))

        sticky = prior_crisis_level.is_severe
        should_escalate = bool(matched) or sticky

        if should_escalate:
            log.info(
                "crisis_screen_escalated",
                match_count=len(matched),
                sticky=sticky,
                prior_crisis_level=prior_crisis_level.value,
                lexicon_version=self.lexicon.version,
            )

        return CrisisScreenResult(
            should_escalate=should_escalate,
            matched_terms=matched,
            sticky=sticky,
            lexicon_version=self.lexicon.version,
        )
