"""Off-topic content detection.

Videos about high school or middle school bands, talk shows and podcasts, or
generic instructional content are rejected before any band matching happens.
The filter is driven entirely by the ``exclusions`` configuration section.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..config import ExclusionPatterns
from ..utils import compile_word_pattern

HIGH_SCHOOL = "high_school"
MIDDLE_SCHOOL = "middle_school"
PODCAST_SHOW = "podcast_show"
GENERIC_CONTENT = "generic_content"

EXCLUSION_REASONS = (HIGH_SCHOOL, MIDDLE_SCHOOL, PODCAST_SHOW, GENERIC_CONTENT)


@dataclass(frozen=True)
class _ReasonRule:
    reason: str
    substrings: tuple[str, ...]
    expressions: tuple[re.Pattern[str], ...] = ()

    def matches(self, lowered: str) -> bool:
        if any(substring in lowered for substring in self.substrings):
            return True
        return any(expression.search(lowered) for expression in self.expressions)


class ExclusionFilter:
    """Classify text as off-topic, checking reasons in a fixed order."""

    def __init__(self, patterns: ExclusionPatterns, *, enabled: bool = True) -> None:
        self.enabled = enabled
        podcast_substrings = tuple(entry.lower() for entry in patterns.podcasts if not entry.startswith(" "))
        podcast_expressions = tuple(compile_word_pattern(entry) for entry in patterns.podcasts if entry.startswith(" "))
        self._rules = (
            _ReasonRule(HIGH_SCHOOL, tuple(entry.lower() for entry in patterns.high_school)),
            _ReasonRule(MIDDLE_SCHOOL, tuple(entry.lower() for entry in patterns.middle_school)),
            _ReasonRule(PODCAST_SHOW, podcast_substrings, podcast_expressions),
            _ReasonRule(GENERIC_CONTENT, tuple(entry.lower() for entry in patterns.generic)),
        )

    def check(self, text: str) -> Optional[str]:
        """Return the exclusion reason for ``text`` or None."""
        if not self.enabled:
            return None
        lowered = text.lower()
        for rule in self._rules:
            if rule.matches(lowered):
                return rule.reason
        return None
