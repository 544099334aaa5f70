"""Alias scoring against video text.

Every band contributes at most one candidate, its best-scoring alias. Scores
depend on the band category and on how specific the matched alias is, with a
bonus when the alias appears early in the text where titles live.
"""

from __future__ import annotations

import functools
import re
from typing import Optional

from ..models import AliasTable, BandAliases, BandCategory, MatchCandidate, MatchType
from .aliases import MIN_ALIAS_LENGTH

# Aliases up to this length must match as whole words
WORD_BOUNDARY_MAX_LENGTH = 4

EARLY_TEXT_WINDOW = 200
EARLY_MATCH_BONUS = 10

ALL_STAR_EXACT_SCORE = 110
ALL_STAR_ALIAS_SCORE = 90
ALL_STAR_SHORT_SCORE = 70
EXACT_NAME_SCORE = 100
SCHOOL_NAME_SCORE = 80
LONG_PARTIAL_SCORE = 60
PARTIAL_SCORE = 50
ABBREVIATION_SCORE = 30


@functools.lru_cache(maxsize=4096)
def _word_pattern(alias: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(alias)}\b", re.IGNORECASE)


def find_alias(alias: str, text: str) -> Optional[int]:
    """Return the end offset of the first occurrence of ``alias`` in ``text``.

    Short aliases only count when they stand as a whole word so that "su"
    does not match inside "superstar"; longer aliases match as substrings.
    """
    if len(alias) <= WORD_BOUNDARY_MAX_LENGTH:
        match = _word_pattern(alias).search(text)
        return match.end() if match else None
    index = text.find(alias)
    if index < 0:
        return None
    return index + len(alias)


def alias_matches(alias: str, text: str) -> bool:
    return find_alias(alias, text.lower()) is not None


def base_score(alias: str, entry: BandAliases) -> tuple[int, MatchType]:
    band = entry.band
    if band.category is BandCategory.ALL_STAR:
        if alias == band.name.lower():
            return ALL_STAR_EXACT_SCORE, "all_star"
        if len(alias) >= 4:
            return ALL_STAR_ALIAS_SCORE, "all_star"
        return ALL_STAR_SHORT_SCORE, "all_star"

    if alias == band.name.lower():
        return EXACT_NAME_SCORE, "exact_band_name"
    if alias == band.school_name.lower():
        return SCHOOL_NAME_SCORE, "school_name"
    if len(alias) >= 8:
        return LONG_PARTIAL_SCORE, "partial"
    if len(alias) >= 5:
        return PARTIAL_SCORE, "partial"
    return ABBREVIATION_SCORE, "abbreviation"


def score_band(text: str, entry: BandAliases) -> Optional[MatchCandidate]:
    """Score one band against lowercased ``text``; None when nothing matches."""
    best: Optional[MatchCandidate] = None
    for alias in entry.aliases:
        if len(alias) < MIN_ALIAS_LENGTH:
            continue
        end = find_alias(alias, text)
        if end is None:
            continue
        score, match_type = base_score(alias, entry)
        if end <= EARLY_TEXT_WINDOW:
            score += EARLY_MATCH_BONUS
        if best is None or score > best.score:
            best = MatchCandidate(
                band_id=entry.band.id,
                band_name=entry.band.name,
                category=entry.band.category,
                score=score,
                matched_alias=alias,
                match_type=match_type,
            )
    return best


def score_candidates(text: str, table: AliasTable) -> list[MatchCandidate]:
    """Return one candidate per matching band, best score first.

    Equal scores keep alias-table order, so the band listed first wins ties.
    """
    lowered = text.lower()
    candidates = [candidate for entry in table if (candidate := score_band(lowered, entry)) is not None]
    candidates.sort(key=lambda candidate: -candidate.score)
    return candidates
