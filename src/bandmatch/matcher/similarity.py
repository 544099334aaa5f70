"""Fuzzy name similarity used for configuration diagnostics.

Matching itself never relies on fuzzy similarity; these helpers only surface
near-miss spellings between stored bands and the keyword configuration.
"""

from __future__ import annotations

from typing import Iterable, Optional

from rapidfuzz import fuzz, process

from ..utils import normalize_name

NEAR_MISS_THRESHOLD = 90.0


def name_similarity(candidate: str, target: str) -> float:
    """Return a 0-100 similarity between two display names."""
    return float(fuzz.ratio(normalize_name(candidate), normalize_name(target)))


def closest_name(
    value: str,
    choices: Iterable[str],
    *,
    threshold: float = NEAR_MISS_THRESHOLD,
) -> Optional[str]:
    """Return the configured name closest to ``value`` if it is a near miss.

    Exact (normalized) matches are not near misses and yield None.
    """
    normalized = normalize_name(value)
    options = [choice for choice in choices if normalize_name(choice) != normalized]
    if not normalized or not options:
        return None
    result = process.extractOne(
        normalized,
        options,
        scorer=fuzz.ratio,
        processor=normalize_name,
        score_cutoff=threshold,
    )
    if result is None:
        return None
    return result[0]
