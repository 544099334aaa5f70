"""Matcher package for band entity resolution.

This package provides the matching logic for bandmatch, including:
- Alias generation for traditional and all-star bands
- Off-topic content exclusion
- Alias scoring with positional bonus
- Named event rosters
- Battle phrasing detection

Public API:
- build_alias_table: Build the per-run alias table from band records
- ExclusionFilter: Reject off-topic text before matching
- score_candidates: Score every band against a piece of text
- match_event: Resolve event rosters mentioned in text
- is_battle: Detect head-to-head phrasing

Example:
    from bandmatch.matcher import ExclusionFilter, build_alias_table, score_candidates

    table = build_alias_table(bands, config)
    if ExclusionFilter(config.exclusions).check(text) is None:
        candidates = score_candidates(text, table)
"""

from .aliases import build_alias_table, build_band_aliases
from .battle import is_battle
from .events import match_event
from .exclusions import ExclusionFilter
from .scoring import alias_matches, score_candidates

__all__ = [
    "ExclusionFilter",
    "alias_matches",
    "build_alias_table",
    "build_band_aliases",
    "is_battle",
    "match_event",
    "score_candidates",
]
