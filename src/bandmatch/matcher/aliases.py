"""Alias table construction.

Each band gets an ordered set of lowercase strings that can be searched for in
video text. Traditional bands are enriched from the keyword configuration,
all-star bands from the all-star alias list. Keywords stored on the band
record are merged last for every band; bands with neither fall back to their
own name and school name.

Configuration lookup is explicit about ties: an entry matching the band's
canonical name beats one matching only its school name, and within the same
kind of match the first declared entry wins.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Sequence

from ..config import AllStarBandConfig, AppConfig, TraditionalBandConfig
from ..models import AliasTable, Band, BandAliases, BandCategory
from ..utils import normalize_name
from .similarity import closest_name

LOGGER = logging.getLogger(__name__)

MIN_ALIAS_LENGTH = 3
NICKNAME_MIN_LENGTH = 4
ACRONYM_LENGTH_RANGE = (2, 5)
ACRONYM_STOP_WORDS = frozenset({"of", "the", "at", "and"})

_SCHOOL_SUFFIX_PATTERN = re.compile(r"\s+(?:university|college)$", re.IGNORECASE)


class _OrderedAliases:
    def __init__(self) -> None:
        self._items: dict[str, None] = {}

    def add(self, value: Optional[str]) -> None:
        if value is None:
            return
        alias = value.strip().lower()
        if alias:
            self._items.setdefault(alias, None)

    def extend(self, values: Iterable[str]) -> None:
        for value in values:
            self.add(value)

    def finalize(self, fallback: str) -> tuple[str, ...]:
        aliases = tuple(alias for alias in self._items if len(alias) >= MIN_ALIAS_LENGTH)
        if aliases:
            return aliases
        return (fallback.strip().lower(),)


def derive_nickname(school: str, name: str) -> Optional[str]:
    """Strip the words a band name shares with its school name.

    "Southern University Human Jukebox" with school "Southern University"
    yields "human jukebox".
    """
    name_words = name.lower().split()
    if len(name_words) <= 2:
        return None
    school_words = school.lower().split()

    shared = 0
    for school_word, name_word in zip(school_words, name_words):
        if school_word != name_word:
            break
        shared += 1

    if 0 < shared < len(name_words):
        nickname = " ".join(name_words[shared:])
        if len(nickname) >= NICKNAME_MIN_LENGTH:
            return nickname
    return None


def simplify_school_name(school: str) -> Optional[str]:
    simplified = _SCHOOL_SUFFIX_PATTERN.sub("", school).strip().lower()
    if simplified and simplified != school.strip().lower():
        return simplified
    return None


def school_acronym(school: str) -> Optional[str]:
    words = [word for word in school.replace("&", "and").split() if word.lower() not in ACRONYM_STOP_WORDS]
    acronym = "".join(word[0] for word in words).lower()
    low, high = ACRONYM_LENGTH_RANGE
    if low <= len(acronym) <= high:
        return acronym
    return None


def traditional_aliases(entry: TraditionalBandConfig, *, include_channel_handle: bool = False) -> list[str]:
    aliases = [entry.name, entry.school]
    aliases.extend(entry.keywords)
    for derived in (
        derive_nickname(entry.school, entry.name),
        simplify_school_name(entry.school),
        school_acronym(entry.school),
    ):
        if derived:
            aliases.append(derived)
    if include_channel_handle and entry.channel_handle:
        aliases.append(entry.channel_handle.lstrip("@"))
    return aliases


def find_traditional_entry(
    band: Band,
    entries: Sequence[TraditionalBandConfig],
) -> Optional[TraditionalBandConfig]:
    band_name = normalize_name(band.name)
    band_school = normalize_name(band.school_name)
    school_match: Optional[TraditionalBandConfig] = None
    for entry in entries:
        if normalize_name(entry.name) == band_name:
            return entry
        if school_match is None and normalize_name(entry.school) == band_school:
            school_match = entry
    return school_match


def find_all_star_entry(
    band: Band,
    entries: Sequence[AllStarBandConfig],
) -> Optional[AllStarBandConfig]:
    band_name = band.name.strip().lower()
    for entry in entries:
        if entry.name.strip().lower() == band_name:
            return entry
    return None


def build_band_aliases(band: Band, config: AppConfig) -> BandAliases:
    aliases = _OrderedAliases()
    aliases.add(band.name)
    aliases.add(band.school_name)

    if band.category is BandCategory.ALL_STAR:
        all_star = find_all_star_entry(band, config.all_star_bands)
        if all_star is not None:
            aliases.add(all_star.name)
            aliases.extend(all_star.aliases)
    else:
        entry = find_traditional_entry(band, config.bands)
        if entry is not None:
            aliases.extend(
                traditional_aliases(entry, include_channel_handle=config.matching.channel_handle_aliases)
            )

    # Keywords stored on the band record apply with or without configuration.
    aliases.extend(band.keywords)
    return BandAliases(band=band, aliases=aliases.finalize(band.name))


def build_alias_table(bands: Sequence[Band], config: AppConfig) -> AliasTable:
    """Build the alias table for one classification run.

    The table keeps the order of ``bands``; that order is the tie-break order
    for equal match scores.
    """
    table = tuple(build_band_aliases(band, config) for band in bands)
    _report_near_misses(bands, config)
    LOGGER.debug("Built aliases for %d bands (%d aliases)", len(table), sum(len(entry.aliases) for entry in table))
    return table


def _report_near_misses(bands: Sequence[Band], config: AppConfig) -> None:
    if not config.bands:
        return
    schools = [entry.school for entry in config.bands]
    for band in bands:
        if band.category is not BandCategory.TRADITIONAL:
            continue
        if find_traditional_entry(band, config.bands) is not None:
            continue
        candidate = closest_name(band.school_name, schools)
        if candidate is not None:
            LOGGER.warning(
                "Band '%s' has no keyword configuration; school '%s' closely resembles configured school '%s'",
                band.name,
                band.school_name,
                candidate,
            )
