"""Named event detection.

Classics and showcases have fixed participant rosters. When an event name
appears in the text, the roster decides which bands the video belongs to and
general alias scoring is skipped.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..config import EventConfig
from ..models import AliasTable, BandAliases, MatchCandidate

EVENT_SCORE = 85


def resolve_participant(participant: str, table: AliasTable) -> Optional[BandAliases]:
    needle = participant.strip().lower()
    if not needle:
        return None
    for entry in table:
        band = entry.band
        if needle in band.name.lower() or needle in band.school_name.lower():
            return entry
    return None


def match_event(text: str, events: Sequence[EventConfig], table: AliasTable) -> list[MatchCandidate]:
    """Return fixed-score candidates for the first recognised event.

    Events whose roster resolves to no known band are skipped so a later
    event in the list can still apply.
    """
    lowered = text.lower()
    for event in events:
        if not event.name or event.name not in lowered:
            continue
        candidates: list[MatchCandidate] = []
        seen: set[str] = set()
        for participant in event.participants:
            entry = resolve_participant(participant, table)
            if entry is None or entry.band.id in seen:
                continue
            seen.add(entry.band.id)
            candidates.append(
                MatchCandidate(
                    band_id=entry.band.id,
                    band_name=entry.band.name,
                    category=entry.band.category,
                    score=EVENT_SCORE,
                    matched_alias=event.name,
                    match_type="event",
                )
            )
        if candidates:
            return candidates
    return []
