from __future__ import annotations

from bandmatch.config import EventConfig, load_builtin_events, merge_events
from bandmatch.matcher.events import EVENT_SCORE, match_event, resolve_participant
from bandmatch.models import Band, BandAliases


def _entry(band_id: str, name: str, school: str) -> BandAliases:
    return BandAliases(
        band=Band(id=band_id, name=name, school_name=school),
        aliases=(name.lower(), school.lower()),
    )


TABLE = (
    _entry("su", "Southern University Human Jukebox", "Southern University"),
    _entry("gram", "Grambling State Tiger Marching Band", "Grambling State University"),
    _entry("tsu", "Texas Southern Ocean of Soul", "Texas Southern University"),
    _entry("asu", "Alabama State Mighty Marching Hornets", "Alabama State University"),
)

BAYOU = EventConfig(name="bayou classic", participants=("Southern University", "Grambling State"))


class TestResolveParticipant:
    """Test roster participant lookup."""

    def test_matches_school_name(self) -> None:
        assert resolve_participant("Grambling State", TABLE).band_id == "gram"

    def test_first_band_in_table_order_wins(self) -> None:
        # "southern" is contained in both Southern University and Texas Southern
        assert resolve_participant("Southern", TABLE).band_id == "su"

    def test_unknown_participant(self) -> None:
        assert resolve_participant("Norfolk State", TABLE) is None

    def test_blank_participant(self) -> None:
        assert resolve_participant("  ", TABLE) is None


class TestMatchEvent:
    """Test event roster candidates."""

    def test_roster_candidates_in_order(self) -> None:
        candidates = match_event("2023 Bayou Classic Battle of the Bands", [BAYOU], TABLE)

        assert [candidate.band_id for candidate in candidates] == ["su", "gram"]
        assert all(candidate.score == EVENT_SCORE for candidate in candidates)
        assert all(candidate.match_type == "event" for candidate in candidates)
        assert candidates[0].matched_alias == "bayou classic"

    def test_no_event_in_text(self) -> None:
        assert match_event("Southern University halftime", [BAYOU], TABLE) == []

    def test_unresolvable_roster_falls_through_to_next_event(self) -> None:
        empty = EventConfig(name="classic", participants=("Various",))
        magic = EventConfig(name="magic city classic", participants=("Alabama State", "Alabama A&M"))

        candidates = match_event("Magic City Classic halftime", [empty, magic], TABLE)

        assert [candidate.band_id for candidate in candidates] == ["asu"]

    def test_duplicate_participants_are_collapsed(self) -> None:
        event = EventConfig(name="swac showcase", participants=("Southern", "Southern University"))

        candidates = match_event("SWAC Showcase", [event], TABLE)

        assert [candidate.band_id for candidate in candidates] == ["su"]


class TestEventConfiguration:
    """Test the built-in rosters and custom overrides."""

    def test_builtin_events_are_shipped(self) -> None:
        names = [event.name for event in load_builtin_events()]

        assert names == ["meac swac challenge", "bayou classic", "magic city classic", "florida classic"]

    def test_custom_event_replaces_builtin_in_place(self) -> None:
        custom = EventConfig(name="bayou classic", participants=("Grambling State",))

        merged = merge_events(load_builtin_events(), [custom])

        assert merged[1] is custom
        assert len(merged) == 4

    def test_new_custom_events_are_appended(self) -> None:
        custom = EventConfig(name="honda battle of the bands", participants=("Southern University",))

        merged = merge_events(load_builtin_events(), [custom])

        assert merged[-1] is custom
        assert len(merged) == 5
