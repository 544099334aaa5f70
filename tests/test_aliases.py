from __future__ import annotations

import logging

from bandmatch.config import AllStarBandConfig, AppConfig, MatchingSettings, TraditionalBandConfig
from bandmatch.matcher.aliases import (
    build_alias_table,
    build_band_aliases,
    derive_nickname,
    find_traditional_entry,
    school_acronym,
    simplify_school_name,
)
from bandmatch.models import Band, BandCategory

JUKEBOX = TraditionalBandConfig(
    name="Southern University Human Jukebox",
    school="Southern University",
    city="Baton Rouge",
    state="Louisiana",
    keywords=("human jukebox", "Jags", "su"),
    channel_handle="@SouthernUniversityBand",
)


def _band(band_id: str, name: str, school: str, category: BandCategory = BandCategory.TRADITIONAL) -> Band:
    return Band(id=band_id, name=name, school_name=school, category=category)


class TestDeriveNickname:
    """Test nickname extraction from band names."""

    def test_strips_shared_leading_words(self) -> None:
        assert derive_nickname("Southern University", "Southern University Human Jukebox") == "human jukebox"

    def test_partial_school_prefix(self) -> None:
        nickname = derive_nickname("Jackson State University", "Jackson State Sonic Boom of the South")
        assert nickname == "sonic boom of the south"

    def test_two_word_names_have_no_nickname(self) -> None:
        assert derive_nickname("Jackson State University", "Jackson State") is None

    def test_no_shared_prefix(self) -> None:
        assert derive_nickname("Florida A&M University", "Marching 100 of Florida") is None

    def test_short_remainder_is_dropped(self) -> None:
        assert derive_nickname("Texas Southern University", "Texas Southern SOS") is None


class TestSchoolDerivations:
    """Test simplified school names and acronyms."""

    def test_simplify_strips_university(self) -> None:
        assert simplify_school_name("Jackson State University") == "jackson state"

    def test_simplify_strips_college(self) -> None:
        assert simplify_school_name("Benedict College") == "benedict"

    def test_simplify_unchanged_returns_none(self) -> None:
        assert simplify_school_name("Tuskegee Institute") is None

    def test_acronym_skips_stop_words(self) -> None:
        assert school_acronym("University of Arkansas at Pine Bluff") == "uapb"

    def test_acronym_reads_ampersand_as_and(self) -> None:
        assert school_acronym("Florida A&M University") == "fau"

    def test_acronym_too_long(self) -> None:
        assert school_acronym("North Carolina Agricultural and Technical State University") is None

    def test_acronym_single_word_too_short(self) -> None:
        assert school_acronym("Spelman") is None


class TestBuildBandAliases:
    """Test alias generation per band."""

    def test_traditional_band_merges_configuration(self) -> None:
        band = _band("su", "Southern University Human Jukebox", "Southern University")
        config = AppConfig(bands=[JUKEBOX])

        entry = build_band_aliases(band, config)

        assert entry.aliases[:2] == ("southern university human jukebox", "southern university")
        assert "jags" in entry.aliases
        assert "human jukebox" in entry.aliases
        assert "southern" in entry.aliases

    def test_aliases_are_unique_and_at_least_three_chars(self) -> None:
        band = _band("su", "Southern University Human Jukebox", "Southern University")
        entry = build_band_aliases(band, AppConfig(bands=[JUKEBOX]))

        assert len(entry.aliases) == len(set(entry.aliases))
        assert all(len(alias) >= 3 for alias in entry.aliases)
        # "su" is configured but shorter than the minimum alias length
        assert "su" not in entry.aliases

    def test_channel_handle_requires_opt_in(self) -> None:
        band = _band("su", "Southern University Human Jukebox", "Southern University")

        default_entry = build_band_aliases(band, AppConfig(bands=[JUKEBOX]))
        opted_in = build_band_aliases(
            band,
            AppConfig(bands=[JUKEBOX], matching=MatchingSettings(channel_handle_aliases=True)),
        )

        assert "southernuniversityband" not in default_entry.aliases
        assert "southernuniversityband" in opted_in.aliases

    def test_unconfigured_band_uses_name_and_school(self) -> None:
        band = _band("tsu", "Texas Southern Ocean of Soul", "Texas Southern University")

        entry = build_band_aliases(band, AppConfig())

        assert entry.aliases == ("texas southern ocean of soul", "texas southern university")

    def test_all_star_band_uses_configured_aliases(self) -> None:
        band = _band("bucktown", "Bucktown Marching Band", "Bucktown Marching Band", BandCategory.ALL_STAR)
        config = AppConfig(
            all_star_bands=[AllStarBandConfig(name="bucktown marching band", aliases=("Bucktown", "BMB"))],
        )

        entry = build_band_aliases(band, config)

        assert entry.aliases == ("bucktown marching band", "bucktown", "bmb")

    def test_all_star_band_ignores_traditional_configuration(self) -> None:
        band = _band("allstars", "Southern University", "Southern University", BandCategory.ALL_STAR)

        entry = build_band_aliases(band, AppConfig(bands=[JUKEBOX]))

        assert entry.aliases == ("southern university",)

    def test_short_names_fall_back_to_lowercased_name(self) -> None:
        band = _band("m4", "M4", "UA")

        entry = build_band_aliases(band, AppConfig())

        assert entry.aliases == ("m4",)

    def test_stored_keywords_are_merged_last(self) -> None:
        band = Band(
            id="tsu",
            name="Texas Southern Ocean of Soul",
            school_name="Texas Southern University",
            keywords=("Ocean of Soul", "TSU", "tx"),
        )

        entry = build_band_aliases(band, AppConfig())

        assert entry.aliases == (
            "texas southern ocean of soul",
            "texas southern university",
            "ocean of soul",
            "tsu",
        )

    def test_stored_keywords_follow_configuration(self) -> None:
        band = Band(
            id="su",
            name="Southern University Human Jukebox",
            school_name="Southern University",
            keywords=("human jukebox", "baton rouge"),
        )

        entry = build_band_aliases(band, AppConfig(bands=[JUKEBOX]))

        assert entry.aliases[-1] == "baton rouge"
        assert entry.aliases.count("human jukebox") == 1


class TestConfigurationTieBreak:
    """Test which configuration entry applies when several could."""

    def test_name_match_beats_earlier_school_match(self) -> None:
        band = _band("su", "Southern University Human Jukebox", "Southern University")
        school_only = TraditionalBandConfig(name="Southern Band", school="Southern University", keywords=("first",))
        by_name = TraditionalBandConfig(
            name="Southern University Human Jukebox",
            school="Southern University at Baton Rouge",
            keywords=("second",),
        )

        assert find_traditional_entry(band, [school_only, by_name]) is by_name

    def test_first_school_match_wins(self) -> None:
        band = _band("su", "Jukebox", "Southern University")
        first = TraditionalBandConfig(name="A", school="Southern University", keywords=("first",))
        second = TraditionalBandConfig(name="B", school="southern  university", keywords=("second",))

        assert find_traditional_entry(band, [first, second]) is first

    def test_school_lookup_is_case_and_whitespace_insensitive(self) -> None:
        band = _band("su", "Jukebox", "  SOUTHERN   University ")

        assert find_traditional_entry(band, [JUKEBOX]) is JUKEBOX


class TestBuildAliasTable:
    """Test alias table construction."""

    def test_preserves_band_order(self) -> None:
        bands = [
            _band("b", "Jackson State", "Jackson State University"),
            _band("a", "Alcorn State", "Alcorn State University"),
        ]

        table = build_alias_table(bands, AppConfig())

        assert [entry.band_id for entry in table] == ["b", "a"]

    def test_is_deterministic(self) -> None:
        bands = [_band("su", "Southern University Human Jukebox", "Southern University")]
        config = AppConfig(bands=[JUKEBOX])

        assert build_alias_table(bands, config) == build_alias_table(bands, config)

    def test_near_miss_school_is_reported(self, caplog) -> None:
        bands = [_band("su", "Jukebox", "Southern Universty")]

        with caplog.at_level(logging.WARNING, logger="bandmatch.matcher.aliases"):
            table = build_alias_table(bands, AppConfig(bands=[JUKEBOX]))

        assert "closely resembles configured school 'Southern University'" in caplog.text
        # Matching is unaffected: the band keeps its fallback aliases
        assert table[0].aliases == ("jukebox", "southern universty")

    def test_exact_school_is_not_a_near_miss(self, caplog) -> None:
        bands = [_band("su", "Southern University Human Jukebox", "Southern University")]

        with caplog.at_level(logging.WARNING, logger="bandmatch.matcher.aliases"):
            build_alias_table(bands, AppConfig(bands=[JUKEBOX]))

        assert "closely resembles" not in caplog.text
