from __future__ import annotations

from bandmatch.matcher.scoring import (
    ABBREVIATION_SCORE,
    EARLY_MATCH_BONUS,
    alias_matches,
    base_score,
    find_alias,
    score_band,
    score_candidates,
)
from bandmatch.models import Band, BandAliases, BandCategory

PADDING = "x " * 110  # pushes following text past the early window


def _entry(
    band_id: str,
    name: str,
    school: str,
    aliases: tuple[str, ...],
    category: BandCategory = BandCategory.TRADITIONAL,
) -> BandAliases:
    return BandAliases(band=Band(id=band_id, name=name, school_name=school, category=category), aliases=aliases)


JSU = _entry(
    "jsu",
    "Jackson State Sonic Boom",
    "Jackson State University",
    ("jackson state sonic boom", "jackson state university", "sonic boom", "jackson state", "jsu"),
)


class TestWordBoundaries:
    """Test the short-alias word boundary rule."""

    def test_short_alias_does_not_match_inside_word(self) -> None:
        assert alias_matches("su", "SUPERSTAR performance") is False

    def test_short_alias_matches_whole_word(self) -> None:
        assert alias_matches("su", "SU Jaguars") is True

    def test_short_alias_matches_next_to_punctuation(self) -> None:
        assert alias_matches("jsu", "Homecoming (JSU) 2023") is True

    def test_four_char_alias_requires_boundary(self) -> None:
        assert alias_matches("famu", "famuous") is False

    def test_long_alias_matches_as_substring(self) -> None:
        assert alias_matches("grambling", "gramblingstate marching band") is True

    def test_find_alias_returns_end_offset(self) -> None:
        assert find_alias("jsu", "the jsu band") == 7
        assert find_alias("jackson", "go jackson state") == 10

    def test_find_alias_missing(self) -> None:
        assert find_alias("jsu", "nothing here") is None


class TestBaseScore:
    """Test category and specificity ordering."""

    def test_traditional_ordering(self) -> None:
        exact, exact_type = base_score("jackson state sonic boom", JSU)
        school, school_type = base_score("jackson state university", JSU)
        partial, partial_type = base_score("sonic boom", JSU)
        short_partial, _ = base_score("sonic", JSU)
        abbreviation, abbreviation_type = base_score("jsu", JSU)

        assert (exact, exact_type) == (100, "exact_band_name")
        assert (school, school_type) == (80, "school_name")
        assert (partial, partial_type) == (60, "partial")
        assert short_partial == 50
        assert (abbreviation, abbreviation_type) == (30, "abbreviation")
        assert exact > school > partial > short_partial > abbreviation

    def test_all_star_scores(self) -> None:
        entry = _entry(
            "bucktown",
            "Bucktown Marching Band",
            "Bucktown Marching Band",
            ("bucktown marching band", "bucktown", "bmb"),
            BandCategory.ALL_STAR,
        )

        assert base_score("bucktown marching band", entry) == (110, "all_star")
        assert base_score("bucktown", entry) == (90, "all_star")
        assert base_score("bmb", entry) == (70, "all_star")


class TestScoreBand:
    """Test best-alias selection and the positional bonus."""

    def test_exact_name_early_gets_bonus(self) -> None:
        candidate = score_band("jackson state sonic boom highlights", JSU)

        assert candidate is not None
        assert candidate.score == 110
        assert candidate.matched_alias == "jackson state sonic boom"
        assert candidate.match_type == "exact_band_name"

    def test_positional_bonus_is_ten_points(self) -> None:
        early = score_band("jsu homecoming", JSU)
        late = score_band(PADDING + "jsu homecoming", JSU)

        assert early is not None and late is not None
        assert early.score - late.score == EARLY_MATCH_BONUS
        assert late.score == ABBREVIATION_SCORE

    def test_bonus_applies_when_match_ends_at_window(self) -> None:
        text = "x" * 196 + " jsu"
        assert len(text) == 200

        candidate = score_band(text, JSU)

        assert candidate is not None
        assert candidate.score == ABBREVIATION_SCORE + EARLY_MATCH_BONUS

    def test_first_alias_wins_equal_scores(self) -> None:
        entry = _entry("x", "Band", "School", ("sonic boom", "boom of south"))

        candidate = score_band("sonic boom of south", entry)

        assert candidate is not None
        assert candidate.matched_alias == "sonic boom"

    def test_no_match_returns_none(self) -> None:
        assert score_band("grambling highlights", JSU) is None

    def test_aliases_shorter_than_three_are_skipped(self) -> None:
        entry = _entry("su", "Southern", "Southern University", ("su",))

        assert score_band("su jaguars", entry) is None


class TestScoreCandidates:
    """Test candidate ordering across bands."""

    def test_sorted_by_score_one_per_band(self) -> None:
        southern = _entry("su", "Southern University", "Southern University", ("southern university", "jaguars"))

        candidates = score_candidates("JSU and Southern University jaguars", (JSU, southern))

        assert [candidate.band_id for candidate in candidates] == ["su", "jsu"]
        assert candidates[0].score == 110

    def test_ties_keep_table_order(self) -> None:
        first = _entry("a", "Alpha", "Alpha University", ("alpha band",))
        second = _entry("b", "Beta", "Beta University", ("beta band",))

        forward = score_candidates("alpha band meets beta band", (first, second))
        backward = score_candidates("alpha band meets beta band", (second, first))

        assert [candidate.band_id for candidate in forward] == ["a", "b"]
        assert [candidate.band_id for candidate in backward] == ["b", "a"]

    def test_input_case_is_ignored(self) -> None:
        assert score_candidates("JACKSON STATE SONIC BOOM", (JSU,))[0].score == 110

    def test_empty_text(self) -> None:
        assert score_candidates("", (JSU,)) == []
