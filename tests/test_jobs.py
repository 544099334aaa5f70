from __future__ import annotations

import json
from pathlib import Path

import pytest

from bandmatch.config import AppConfig, ExclusionPatterns
from bandmatch.jobs import JobPayloadError, options_from_payload, run_match_job, stats_to_result
from bandmatch.models import Band, RunStats, VideoAssignment, VideoText
from bandmatch.persistence import SqliteVideoStore


@pytest.fixture
def store(tmp_path: Path) -> SqliteVideoStore:
    store = SqliteVideoStore(tmp_path / "jobs.db")
    store.add_bands(
        [
            Band(id="su", name="Southern University", school_name="Southern University"),
            Band(id="jsu", name="Jackson State", school_name="Jackson State University"),
        ]
    )
    store.add_videos(
        [
            VideoText(video_id="v1", title="Jackson State vs Southern University Battle of the Bands"),
            VideoText(video_id="v2", title="Southern University 2023 halftime"),
            VideoText(video_id="v3", title="Northside High School band"),
            VideoText(video_id="v4", title="Drumline practice"),
        ]
    )
    return store


CONFIG = AppConfig(exclusions=ExclusionPatterns(high_school=("high school",)))


class TestOptionsFromPayload:
    """Test queue payload parsing."""

    def test_defaults(self) -> None:
        options = options_from_payload({"type": "match-videos", "triggeredBy": "schedule"})

        assert options.limit is None
        assert options.min_confidence is None
        assert options.dry_run is False

    def test_limit_and_confidence(self) -> None:
        options = options_from_payload({"triggeredBy": "admin", "limit": 50, "minConfidence": 60})

        assert options.limit == 50
        assert options.min_confidence == 60

    @pytest.mark.parametrize(
        "payload",
        [
            {"limit": 0},
            {"limit": "10"},
            {"minConfidence": -1},
            {"minConfidence": 101},
            {"minConfidence": True},
            {"type": "promote-videos"},
        ],
    )
    def test_rejects_malformed_payloads(self, payload) -> None:
        with pytest.raises(JobPayloadError):
            options_from_payload(payload)


class TestRunMatchJob:
    """Test queue job execution."""

    def test_result_is_json_serializable(self, store: SqliteVideoStore) -> None:
        result = run_match_job({"type": "match-videos", "triggeredBy": "schedule"}, CONFIG, store)

        json.dumps(result)
        assert result["totalProcessed"] == 4
        assert result["battleVideos"] == 1
        assert result["singleBand"] == 1
        assert result["excluded"] == 1
        assert result["noMatch"] == 1
        assert result["updated"] == 2
        assert result["exclusionReasons"] == {"high_school": 1}
        assert result["errors"] == []
        assert isinstance(result["duration"], int)

    def test_writes_assignments(self, store: SqliteVideoStore) -> None:
        run_match_job({"triggeredBy": "admin"}, CONFIG, store)

        assert store.get_assignment("v1") == VideoAssignment("jsu", "su", 110)
        assert store.get_assignment("v2") == VideoAssignment("su", None, 110)
        assert store.get_assignment("v3") is None

    def test_second_run_finds_nothing_new(self, store: SqliteVideoStore) -> None:
        run_match_job({"triggeredBy": "admin"}, CONFIG, store)
        before = list(store.iter_assignments())

        result = run_match_job({"triggeredBy": "admin"}, CONFIG, store)

        assert result["updated"] == 0
        assert list(store.iter_assignments()) == before

    def test_limit_is_applied(self, store: SqliteVideoStore) -> None:
        result = run_match_job({"triggeredBy": "system", "limit": 2}, CONFIG, store)

        assert result["totalProcessed"] == 2

    def test_unknown_trigger_is_tolerated(self, store: SqliteVideoStore, caplog) -> None:
        result = run_match_job({"triggeredBy": "cron"}, CONFIG, store)

        assert result["totalProcessed"] == 4
        assert "Unknown job trigger" in caplog.text


def test_stats_to_result_duration_in_milliseconds() -> None:
    assert stats_to_result(RunStats(duration=1.25))["duration"] == 1250
