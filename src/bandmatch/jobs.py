"""Queue job entry point for background match runs.

Worker processes receive a ``match-videos`` payload from the job queue and call
:func:`run_match_job`. The payload keys follow the queue's camelCase wire
format; the returned mapping is JSON-serializable and is stored as the job
result.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from .config import AppConfig
from .models import RunStats
from .persistence import VideoStore
from .pipeline import ClassificationPipeline, RunOptions
from .run_summary import log_run_summary

LOGGER = logging.getLogger(__name__)

JOB_TYPE = "match-videos"
TRIGGER_SOURCES = frozenset({"admin", "schedule", "system"})


class JobPayloadError(ValueError):
    """Raised when a queue payload cannot be turned into run options."""


def _optional_int(payload: Mapping[str, Any], key: str, *, minimum: int, maximum: int | None = None) -> int | None:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise JobPayloadError(f"'{key}' must be an integer, got {value!r}")
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        raise JobPayloadError(f"'{key}' must be {bounds}, got {value}")
    return value


def options_from_payload(payload: Mapping[str, Any]) -> RunOptions:
    """Translate a queue payload into run options.

    Raises:
        JobPayloadError: when ``limit`` or ``minConfidence`` are malformed.
    """
    job_type = payload.get("type")
    if job_type is not None and job_type != JOB_TYPE:
        raise JobPayloadError(f"Unsupported job type {job_type!r}")
    return RunOptions(
        limit=_optional_int(payload, "limit", minimum=1),
        min_confidence=_optional_int(payload, "minConfidence", minimum=0, maximum=100),
    )


def stats_to_result(stats: RunStats) -> Dict[str, Any]:
    return {
        "totalProcessed": stats.processed,
        "matchedTraditional": stats.matched_traditional,
        "matchedAllStar": stats.matched_all_star,
        "excluded": stats.excluded,
        "singleBand": stats.single,
        "battleVideos": stats.battle,
        "eventMatches": stats.event_matches,
        "noMatch": stats.no_match,
        "lowConfidence": stats.low_confidence,
        "updated": stats.updated,
        "exclusionReasons": dict(stats.exclusion_reasons),
        "errors": list(stats.errors),
        "duration": int(round(stats.duration * 1000)),
    }


def run_match_job(payload: Mapping[str, Any], config: AppConfig, store: VideoStore) -> Dict[str, Any]:
    """Run one match batch for a queue job and return its result."""
    triggered_by = payload.get("triggeredBy", "system")
    if triggered_by not in TRIGGER_SOURCES:
        LOGGER.warning("Unknown job trigger %r; treating as 'system'", triggered_by)
        triggered_by = "system"
    options = options_from_payload(payload)
    LOGGER.info(
        "Starting %s job (triggered by %s, limit=%s, minConfidence=%s)",
        JOB_TYPE,
        triggered_by,
        options.limit if options.limit is not None else "all",
        options.min_confidence if options.min_confidence is not None else "default",
    )
    stats = ClassificationPipeline(config, store, options).run()
    log_run_summary(stats, options)
    return stats_to_result(stats)
