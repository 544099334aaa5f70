from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from .config import AppConfig, EventConfig
from .logging_utils import render_fields_block
from .matcher.aliases import build_alias_table
from .matcher.battle import is_battle
from .matcher.events import match_event
from .matcher.exclusions import ExclusionFilter
from .matcher.scoring import score_candidates
from .models import (
    AliasTable,
    Band,
    BattleMatch,
    Classification,
    Excluded,
    LowConfidence,
    NoMatch,
    RunStats,
    SingleMatch,
    VideoText,
)
from .persistence import StoreError, VideoStore
from .utils import normalize_name

LOGGER = logging.getLogger(__name__)

PROGRESS_INTERVAL = 100


@dataclass(slots=True)
class RunOptions:
    """Parameters for one classification run."""

    min_confidence: Optional[int] = None
    limit: Optional[int] = None
    band: Optional[str] = None
    creator: Optional[str] = None
    verified_only: bool = False
    skip_exclusions: bool = False
    dry_run: bool = False


def resolve_threshold(video: VideoText, config: AppConfig, options: RunOptions) -> int:
    """Pick the confidence threshold that applies to ``video``.

    An explicit run threshold wins; otherwise verified creator channels use
    the lower ``verified_creator`` threshold.
    """
    if options.min_confidence is not None:
        return options.min_confidence
    if video.verified_creator:
        return config.thresholds.verified_creator
    return config.thresholds.general


def classify_video(
    video: VideoText,
    table: AliasTable,
    exclusion_filter: ExclusionFilter,
    events: Sequence[EventConfig],
    threshold: int,
) -> Classification:
    """Decide the outcome for a single video.

    Pure with respect to its inputs; the same video, table, filter, events
    and threshold always produce the same classification.
    """
    text = video.search_text

    reason = exclusion_filter.check(text)
    if reason is not None:
        return Classification(video=video, outcome=Excluded(reason=reason), threshold=threshold)

    candidates = match_event(text, events, table) or score_candidates(text, table)
    if not candidates:
        return Classification(video=video, outcome=NoMatch(), threshold=threshold)

    top = candidates[0]
    if top.score < threshold:
        return Classification(
            video=video,
            outcome=LowConfidence(top_score=top.score),
            candidates=candidates,
            threshold=threshold,
        )

    if is_battle(text):
        opponent = next((candidate for candidate in candidates[1:] if candidate.band_id != top.band_id), None)
        if opponent is not None and opponent.score >= threshold:
            return Classification(
                video=video,
                outcome=BattleMatch(band_id=top.band_id, opponent_band_id=opponent.band_id, score=top.score),
                candidates=candidates,
                threshold=threshold,
            )

    return Classification(
        video=video,
        outcome=SingleMatch(band_id=top.band_id, score=top.score),
        candidates=candidates,
        threshold=threshold,
    )


def filter_bands(bands: Sequence[Band], name: Optional[str]) -> list[Band]:
    """Restrict ``bands`` to those whose name or school contains ``name``."""
    if not name:
        return list(bands)
    needle = normalize_name(name)
    return [
        band for band in bands if needle in normalize_name(band.name) or needle in normalize_name(band.school_name)
    ]


class ClassificationPipeline:
    """Runs one batch of unassigned videos through the matcher."""

    def __init__(self, config: AppConfig, store: VideoStore, options: Optional[RunOptions] = None) -> None:
        self.config = config
        self.store = store
        self.options = options or RunOptions()
        self.exclusion_filter = ExclusionFilter(config.exclusions, enabled=not self.options.skip_exclusions)
        self._table: Optional[AliasTable] = None

    @property
    def alias_table(self) -> AliasTable:
        if self._table is None:
            bands = filter_bands(self.store.load_bands(), self.options.band)
            if self.options.band and not bands:
                LOGGER.warning("No bands match filter '%s'", self.options.band)
            self._table = build_alias_table(bands, self.config)
        return self._table

    def classify(self, video: VideoText) -> Classification:
        threshold = resolve_threshold(video, self.config, self.options)
        return classify_video(video, self.alias_table, self.exclusion_filter, self.config.events, threshold)

    def run(self) -> RunStats:
        stats = RunStats()
        start = time.perf_counter()
        table = self.alias_table

        videos = self.store.fetch_unassigned_videos(
            limit=self.options.limit,
            channel=self.options.creator,
            verified_only=self.options.verified_only,
        )
        LOGGER.info(
            render_fields_block(
                "Classification Run",
                {
                    "Videos": len(videos),
                    "Bands": len(table),
                    "Threshold": self.options.min_confidence
                    if self.options.min_confidence is not None
                    else f"{self.config.thresholds.general} (verified: {self.config.thresholds.verified_creator})",
                    "Exclusions": "disabled" if self.options.skip_exclusions else "enabled",
                    "Mode": "dry-run" if self.options.dry_run else "write",
                },
            )
        )

        for index, video in enumerate(videos, start=1):
            classification = self.classify(video)
            stats.register(classification)
            self._log_classification(classification)

            assignment = classification.assignment
            if assignment is not None and not self.options.dry_run:
                try:
                    self.store.apply_assignment(video.video_id, assignment)
                except StoreError as exc:
                    LOGGER.error("Failed to update video %s: %s", video.video_id, exc)
                    stats.register_error(f"{video.video_id}: {exc}")
                else:
                    stats.updated += 1

            if index % PROGRESS_INTERVAL == 0:
                LOGGER.info("Progress: %d/%d videos, %d matched", index, len(videos), stats.matched)

        stats.duration = time.perf_counter() - start
        return stats

    def _log_classification(self, classification: Classification) -> None:
        if not LOGGER.isEnabledFor(logging.DEBUG):
            return
        video = classification.video
        outcome = classification.outcome
        top = classification.top_candidate
        fields = {
            "Video": video.video_id,
            "Title": video.title or "",
            "Outcome": outcome.kind,
        }
        if isinstance(outcome, Excluded):
            fields["Reason"] = outcome.reason
        if top is not None:
            fields["Top Band"] = f"{top.band_name} ({top.score}, {top.match_type}: {top.matched_alias})"
        if isinstance(outcome, BattleMatch):
            fields["Opponent"] = outcome.opponent_band_id
        fields["Threshold"] = classification.threshold
        LOGGER.debug(render_fields_block("Classified Video", fields, pad_top=False))
