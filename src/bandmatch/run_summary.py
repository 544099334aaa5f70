"""Run recaps and statistics formatting.

This module formats the counters collected during a classification run into
log blocks: outcome totals, the exclusion reason breakdown, the most frequently
matched bands, and a grouped list of store update errors.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .models import RunStats
    from .pipeline import RunOptions

from .logging_utils import LogBlockBuilder

LOGGER = logging.getLogger(__name__)

TOP_BANDS_LIMIT = 15


def has_activity(stats: RunStats) -> bool:
    """Check if a run touched any videos or hit any errors.

    Args:
        stats: Run statistics to check.

    Returns:
        True if at least one video was processed or an error was recorded.
    """
    return bool(stats.processed or stats.errors)


def summarize_exclusions(stats: RunStats) -> List[str]:
    """List exclusion reasons, most frequent first.

    Args:
        stats: Run statistics containing per-reason counts.

    Returns:
        One line per reason with its count and share of excluded videos.
    """
    if not stats.excluded:
        return []
    lines: List[str] = []
    ordered = sorted(stats.exclusion_reasons.items(), key=lambda item: (-item[1], item[0]))
    for reason, count in ordered:
        share = count / stats.excluded * 100
        lines.append(f"{reason}: {count} ({share:.1f}%)")
    return lines


def summarize_top_bands(stats: RunStats, *, limit: int = TOP_BANDS_LIMIT) -> List[str]:
    lines = []
    for rank, (name, count) in enumerate(stats.top_bands(limit), start=1):
        suffix = "video" if count == 1 else "videos"
        lines.append(f"{rank}. {name}: {count} {suffix}")
    return lines


def summarize_messages(entries: List[str], *, limit: Optional[int] = 5) -> List[str]:
    """Summarize messages by grouping duplicates and showing top N.

    Args:
        entries: List of message strings to summarize.
        limit: Maximum number of unique messages to show, or None for all.

    Returns:
        List of summary lines with duplicate counts.
    """
    if not entries:
        return []
    counter = Counter(entries)
    ordered = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    lines: List[str] = []
    shown = ordered if limit is None else ordered[:limit]
    for text, count in shown:
        prefix = f"{count}× " if count > 1 else ""
        lines.append(f"{prefix}{text}")
    remaining = len(ordered) - len(shown)
    if remaining > 0:
        lines.append(f"... {remaining} more (use --verbose for full list)")
    return lines


def format_run_summary(stats: RunStats, options: Optional[RunOptions] = None) -> str:
    """Render the recap block for a finished run."""
    title = "Classification Summary (dry-run)" if options is not None and options.dry_run else "Classification Summary"
    builder = LogBlockBuilder(title)
    builder.add_fields(
        [
            ("Processed", stats.processed),
            ("Matched", f"{stats.matched} ({stats.match_rate:.1f}%)"),
            ("Traditional", stats.matched_traditional),
            ("All-Star", stats.matched_all_star),
            ("Single", stats.single),
            ("Battle", stats.battle),
            ("Event", stats.event_matches),
            ("Excluded", stats.excluded),
            ("No Match", stats.no_match),
            ("Low Confidence", stats.low_confidence),
            ("Updated", stats.updated),
            ("Errors", len(stats.errors)),
            ("Duration", f"{stats.duration:.2f}s"),
        ]
    )
    if stats.excluded:
        builder.add_section("Exclusion Reasons", summarize_exclusions(stats))
    if stats.band_counts:
        builder.add_section("Top Bands", summarize_top_bands(stats))
    if stats.errors:
        # --verbose runs at DEBUG and lists every error
        limit = None if LOGGER.isEnabledFor(logging.DEBUG) else 5
        builder.add_section("Errors", summarize_messages(stats.errors, limit=limit))
    return builder.render()


def log_run_summary(stats: RunStats, options: Optional[RunOptions] = None) -> None:
    if not has_activity(stats):
        LOGGER.info("No unassigned videos to classify")
        return
    level = logging.WARNING if stats.errors else logging.INFO
    LOGGER.log(level, format_run_summary(stats, options))
