from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:  # pragma: no cover
    from .models import AliasTable, Classification, RunStats


# Color constants for status indicators
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"
DIM_COLOR = "dim"

# Symbol/emoji indicators for quick scanning
SUCCESS_SYMBOL = "✓"
WARNING_SYMBOL = "⚠"
ERROR_SYMBOL = "✗"
SKIP_SYMBOL = "⊘"
IGNORE_SYMBOL = "○"


class SummaryTableRenderer:
    """Renders run statistics and match diagnostics as Rich Tables."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    @staticmethod
    def _get_status_color(value: int, *, is_error: bool = False, is_warning: bool = False) -> str:
        if value == 0:
            return DIM_COLOR
        if is_error:
            return ERROR_COLOR
        if is_warning:
            return WARNING_COLOR
        return SUCCESS_COLOR

    @staticmethod
    def _colorize_value_with_symbol(
        value: int,
        *,
        is_error: bool = False,
        is_warning: bool = False,
        is_skip: bool = False,
        is_ignore: bool = False,
    ) -> str:
        """Colorize a count and prefix it with its status symbol.

        Zero counts are dimmed and carry no symbol.
        """
        if value == 0:
            return f"[{DIM_COLOR}]{value}[/{DIM_COLOR}]"

        if is_error:
            symbol = ERROR_SYMBOL
        elif is_warning:
            symbol = WARNING_SYMBOL
        elif is_skip:
            symbol = SKIP_SYMBOL
        elif is_ignore:
            symbol = IGNORE_SYMBOL
        else:
            symbol = SUCCESS_SYMBOL
        color = SummaryTableRenderer._get_status_color(value, is_error=is_error, is_warning=is_warning)
        return f"[{color}]{symbol} {value}[/{color}]"

    def render_summary_table(self, stats: RunStats, *, dry_run: bool = False) -> Table:
        """Render outcome counters for one run.

        Args:
            stats: Run statistics to render
            dry_run: Label the table as a preview

        Returns:
            Rich Table instance ready to print
        """
        title = "Classification Summary (dry-run)" if dry_run else "Classification Summary"
        table = Table(title=title, show_header=True, header_style="bold")

        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Count", justify="right")

        table.add_row("Processed", self._colorize_value_with_symbol(stats.processed))
        table.add_row("Matched", self._colorize_value_with_symbol(stats.matched))
        table.add_row("  Traditional", self._colorize_value_with_symbol(stats.matched_traditional))
        table.add_row("  All-Star", self._colorize_value_with_symbol(stats.matched_all_star))
        table.add_row("  Battles", self._colorize_value_with_symbol(stats.battle))
        table.add_row("  Events", self._colorize_value_with_symbol(stats.event_matches))
        table.add_row("Excluded", self._colorize_value_with_symbol(stats.excluded, is_skip=True))
        for reason, count in sorted(stats.exclusion_reasons.items(), key=lambda item: (-item[1], item[0])):
            table.add_row(f"  {reason}", self._colorize_value_with_symbol(count, is_skip=True))
        table.add_row("No Match", self._colorize_value_with_symbol(stats.no_match, is_ignore=True))
        table.add_row("Low Confidence", self._colorize_value_with_symbol(stats.low_confidence, is_warning=True))
        table.add_row("Updated", self._colorize_value_with_symbol(stats.updated))
        table.add_row("Errors", self._colorize_value_with_symbol(len(stats.errors), is_error=True))
        table.add_row("Match Rate", f"{stats.match_rate:.1f}%")
        table.add_row("Duration", f"{stats.duration:.2f}s")

        return table

    def render_top_bands_table(self, stats: RunStats, *, limit: int = 15) -> Optional[Table]:
        top = stats.top_bands(limit)
        if not top:
            return None
        table = Table(title="Top Bands", show_header=True, header_style="bold")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Band", style="cyan")
        table.add_column("Videos", justify="right")
        for rank, (name, count) in enumerate(top, start=1):
            table.add_row(str(rank), name, str(count))
        return table

    def render_candidates_table(self, classification: Classification) -> Table:
        """Render every scored candidate for a single classification."""
        table = Table(title="Candidates", show_header=True, header_style="bold")
        table.add_column("Band", style="cyan")
        table.add_column("Category")
        table.add_column("Score", justify="right")
        table.add_column("Match")
        table.add_column("Alias")
        for candidate in classification.candidates:
            color = SUCCESS_COLOR if candidate.score >= classification.threshold else WARNING_COLOR
            table.add_row(
                candidate.band_name,
                candidate.category.value,
                f"[{color}]{candidate.score}[/{color}]",
                candidate.match_type,
                candidate.matched_alias,
            )
        return table

    def render_alias_table(self, alias_table: AliasTable) -> Table:
        table = Table(title="Band Aliases", show_header=True, header_style="bold")
        table.add_column("Band", style="cyan", no_wrap=True)
        table.add_column("Category")
        table.add_column("Aliases")
        for entry in alias_table:
            table.add_row(entry.band.name, entry.band.category.value, ", ".join(entry.aliases))
        return table

    def print_summary(self, stats: RunStats, *, dry_run: bool = False) -> None:
        self.console.print(self.render_summary_table(stats, dry_run=dry_run))
        top = self.render_top_bands_table(stats)
        if top is not None:
            self.console.print(top)
