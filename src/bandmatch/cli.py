from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

import yaml
from rich.console import Console
from rich.markup import escape

from .config import AppConfig, ConfigError, load_config
from .logging_utils import configure_logging
from .matcher.aliases import build_alias_table
from .matcher.exclusions import ExclusionFilter
from .models import BattleMatch, Excluded, LowConfidence, NoMatch, SingleMatch, VideoText
from .persistence import SqliteVideoStore
from .pipeline import ClassificationPipeline, RunOptions, classify_video, filter_bands, resolve_threshold
from .run_summary import log_run_summary
from .summary_table import SummaryTableRenderer
from .utils import env_bool, load_yaml_file
from .validation import render_issues, validate_config_data
from .version import __version__

LOGGER = logging.getLogger(__name__)
CONSOLE = Console()

DEFAULT_CONFIG_PATH = Path("config/bandmatch.yaml")
CONFIG_ERROR_EXIT = 2


def _default_config_path() -> Path:
    return Path(os.environ.get("BANDMATCH_CONFIG", str(DEFAULT_CONFIG_PATH)))


def _resolve_log_level(args: argparse.Namespace, config: Optional[AppConfig]) -> str:
    if getattr(args, "verbose", False):
        return "DEBUG"
    if getattr(args, "log_level", None):
        return args.log_level
    if config is not None:
        return config.settings.log_level
    return "INFO"


def _setup_logging(args: argparse.Namespace, config: Optional[AppConfig]) -> None:
    log_file = getattr(args, "log_file", None)
    if log_file is None and config is not None:
        log_file = config.settings.log_file
    configure_logging(_resolve_log_level(args, config), log_file=log_file, console=CONSOLE)


def _print_config_error(exc: ConfigError) -> None:
    CONSOLE.print(f"[red]✗ {exc}[/red]")
    for line in render_issues(exc.report):
        CONSOLE.print(f"  {line}", markup=False)


def _load_config_or_report(path: Path) -> Optional[AppConfig]:
    try:
        return load_config(path)
    except ConfigError as exc:
        _print_config_error(exc)
        return None


def _open_store(args: argparse.Namespace, config: AppConfig) -> Optional[SqliteVideoStore]:
    database = getattr(args, "database", None) or config.settings.database
    if database is None:
        CONSOLE.print("[red]✗ No database configured; set settings.database or pass --database[/red]")
        return None
    return SqliteVideoStore(Path(database))


def build_run_options(args: argparse.Namespace) -> RunOptions:
    dry_run = args.dry_run
    if not dry_run:
        dry_run = bool(env_bool("BANDMATCH_DRY_RUN"))
    return RunOptions(
        min_confidence=args.min_confidence,
        limit=args.limit,
        band=args.band,
        creator=args.creator,
        verified_only=args.verified_only,
        skip_exclusions=args.skip_exclusions,
        dry_run=dry_run,
    )


def run_match(args: argparse.Namespace) -> int:
    config = _load_config_or_report(args.config)
    if config is None:
        return CONFIG_ERROR_EXIT
    _setup_logging(args, config)

    store = _open_store(args, config)
    if store is None:
        return CONFIG_ERROR_EXIT

    options = build_run_options(args)
    try:
        stats = ClassificationPipeline(config, store, options).run()
    finally:
        store.close()

    log_run_summary(stats, options)
    SummaryTableRenderer(CONSOLE).print_summary(stats, dry_run=options.dry_run)
    return 1 if stats.errors else 0


def run_explain(args: argparse.Namespace) -> int:
    """Show how a single piece of text would be classified."""
    config = _load_config_or_report(args.config)
    if config is None:
        return CONFIG_ERROR_EXIT
    _setup_logging(args, config)

    store = _open_store(args, config)
    if store is None:
        return CONFIG_ERROR_EXIT
    try:
        bands = store.load_bands()
    finally:
        store.close()

    table = build_alias_table(bands, config)
    video = VideoText(
        video_id="explain",
        title=args.text,
        description=args.description,
        channel_title=args.channel,
        verified_creator=args.verified,
    )
    options = RunOptions(min_confidence=args.min_confidence, skip_exclusions=args.skip_exclusions)
    threshold = resolve_threshold(video, config, options)
    exclusion_filter = ExclusionFilter(config.exclusions, enabled=not options.skip_exclusions)
    classification = classify_video(video, table, exclusion_filter, config.events, threshold)

    CONSOLE.print(f"[bold]Text:[/bold] {escape(video.search_text.strip())}", highlight=False)
    CONSOLE.print(f"[bold]Threshold:[/bold] {threshold}")
    if classification.candidates:
        CONSOLE.print(SummaryTableRenderer(CONSOLE).render_candidates_table(classification))

    outcome = classification.outcome
    if isinstance(outcome, Excluded):
        CONSOLE.print(f"[yellow]⊘ Excluded ({outcome.reason})[/yellow]")
    elif isinstance(outcome, NoMatch):
        CONSOLE.print("[dim]○ No matching band[/dim]")
    elif isinstance(outcome, LowConfidence):
        CONSOLE.print(f"[yellow]⚠ Low confidence (top score {outcome.top_score} < {threshold})[/yellow]")
    elif isinstance(outcome, BattleMatch):
        CONSOLE.print(
            f"[green]✓ Battle: {outcome.band_id} vs {outcome.opponent_band_id} (score {outcome.score})[/green]"
        )
    elif isinstance(outcome, SingleMatch):
        CONSOLE.print(f"[green]✓ Match: {outcome.band_id} (score {outcome.score})[/green]")
    return 0


def run_aliases(args: argparse.Namespace) -> int:
    config = _load_config_or_report(args.config)
    if config is None:
        return CONFIG_ERROR_EXIT
    _setup_logging(args, config)

    store = _open_store(args, config)
    if store is None:
        return CONFIG_ERROR_EXIT
    try:
        bands = filter_bands(store.load_bands(), args.band)
    finally:
        store.close()

    if not bands:
        CONSOLE.print("[yellow]⚠ No bands found[/yellow]")
        return 1
    CONSOLE.print(SummaryTableRenderer(CONSOLE).render_alias_table(build_alias_table(bands, config)))
    return 0


def run_validate_config(args: argparse.Namespace) -> int:
    config_path: Path = args.config
    if not config_path.exists():
        CONSOLE.print(f"[red]✗ Configuration file not found: {config_path}[/red]")
        return CONFIG_ERROR_EXIT
    try:
        data = load_yaml_file(config_path)
    except (OSError, yaml.YAMLError) as exc:
        CONSOLE.print(f"[red]✗ Failed to parse YAML: {exc}[/red]")
        return CONFIG_ERROR_EXIT
    if not isinstance(data, dict):
        CONSOLE.print("[red]✗ Configuration must be a mapping at the top level[/red]")
        return CONFIG_ERROR_EXIT

    report = validate_config_data(data)
    for line in render_issues(report):
        CONSOLE.print(line, markup=False)

    if not report.is_valid:
        CONSOLE.print(f"[red]✗ Validation failed with {len(report.errors)} error(s)[/red]")
        return 1
    if report.warnings:
        CONSOLE.print(f"[yellow]⚠ Configuration valid with {len(report.warnings)} warning(s)[/yellow]")
    else:
        CONSOLE.print("[green]✓ Configuration passed validation[/green]")
    return 0


def _confidence(value: str) -> int:
    try:
        score = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if not 0 <= score <= 100:
        raise argparse.ArgumentTypeError(f"confidence must be between 0 and 100, got {score}")
    return score


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=_default_config_path(),
        help="Path to the YAML configuration file (env: BANDMATCH_CONFIG)",
    )
    parser.add_argument("--database", type=Path, default=None, help="Override settings.database")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        default=None,
        help="Logging level (overrides settings.log_level)",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bandmatch", description="Match harvested videos to marching bands")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    match_parser = subparsers.add_parser("match", help="Classify unassigned videos and write assignments")
    _add_common_arguments(match_parser)
    match_parser.add_argument(
        "--min-confidence",
        type=_confidence,
        default=None,
        help="Override the confidence threshold (0-100)",
    )
    match_parser.add_argument("--limit", type=int, default=None, help="Maximum number of videos to process")
    match_parser.add_argument("--band", default=None, help="Only match against bands whose name contains this")
    match_parser.add_argument("--creator", default=None, help="Only process videos from this channel")
    match_parser.add_argument("--verified-only", action="store_true", help="Only process verified creator videos")
    match_parser.add_argument("--skip-exclusions", action="store_true", help="Disable the exclusion filter")
    match_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Classify without writing assignments (env: BANDMATCH_DRY_RUN)",
    )
    match_parser.set_defaults(handler=run_match)

    explain_parser = subparsers.add_parser("explain", help="Show how a title would be classified")
    _add_common_arguments(explain_parser)
    explain_parser.add_argument("text", help="Video title to classify")
    explain_parser.add_argument("--description", default=None)
    explain_parser.add_argument("--channel", default=None, help="Channel title")
    explain_parser.add_argument("--verified", action="store_true", help="Treat as a verified creator video")
    explain_parser.add_argument("--min-confidence", type=_confidence, default=None)
    explain_parser.add_argument("--skip-exclusions", action="store_true")
    explain_parser.set_defaults(handler=run_explain)

    aliases_parser = subparsers.add_parser("aliases", help="Print the alias table")
    _add_common_arguments(aliases_parser)
    aliases_parser.add_argument("--band", default=None, help="Only show bands whose name contains this")
    aliases_parser.set_defaults(handler=run_aliases)

    validate_parser = subparsers.add_parser("validate-config", help="Validate the configuration file")
    validate_parser.add_argument("--config", type=Path, default=_default_config_path())
    validate_parser.set_defaults(handler=run_validate_config)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.handler(args)
    except KeyboardInterrupt:
        CONSOLE.print("[yellow]Interrupted[/yellow]")
        return 130


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
