from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from .utils import load_yaml_file
from .validation import ValidationReport, validate_config_data

LOGGER = logging.getLogger(__name__)

DEFAULT_GENERAL_THRESHOLD = 40
DEFAULT_VERIFIED_CREATOR_THRESHOLD = 30


class ConfigError(ValueError):
    """Raised when configuration cannot be loaded; fatal to the run."""

    def __init__(self, message: str, report: ValidationReport | None = None) -> None:
        super().__init__(message)
        self.report = report or ValidationReport()


@dataclass(frozen=True)
class TraditionalBandConfig:
    name: str
    school: str
    city: str | None = None
    state: str | None = None
    keywords: tuple[str, ...] = ()
    channel_handle: str | None = None


@dataclass(frozen=True)
class AllStarBandConfig:
    name: str
    aliases: tuple[str, ...] = ()
    region: str | None = None


@dataclass(frozen=True)
class ExclusionPatterns:
    high_school: tuple[str, ...] = ()
    middle_school: tuple[str, ...] = ()
    podcasts: tuple[str, ...] = ()
    generic: tuple[str, ...] = ()


@dataclass(frozen=True)
class EventConfig:
    name: str
    participants: tuple[str, ...]


@dataclass(frozen=True)
class Thresholds:
    general: int = DEFAULT_GENERAL_THRESHOLD
    verified_creator: int = DEFAULT_VERIFIED_CREATOR_THRESHOLD


@dataclass(frozen=True)
class MatchingSettings:
    channel_handle_aliases: bool = False


@dataclass
class Settings:
    database: Path | None = None
    log_level: str = "INFO"
    log_file: Path | None = None


@dataclass
class AppConfig:
    settings: Settings = field(default_factory=Settings)
    thresholds: Thresholds = field(default_factory=Thresholds)
    matching: MatchingSettings = field(default_factory=MatchingSettings)
    bands: list[TraditionalBandConfig] = field(default_factory=list)
    all_star_bands: list[AllStarBandConfig] = field(default_factory=list)
    exclusions: ExclusionPatterns = field(default_factory=ExclusionPatterns)
    events: list[EventConfig] = field(default_factory=list)


def _string_tuple(values: Any) -> tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]
    return tuple(str(value) for value in values if str(value).strip())


def _clean_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _build_traditional_band(data: dict[str, Any]) -> TraditionalBandConfig:
    return TraditionalBandConfig(
        name=str(data["name"]).strip(),
        school=str(data["school"]).strip(),
        city=_clean_str(data.get("city")),
        state=_clean_str(data.get("state")),
        keywords=_string_tuple(data.get("keywords")),
        channel_handle=_clean_str(data.get("channel_handle")),
    )


def _build_all_star_band(data: dict[str, Any]) -> AllStarBandConfig:
    return AllStarBandConfig(
        name=str(data["name"]).strip(),
        aliases=_string_tuple(data.get("aliases")),
        region=_clean_str(data.get("region")),
    )


def _phrase_tuple(values: Any) -> tuple[str, ...]:
    # Padding is part of the phrase; a leading space on podcasts marks a regex.
    return tuple(str(item) for item in values or [] if str(item).strip())


def _build_exclusions(data: dict[str, Any] | None) -> ExclusionPatterns:
    if not data:
        return ExclusionPatterns()
    return ExclusionPatterns(
        high_school=_phrase_tuple(data.get("high_school")),
        middle_school=_phrase_tuple(data.get("middle_school")),
        podcasts=_phrase_tuple(data.get("podcasts")),
        generic=_phrase_tuple(data.get("generic")),
    )


def _build_events(raw: dict[str, Any] | None) -> list[EventConfig]:
    if not raw:
        return []
    events: list[EventConfig] = []
    for name, participants in raw.items():
        events.append(EventConfig(name=str(name).strip().lower(), participants=_string_tuple(participants)))
    return events


@lru_cache
def load_builtin_events() -> tuple[EventConfig, ...]:
    """Load the event rosters shipped with the package."""
    with resources.as_file(resources.files(__package__) / "data" / "events.yaml") as path:
        data = load_yaml_file(path)
    raw_events = data.get("events", {})
    if not isinstance(raw_events, dict):
        raise ConfigError("Builtin event rosters must be a mapping of event name -> participants")
    return tuple(_build_events(raw_events))


def merge_events(builtin: tuple[EventConfig, ...], custom: list[EventConfig]) -> list[EventConfig]:
    """Overlay user-defined rosters on the built-in ones.

    A custom event with the same name replaces the built-in roster in place;
    new events are appended after the built-ins in declaration order.
    """
    custom_by_name = {event.name: event for event in custom}
    merged = [custom_by_name.pop(event.name, event) for event in builtin]
    merged.extend(event for event in custom if event.name in custom_by_name)
    return merged


def _build_settings(data: dict[str, Any] | None, base_dir: Path | None) -> Settings:
    if not data:
        return Settings()

    def _resolve(value: Any) -> Path | None:
        text = _clean_str(value)
        if text is None:
            return None
        path = Path(text).expanduser()
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        return path

    return Settings(
        database=_resolve(data.get("database")),
        log_level=str(data.get("log_level", "INFO")).upper(),
        log_file=_resolve(data.get("log_file")),
    )


def build_app_config(data: dict[str, Any], *, base_dir: Path | None = None) -> AppConfig:
    """Validate raw configuration data and build the typed configuration.

    Raises:
        ConfigError: when the schema or semantic validation reports errors.
    """
    report = validate_config_data(data)
    if not report.is_valid:
        summary = "; ".join(f"{issue.path or '<root>'}: {issue.message}" for issue in report.errors)
        raise ConfigError(f"Invalid configuration: {summary}", report)
    for issue in report.warnings:
        LOGGER.warning("Configuration warning at %s: %s", issue.path, issue.message)

    thresholds_raw = data.get("thresholds") or {}
    matching_raw = data.get("matching") or {}

    custom_events = _build_events(data.get("events"))
    if data.get("builtin_events", True):
        events = merge_events(load_builtin_events(), custom_events)
    else:
        events = custom_events

    return AppConfig(
        settings=_build_settings(data.get("settings"), base_dir),
        thresholds=Thresholds(
            general=int(thresholds_raw.get("general", DEFAULT_GENERAL_THRESHOLD)),
            verified_creator=int(thresholds_raw.get("verified_creator", DEFAULT_VERIFIED_CREATOR_THRESHOLD)),
        ),
        matching=MatchingSettings(
            channel_handle_aliases=bool(matching_raw.get("channel_handle_aliases", False)),
        ),
        bands=[_build_traditional_band(entry) for entry in data.get("bands") or []],
        all_star_bands=[_build_all_star_band(entry) for entry in data.get("all_star_bands") or []],
        exclusions=_build_exclusions(data.get("exclusions")),
        events=events,
    )


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        data = load_yaml_file(path)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to read configuration {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration {path} must be a mapping at the top level")
    return build_app_config(data, base_dir=path.parent)

