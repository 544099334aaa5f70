from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from jsonschema import Draft7Validator

from .utils import compile_word_pattern, normalize_name


@dataclass(slots=True)
class ValidationIssue:
    """Represents a single validation problem."""

    severity: str
    path: str
    message: str
    code: str


@dataclass(slots=True)
class ValidationReport:
    """Aggregates validation warnings and errors."""

    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, path: str, message: str, code: str) -> None:
        self.errors.append(ValidationIssue(severity="error", path=path, message=message, code=code))

    def add_warning(self, path: str, message: str, code: str) -> None:
        self.warnings.append(ValidationIssue(severity="warning", path=path, message=message, code=code))


_STRING_LIST: Dict[str, Any] = {"type": "array", "items": {"type": "string"}}
_THRESHOLD: Dict[str, Any] = {"type": "integer", "minimum": 0, "maximum": 100}
_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "debug", "info", "warning", "error", "critical"]

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "settings": {
            "type": "object",
            "properties": {
                "database": {"type": "string"},
                "log_level": {"type": "string", "enum": _LOG_LEVELS},
                "log_file": {"type": "string"},
            },
            "additionalProperties": True,
        },
        "thresholds": {
            "type": "object",
            "properties": {
                "general": _THRESHOLD,
                "verified_creator": _THRESHOLD,
            },
            "additionalProperties": False,
        },
        "matching": {
            "type": "object",
            "properties": {
                "channel_handle_aliases": {"type": "boolean"},
            },
            "additionalProperties": False,
        },
        "bands": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "school"],
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "school": {"type": "string", "minLength": 1},
                    "city": {"type": ["string", "null"]},
                    "state": {"type": ["string", "null"]},
                    "keywords": _STRING_LIST,
                    "channel_handle": {"type": ["string", "null"]},
                },
                "additionalProperties": True,
            },
        },
        "all_star_bands": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "aliases": _STRING_LIST,
                    "region": {"type": ["string", "null"]},
                },
                "additionalProperties": True,
            },
        },
        "exclusions": {
            "type": "object",
            "properties": {
                "high_school": _STRING_LIST,
                "middle_school": _STRING_LIST,
                "podcasts": _STRING_LIST,
                "generic": _STRING_LIST,
            },
            "additionalProperties": False,
        },
        "events": {
            "type": "object",
            "additionalProperties": _STRING_LIST,
        },
        "builtin_events": {"type": "boolean"},
    },
    "additionalProperties": True,
}


def _format_jsonschema_path(path: Sequence[Any]) -> str:
    parts: list[str] = []
    for element in path:
        if isinstance(element, int):
            if parts:
                parts[-1] = f"{parts[-1]}[{element}]"
            else:
                parts.append(f"[{element}]")
        else:
            parts.append(str(element))
    return ".".join(parts)


def validate_config_data(data: Dict[str, Any]) -> ValidationReport:
    """Validate configuration data against schema and semantic rules.

    Args:
        data: The configuration data to validate

    Returns:
        ValidationReport containing any errors or warnings found
    """
    report = ValidationReport()
    validator = Draft7Validator(CONFIG_SCHEMA)

    for error in sorted(validator.iter_errors(data), key=lambda exc: list(exc.path)):
        report.add_error(_format_jsonschema_path(error.absolute_path), error.message, "schema")

    if report.is_valid:
        _validate_semantics(data, report)
    return report


def _validate_semantics(data: Dict[str, Any], report: ValidationReport) -> None:
    exclusions = data.get("exclusions") or {}
    for index, entry in enumerate(exclusions.get("podcasts") or []):
        if not entry.startswith(" "):
            continue
        try:
            compile_word_pattern(entry)
        except re.error as exc:
            report.add_error(
                f"exclusions.podcasts[{index}]",
                f"Invalid podcast expression {entry.strip()!r}: {exc}",
                "podcast-regex",
            )

    seen_schools: Dict[str, int] = {}
    seen_names: Dict[str, int] = {}
    for index, band in enumerate(data.get("bands") or []):
        school = normalize_name(band.get("school"))
        name = normalize_name(band.get("name"))
        if school in seen_schools:
            report.add_warning(
                f"bands[{index}].school",
                f"School '{band.get('school')}' is also configured at bands[{seen_schools[school]}]; "
                "an entry matching the band name is used first, otherwise the earlier entry wins",
                "duplicate-school",
            )
        else:
            seen_schools[school] = index
        if name in seen_names:
            report.add_warning(
                f"bands[{index}].name",
                f"Band '{band.get('name')}' is also configured at bands[{seen_names[name]}]; the earlier entry wins",
                "duplicate-band",
            )
        else:
            seen_names[name] = index

    seen_all_stars: Dict[str, int] = {}
    for index, band in enumerate(data.get("all_star_bands") or []):
        name = normalize_name(band.get("name"))
        if name in seen_all_stars:
            report.add_warning(
                f"all_star_bands[{index}].name",
                f"All-star band '{band.get('name')}' is also configured at "
                f"all_star_bands[{seen_all_stars[name]}]; the earlier entry wins",
                "duplicate-all-star",
            )
        else:
            seen_all_stars[name] = index

    for event_name, participants in (data.get("events") or {}).items():
        if not participants:
            report.add_warning(f"events.{event_name}", "Event has no participants and will never match", "empty-event")

    thresholds = data.get("thresholds") or {}
    general = thresholds.get("general")
    verified = thresholds.get("verified_creator")
    if isinstance(general, int) and isinstance(verified, int) and verified > general:
        report.add_warning(
            "thresholds.verified_creator",
            f"Verified-creator threshold {verified} is stricter than the general threshold {general}",
            "threshold-order",
        )


def render_issues(report: ValidationReport) -> List[str]:
    lines: List[str] = []
    for issue in report.errors + report.warnings:
        location = issue.path or "<root>"
        lines.append(f"{issue.severity.upper()} [{issue.code}] {location}: {issue.message}")
    return lines


def describe_report(report: ValidationReport) -> Optional[str]:
    if report.is_valid and not report.warnings:
        return None
    return f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)"
