from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from textwrap import wrap
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

WRAP_WIDTH = 110
LABEL_WIDTH = 22
INDENT = "    "
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s\n%(message)s\n"

FieldMapping = Union[Mapping[str, object], Sequence[tuple[str, object]]]


def _coerce_items(fields: FieldMapping) -> list[tuple[str, object]]:
    if isinstance(fields, Mapping):
        return list(fields.items())
    return list(fields)


def _stringify(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple, set)):
        return ", ".join(_stringify(item) for item in value)
    return str(value)


def _wrap_text(text: str, width: int) -> list[str]:
    if not text:
        return [""]
    lines: list[str] = []
    for raw_line in text.splitlines() or [""]:
        lines.extend(wrap(raw_line, width=width) or [""])
    return lines


class LogBlockBuilder:
    """Collects a title, aligned fields and bulleted sections into one log message."""

    def __init__(self, title: str, *, pad_top: bool = True) -> None:
        self._lines: list[str] = [""] if pad_top else []
        self._lines.extend([title, "-" * len(title)])

    def add_fields(self, fields: FieldMapping | None) -> None:
        items = _coerce_items(fields) if fields else []
        if not items:
            return
        label_width = max(min(max(len(str(key)) for key, _ in items), LABEL_WIDTH), 8)
        value_width = max(WRAP_WIDTH - len(INDENT) - label_width - 4, 32)
        for key, value in items:
            first, *rest = _wrap_text(_stringify(value), value_width)
            self._lines.append(f"{INDENT}{str(key):<{label_width}}: {first}")
            self._lines.extend(f"{INDENT}{'':<{label_width}}  {line}" for line in rest)

    def add_section(self, heading: str, items: Iterable[str]) -> None:
        if self._lines[-1]:
            self._lines.append("")
        self._lines.append(f"{heading}:")
        entries = [item for item in items if item is not None]
        if not entries:
            self._lines.append(f"{INDENT}(none)")
            return
        for item in entries:
            first, *rest = _wrap_text(_stringify(item), WRAP_WIDTH - len(INDENT) - 2)
            self._lines.append(f"{INDENT}- {first}")
            self._lines.extend(f"{INDENT}  {line}" for line in rest)

    def render(self) -> str:
        return "\n".join(self._lines).rstrip()


def render_fields_block(title: str, fields: FieldMapping, *, pad_top: bool = True) -> str:
    builder = LogBlockBuilder(title, pad_top=pad_top)
    builder.add_fields(fields)
    return builder.render()


def configure_logging(
    level: str | int = "INFO",
    *,
    log_file: Optional[Path] = None,
    console: Optional[Console] = None,
) -> None:
    """Route log records to a rich console handler and an optional file."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(level)

    console_handler = RichHandler(console=console, show_path=False, markup=False, rich_tracebacks=True)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)
