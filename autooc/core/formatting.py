"""Log line formatting shared by every sink."""

from __future__ import annotations

import dataclasses
import json
import logging
import traceback
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from pathlib import PurePath
from typing import Any

LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}
_ALIASES = {"warning": "warn"}

LEVEL_WIDTH = 7
CATEGORY_WIDTH = 20

_COLORS = {
    "debug": "\x1b[36m",
    "info": "\x1b[32m",
    "warn": "\x1b[33m",
    "error": "\x1b[31m",
}
_RESET = "\x1b[0m"


def normalize_level(level: str) -> str:
    """Return the canonical level name or raise ``ValueError``."""
    name = (level or "").strip().lower()
    name = _ALIASES.get(name, name)
    if name not in LEVELS:
        raise ValueError(f"Unknown log level: {level!r}")
    return name


def level_name(levelno: int) -> str:
    """Map a stdlib level number back onto one of our four names."""
    for name, number in sorted(LEVELS.items(), key=lambda kv: kv[1], reverse=True):
        if levelno >= number:
            return name
    return "debug"


@dataclasses.dataclass(frozen=True)
class LogEntry:
    """A single leveled, categorized message."""

    timestamp: datetime
    level: str
    category: str
    message: str
    metadata: Mapping[str, Any] = dataclasses.field(default_factory=dict)


def _encode(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, BaseException):
        return encode_exception(value)
    if isinstance(value, Mapping):
        return {str(key): _encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted((_encode(item) for item in value), key=str)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return _encode(value.value)
    if isinstance(value, PurePath):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _encode(dataclasses.asdict(value))
    return str(value)


def encode_exception(exc: BaseException) -> dict[str, Any]:
    """Render an exception as ``error`` text plus its traceback lines."""
    payload: dict[str, Any] = {"error": f"{type(exc).__name__}: {exc}"}
    if exc.__traceback__ is not None:
        lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
        payload["stack"] = "".join(lines).rstrip("\n").splitlines()
    return payload


def encode_metadata(metadata: Any) -> dict[str, Any]:
    """Convert caller metadata into a JSON-safe dict.

    Scalars, lists, tuples and mappings pass through. Dates become ISO 8601
    strings, paths become strings, enums their value, dataclasses their field
    dict and sets a sorted list. Exceptions become ``{"error", "stack"}``.
    Everything else falls back to ``str(value)``.
    """
    if metadata is None:
        return {}
    if isinstance(metadata, BaseException):
        return encode_exception(metadata)
    if isinstance(metadata, Mapping):
        return {str(key): _encode(value) for key, value in metadata.items()}
    return {"data": _encode(metadata)}


def format_timestamp(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%d %H:%M:%S.") + f"{ts.microsecond // 1000:03d}"


def format_line(entry: LogEntry) -> str:
    """Render ``entry`` as ``timestamp LEVEL [category] message`` plus metadata."""
    category = f"[{entry.category}]" if entry.category else ""
    line = (
        f"{format_timestamp(entry.timestamp)} "
        f"{entry.level.upper().ljust(LEVEL_WIDTH)} "
        f"{category.ljust(CATEGORY_WIDTH)} "
        f"{entry.message}"
    )
    metadata = encode_metadata(entry.metadata)
    if metadata:
        line += "\n" + json.dumps(metadata, indent=2, ensure_ascii=False)
    return line


def entry_from_record(record: logging.LogRecord) -> LogEntry:
    """Return the ``LogEntry`` attached to ``record``, or rebuild one."""
    entry = getattr(record, "entry", None)
    if isinstance(entry, LogEntry):
        return entry
    return LogEntry(
        timestamp=datetime.fromtimestamp(record.created),
        level=level_name(record.levelno),
        category=getattr(record, "category", "") or "",
        message=record.getMessage(),
        metadata=getattr(record, "metadata", None) or {},
    )


class EntryFormatter(logging.Formatter):
    """``logging.Formatter`` that renders records through ``format_line``."""

    def format(self, record: logging.LogRecord) -> str:
        return format_line(entry_from_record(record))


class ColorFormatter(EntryFormatter):
    """Console variant that wraps each line in a per-level ANSI colour."""

    def format(self, record: logging.LogRecord) -> str:
        color = _COLORS[level_name(record.levelno)]
        return f"{color}{super().format(record)}{_RESET}"
