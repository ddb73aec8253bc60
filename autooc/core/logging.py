"""Production log facility with console, rotating file and error-only sinks."""

from __future__ import annotations

import logging
import os
import sys
import itertools
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Optional

from .formatting import LEVELS, ColorFormatter, EntryFormatter, LogEntry, normalize_level
from .retention import clean_old_logs
from .settings import LogSettings

COMBINED_LOG = "autooc.log"
ERROR_LOG = "autooc-error.log"
_FROM_SETTINGS: Any = object()
_INSTANCE_IDS = itertools.count(1)


class LogDirectoryError(OSError):
    """The log directory could not be created or written to."""


class DrainTimeoutError(TimeoutError):
    """Buffered writes were not flushed within the allotted time."""


class DrainState(str, Enum):
    IDLE = "idle"
    DRAINING = "draining"
    DRAINED = "drained"


@dataclass(frozen=True)
class SinkConfig:
    """Where a sink writes and the lowest level it accepts."""

    destination: str
    min_level: str
    file_path: Optional[Path] = None
    max_bytes: Optional[int] = None
    backup_count: Optional[int] = None


class _CountingMixin:
    """Route handler failures to a counter instead of stderr tracebacks."""

    on_error: Callable[[], None]

    def handleError(self, record: logging.LogRecord) -> None:  # noqa: N802
        self.on_error()


class ConsoleSink(_CountingMixin, logging.StreamHandler):
    pass


class FileSink(_CountingMixin, RotatingFileHandler):
    pass


def _prepare_directory(log_dir: Path) -> Path:
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise LogDirectoryError(f"Cannot create log directory {log_dir}: {exc}") from exc
    if not os.access(log_dir, os.W_OK):
        raise LogDirectoryError(f"Log directory is not writable: {log_dir}")
    return log_dir


class ProductionLogger:
    """Leveled, categorized logger fanning each record out to its sinks.

    A record is written to a sink only when its level clears both the global
    level (see ``set_level``) and the sink's own minimum level. Sink I/O
    failures never reach the caller; they are counted in ``write_errors``.
    """

    def __init__(self, settings: LogSettings | None = None, *, name: str = "autooc") -> None:
        self.settings = settings or LogSettings.from_env()
        self._log_dir = _prepare_directory(self.settings.log_dir)
        self._level = self.settings.level
        self._lock = threading.Lock()
        self._dispatch = threading.Lock()
        self._state = DrainState.IDLE
        self._drained = threading.Event()
        self._write_errors = 0
        self._dropped = 0

        # one stdlib logger per instance; the NullHandler keeps records away
        # from logging.lastResort when no sink is attached
        self._logger = logging.getLogger(f"{name}.{next(_INSTANCE_IDS)}")
        self._logger.propagate = False
        self._logger.addHandler(logging.NullHandler())
        self._logger.setLevel(LEVELS[self._level])

        self._sinks: list[SinkConfig] = []
        self._handlers: list[logging.Handler] = []
        if self.settings.console:
            console = ConsoleSink(sys.stdout)
            console.setFormatter(ColorFormatter())
            self._attach(console, SinkConfig("console", "debug"))
        if self.settings.files:
            for filename, min_level in ((COMBINED_LOG, "debug"), (ERROR_LOG, "error")):
                path = self._log_dir / filename
                handler = FileSink(
                    path,
                    maxBytes=self.settings.max_bytes,
                    backupCount=self.settings.backup_count,
                    encoding="utf-8",
                )
                handler.setFormatter(EntryFormatter())
                self._attach(
                    handler,
                    SinkConfig(
                        "file",
                        min_level,
                        file_path=path,
                        max_bytes=self.settings.max_bytes,
                        backup_count=self.settings.backup_count,
                    ),
                )

    def _attach(self, handler: _CountingMixin, sink: SinkConfig) -> None:
        handler.on_error = self._count_error
        handler.setLevel(LEVELS[sink.min_level])
        self._logger.addHandler(handler)
        self._handlers.append(handler)
        self._sinks.append(sink)

    def _count_error(self) -> None:
        with self._lock:
            self._write_errors += 1

    # -- leveled calls -------------------------------------------------

    def _log(self, level: str, category: str, message: str, metadata: Any = None) -> None:
        levelno = LEVELS[level]
        if not self._logger.isEnabledFor(levelno):
            return
        entry = LogEntry(
            timestamp=datetime.now(),
            level=level,
            category=category,
            message=message,
            metadata=metadata if metadata is not None else {},
        )
        # state check and dispatch are atomic with respect to flush()
        with self._dispatch:
            if self._state is not DrainState.IDLE:
                with self._lock:
                    self._dropped += 1
                return
            self._logger.log(levelno, message, extra={"entry": entry, "category": category})

    def debug(self, category: str, message: str, metadata: Any = None) -> None:
        self._log("debug", category, message, metadata)

    def info(self, category: str, message: str, metadata: Any = None) -> None:
        self._log("info", category, message, metadata)

    def warn(self, category: str, message: str, metadata: Any = None) -> None:
        self._log("warn", category, message, metadata)

    warning = warn

    def error(self, category: str, message: str, metadata: Any = None) -> None:
        self._log("error", category, message, metadata)

    # -- control -------------------------------------------------------

    @property
    def level(self) -> str:
        return self._level

    def set_level(self, level: str) -> None:
        """Replace the global minimum level and announce the change."""
        name = normalize_level(level)
        with self._lock:
            self._level = name
            self._logger.setLevel(LEVELS[name])
        self.info("Logger", f"Log level set to: {name}")

    @property
    def sinks(self) -> tuple[SinkConfig, ...]:
        return tuple(self._sinks)

    def get_log_directory(self) -> Path:
        return self._log_dir

    @property
    def write_errors(self) -> int:
        return self._write_errors

    @property
    def dropped(self) -> int:
        return self._dropped

    @property
    def state(self) -> DrainState:
        return self._state

    def health(self) -> dict[str, Any]:
        """Snapshot for health-check endpoints."""
        return {
            "state": self._state.value,
            "level": self._level,
            "write_errors": self._write_errors,
            "log_dir": str(self._log_dir),
        }

    # -- retention -----------------------------------------------------

    def clean_old_logs(self, retention_days: int | None = None) -> list[Path]:
        """Delete log files older than ``retention_days``, keeping open sink files."""
        days = self.settings.retention_days if retention_days is None else retention_days
        open_files = [sink.file_path for sink in self._sinks if sink.file_path is not None]
        return clean_old_logs(
            self._log_dir,
            days,
            skip=open_files if self._state is DrainState.IDLE else (),
            on_delete=lambda path: self.info("Logger", f"Deleted old log file: {path.name}"),
        )

    # -- drain ---------------------------------------------------------

    def _drain(self) -> None:
        try:
            for handler in self._handlers:
                self._logger.removeHandler(handler)
                try:
                    handler.flush()
                finally:
                    handler.close()
        finally:
            with self._lock:
                self._state = DrainState.DRAINED
            self._drained.set()

    def flush(self, timeout: Optional[float] = _FROM_SETTINGS) -> None:
        """Flush and close every sink, waiting at most ``timeout`` seconds.

        Terminal: once drained the facility drops further records, and later
        calls return immediately. ``timeout=None`` waits without bound; the
        default comes from ``settings.drain_timeout``.
        """
        if timeout is _FROM_SETTINGS:
            timeout = self.settings.drain_timeout
        if not self._dispatch.acquire(timeout=-1 if timeout is None else timeout):
            raise DrainTimeoutError(f"Log sinks did not drain within {timeout} seconds")
        try:
            with self._lock:
                start = self._state is DrainState.IDLE
                if start:
                    self._state = DrainState.DRAINING
        finally:
            self._dispatch.release()
        if start:
            threading.Thread(target=self._drain, name="autooc-log-drain", daemon=True).start()
        if not self._drained.wait(timeout):
            raise DrainTimeoutError(f"Log sinks did not drain within {timeout} seconds")


_INSTANCE: ProductionLogger | None = None
_INSTANCE_LOCK = threading.Lock()


def get_logger() -> ProductionLogger:
    """Return the process-wide facility, building it from the environment once."""
    global _INSTANCE
    with _INSTANCE_LOCK:
        if _INSTANCE is None:
            _INSTANCE = ProductionLogger(LogSettings.from_env())
        return _INSTANCE


def reset_logger() -> None:
    """Drain and forget the process-wide facility (useful for tests)."""
    global _INSTANCE
    with _INSTANCE_LOCK:
        instance, _INSTANCE = _INSTANCE, None
    if instance is not None:
        instance.flush()
