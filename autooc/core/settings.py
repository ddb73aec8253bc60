"""Logging configuration read from the environment and the local .env file."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .flags import flag
from .formatting import normalize_level

ENV_PATH = Path(".env")
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUPS = 5
DEFAULT_RETENTION_DAYS = 7
DEFAULT_DRAIN_TIMEOUT = 5.0


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _timeout_env(name: str, default: float) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    if raw.strip().lower() in {"none", "inf", "off"}:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class LogSettings:
    """Everything the log facility needs, fixed at process start."""

    log_dir: Path = field(default_factory=lambda: Path.cwd() / "logs")
    level: str = "info"
    max_bytes: int = DEFAULT_MAX_BYTES
    backup_count: int = DEFAULT_BACKUPS
    console: bool = True
    files: bool = True
    retention_days: int = DEFAULT_RETENTION_DAYS
    drain_timeout: Optional[float] = DEFAULT_DRAIN_TIMEOUT

    def __post_init__(self) -> None:
        object.__setattr__(self, "log_dir", Path(self.log_dir).expanduser().resolve())
        object.__setattr__(self, "level", normalize_level(self.level))
        if self.retention_days < 1:
            raise ValueError("retention_days must be a positive integer")

    @classmethod
    def from_env(cls, env_path: Path | str | None = None) -> "LogSettings":
        """Build settings from environment variables, seeded by ``.env``."""
        path = Path(env_path) if env_path else ENV_PATH
        if path.exists():
            load_dotenv(path, override=False)

        log_dir = os.getenv("AUTOOC_LOG_DIR") or str(Path.cwd() / "logs")
        return cls(
            log_dir=Path(log_dir),
            level=os.getenv("LOG_LEVEL", "info"),
            max_bytes=_int_env("AUTOOC_LOG_MAX_BYTES", DEFAULT_MAX_BYTES),
            backup_count=_int_env("AUTOOC_LOG_BACKUPS", DEFAULT_BACKUPS),
            console=flag("AUTOOC_LOG_CONSOLE", default=True),
            files=flag("AUTOOC_LOG_FILES", default=True),
            retention_days=_int_env("AUTOOC_LOG_RETENTION_DAYS", DEFAULT_RETENTION_DAYS, minimum=1),
            drain_timeout=_timeout_env("AUTOOC_LOG_DRAIN_TIMEOUT", DEFAULT_DRAIN_TIMEOUT),
        )
