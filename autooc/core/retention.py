"""Age-based cleanup of historical log files."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from pathlib import Path

LOGGER = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def clean_old_logs(
    log_dir: Path | str,
    retention_days: int,
    *,
    skip: Iterable[Path | str] = (),
    now: float | None = None,
    on_delete: Callable[[Path], None] | None = None,
) -> list[Path]:
    """Delete regular files in ``log_dir`` last modified before the cutoff.

    The cutoff is ``now - retention_days`` days; files exactly at the cutoff
    are kept. Subdirectories and anything listed in ``skip`` are left alone.
    A failed deletion is logged and the sweep moves on to the next file.
    """
    if isinstance(retention_days, bool) or not isinstance(retention_days, int) or retention_days < 1:
        raise ValueError(f"retention_days must be a positive integer, got {retention_days!r}")

    directory = Path(log_dir)
    if not directory.is_dir():
        return []

    cutoff = (time.time() if now is None else now) - retention_days * SECONDS_PER_DAY
    protected = {Path(p).resolve() for p in skip}
    removed: list[Path] = []

    for path in sorted(directory.iterdir()):
        try:
            if not path.is_file() or path.resolve() in protected:
                continue
            if path.stat().st_mtime >= cutoff:
                continue
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            LOGGER.warning("Could not delete old log file %s: %s", path, exc)
            continue
        removed.append(path)
        if on_delete is not None:
            on_delete(path)
    return removed
