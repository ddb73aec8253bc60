"""CLI helper to prune old log files without starting the service."""
from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path

from autooc.core.logging import ProductionLogger
from autooc.core.settings import LogSettings


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete log files older than the retention window.")
    parser.add_argument("--days", type=int, default=None, help="Retention in days (default: configured)")
    parser.add_argument("--dir", type=Path, default=None, help="Log directory (default: configured)")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = LogSettings.from_env()
    if args.dir is not None:
        settings = replace(settings, log_dir=args.dir)
    if args.days is not None and args.days < 1:
        raise SystemExit("--days must be a positive integer")

    logger = ProductionLogger(settings)
    try:
        removed = logger.clean_old_logs(args.days)
    finally:
        logger.flush()
    print(f"[logs] removed {len(removed)} file(s) from {logger.get_log_directory()}")


if __name__ == "__main__":
    main()
