"""Boolean environment toggles for the log sinks."""

from __future__ import annotations

import os

_ON_VALUES = {"1", "true", "yes", "y", "on"}
_OFF_VALUES = {"0", "false", "no", "n", "off"}


def flag(name: str, default: bool = False) -> bool:
    """Read ``name`` as a switch; unset, blank or unrecognised values give ``default``."""
    raw = (os.getenv(name) or "").strip().lower()
    if raw in _ON_VALUES:
        return True
    if raw in _OFF_VALUES:
        return False
    return default
