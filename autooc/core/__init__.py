"""Core logging facility for the AutoOC service."""

from . import flags, formatting, logging, retention, settings

__all__ = [
    "flags",
    "formatting",
    "logging",
    "retention",
    "settings",
]
