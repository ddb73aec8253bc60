"""AutoOC production logging utilities."""
