"""Shared fixtures for the log facility tests."""

from __future__ import annotations

import uuid

import pytest

from autooc.core.logging import ProductionLogger
from autooc.core.settings import LogSettings


@pytest.fixture()
def make_logger(tmp_path):
    created: list[ProductionLogger] = []

    def _make(**overrides) -> ProductionLogger:
        options = {"log_dir": tmp_path / "logs", "console": False}
        options.update(overrides)
        facility = ProductionLogger(LogSettings(**options), name=f"autooc.test.{uuid.uuid4().hex}")
        created.append(facility)
        return facility

    yield _make
    for facility in created:
        facility.flush(timeout=5)
