"""Shared fixtures for the Helping ERLC test suite."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from helping_erlc import telemetry as telemetry_module


class ManualClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture(autouse=True)
def isolated_telemetry(tmp_path, monkeypatch):
    """Keep telemetry writes inside the test's temporary directory."""

    monkeypatch.setenv("HELPING_ERLC_TELEMETRY_DB", str(tmp_path / "telemetry.db"))
    monkeypatch.setattr(telemetry_module, "_telemetry", None)
    yield
