"""
Shared pytest fixtures for dockrun tests.

This module provides:
- ``FakeClock``: simulated monotonic time, advanced only by ``sleep``
- ``engine``: an in-memory ``FakeEngine``
- ``settings``: process settings with a short poll interval and ceiling
- Settings cache and logging context isolation

No Docker daemon is needed by any test.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

from dockrun.core.logging import clear_context
from dockrun.core.settings import DockrunSettings, reset_settings
from dockrun.execution.fake_engine import FakeEngine


class FakeClock:
    """Deterministic clock. ``sleep`` advances time and records the request."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Fresh settings cache and logging context for every test."""
    for var in ("DOCKRUN_POLL_INTERVAL_SECONDS", "DOCKRUN_MAX_RUN_SECONDS", "DOCKRUN_DOCKER_CONFIG"):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    clear_context()
    yield
    reset_settings()
    clear_context()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def settings() -> DockrunSettings:
    """Short interval/ceiling pair; exact in binary floating point."""
    return DockrunSettings(poll_interval_seconds=0.25, max_run_seconds=1.0)
