"""Container supervision: start, poll, classify.

State machine::

    Starting ──start ok──► Running ──not running, code 0──► Succeeded
        │                     │    ──not running, code -1─► KilledOrUnexpected
        │                     │    ──not running, code n──► FailedWithCode(n)
        │                     └────elapsed > ceiling─────► TimedOut
        └──start error──► StartError (container left in place)

Each poll iteration sleeps one interval, checks the ceiling, then inspects.
The ceiling is measured on the injected clock from the moment the start call
returned. An inspect error aborts supervision with ``PollInfraError``; it is
never retried and never classified as a job outcome.

Interval and ceiling are process settings (100 ms and 24 h by default). Tests
pass a ``FakeClock`` and a short pair instead of sleeping for real.

Example::

    supervisor = Supervisor.from_settings(engine, get_settings())
    outcome = supervisor.supervise(handle)
    if not outcome.is_success:
        raise outcome.to_error(handle.id)
"""

from __future__ import annotations

import threading
import time
from typing import Any, Protocol

from dockrun.core.errors import (
    EngineError,
    PollInfraError,
    StartError,
    SupervisionCancelledError,
)
from dockrun.core.logging import get_logger
from dockrun.core.settings import (
    DEFAULT_MAX_RUN_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DockrunSettings,
)
from dockrun.execution.engine import ContainerEngine
from dockrun.execution.models import ContainerHandle, ExecutionOutcome

logger = get_logger(__name__)

# Exit code the engine reports when it has no real one (e.g. killed by signal)
NO_EXIT_CODE = -1


# ---------------------------------------------------------------------------
# Time and cancellation
# ---------------------------------------------------------------------------

class Clock(Protocol):
    def monotonic(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Wall clock: ``time.monotonic`` and ``time.sleep``."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class CancellationToken:
    """One-way flag checked once per poll iteration."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, message: str, **context: Any) -> None:
        if self._event.is_set():
            raise SupervisionCancelledError(message).with_context(**context)


def classify_exit_code(code: int) -> ExecutionOutcome:
    """0 succeeded, -1 killed or unexpected, anything else failed with code."""
    if code == 0:
        return ExecutionOutcome.succeeded()
    if code == NO_EXIT_CODE:
        return ExecutionOutcome.killed_or_unexpected()
    return ExecutionOutcome.failed_with_code(code)


# ---------------------------------------------------------------------------
# Supervisor
# ---------------------------------------------------------------------------

class Supervisor:
    """Starts a container and watches it to a terminal outcome."""

    def __init__(
        self,
        engine: ContainerEngine,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_run_seconds: float = DEFAULT_MAX_RUN_SECONDS,
        clock: Clock | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if max_run_seconds <= 0:
            raise ValueError("max_run_seconds must be positive")
        self._engine = engine
        self.poll_interval = poll_interval
        self.max_run_seconds = max_run_seconds
        self._clock = clock or SystemClock()
        self._cancel_token = cancel_token or CancellationToken()

    @classmethod
    def from_settings(
        cls,
        engine: ContainerEngine,
        settings: DockrunSettings,
        *,
        clock: Clock | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Supervisor:
        return cls(
            engine,
            poll_interval=settings.poll_interval_seconds,
            max_run_seconds=settings.max_run_seconds,
            clock=clock,
            cancel_token=cancel_token,
        )

    @property
    def cancel_token(self) -> CancellationToken:
        return self._cancel_token

    def supervise(self, handle: ContainerHandle) -> ExecutionOutcome:
        """Start ``handle``'s container and wait for its outcome."""
        self.start(handle)
        return self.watch(handle.id)

    def start(self, handle: ContainerHandle) -> None:
        self._cancel_token.raise_if_cancelled(
            f"start of container {handle.id} cancelled",
            operation="start",
            container_id=handle.id,
        )
        try:
            self._engine.start_container(handle.id)
        except EngineError as exc:
            logger.error("container_start_failed", container_id=handle.id, error=exc.message)
            raise StartError(
                f"error starting container {handle.id}: {exc.message}", cause=exc,
            ).with_context(container_id=handle.id)
        logger.info("container_started", container_id=handle.id, owned=handle.owned)

    def watch(self, container_id: str) -> ExecutionOutcome:
        """Poll ``container_id`` until it stops or the ceiling expires."""
        started = self._clock.monotonic()
        polls = 0
        while True:
            self._cancel_token.raise_if_cancelled(
                f"supervision of container {container_id} cancelled",
                container_id=container_id,
                polls=polls,
            )

            self._clock.sleep(self.poll_interval)
            elapsed = self._clock.monotonic() - started
            if elapsed > self.max_run_seconds:
                logger.error(
                    "container_timed_out",
                    container_id=container_id,
                    elapsed=round(elapsed, 3),
                    max_run_seconds=self.max_run_seconds,
                )
                return ExecutionOutcome.timed_out()

            try:
                state = self._engine.inspect_container(container_id)
            except EngineError as exc:
                raise PollInfraError(
                    f"error inspecting container {container_id}: {exc.message}", cause=exc,
                ).with_context(container_id=container_id, polls=polls)
            polls += 1

            if not state.running:
                outcome = classify_exit_code(state.exit_code)
                logger.info(
                    "container_stopped",
                    container_id=container_id,
                    exit_code=state.exit_code,
                    outcome=str(outcome),
                    elapsed=round(elapsed, 3),
                )
                return outcome


__all__ = [
    "CancellationToken",
    "Clock",
    "NO_EXIT_CODE",
    "Supervisor",
    "SystemClock",
    "classify_exit_code",
]
