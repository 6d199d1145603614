"""Job variants and the container-run pipeline.

Every job variant implements the ``Job`` protocol: a ``name`` and a
``run(ctx)`` that returns on success and raises a ``DockrunError`` otherwise.
Only the container-run variant lives here.

.. code-block:: text

    RunJob.run(ctx)
      │  LogContext(execution_id, job=...)
      ▼
    cancelled? ──► raise SupervisionCancelledError  (no engine calls)
      ▼
    Provisioner.provision(spec)  ─► ContainerHandle
      ▼
    Supervisor.supervise(handle) ─► ExecutionOutcome
      ▼
    outcome not Succeeded ──► raise JobTimedOutError / KilledOrUnexpectedError /
      │                             FailedWithCodeError   (container left behind)
      ▼
    Reaper.reap(handle, delete_on_finish)

A container is only reclaimed after a successful run. Containers from failed
starts, timeouts and non-zero exits stay for inspection.

Example::

    job = RunJob(
        JobSpec(image="alpine:3.19", command="echo hello"),
        engine=DockerEngine.from_settings(settings),
        name="hello",
        credentials=CredentialTable.from_docker_config(),
    )
    execution = execute(job)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from dockrun.core.errors import DockrunError, NetworkConnectError
from dockrun.core.logging import LogContext, get_logger
from dockrun.core.settings import DockrunSettings, get_settings
from dockrun.execution.context import Execution, ExecutionContext
from dockrun.execution.credentials import CredentialTable
from dockrun.execution.engine import ContainerEngine
from dockrun.execution.models import ExecutionOutcome, JobSpec
from dockrun.execution.provisioner import Provisioner
from dockrun.execution.reaper import Reaper
from dockrun.execution.supervisor import CancellationToken, Clock, Supervisor

logger = get_logger(__name__)


@runtime_checkable
class Job(Protocol):
    """Shared run capability of every job variant."""

    @property
    def name(self) -> str: ...

    def run(self, ctx: ExecutionContext) -> None: ...


@dataclass(frozen=True)
class BareJob:
    """Identity fields common to all job variants."""

    name: str = ""
    schedule: str = ""
    command: str = ""


class RunJob:
    """Runs a job spec in a single container."""

    def __init__(
        self,
        spec: JobSpec,
        engine: ContainerEngine,
        *,
        name: str = "",
        schedule: str = "",
        credentials: CredentialTable | None = None,
        settings: DockrunSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.spec = spec
        self.bare = BareJob(name=name, schedule=schedule, command=spec.command)
        self._engine = engine
        self._settings = settings or get_settings()
        self._clock = clock
        self.provisioner = Provisioner(engine, credentials)
        self.reaper = Reaper(engine)
        self._cancel_lock = threading.Lock()
        self._cancel_token = CancellationToken()

    @property
    def name(self) -> str:
        return self.bare.name

    @property
    def cancel_token(self) -> CancellationToken:
        """Token of the run in progress, or of the next run."""
        return self._cancel_token

    def cancel(self) -> None:
        """Abandon the current (or next) run. The container is not stopped."""
        with self._cancel_lock:
            self._cancel_token.cancel()

    def run(self, ctx: ExecutionContext) -> None:
        with self._cancel_lock:
            token = self._cancel_token
        with LogContext(ctx.id, job=self.name):
            try:
                self._run(ctx, token)
            except DockrunError as exc:
                exc.with_context(job=self.name or None, execution_id=ctx.id)
                raise
            finally:
                with self._cancel_lock:
                    if self._cancel_token is token:
                        self._cancel_token = CancellationToken()

    def _run(self, ctx: ExecutionContext, token: CancellationToken) -> None:
        token.raise_if_cancelled("run cancelled before provisioning", operation="provision")
        try:
            handle = self.provisioner.provision(self.spec)
        except NetworkConnectError as exc:
            if exc.handle is not None:
                ctx.execution.container_id = exc.handle.id
            raise
        ctx.execution.container_id = handle.id

        supervisor = Supervisor.from_settings(
            self._engine,
            self._settings,
            clock=self._clock,
            cancel_token=token,
        )
        outcome = supervisor.supervise(handle)
        ctx.execution.outcome = outcome

        error = outcome.to_error(handle.id)
        if error is not None:
            raise error

        self.reaper.reap(handle, self.spec.delete_on_finish)


def execute(job: Job, ctx: ExecutionContext | None = None) -> Execution:
    """Run ``job`` inside a started/stopped ``Execution`` record.

    The error, if any, is stored on the record and re-raised.
    """
    ctx = ctx or ExecutionContext(job=job)
    execution = ctx.execution
    execution.start()
    logger.info("job_started", job=job.name, execution_id=execution.id)
    try:
        job.run(ctx)
    except Exception as exc:
        execution.stop(exc)
        logger.error(
            "job_failed",
            job=job.name,
            execution_id=execution.id,
            error=exc.to_dict() if isinstance(exc, DockrunError) else str(exc),
        )
        raise
    execution.stop()
    if execution.outcome is None:
        execution.outcome = ExecutionOutcome.succeeded()
    logger.info(
        "job_finished",
        job=job.name,
        execution_id=execution.id,
        duration=execution.duration.total_seconds() if execution.duration else None,
    )
    return execution


__all__ = ["BareJob", "Job", "RunJob", "execute"]
