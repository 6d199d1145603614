"""Execution record and the context handed to ``Job.run``.

.. code-block:: text

    ExecutionContext
    ├── .job        → job being run
    ├── .execution  → Execution (id, timings, outcome, error)
    ├── .id         → execution id
    └── .set_metadata(k, v)

Nothing here is persisted; the record lives as long as the caller keeps it.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from dockrun.execution.models import ExecutionOutcome

if TYPE_CHECKING:
    from dockrun.execution.jobs import Job


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


@dataclass
class Execution:
    """Timing and result of one job run."""

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: datetime | None = None
    finished_at: datetime | None = None
    running: bool = False
    outcome: ExecutionOutcome | None = None
    error: BaseException | None = None
    container_id: str | None = None

    @property
    def duration(self) -> timedelta | None:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    @property
    def failed(self) -> bool:
        return self.error is not None

    def start(self) -> None:
        self.started_at = utcnow()
        self.running = True

    def stop(self, error: BaseException | None = None) -> None:
        self.finished_at = utcnow()
        self.running = False
        self.error = error

    def to_dict(self) -> dict[str, Any]:
        error = self.error
        return {
            "id": self.id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_seconds": self.duration.total_seconds() if self.duration else None,
            "running": self.running,
            "container_id": self.container_id,
            "outcome": str(self.outcome) if self.outcome else None,
            "failed": self.failed,
            "error": error.to_dict() if hasattr(error, "to_dict") else (str(error) if error else None),
        }


@dataclass
class ExecutionContext:
    """Per-run context passed to ``Job.run``."""

    job: Job
    execution: Execution = field(default_factory=Execution)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.execution.id

    def set_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value


__all__ = ["Execution", "ExecutionContext", "utcnow"]
