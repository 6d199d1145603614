"""Data model for a single container-run job.

.. code-block:: text

    JobSpec (caller-supplied, immutable)
       │
       ▼  Provisioner
    ContainerHandle(id, owned)
       │
       ▼  Supervisor
    ExecutionOutcome  ── Succeeded | TimedOut | KilledOrUnexpected | FailedWithCode(n)
       │
       ▼  Reaper (owned + delete_on_finish only)

``JobSpec`` is a pydantic model so that a configuration mapping using the
public keys (``container``, ``delete``, ``env-files`` ...) validates and
coerces in one step. The other types are plain frozen dataclasses; none of
them outlive a run.

Tags:
    dockrun, execution, models, job-spec
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dockrun.core.errors import (
    FailedWithCodeError,
    JobOutcomeError,
    JobTimedOutError,
    KilledOrUnexpectedError,
)


# ---------------------------------------------------------------------------
# Job spec
# ---------------------------------------------------------------------------

class JobSpec(BaseModel):
    """Declarative description of one container run request.

    Exactly one provisioning path applies: ``image`` set with no
    ``container_ref`` creates a fresh container; a ``container_ref`` reuses an
    existing one. Blank strings count as absent.

    Example:
        >>> spec = JobSpec.from_config({
        ...     "image": "alpine:3.19",
        ...     "command": "echo hello",
        ...     "delete": "false",
        ...     "env-files": "/etc/job.env",
        ... })
        >>> spec.delete_on_finish, spec.env_files_spec
        (False, '/etc/job.env')
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    command: str = ""
    image: str | None = None
    container_ref: str | None = Field(default=None, alias="container")
    user: str = "root"
    tty: bool = False
    delete_on_finish: bool = Field(default=True, alias="delete")
    network: str | None = None
    volume_spec: str | None = Field(default=None, alias="volumes")
    env_spec: str | None = Field(default=None, alias="env")
    env_files_spec: str | None = Field(default=None, alias="env-files")

    @field_validator(
        "image", "container_ref", "network", "volume_spec", "env_spec", "env_files_spec",
        mode="before",
    )
    @classmethod
    def _blank_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> JobSpec:
        """Build a spec from a job configuration section.

        Keys follow the configuration surface: ``image``, ``container``,
        ``user``, ``tty``, ``delete``, ``network``, ``volumes``, ``env``,
        ``env-files``, ``command``.
        """
        return cls.model_validate(dict(config))

    @property
    def creates_container(self) -> bool:
        """True when this run provisions (and therefore owns) its container."""
        return bool(self.image) and not self.container_ref

    @property
    def has_target(self) -> bool:
        return bool(self.image) or bool(self.container_ref)


# ---------------------------------------------------------------------------
# Parsed spec entries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VolumeMount:
    """Host bind mount. Always read-write."""

    host_path: str
    container_path: str

    def to_bind(self) -> str:
        """Engine bind string: ``host:container:rw``."""
        return f"{self.host_path}:{self.container_path}:rw"


@dataclass(frozen=True)
class ContainerHandle:
    """A container this run operates on.

    ``owned`` is True only when this run's provisioner created the container.
    Ownership is the sole authority for removing it.
    """

    id: str
    owned: bool


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------

class OutcomeKind(str, Enum):
    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed_out"
    KILLED_OR_UNEXPECTED = "killed_or_unexpected"
    FAILED_WITH_CODE = "failed_with_code"


@dataclass(frozen=True)
class ExecutionOutcome:
    """Terminal classification of a supervised container."""

    kind: OutcomeKind
    exit_code: int | None = None

    @classmethod
    def succeeded(cls) -> ExecutionOutcome:
        return cls(OutcomeKind.SUCCEEDED, 0)

    @classmethod
    def timed_out(cls) -> ExecutionOutcome:
        return cls(OutcomeKind.TIMED_OUT)

    @classmethod
    def killed_or_unexpected(cls) -> ExecutionOutcome:
        return cls(OutcomeKind.KILLED_OR_UNEXPECTED, -1)

    @classmethod
    def failed_with_code(cls, code: int) -> ExecutionOutcome:
        return cls(OutcomeKind.FAILED_WITH_CODE, code)

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCEEDED

    def to_error(self, container_id: str | None = None) -> JobOutcomeError | None:
        """The error a run surfaces for this outcome, or None on success."""
        if self.kind is OutcomeKind.SUCCEEDED:
            return None
        if self.kind is OutcomeKind.TIMED_OUT:
            error: JobOutcomeError = JobTimedOutError(
                "container exceeded the maximum running time"
            )
        elif self.kind is OutcomeKind.KILLED_OR_UNEXPECTED:
            error = KilledOrUnexpectedError(
                "container stopped without a usable exit code"
            )
        else:
            error = FailedWithCodeError(
                f"error non-zero exit code: {self.exit_code}",
                exit_code=self.exit_code if self.exit_code is not None else 1,
            )
        error.with_context(container_id=container_id)
        return error

    def __str__(self) -> str:
        if self.kind is OutcomeKind.FAILED_WITH_CODE:
            return f"{self.kind.value}({self.exit_code})"
        return self.kind.value


__all__ = [
    "ContainerHandle",
    "ExecutionOutcome",
    "JobSpec",
    "OutcomeKind",
    "VolumeMount",
]
