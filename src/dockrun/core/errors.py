"""
Structured error types for dockrun.

Every failure a job run can produce is a ``DockrunError`` subclass. Each one
carries a category, an ``ErrorContext`` naming the operation and the target
(container id, image, network, file path) and, when it wraps a lower-level
failure, the original exception as ``cause``.

Nothing in dockrun retries automatically. A single pull, create and start
attempt is made per run, and the error surfaced to the caller is the one that
stopped the pipeline.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                        DockrunError                              │
        │            (category, context, cause, to_dict())                 │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  Spec / config        Provisioning           Supervision         │
        │  ─────────────        ────────────           ───────────         │
        │  SpecParseError       ImagePullError         StartError          │
        │  JobConfigError       ContainerCreateError   PollInfraError      │
        │                       NetworkConnectError    SupervisionCancelled│
        │                       ContainerLookupError                       │
        │                                                                  │
        │  Reclaim              Outcome (JobOutcomeError)                  │
        │  ───────              ─────────────────────────                  │
        │  ContainerRemoveError JobTimedOutError                           │
        │                       KilledOrUnexpectedError                    │
        │                       FailedWithCodeError(exit_code)             │
        │                                                                  │
        │  Engine adapter (wrapped by the stages above)                    │
        │  ──────────────                                                  │
        │  EngineError, EngineNotFoundError                                │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> err = ImagePullError("error pulling image 'foo'", cause=OSError("boom"))
    >>> err.with_context(image="foo").to_dict()["context"]
    {'operation': 'pull', 'image': 'foo'}

Tags:
    error-handling, exception-hierarchy, error-context, dockrun

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Coarse classification used for logging and CLI exit handling."""

    CONFIG = "config"              # Job spec missing a provisioning path
    VALIDATION = "validation"      # Malformed volume/env/command grammar
    IMAGE_PULL = "image_pull"      # Registry pull failed
    ENGINE = "engine"              # Container engine call failed
    NOT_FOUND = "not_found"        # Referenced container does not exist
    TIMEOUT = "timeout"            # Supervision ceiling exceeded
    USER_CODE = "user_code"        # Container exited non-zero or was killed
    INTERNAL = "internal"          # Unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to a ``DockrunError``.

    Only the fields that are set are serialized, so an error raised while
    parsing a volume spec does not carry an empty ``container_id``.

    Attributes:
        operation: Pipeline step that failed (pull, create, start, poll, ...)
        job: Job name, when the error surfaced inside a named job
        execution_id: Execution identifier of the run
        container_id: Target container
        image: Image reference being pulled or created from
        network: Network name being attached
        path: File path (env files)
        metadata: Additional key-value pairs
    """

    operation: str | None = None
    job: str | None = None
    execution_id: str | None = None
    container_id: str | None = None
    image: str | None = None
    network: str | None = None
    path: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["operation", "job", "execution_id", "container_id",
                    "image", "network", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DockrunError(Exception):
    """
    Base exception for all dockrun errors.

    Subclasses set ``default_category`` and ``default_operation`` so that
    raising sites only need to supply the message, the target and the cause.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_operation: str | None = None

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext(operation=self.default_operation)
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> DockrunError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StartError("start failed").with_context(container_id=cid)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# ENGINE ERRORS
# =============================================================================


class EngineError(DockrunError):
    """
    Raw failure reported by a container engine adapter.

    Pipeline stages catch it and re-raise the stage-specific error
    (``ImagePullError``, ``StartError``, ...) with this one as ``cause``.
    """

    default_category = ErrorCategory.ENGINE
    default_operation = "engine"


class EngineNotFoundError(EngineError):
    """The engine has no object (container, image, network) with that id."""

    default_category = ErrorCategory.NOT_FOUND


# =============================================================================
# SPEC / CONFIG ERRORS
# =============================================================================


class SpecParseError(DockrunError):
    """Malformed volume, environment or command specification."""

    default_category = ErrorCategory.VALIDATION
    default_operation = "parse"


class JobConfigError(DockrunError):
    """Job spec cannot be run as configured (e.g. neither image nor container)."""

    default_category = ErrorCategory.CONFIG
    default_operation = "configure"


# =============================================================================
# PROVISIONING ERRORS
# =============================================================================


class ImagePullError(DockrunError):
    """Pulling the job image from its registry failed."""

    default_category = ErrorCategory.IMAGE_PULL
    default_operation = "pull"


class ContainerCreateError(DockrunError):
    """The engine refused to create the job container."""

    default_category = ErrorCategory.ENGINE
    default_operation = "create"


class NetworkConnectError(DockrunError):
    """
    Attaching a freshly created container to its network failed.

    The container is not rolled back. ``handle`` points at it so the caller
    (or an operator) can inspect it.
    """

    default_category = ErrorCategory.ENGINE
    default_operation = "connect_network"

    def __init__(self, message: str, *, handle: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.handle = handle


class ContainerLookupError(DockrunError):
    """An existing container identifier could not be resolved."""

    default_category = ErrorCategory.NOT_FOUND
    default_operation = "lookup"


# =============================================================================
# SUPERVISION ERRORS
# =============================================================================


class StartError(DockrunError):
    """The start call for the job container failed."""

    default_category = ErrorCategory.ENGINE
    default_operation = "start"


class PollInfraError(DockrunError):
    """An inspect call failed while the container was being supervised."""

    default_category = ErrorCategory.ENGINE
    default_operation = "poll"


class SupervisionCancelledError(DockrunError):
    """Supervision was abandoned through its cancellation token."""

    default_category = ErrorCategory.INTERNAL
    default_operation = "poll"


class ContainerRemoveError(DockrunError):
    """Forced removal of an owned container failed."""

    default_category = ErrorCategory.ENGINE
    default_operation = "remove"


# =============================================================================
# OUTCOME ERRORS
# =============================================================================


class JobOutcomeError(DockrunError):
    """Base for the non-successful terminal outcomes of a supervised run."""

    default_category = ErrorCategory.USER_CODE
    default_operation = "supervise"


class JobTimedOutError(JobOutcomeError):
    """The container was still running when the supervision ceiling expired."""

    default_category = ErrorCategory.TIMEOUT


class KilledOrUnexpectedError(JobOutcomeError):
    """The engine reported no usable exit code (exit code -1)."""


class FailedWithCodeError(JobOutcomeError):
    """The container exited with a non-zero exit code."""

    def __init__(self, message: str, *, exit_code: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.exit_code = exit_code

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["exit_code"] = self.exit_code
        return result


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "DockrunError",
    "EngineError",
    "EngineNotFoundError",
    "SpecParseError",
    "JobConfigError",
    "ImagePullError",
    "ContainerCreateError",
    "NetworkConnectError",
    "ContainerLookupError",
    "StartError",
    "PollInfraError",
    "SupervisionCancelledError",
    "ContainerRemoveError",
    "JobOutcomeError",
    "JobTimedOutError",
    "KilledOrUnexpectedError",
    "FailedWithCodeError",
]
