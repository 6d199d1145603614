"""
dockrun core primitives: errors, logging and settings.

These modules have no knowledge of containers; the execution package builds
on them.
"""

from dockrun.core.errors import (
    ContainerCreateError,
    ContainerLookupError,
    ContainerRemoveError,
    DockrunError,
    EngineError,
    EngineNotFoundError,
    ErrorCategory,
    ErrorContext,
    FailedWithCodeError,
    ImagePullError,
    JobConfigError,
    JobOutcomeError,
    JobTimedOutError,
    KilledOrUnexpectedError,
    NetworkConnectError,
    PollInfraError,
    SpecParseError,
    StartError,
    SupervisionCancelledError,
)
from dockrun.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from dockrun.core.settings import DockrunSettings, get_settings, reset_settings

__all__ = [
    # Errors
    "ContainerCreateError",
    "ContainerLookupError",
    "ContainerRemoveError",
    "DockrunError",
    "EngineError",
    "EngineNotFoundError",
    "ErrorCategory",
    "ErrorContext",
    "FailedWithCodeError",
    "ImagePullError",
    "JobConfigError",
    "JobOutcomeError",
    "JobTimedOutError",
    "KilledOrUnexpectedError",
    "NetworkConnectError",
    "PollInfraError",
    "SpecParseError",
    "StartError",
    "SupervisionCancelledError",
    # Logging
    "LogContext",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    # Settings
    "DockrunSettings",
    "get_settings",
    "reset_settings",
]
