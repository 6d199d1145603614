"""
dockrun - single-container job executor.

Provisions (or resolves) a container for a job spec, starts it, supervises it
to a terminal outcome under a hard ceiling, and reclaims it when the run owns
it and asked for deletion.

Quick start::

    from dockrun import DockerEngine, JobSpec, RunJob, execute, get_settings

    settings = get_settings()
    job = RunJob(
        JobSpec(image="alpine:3.19", command="echo hello"),
        DockerEngine.from_settings(settings),
        name="hello",
    )
    execution = execute(job)
"""

__version__ = "0.1.0"

from dockrun.core import (
    DockrunError,
    DockrunSettings,
    configure_logging,
    get_logger,
    get_settings,
)
from dockrun.execution import (
    ContainerHandle,
    CredentialTable,
    DockerEngine,
    ExecutionOutcome,
    JobSpec,
    RunJob,
    execute,
    parse_image_reference,
)

__all__ = [
    "__version__",
    "ContainerHandle",
    "CredentialTable",
    "DockerEngine",
    "DockrunError",
    "DockrunSettings",
    "ExecutionOutcome",
    "JobSpec",
    "RunJob",
    "configure_logging",
    "execute",
    "get_logger",
    "get_settings",
    "parse_image_reference",
]
