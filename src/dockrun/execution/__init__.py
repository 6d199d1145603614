"""Container-run pipeline for dockrun.

Architecture:

    .. code-block:: text

        dockrun.execution
        ├── __init__.py     ← Public API (this file)
        ├── models.py       ← JobSpec, VolumeMount, ContainerHandle, ExecutionOutcome
        ├── image_ref.py    ← image reference parsing + credential lookup
        ├── credentials.py  ← CredentialTable (Docker client config)
        ├── spec_parser.py  ← volume / env / env-file / command parsing
        ├── engine.py       ← ContainerEngine protocol + value types
        ├── docker_engine.py← DockerEngine (Docker SDK)
        ├── fake_engine.py  ← FakeEngine (in-memory, for tests)
        ├── provisioner.py  ← Provisioner
        ├── supervisor.py   ← Supervisor, Clock, CancellationToken
        ├── reaper.py       ← Reaper
        ├── context.py      ← Execution, ExecutionContext
        └── jobs.py         ← Job protocol, BareJob, RunJob, execute()
"""

from dockrun.execution.context import Execution, ExecutionContext
from dockrun.execution.credentials import CredentialTable, RegistryCredential
from dockrun.execution.docker_engine import DockerEngine
from dockrun.execution.engine import ContainerConfig, ContainerEngine, ContainerState, NetworkRef
from dockrun.execution.fake_engine import FakeEngine
from dockrun.execution.image_ref import ImageReference, parse_image_reference
from dockrun.execution.jobs import BareJob, Job, RunJob, execute
from dockrun.execution.models import (
    ContainerHandle,
    ExecutionOutcome,
    JobSpec,
    OutcomeKind,
    VolumeMount,
)
from dockrun.execution.provisioner import Provisioner
from dockrun.execution.reaper import Reaper
from dockrun.execution.spec_parser import (
    parse_command,
    parse_env_entries,
    parse_env_from_files,
    parse_env_spec,
    parse_volumes,
    resolve_env,
)
from dockrun.execution.supervisor import (
    CancellationToken,
    Clock,
    Supervisor,
    SystemClock,
    classify_exit_code,
)

__all__ = [
    # Models
    "ContainerHandle",
    "ExecutionOutcome",
    "JobSpec",
    "OutcomeKind",
    "VolumeMount",
    # Parsing
    "ImageReference",
    "parse_image_reference",
    "parse_command",
    "parse_env_entries",
    "parse_env_from_files",
    "parse_env_spec",
    "parse_volumes",
    "resolve_env",
    # Credentials
    "CredentialTable",
    "RegistryCredential",
    # Engines
    "ContainerConfig",
    "ContainerEngine",
    "ContainerState",
    "DockerEngine",
    "FakeEngine",
    "NetworkRef",
    # Pipeline
    "CancellationToken",
    "Clock",
    "Provisioner",
    "Reaper",
    "Supervisor",
    "SystemClock",
    "classify_exit_code",
    # Jobs
    "BareJob",
    "Execution",
    "ExecutionContext",
    "Job",
    "RunJob",
    "execute",
]
