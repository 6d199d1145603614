"""Container engine protocol.

The pipeline talks to the container engine only through ``ContainerEngine``.
``DockerEngine`` implements it over the Docker SDK; ``FakeEngine`` implements
it in memory for tests.

.. code-block:: text

    Provisioner ── pull_image / create_container / list_networks
                   connect_network / inspect_container
    Supervisor  ── start_container / inspect_container
    Reaper      ── remove_container

Implementations raise ``EngineError`` (``EngineNotFoundError`` for unknown
ids). The stages translate those into their own error types. An engine
instance is shared by concurrent runs and must be safe for that.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from dockrun.execution.credentials import RegistryCredential
from dockrun.execution.models import VolumeMount


@dataclass(frozen=True)
class ContainerConfig:
    """Everything the create call needs. stdin is never attached."""

    image: str
    user: str = "root"
    tty: bool = False
    argv: tuple[str, ...] = ()
    env: tuple[str, ...] = ()
    mounts: tuple[VolumeMount, ...] = ()
    attach_stdin: bool = field(default=False, init=False)
    attach_stdout: bool = field(default=True, init=False)
    attach_stderr: bool = field(default=True, init=False)


@dataclass(frozen=True)
class ContainerState:
    """The subset of an inspect result supervision uses."""

    id: str
    running: bool
    exit_code: int


@dataclass(frozen=True)
class NetworkRef:
    id: str
    name: str


@runtime_checkable
class ContainerEngine(Protocol):
    """Synchronous container engine operations used by a job run."""

    def pull_image(
        self,
        repository: str,
        tag: str,
        registry: str = "",
        credentials: RegistryCredential | None = None,
    ) -> None: ...

    def create_container(self, config: ContainerConfig) -> str: ...

    def list_networks(self, name: str) -> Sequence[NetworkRef]: ...

    def connect_network(self, network_id: str, container_id: str) -> None: ...

    def start_container(self, container_id: str) -> None: ...

    def inspect_container(self, container_id: str) -> ContainerState: ...

    def remove_container(self, container_id: str, *, force: bool = True) -> None: ...


__all__ = [
    "ContainerConfig",
    "ContainerEngine",
    "ContainerState",
    "NetworkRef",
]
