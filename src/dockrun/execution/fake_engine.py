"""In-memory container engine for tests.

``FakeEngine`` implements ``ContainerEngine`` without a daemon. It records
every call and can be scripted to fail a given operation or to report a
sequence of inspect results.

Example::

    engine = FakeEngine()
    engine.add_network("backend")
    engine.script_states(exit_code=7, running_polls=3)   # next created container
    cid = engine.create_container(ContainerConfig(image="alpine"))
    engine.start_container(cid)
    engine.inspect_container(cid).running   # True, True, True, then False / 7

    engine.fail("pull", EngineError("unauthorized"))
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from dockrun.core.errors import EngineError, EngineNotFoundError
from dockrun.execution.credentials import RegistryCredential
from dockrun.execution.engine import ContainerConfig, ContainerState, NetworkRef


@dataclass
class FakeContainer:
    id: str
    config: ContainerConfig | None = None
    started: bool = False
    networks: list[str] = field(default_factory=list)
    running_polls: int | None = 0   # None = never stops
    exit_code: int = 0
    inspections: int = 0


class FakeEngine:
    """Scriptable, thread-safe in-memory engine."""

    def __init__(self) -> None:
        self.containers: dict[str, FakeContainer] = {}
        self.networks: dict[str, NetworkRef] = {}
        self.pulled: list[tuple[str, str, str, RegistryCredential | None]] = []
        self.removed: list[str] = []
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._failures: dict[str, BaseException] = {}
        self._next_script: tuple[int | None, int] | None = None
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Scripting
    # ------------------------------------------------------------------

    def fail(self, operation: str, error: BaseException | None = None) -> None:
        """Make every later call to ``operation`` raise ``error``."""
        self._failures[operation] = error or EngineError(f"{operation} failed")

    def add_container(
        self,
        container_id: str,
        *,
        running_polls: int | None = 0,
        exit_code: int = 0,
    ) -> FakeContainer:
        """Register a pre-existing container."""
        container = FakeContainer(
            id=container_id, running_polls=running_polls, exit_code=exit_code,
        )
        self.containers[container_id] = container
        return container

    def add_network(self, name: str, network_id: str | None = None) -> NetworkRef:
        ref = NetworkRef(id=network_id or f"net-{name}", name=name)
        self.networks[ref.id] = ref
        return ref

    def script_states(self, *, exit_code: int = 0, running_polls: int | None = 0) -> None:
        """Set the behaviour of the next created container.

        ``running_polls`` inspections report running before the container
        stops with ``exit_code``. None keeps it running forever.
        """
        self._next_script = (running_polls, exit_code)

    def calls_to(self, operation: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == operation]

    def _record(self, operation: str, *args: Any) -> None:
        with self._lock:
            self.calls.append((operation, args))
        error = self._failures.get(operation)
        if error is not None:
            raise error

    def _get(self, container_id: str) -> FakeContainer:
        try:
            return self.containers[container_id]
        except KeyError:
            raise EngineNotFoundError(
                f"no such container: {container_id}"
            ).with_context(container_id=container_id) from None

    # ------------------------------------------------------------------
    # ContainerEngine
    # ------------------------------------------------------------------

    def pull_image(
        self,
        repository: str,
        tag: str,
        registry: str = "",
        credentials: RegistryCredential | None = None,
    ) -> None:
        self._record("pull", repository, tag, registry, credentials)
        self.pulled.append((repository, tag, registry, credentials))

    def create_container(self, config: ContainerConfig) -> str:
        self._record("create", config)
        with self._lock:
            container_id = f"fake-{next(self._ids):04d}"
            running_polls, exit_code = self._next_script or (0, 0)
            self._next_script = None
            self.containers[container_id] = FakeContainer(
                id=container_id,
                config=config,
                running_polls=running_polls,
                exit_code=exit_code,
            )
        return container_id

    def list_networks(self, name: str) -> Sequence[NetworkRef]:
        self._record("list_networks", name)
        return [ref for ref in self.networks.values() if ref.name == name]

    def connect_network(self, network_id: str, container_id: str) -> None:
        self._record("connect_network", network_id, container_id)
        self._get(container_id).networks.append(network_id)

    def start_container(self, container_id: str) -> None:
        self._record("start", container_id)
        self._get(container_id).started = True

    def inspect_container(self, container_id: str) -> ContainerState:
        self._record("inspect", container_id)
        container = self._get(container_id)
        if container.started:
            container.inspections += 1
        running = (
            container.running_polls is None
            or (container.started and container.inspections <= container.running_polls)
        )
        return ContainerState(
            id=container_id,
            running=running,
            exit_code=0 if running else container.exit_code,
        )

    def remove_container(self, container_id: str, *, force: bool = True) -> None:
        self._record("remove", container_id, force)
        self._get(container_id)
        with self._lock:
            del self.containers[container_id]
            self.removed.append(container_id)


__all__ = ["FakeContainer", "FakeEngine"]
