"""Docker implementation of ``ContainerEngine``.

Uses the low-level ``APIClient`` of the Docker SDK (``client.api``) so that
every call maps one-to-one onto an Engine API endpoint:

.. code-block:: text

    pull_image         POST /images/create?fromImage=<repo>&tag=<tag>  (X-Registry-Auth)
    create_container   POST /containers/create   AttachStdin=false, AttachStdout/err=true
    list_networks      GET  /networks?filters={"name": [...]}  then exact-name filter
    connect_network    POST /networks/<id>/connect
    start_container    POST /containers/<id>/start
    inspect_container  GET  /containers/<id>/json   State.Running / State.ExitCode
    remove_container   DELETE /containers/<id>?force=1

The client connects lazily on first use; one instance is shared by every run
in the process.

Example::

    engine = DockerEngine.from_settings(get_settings())
    engine.pull_image("alpine", "3.19")
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import docker
from docker.errors import DockerException, NotFound
from requests.exceptions import RequestException

from dockrun.core.errors import EngineError, EngineNotFoundError
from dockrun.core.logging import get_logger
from dockrun.core.settings import DockrunSettings
from dockrun.execution.credentials import RegistryCredential
from dockrun.execution.engine import ContainerConfig, ContainerState, NetworkRef

logger = get_logger(__name__)


@contextmanager
def _engine_call(operation: str, **target: Any) -> Iterator[None]:
    """Translate SDK and transport errors into ``EngineError``."""
    try:
        yield
    except NotFound as exc:
        raise EngineNotFoundError(
            f"{operation}: {exc.explanation or exc}", cause=exc,
        ).with_context(operation=operation, **target)
    except (DockerException, RequestException) as exc:
        raise EngineError(
            f"{operation}: {exc}", cause=exc,
        ).with_context(operation=operation, **target)


class DockerEngine:
    """Container engine backed by a Docker daemon."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: int = 60,
        client: docker.DockerClient | None = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._client = client
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: DockrunSettings) -> DockerEngine:
        return cls(base_url=settings.docker_host, timeout=settings.docker_timeout)

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    @property
    def api(self) -> docker.APIClient:
        """Low-level API client, connecting on first access."""
        if self._client is None:
            with self._lock:
                if self._client is None:
                    with _engine_call("connect", base_url=self._base_url):
                        if self._base_url:
                            self._client = docker.DockerClient(
                                base_url=self._base_url, timeout=self._timeout,
                            )
                        else:
                            self._client = docker.from_env(timeout=self._timeout)
                    logger.debug("docker_client_connected", base_url=self._base_url)
        return self._client.api

    def ping(self) -> bool:
        with _engine_call("ping"):
            return bool(self.api.ping())

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

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
        auth_config = credentials.to_auth_config() if credentials is not None else None
        with _engine_call("pull", image=f"{repository}:{tag}"):
            for chunk in self.api.pull(
                repository, tag=tag, stream=True, decode=True, auth_config=auth_config,
            ):
                # The daemon reports pull failures in-band with a 200 status
                if isinstance(chunk, dict) and chunk.get("error"):
                    raise EngineError(chunk["error"]).with_context(
                        operation="pull", image=f"{repository}:{tag}",
                    )

    def create_container(self, config: ContainerConfig) -> str:
        api = self.api
        with _engine_call("create", image=config.image):
            host_config = api.create_host_config(
                binds=[mount.to_bind() for mount in config.mounts],
            )
            response = api.create_container(
                image=config.image,
                command=list(config.argv) or None,
                user=config.user,
                tty=config.tty,
                environment=list(config.env),
                stdin_open=config.attach_stdin,  # detach=False attaches stdout/stderr
                detach=False,
                host_config=host_config,
            )
        return response["Id"]

    def list_networks(self, name: str) -> Sequence[NetworkRef]:
        with _engine_call("list_networks", network=name):
            networks = self.api.networks(names=[name])
        # The engine filter is a substring match
        return [
            NetworkRef(id=net["Id"], name=net["Name"])
            for net in networks or []
            if net.get("Name") == name
        ]

    def connect_network(self, network_id: str, container_id: str) -> None:
        with _engine_call("connect_network", network=network_id, container_id=container_id):
            self.api.connect_container_to_network(container_id, network_id)

    def start_container(self, container_id: str) -> None:
        with _engine_call("start", container_id=container_id):
            self.api.start(container_id)

    def inspect_container(self, container_id: str) -> ContainerState:
        with _engine_call("inspect", container_id=container_id):
            info = self.api.inspect_container(container_id)
        state = info.get("State") or {}
        return ContainerState(
            id=info.get("Id", container_id),
            running=bool(state.get("Running", False)),
            exit_code=int(state.get("ExitCode", -1)),
        )

    def remove_container(self, container_id: str, *, force: bool = True) -> None:
        with _engine_call("remove", container_id=container_id):
            self.api.remove_container(container_id, force=force)


__all__ = ["DockerEngine"]
