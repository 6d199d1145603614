"""Container provisioning.

Resolves the container a run operates on:

.. code-block:: text

    JobSpec
      │
      ├── image set, no container ──► parse command/volumes/env
      │                               pull image (credentials by registry host)
      │                               create container          ─► handle(owned=True)
      │                               [network] connect to every exact-name match
      │
      ├── container set ────────────► inspect by identifier     ─► handle(owned=False)
      │
      └── neither ──────────────────► JobConfigError, before any engine call

Spec strings are parsed before the pull so that a bad volume or env entry
never leaves an image download or a container behind. A network connect
failure does not roll back the create; the ``NetworkConnectError`` carries the
handle of the container that now exists.
"""

from __future__ import annotations

from dockrun.core.errors import (
    ContainerCreateError,
    ContainerLookupError,
    EngineError,
    ImagePullError,
    JobConfigError,
    NetworkConnectError,
)
from dockrun.core.logging import get_logger
from dockrun.execution.credentials import CredentialTable
from dockrun.execution.engine import ContainerConfig, ContainerEngine
from dockrun.execution.image_ref import parse_image_reference
from dockrun.execution.models import ContainerHandle, JobSpec
from dockrun.execution.spec_parser import parse_command, parse_volumes, resolve_env

logger = get_logger(__name__)


class Provisioner:
    """Builds or resolves the container for one job spec."""

    def __init__(
        self,
        engine: ContainerEngine,
        credentials: CredentialTable | None = None,
    ) -> None:
        self._engine = engine
        self._credentials = credentials if credentials is not None else CredentialTable.empty()

    def provision(self, spec: JobSpec) -> ContainerHandle:
        """Return the handle of the container ``spec`` runs in.

        Raises:
            JobConfigError: Neither ``image`` nor ``container`` is set.
            SpecParseError: Malformed command, volume or env spec.
            ImagePullError, ContainerCreateError, NetworkConnectError,
            ContainerLookupError: The matching engine step failed.
        """
        if spec.creates_container:
            return self._create(spec)
        if spec.container_ref:
            return self._lookup(spec.container_ref)
        raise JobConfigError("job spec needs an image or a container")

    def _create(self, spec: JobSpec) -> ContainerHandle:
        image = spec.image or ""
        config = ContainerConfig(
            image=image,
            user=spec.user,
            tty=spec.tty,
            argv=tuple(parse_command(spec.command)),
            env=tuple(resolve_env(spec)),
            mounts=tuple(parse_volumes(spec.volume_spec)),
        )

        ref = parse_image_reference(image, self._credentials)
        logger.info(
            "image_pull_started",
            image=image,
            registry=ref.registry or None,
            authenticated=ref.credentials is not None,
        )
        try:
            self._engine.pull_image(ref.repository, ref.tag, ref.registry, ref.credentials)
        except EngineError as exc:
            raise ImagePullError(
                f"error pulling image {image!r}: {exc.message}", cause=exc,
            ).with_context(image=image)

        try:
            container_id = self._engine.create_container(config)
        except EngineError as exc:
            raise ContainerCreateError(
                f"error creating container from {image!r}: {exc.message}", cause=exc,
            ).with_context(image=image)

        handle = ContainerHandle(id=container_id, owned=True)
        logger.info("container_created", container_id=container_id, image=image)

        if spec.network:
            self._connect(handle, spec.network)
        return handle

    def _connect(self, handle: ContainerHandle, network: str) -> None:
        try:
            matches = self._engine.list_networks(network)
            for net in matches:
                self._engine.connect_network(net.id, handle.id)
                logger.info(
                    "container_network_connected",
                    container_id=handle.id,
                    network=network,
                    network_id=net.id,
                )
        except EngineError as exc:
            logger.error(
                "container_network_connect_failed",
                container_id=handle.id,
                network=network,
                error=exc.message,
            )
            raise NetworkConnectError(
                f"error connecting container {handle.id} to network {network!r}: {exc.message}",
                handle=handle,
                cause=exc,
            ).with_context(container_id=handle.id, network=network)

        if not matches:
            logger.warning("network_not_found", container_id=handle.id, network=network)

    def _lookup(self, container_ref: str) -> ContainerHandle:
        try:
            state = self._engine.inspect_container(container_ref)
        except EngineError as exc:
            raise ContainerLookupError(
                f"error resolving container {container_ref!r}: {exc.message}", cause=exc,
            ).with_context(container_id=container_ref)
        logger.debug("container_resolved", container_ref=container_ref, container_id=state.id)
        return ContainerHandle(id=state.id, owned=False)


__all__ = ["Provisioner"]
