"""Post-run container removal.

A container is removed only when this run created it (``handle.owned``) and
the job asked for deletion. A container supplied by identifier is never
touched. Removal is forced; it runs only after supervision ends.
"""

from __future__ import annotations

from dockrun.core.errors import ContainerRemoveError, EngineError
from dockrun.core.logging import get_logger
from dockrun.execution.engine import ContainerEngine
from dockrun.execution.models import ContainerHandle

logger = get_logger(__name__)


class Reaper:
    def __init__(self, engine: ContainerEngine) -> None:
        self._engine = engine

    def reap(self, handle: ContainerHandle, delete_on_finish: bool) -> bool:
        """Remove ``handle``'s container if allowed. Returns True if removed.

        Raises:
            ContainerRemoveError: The forced remove call failed.
        """
        if not (delete_on_finish and handle.owned):
            logger.debug(
                "container_kept",
                container_id=handle.id,
                owned=handle.owned,
                delete_on_finish=delete_on_finish,
            )
            return False

        try:
            self._engine.remove_container(handle.id, force=True)
        except EngineError as exc:
            raise ContainerRemoveError(
                f"error removing container {handle.id}: {exc.message}", cause=exc,
            ).with_context(container_id=handle.id)
        logger.info("container_removed", container_id=handle.id)
        return True


__all__ = ["Reaper"]
