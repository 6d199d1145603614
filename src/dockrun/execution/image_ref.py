"""Image reference parsing.

Splits an image string into the three values the pull call needs and
attaches the registry credential, if the table has one.

.. code-block:: text

    input                           registry        repository               tag
    ─────────────────────────────   ─────────────   ──────────────────────   ──────
    foo                             ""              foo                      latest
    foo:qux                         ""              foo                      qux
    library/foo                     ""              library/foo              latest
    quay.io/srcd/rest:qux           quay.io         quay.io/srcd/rest        qux
    quay.io:5000/srcd/rest          quay.io:5000    quay.io:5000/srcd/rest   latest
    localhost:5000/app@sha256:ab..  localhost:5000  localhost:5000/app       sha256:ab..

The repository keeps its registry prefix; that is the name the engine
expects. A ``:tag`` is only a tag when it comes after the last ``/``, so the
port in ``quay.io:5000/srcd`` is never mistaken for one.
"""

from __future__ import annotations

from dataclasses import dataclass

from dockrun.core.errors import SpecParseError
from dockrun.execution.credentials import CredentialTable, RegistryCredential

DEFAULT_TAG = "latest"


@dataclass(frozen=True)
class ImageReference:
    """Parsed image reference. ``repository`` and ``tag`` are never empty."""

    registry: str
    repository: str
    tag: str
    credentials: RegistryCredential | None = None

    @property
    def is_digest(self) -> bool:
        return ":" in self.tag

    def __str__(self) -> str:
        separator = "@" if self.is_digest else ":"
        return f"{self.repository}{separator}{self.tag}"


def split_repository_tag(ref: str) -> tuple[str, str]:
    """Split ``ref`` into repository and tag (empty when absent)."""
    if "@" in ref:
        repository, digest = ref.split("@", 1)
        return repository, digest

    colon = ref.rfind(":")
    if colon > ref.rfind("/"):
        return ref[:colon], ref[colon + 1:]
    return ref, ""


def registry_host(repository: str) -> str:
    """Registry host of ``repository``, or ``""`` for a bare repository."""
    if "/" not in repository:
        return ""
    first = repository.split("/", 1)[0]
    if "." in first or ":" in first:
        return first
    return ""


def parse_image_reference(
    ref: str,
    credentials: CredentialTable | None = None,
) -> ImageReference:
    """Parse ``ref`` and look up registry credentials.

    Args:
        ref: ``repo``, ``repo:tag``, ``registry[:port]/repo`` or
            ``registry[:port]/repo:tag``.
        credentials: Table consulted when a registry is identified. A miss
            leaves ``credentials`` as None.

    Raises:
        SpecParseError: ``ref`` has no repository part.
    """
    value = (ref or "").strip()
    repository, tag = split_repository_tag(value)
    if not repository:
        raise SpecParseError(
            f"invalid image reference {ref!r}: empty repository"
        ).with_context(image=ref)

    registry = registry_host(repository)
    found = credentials.lookup(registry) if credentials is not None and registry else None
    return ImageReference(
        registry=registry,
        repository=repository,
        tag=tag or DEFAULT_TAG,
        credentials=found,
    )


__all__ = [
    "DEFAULT_TAG",
    "ImageReference",
    "parse_image_reference",
    "registry_host",
    "split_repository_tag",
]
