"""Registry credential table.

Loaded once at process start from the Docker client configuration and then
shared, read-only, by every job run. Lookup is by registry host; a missing
entry is not an error and simply means the pull goes out unauthenticated.

File discovery and decoding are delegated to ``docker.auth.load_config``,
which understands both shapes:

.. code-block:: text

    ~/.docker/config.json                  ~/.dockercfg (legacy)
    {                                      {
      "auths": {                             "https://quay.io": {
        "https://quay.io/v1/": {               "auth": "dXNlcjpwYXNz",
          "auth": "dXNlcjpwYXNz"               "email": "ops@example.com"
        },                                   }
        "acr.example.io": {                }
          "identitytoken": "..."
        }
      }
    }

Keys are normalized to bare hosts (scheme and path dropped), so
``https://quay.io/v1/`` is found under ``quay.io``. Credential helpers
(``credsStore``/``credHelpers``) are not consulted.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from docker import auth as docker_auth
from docker.errors import DockerException

from dockrun.core.errors import JobConfigError
from dockrun.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegistryCredential:
    """Credentials for one registry host."""

    username: str | None = None
    password: str | None = None
    email: str | None = None
    identity_token: str | None = None
    server_address: str | None = None

    @classmethod
    def from_auth_entry(cls, host: str, entry: Mapping[str, Any]) -> RegistryCredential:
        """Build from one decoded ``docker.auth`` entry."""
        return cls(
            username=entry.get("username"),
            password=entry.get("password"),
            email=entry.get("email"),
            identity_token=entry.get("IdentityToken"),
            server_address=entry.get("serveraddress") or host,
        )

    def to_auth_config(self) -> dict[str, str]:
        """Engine auth payload; unset fields are omitted."""
        return {k: v for k, v in {
            "username": self.username,
            "password": self.password,
            "email": self.email,
            "identitytoken": self.identity_token,
            "serveraddress": self.server_address,
        }.items() if v}

    def __repr__(self) -> str:
        return f"RegistryCredential(username={self.username!r}, server_address={self.server_address!r})"


def normalize_registry_host(key: str) -> str:
    """``https://quay.io:443/v1/`` -> ``quay.io:443``."""
    host = key.strip()
    if "://" in host:
        host = host.split("://", 1)[1]
    return host.split("/", 1)[0].lower()


class CredentialTable(Mapping[str, RegistryCredential]):
    """Immutable host -> credential mapping."""

    def __init__(self, entries: Mapping[str, RegistryCredential] | None = None) -> None:
        normalized = {
            normalize_registry_host(host): cred for host, cred in (entries or {}).items()
        }
        self._entries: Mapping[str, RegistryCredential] = MappingProxyType(normalized)

    def __getitem__(self, host: str) -> RegistryCredential:
        return self._entries[normalize_registry_host(host)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, registry: str) -> RegistryCredential | None:
        """Credential for ``registry`` or None. An empty registry never matches."""
        if not registry:
            return None
        return self._entries.get(normalize_registry_host(registry))

    @classmethod
    def empty(cls) -> CredentialTable:
        return cls()

    @classmethod
    def from_docker_config(cls, path: str | Path | None = None) -> CredentialTable:
        """Load the table from a Docker client config file.

        Args:
            path: Explicit file; a missing one yields an empty table. When
                None, the Docker SDK searches ``$DOCKER_CONFIG/config.json``,
                ``~/.docker/config.json`` and the legacy ``~/.dockercfg``.

        Raises:
            JobConfigError: An ``auths`` entry is malformed or its ``auth``
                field is not base64 ``user:password``.
        """
        config_path = None
        if path is not None:
            resolved = Path(path).expanduser()
            if not resolved.is_file():
                logger.debug("credentials_not_found", path=str(resolved))
                return cls.empty()
            config_path = str(resolved)

        try:
            config = docker_auth.load_config(config_path)
        except (DockerException, ValueError) as exc:
            raise JobConfigError(
                f"invalid docker config {config_path or '(default)'}: {exc}", cause=exc,
            ).with_context(path=config_path)

        table = cls({
            host: RegistryCredential.from_auth_entry(host, entry)
            for host, entry in config.auths.items()
            if entry
        })
        logger.debug("credentials_loaded", path=config_path, registries=len(table))
        return table


__all__ = [
    "CredentialTable",
    "RegistryCredential",
    "normalize_registry_host",
]
