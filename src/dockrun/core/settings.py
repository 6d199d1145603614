"""Process-wide settings for dockrun.

Settings are read once, at startup, from ``DOCKRUN_*`` environment variables
and an optional ``.env`` file. They cover the engine connection, the
credential file location, logging, and the two supervision constants.

The supervision interval and ceiling are process settings, not per-job
options: a job spec cannot extend its own deadline. Tests substitute a short
pair through the constructor.

Examples:
    >>> from dockrun.core.settings import DockrunSettings
    >>> DockrunSettings(poll_interval_seconds=0.01, max_run_seconds=1).max_run_seconds
    1.0

Tags:
    settings, configuration, pydantic, environment, dockrun
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_POLL_INTERVAL_SECONDS = 0.1
DEFAULT_MAX_RUN_SECONDS = 24 * 60 * 60.0


class DockrunSettings(BaseSettings):
    """Settings shared by every job run in the process.

    Fields
    ──────
    docker_host            : Engine URL; None = derive from DOCKER_HOST etc.
    docker_timeout         : Engine API timeout in seconds
    docker_config          : Docker client config file holding registry auths
    poll_interval_seconds  : Supervisor sleep between inspections
    max_run_seconds        : Supervisor ceiling
    log_level              : Structlog log level
    log_json               : JSON logs; None = auto-detect from the terminal
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCKRUN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Engine ───────────────────────────────────────────────────
    docker_host: str | None = None
    docker_timeout: int = 60
    docker_config: Path | None = Field(
        default=None,
        description="Docker client config file; None = $DOCKER_CONFIG/config.json or ~/.docker/config.json",
    )

    # ── Supervision ──────────────────────────────────────────────
    poll_interval_seconds: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    max_run_seconds: float = Field(default=DEFAULT_MAX_RUN_SECONDS, gt=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None


@lru_cache(maxsize=1)
def get_settings() -> DockrunSettings:
    """Return the cached process settings."""
    return DockrunSettings()


def reset_settings() -> None:
    """Drop the cached settings so the next ``get_settings()`` re-reads the env."""
    get_settings.cache_clear()


__all__ = [
    "DEFAULT_MAX_RUN_SECONDS",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DockrunSettings",
    "get_settings",
    "reset_settings",
]
