"""Parsers for the volume, environment and command strings of a job spec.

Grammar::

    volumes    := mount ("," mount)*          mount := host ":" container
    env        := entry ("," entry)*          entry := KEY "=" VALUE
    env-files  := path ("," path)*            one entry per line
    command    := POSIX shell words

Every parser fails the whole input on the first bad entry and names that
entry in the ``SpecParseError``. Order is preserved everywhere and nothing is
deduplicated; resolving duplicate env keys is left to the engine.
"""

from __future__ import annotations

import shlex
from collections.abc import Iterable
from pathlib import Path

from dockrun.core.errors import SpecParseError
from dockrun.execution.models import JobSpec, VolumeMount


def _split_list(spec: str | None) -> list[str]:
    if spec is None or not spec.strip():
        return []
    return [part.strip() for part in spec.split(",")]


def parse_volumes(spec: str | None) -> list[VolumeMount]:
    """Parse ``from:to[,from:to...]`` into read-write mounts.

    >>> parse_volumes("/data:/data,/a:/b")
    [VolumeMount(host_path='/data', container_path='/data'), VolumeMount(host_path='/a', container_path='/b')]
    """
    mounts = []
    for entry in _split_list(spec):
        parts = entry.split(":")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise SpecParseError(
                f"invalid volume entry {entry!r}: expected host_path:container_path"
            ).with_context(entry=entry)
        mounts.append(VolumeMount(host_path=parts[0], container_path=parts[1]))
    return mounts


def parse_env_entries(lines: Iterable[str]) -> list[str]:
    """Validate ``KEY=VALUE`` entries and return them unchanged, in order.

    The value may itself contain ``=``; only the first one separates the key.
    """
    entries = []
    for line in lines:
        key, sep, _ = line.partition("=")
        if not sep or not key.strip():
            raise SpecParseError(
                f"invalid environment entry {line!r}: expected KEY=VALUE"
            ).with_context(entry=line)
        entries.append(line)
    return entries


def parse_env_spec(spec: str | None) -> list[str]:
    """Parse an inline ``KEY=VALUE[,KEY=VALUE...]`` string."""
    return parse_env_entries(_split_list(spec))


def parse_env_from_files(paths: str | None) -> list[str]:
    """Read env entries from comma-separated files, file order then line order.

    Blank lines and ``#`` comments are skipped. Other lines are kept verbatim
    apart from the line terminator. A missing or unreadable file fails the
    whole call.
    """
    entries: list[str] = []
    for raw_path in _split_list(paths):
        if not raw_path:
            continue
        path = Path(raw_path).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SpecParseError(
                f"cannot read env file {raw_path!r}: {exc}", cause=exc,
            ).with_context(path=raw_path)

        lines = [
            line
            for line in text.splitlines()
            if line.strip() and not line.lstrip().startswith("#")
        ]
        try:
            entries.extend(parse_env_entries(lines))
        except SpecParseError as exc:
            exc.with_context(path=raw_path)
            raise
    return entries


def resolve_env(spec: JobSpec) -> list[str]:
    """Inline entries first, then file entries. No deduplication."""
    return parse_env_spec(spec.env_spec) + parse_env_from_files(spec.env_files_spec)


def parse_command(command: str | None) -> list[str]:
    """Shell-tokenize a command string. Empty means the image default."""
    if command is None or not command.strip():
        return []
    try:
        return shlex.split(command)
    except ValueError as exc:
        raise SpecParseError(
            f"invalid command {command!r}: {exc}", cause=exc,
        ).with_context(entry=command)


__all__ = [
    "parse_command",
    "parse_env_entries",
    "parse_env_from_files",
    "parse_env_spec",
    "parse_volumes",
    "resolve_env",
]
