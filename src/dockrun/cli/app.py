"""
Root Typer application for the dockrun CLI.

    dockrun run --image alpine:3.19 --env K=v -- echo hello
    dockrun run --container nightly-backup
    dockrun image quay.io:5000/srcd/rest:qux --json

``run`` exits 0 when the container succeeds, with the container's own exit
code when it fails with one, and 1 for every other error.
"""

from __future__ import annotations

import json
import shlex
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typer import Typer

from dockrun.core.errors import DockrunError, FailedWithCodeError
from dockrun.core.logging import configure_logging
from dockrun.core.settings import get_settings
from dockrun.execution.credentials import CredentialTable
from dockrun.execution.docker_engine import DockerEngine
from dockrun.execution.image_ref import parse_image_reference
from dockrun.execution.jobs import RunJob, execute
from dockrun.execution.models import JobSpec

console = Console()
err_console = Console(stderr=True)

app = Typer(
    name="dockrun",
    help="dockrun: run a job in a single container and report its outcome.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        try:
            v = pkg_version("dockrun")
        except PackageNotFoundError:
            from dockrun import __version__ as v
        typer.echo(f"dockrun {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """dockrun CLI: provision, supervise and reclaim job containers."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)


# ── Commands ─────────────────────────────────────────────────────────────


def _process_exit_code(code: int) -> int:
    """Container exit code as a process exit code; out of range maps to 1."""
    return code if 1 <= code <= 255 else 1


def _fail(exc: DockrunError, code: int = 1) -> NoReturn:
    err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {escape(exc.message)}")
    raise typer.Exit(code=code)


@app.command("run")
def run_command(
    command: list[str] | None = typer.Argument(None, help="Command to run; defaults to the image's."),
    image: str | None = typer.Option(None, "--image", "-i", help="Image to pull and run in a new container."),
    container: str | None = typer.Option(None, "--container", "-c", help="Existing container to start instead."),
    user: str = typer.Option("root", "--user", "-u", help="User inside the container."),
    tty: bool = typer.Option(False, "--tty", "-t", help="Allocate a TTY."),
    delete: bool = typer.Option(True, "--delete/--keep", help="Remove the created container after success."),
    network: str | None = typer.Option(None, "--network", "-n", help="Network to attach a new container to."),
    volumes: str | None = typer.Option(None, "--volumes", "-v", help="from:to[,from:to...]"),
    env: str | None = typer.Option(None, "--env", "-e", help="KEY=VALUE[,KEY=VALUE...]"),
    env_files: str | None = typer.Option(None, "--env-files", help="Comma-separated env files."),
    name: str = typer.Option("", "--name", help="Job name used in logs."),
    json_out: bool = typer.Option(False, "--json", help="Output the execution record as JSON."),
) -> None:
    """Run one job to completion."""
    settings = get_settings()
    try:
        spec = JobSpec(
            command=shlex.join(command or []),
            image=image,
            container=container,
            user=user,
            tty=tty,
            delete=delete,
            network=network,
            volumes=volumes,
            env=env,
            **{"env-files": env_files},
        )
        credentials = CredentialTable.from_docker_config(settings.docker_config)
        engine = DockerEngine.from_settings(settings)
        job = RunJob(spec, engine, name=name, credentials=credentials, settings=settings)
        execution = execute(job)
    except FailedWithCodeError as exc:
        _fail(exc, code=_process_exit_code(exc.exit_code))
    except DockrunError as exc:
        _fail(exc)

    if json_out:
        console.print_json(json.dumps(execution.to_dict(), default=str))
        return
    console.print(
        f"[bold green]✓ {execution.outcome}[/] container={execution.container_id} "
        f"execution={execution.id}"
    )


@app.command("image")
def image_command(
    ref: str = typer.Argument(..., help="Image reference to parse."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Show how an image reference is split and whether credentials match."""
    settings = get_settings()
    try:
        credentials = CredentialTable.from_docker_config(settings.docker_config)
        parsed = parse_image_reference(ref, credentials)
    except DockrunError as exc:
        _fail(exc)

    payload = {
        "registry": parsed.registry,
        "repository": parsed.repository,
        "tag": parsed.tag,
        "credentials": parsed.credentials is not None,
    }
    if json_out:
        console.print_json(json.dumps(payload))
        return

    table = Table(title=escape(ref))
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in payload.items():
        table.add_row(key, escape(str(value)) if value != "" else "[dim]-[/dim]")
    console.print(table)
