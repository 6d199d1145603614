"""dockrun command-line interface."""

from dockrun.cli.app import app

__all__ = ["app"]
