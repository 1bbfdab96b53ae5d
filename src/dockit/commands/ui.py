"""ui command - the interactive dashboard."""

from __future__ import annotations

from typing import Annotated

import typer

from dockit.config import load_config
from dockit.errors import DockitError
from dockit.logconfig import setup_logging
from dockit.runtime import DockerRuntimeClient


def ui(
    debug: Annotated[bool, typer.Option("--debug", help="Enable debug logging")] = False,
) -> None:
    """Browse and manage containers, images, volumes and networks."""
    setup_logging(debug=debug, tui=True)
    try:
        client = DockerRuntimeClient.from_env()
    except DockitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    from dockit.app import DockitApp

    try:
        DockitApp(client, load_config()).run(mouse=False)
    finally:
        client.close()
