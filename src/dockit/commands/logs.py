"""logs command - interactive log viewer for one container."""

from __future__ import annotations

from typing import Annotated

import typer

from dockit.config import load_config
from dockit.errors import DockitError
from dockit.logconfig import setup_logging
from dockit.runtime import DockerRuntimeClient
from dockit.utils import parse_time


def logs(
    container: Annotated[str, typer.Argument(help="Container name or ID")],
    follow: Annotated[bool, typer.Option("--follow", "-f", help="Follow log output (stream new logs)")] = False,
    tail: Annotated[
        int | None, typer.Option("--tail", "-n", min=0, help="Number of lines from the end (0 for all)")
    ] = None,
    since: Annotated[
        str | None, typer.Option("--since", help="Show logs since a time (e.g. 5m, 1h, '2 days ago', ISO 8601)")
    ] = None,
    debug: Annotated[bool, typer.Option("--debug", help="Enable debug logging")] = False,
) -> None:
    """View container logs in an interactive TUI.

    Keys: / search, n/N next/previous match, space pause, ↑↓ j/k scroll,
    PgUp/PgDn page, g/G top/bottom, esc clear filter or back, q quit.
    """
    setup_logging(debug=debug, tui=True)
    config = load_config()

    since_dt = None
    if since is not None:
        try:
            since_dt = parse_time(since)
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from e

    try:
        client = DockerRuntimeClient.from_env()
    except DockitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    from dockit.app import LogsApp

    try:
        log_app = LogsApp(client, container, follow=follow, tail_lines=tail, since=since_dt, config=config)
        code = log_app.run(mouse=False)
    finally:
        client.close()
    if code:
        raise typer.Exit(code)
