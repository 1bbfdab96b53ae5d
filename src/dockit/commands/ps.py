"""ps command - pretty container listing."""

from __future__ import annotations

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.text import Text

from dockit.colors import PALETTE, state_indicator
from dockit.errors import DockitError
from dockit.logconfig import setup_logging
from dockit.models import ContainerState, ContainerSummary
from dockit.runtime import DockerRuntimeClient
from dockit.utils import format_ports, short_id, truncate

logger = logging.getLogger(__name__)

_RULE_WIDTH = 90
_NAME_WIDTH = 30
_IMAGE_WIDTH = 30
_STATE_WIDTH = 10


def render_containers(console: Console, containers: list[ContainerSummary], *, show_all: bool) -> None:
    """Print one block per container followed by a total line."""
    if not containers:
        console.print("No containers found", style=PALETTE.muted)
        if not show_all:
            console.print("(use 'dockit ps -a' to see all containers)", style=PALETTE.muted)
        return

    console.print()
    console.print("CONTAINERS", style=PALETTE.accent)
    console.print("─" * _RULE_WIDTH, style=PALETTE.accent)

    for container in containers:
        glyph, style = state_indicator(container.state)
        line = Text()
        line.append(glyph, style=style)
        line.append(" ")
        line.append(f"{short_id(container.id):<12}", style=PALETTE.muted)
        line.append(" │ ", style=PALETTE.muted)
        line.append(f"{truncate(container.name, _NAME_WIDTH):<{_NAME_WIDTH}}", style=PALETTE.name)
        line.append(" │ ", style=PALETTE.muted)
        line.append(f"{container.state.value:<{_STATE_WIDTH}}", style=style)
        line.append("│ ", style=PALETTE.muted)
        line.append(truncate(container.image, _IMAGE_WIDTH))
        console.print(line)

        if ports := format_ports(container.ports):
            console.print(f"  ↪ Ports: {ports}", style=PALETTE.muted, highlight=False)
        console.print(f"  ⏱ {container.status}", style=PALETTE.muted, highlight=False)
        console.print()

    running = sum(1 for c in containers if c.state is ContainerState.RUNNING)
    total = Text(f"Total: {len(containers)} containers")
    if running:
        total.append(f" ({running} running)", style=PALETTE.ok)
    console.print(total)


def ps(
    ctx: typer.Context,
    all_: Annotated[bool, typer.Option("--all", "-a", help="Show all containers (default shows just running)")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Enable debug logging")] = False,
) -> None:
    """List containers with pretty formatting."""
    setup_logging(debug=debug)
    if ctx.args:
        logger.debug("Ignoring unsupported ps arguments: %s", ctx.args)
    try:
        client = DockerRuntimeClient.from_env()
        try:
            containers = client.list_containers(all=all_)
        finally:
            client.close()
    except DockitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    render_containers(Console(), containers, show_all=all_)
