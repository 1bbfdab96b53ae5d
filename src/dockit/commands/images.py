"""images command - pretty image listing."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

import typer
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from dockit.colors import PALETTE
from dockit.errors import DockitError
from dockit.logconfig import setup_logging
from dockit.models import ImageSummary
from dockit.runtime import DockerRuntimeClient
from dockit.utils import format_age, format_size, short_id, truncate

logger = logging.getLogger(__name__)

_TAG_WIDTH = 45


def build_image_table(images: list[ImageSummary], now: datetime | None = None) -> Table:
    """A rounded table with one row per image and its age underneath."""
    now = now or datetime.now(tz=UTC)
    table = Table(
        title="IMAGES",
        title_style=PALETTE.accent,
        title_justify="left",
        box=box.ROUNDED,
        border_style=PALETTE.accent,
        show_header=False,
        show_lines=True,
    )
    table.add_column("image", no_wrap=True)
    table.add_column("size", justify="right", no_wrap=True)
    table.add_column("id", no_wrap=True)
    for image in images:
        tag = image.tags[0] if image.tags else "<none>:<none>"
        name = Text(truncate(tag, _TAG_WIDTH), style=PALETTE.name)
        name.append(f"\n  ⏱ Created: {format_age(image.created, now)}", style=PALETTE.muted)
        size = Text(format_size(image.size), style=PALETTE.ok)
        table.add_row(name, size, Text(short_id(image.id), style=PALETTE.muted))
    return table


def render_images(console: Console, images: list[ImageSummary], now: datetime | None = None) -> None:
    if not images:
        console.print("No images found", style=PALETTE.muted)
        return
    console.print()
    console.print(build_image_table(images, now))
    total_size = sum(i.size for i in images)
    total = Text(f"Total: {len(images)} images")
    if total_size > 0:
        total.append(f" (Total size: {format_size(total_size)})", style=PALETTE.ok)
    console.print(total)


def images(
    ctx: typer.Context,
    debug: Annotated[bool, typer.Option("--debug", help="Enable debug logging")] = False,
) -> None:
    """List images with pretty formatting."""
    setup_logging(debug=debug)
    if ctx.args:
        logger.debug("Ignoring unsupported images arguments: %s", ctx.args)
    try:
        client = DockerRuntimeClient.from_env()
        try:
            found = client.list_images()
        finally:
            client.close()
    except DockitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    render_images(Console(), found)
