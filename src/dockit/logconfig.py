"""Logging setup for the CLI and the Textual apps."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler
from textual.logging import TextualHandler


def debug_requested() -> bool:
    """Whether DOCKIT_DEBUG asks for debug logging."""
    return os.environ.get("DOCKIT_DEBUG", "").lower() in {"1", "true", "yes"}


def setup_logging(*, debug: bool = False, tui: bool = False) -> None:
    """Configure the root logger.

    Inside a Textual app records go to the devtools console, since writing to
    the terminal would corrupt the screen. Plain CLI commands log to stderr.
    """
    level = logging.DEBUG if debug or debug_requested() else logging.WARNING
    handler: logging.Handler
    if tui:
        handler = TextualHandler()
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_time=debug,
            show_path=debug,
        )
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)
