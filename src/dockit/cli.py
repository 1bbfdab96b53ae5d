"""CLI entry point for dockit.

ps, images, logs and ui are handled here; any other command is handed to the
docker binary unchanged.
"""

from __future__ import annotations

import sys

import click
import typer

from dockit.commands.images import images
from dockit.commands.logs import logs
from dockit.commands.passthrough import run_docker
from dockit.commands.ps import ps
from dockit.commands.ui import ui
from dockit.config import load_config
from dockit.logconfig import setup_logging

EXIT_USAGE = 1

# docker ps/images flags dockit does not render are accepted and ignored.
_LENIENT = {"allow_extra_args": True, "ignore_unknown_options": True}

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    help="A prettier wrapper for the docker CLI. Unknown commands are passed to docker unchanged.",
)
app.command(context_settings=_LENIENT)(ps)
app.command(context_settings=_LENIENT)(images)
app.command()(logs)
app.command()(ui)

OWN_COMMANDS = frozenset({"ps", "images", "logs", "ui", "--help", "-h"})


def is_own_command(argv: list[str]) -> bool:
    """Whether dockit handles argv itself rather than passing it to docker."""
    return not argv or argv[0] in OWN_COMMANDS


def run_own_command(args: list[str]) -> int:
    """Run one of dockit's own commands and return its exit status.

    Without arguments this prints usage and succeeds. Usage errors exit with
    1 like every other failure of the wrapper itself.
    """
    try:
        result = app(args or ["--help"], prog_name="dockit", standalone_mode=False)
    except click.UsageError as e:
        e.show()
        return EXIT_USAGE
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.Abort:
        typer.echo("Aborted!", err=True)
        return EXIT_USAGE
    return result if isinstance(result, int) else 0


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    args = sys.argv[1:] if argv is None else argv
    if is_own_command(args):
        sys.exit(run_own_command(args))
    setup_logging()
    sys.exit(run_docker(args, load_config().docker_binary))
