"""Forward unknown commands to the docker binary."""

from __future__ import annotations

import logging
import subprocess
import sys

logger = logging.getLogger(__name__)


def run_docker(args: list[str], binary: str = "docker") -> int:
    """Run ``binary`` with ``args`` verbatim, inheriting stdio; return its exit code.

    A child killed by a signal maps to 128 + signal number, as shells report it.
    Returns 1 when the binary cannot be started at all.
    """
    logger.debug("Passing through: %s %s", binary, args)
    try:
        completed = subprocess.run([binary, *args], check=False)  # noqa: S603
    except OSError as e:
        print(f"Error running docker command: {e}", file=sys.stderr)  # noqa: T201
        return 1
    if completed.returncode < 0:
        return 128 - completed.returncode
    return completed.returncode
