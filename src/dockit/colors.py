"""Shared styles for the log viewer, pretty printers and listing views.

Built once at import time and passed by reference; never mutated per frame.
"""

from __future__ import annotations

from dataclasses import dataclass

from rich.style import Style

from dockit.models import ContainerState


@dataclass(frozen=True, slots=True)
class Palette:
    """Immutable style table."""

    title: Style = Style(color="#00d7ff", bold=True)
    status_bar: Style = Style(bgcolor="#3a3a3a", color="#ffffff")
    help: Style = Style(color="#626262")
    match: Style = Style(bgcolor="#9e7c00", color="#000000", bold=True)
    current_match: Style = Style(bgcolor="#ffff00", color="#000000", bold=True)
    stderr: Style = Style(color="#e06c75")
    placeholder: Style = Style(color="#626262", italic=True)
    filtered: Style = Style(color="#98c379")
    error: Style = Style(color="#ff5f5f", bold=True)
    paused: Style = Style(color="#e5c07b", bold=True, reverse=True)
    follow: Style = Style(bold=True, reverse=True)
    muted: Style = Style(color="bright_black")
    accent: Style = Style(color="cyan", bold=True)
    name: Style = Style(color="blue", bold=True)
    ok: Style = Style(color="green", bold=True)


PALETTE = Palette()

_STATE_STYLES: dict[ContainerState, tuple[str, Style]] = {
    ContainerState.RUNNING: ("●", Style(color="green", bold=True)),
    ContainerState.EXITED: ("○", Style(color="bright_black")),
    ContainerState.CREATED: ("○", Style(color="bright_black")),
    ContainerState.PAUSED: ("⏸", Style(color="yellow", bold=True)),
}
_DEFAULT_STATE_STYLE = ("✖", Style(color="red", bold=True))


def state_indicator(state: ContainerState) -> tuple[str, Style]:
    """Return the (glyph, style) pair used to show a container state."""
    return _STATE_STYLES.get(state, _DEFAULT_STATE_STYLE)
