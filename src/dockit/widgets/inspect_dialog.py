"""Scrollable view of a container's inspect data and live stats."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, ClassVar

from rich.syntax import Syntax
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Label, Static

from dockit.utils import format_size

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType

    from dockit.models import ContainerStats


def stats_line(stats: ContainerStats | None) -> str:
    if stats is None:
        return "Stats: unavailable"
    return (
        f"CPU: {stats.cpu_percent:.1f}% | "
        f"Memory: {format_size(stats.memory_usage)} / {format_size(stats.memory_limit)} "
        f"({stats.memory_percent:.1f}%)"
    )


class InspectDialog(ModalScreen[None]):
    """Pretty-printed inspect JSON for one container."""

    DEFAULT_CSS = """
    InspectDialog {
        align: center middle;
    }

    InspectDialog > VerticalScroll {
        width: 90%;
        height: 90%;
        background: $surface;
        border: tall $accent;
        padding: 0 1;
    }

    InspectDialog .title {
        text-style: bold;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("i", "close", "Close"),
    ]

    def __init__(self, name: str, data: dict[str, Any], stats: ContainerStats | None = None) -> None:
        super().__init__()
        self._name = name
        self._data = data
        self._stats = stats

    def compose(self) -> ComposeResult:
        with VerticalScroll():
            yield Label(f"🔎 {self._name}", classes="title")
            yield Label(stats_line(self._stats), id="inspect-stats")
            yield Static(Syntax(json.dumps(self._data, indent=2, default=str), "json", word_wrap=True))

    def action_close(self) -> None:
        self.dismiss(None)
