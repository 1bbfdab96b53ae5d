"""Help screen showing all keyboard shortcuts."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

from dockit.keys import DASHBOARD_BINDINGS, LOG_VIEW_KEYS

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType

_KEY_WIDTH = 22


def build_help_text() -> str:
    """Render both key tables as Rich markup."""
    lines = ["[bold]Dashboard[/bold]"]
    lines.extend(f"  {b.key:<{_KEY_WIDTH}}{b.description}" for b in DASHBOARD_BINDINGS)
    lines.extend(["", "[bold]Log viewer[/bold]"])
    for key_spec in LOG_VIEW_KEYS:
        keys = ", ".join(key_spec.keys)
        lines.append(f"  {keys:<{_KEY_WIDTH}}{key_spec.description or key_spec.action.value.replace('_', ' ')}")
    lines.extend(
        [
            "",
            "  Searches are case-insensitive. n/N only move between matches",
            "  while a filter is active; an empty search clears the filter.",
            "  While paused, new lines are kept but held back from the view.",
        ]
    )
    return "\n".join(lines)


class HelpScreen(ModalScreen[None]):
    """Modal help screen with keyboard shortcuts."""

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }

    HelpScreen > VerticalScroll {
        width: 76;
        height: 80%;
        max-height: 36;
        background: $surface;
        border: tall $accent;
        padding: 1 2;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        ("escape", "dismiss_help", "Close"),
        ("question_mark", "dismiss_help", "Close"),
        ("q", "dismiss_help", "Close"),
    ]

    def compose(self) -> ComposeResult:
        with VerticalScroll():
            yield Static(build_help_text(), markup=True)

    def action_dismiss_help(self) -> None:
        self.dismiss(None)
