"""Declarative key binding tables for the log viewer and the dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from textual.binding import Binding


class Action(StrEnum):
    """User commands understood by the log viewer controller."""

    SEARCH = "search"
    LINE_UP = "line_up"
    LINE_DOWN = "line_down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    TOP = "top"
    BOTTOM = "bottom"
    TOGGLE_PAUSE = "toggle_pause"
    NEXT_MATCH = "next_match"
    PREVIOUS_MATCH = "previous_match"
    BACK = "back"
    QUIT = "quit"


@dataclass(frozen=True, slots=True)
class KeySpec:
    """One entry of a key table: the keys, what they do, and how to hint them."""

    keys: tuple[str, ...]
    action: Action
    hint: str = ""
    description: str = ""
    minimal: bool = False

    @property
    def shown(self) -> bool:
        return bool(self.hint)


LOG_VIEW_KEYS: tuple[KeySpec, ...] = (
    KeySpec(("q", "ctrl+c"), Action.QUIT, "q", "quit", minimal=True),
    KeySpec(("escape",), Action.BACK, "esc", "back"),
    KeySpec(("slash",), Action.SEARCH, "/", "search", minimal=True),
    KeySpec(("n",), Action.NEXT_MATCH, "n/N", "next/prev"),
    KeySpec(("N",), Action.PREVIOUS_MATCH),
    KeySpec(("up", "k"), Action.LINE_UP, "↑↓", "scroll"),
    KeySpec(("down", "j"), Action.LINE_DOWN),
    KeySpec(("pageup", "ctrl+u"), Action.PAGE_UP, "pgup/pgdn", "page"),
    KeySpec(("pagedown", "ctrl+d"), Action.PAGE_DOWN),
    KeySpec(("space",), Action.TOGGLE_PAUSE, "space", "pause", minimal=True),
    KeySpec(("home", "g"), Action.TOP, "g/G", "top/bottom"),
    KeySpec(("end", "G"), Action.BOTTOM),
)

SEARCH_ENTRY_HINTS: tuple[tuple[str, str], ...] = (("enter", "apply"), ("esc", "cancel"))

HINT_SEPARATOR = " | "


def log_view_bindings(key_specs: tuple[KeySpec, ...] = LOG_VIEW_KEYS) -> list[Binding]:
    """Build Textual bindings that forward every key to ``action_log_action``."""
    return [
        Binding(
            ",".join(key_spec.keys),
            f"log_action('{key_spec.action.value}')",
            key_spec.description or key_spec.action.value,
            show=False,
        )
        for key_spec in key_specs
    ]


def help_hints(*, filtered: bool, minimal: bool = False) -> list[tuple[str, str]]:
    """(key, description) pairs for the help bar."""
    hints: list[tuple[str, str]] = []
    for key_spec in LOG_VIEW_KEYS:
        if not key_spec.shown or (minimal and not key_spec.minimal):
            continue
        if key_spec.action is Action.NEXT_MATCH and not filtered:
            continue
        description = "clear filter" if key_spec.action is Action.BACK and filtered else key_spec.description
        hints.append((key_spec.hint, description))
    return hints


def format_hints(hints: list[tuple[str, str]] | tuple[tuple[str, str], ...]) -> str:
    return HINT_SEPARATOR.join(f"{key}: {desc}" for key, desc in hints)


DASHBOARD_BINDINGS: list[Binding] = [
    Binding("q", "app.quit", "Quit"),
    Binding("question_mark", "show_help", "Help"),
    Binding("tab", "next_tab", "Next view", show=False),
    Binding("shift+tab", "previous_tab", "Previous view", show=False),
    Binding("ctrl+r", "refresh", "Refresh"),
    Binding("s", "start", "Start"),
    Binding("x", "stop", "Stop"),
    Binding("r", "restart", "Restart"),
    Binding("d", "remove", "Remove"),
    Binding("L,l", "logs", "Logs"),
    Binding("i,enter", "inspect", "Inspect", show=False),
    Binding("t", "cycle_theme", "Theme", show=False),
]
