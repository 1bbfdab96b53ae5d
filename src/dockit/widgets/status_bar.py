"""Bottom status bar: position and flags on the left, key hints on the right."""

from __future__ import annotations

from rich.text import Text
from textual.widget import Widget


class StatusBar(Widget):
    """Single-line bar joining a left and a right Text with padding."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        background: $primary;
        color: $text;
        padding: 0 1;
    }
    """

    def __init__(self, id: str | None = None) -> None:  # noqa: A002
        super().__init__(id=id)
        self._left = Text()
        self._right = Text()

    def update_parts(self, left: Text, right: Text | None = None) -> None:
        """Replace both halves of the bar."""
        self._left = left
        self._right = right or Text()
        self.refresh()

    @property
    def plain(self) -> str:
        return f"{self._left.plain} {self._right.plain}".strip()

    def render(self) -> Text:
        text = self._left.copy()
        if self._right.plain:
            used = text.cell_len
            padding = max(1, self.size.width - used - self._right.cell_len)
            text.append(" " * padding)
            text.append_text(self._right)
        return text
