"""Viewport widget that draws the controller's visible lines."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.text import Text
from textual.message import Message
from textual.widget import Widget

if TYPE_CHECKING:
    from textual import events


class LogPane(Widget):
    """Fixed viewport over the active log view.

    Scrolling is owned by the controller; this widget only paints the lines it
    is given and reports its size so the controller can page correctly.
    """

    DEFAULT_CSS = """
    LogPane {
        height: 1fr;
        background: $surface;
        padding: 0 1;
    }
    """

    class Resized(Message):
        """Posted when the drawable area changes."""

        def __init__(self, width: int, height: int) -> None:
            super().__init__()
            self.width = width
            self.height = height

    def __init__(self, id: str | None = None) -> None:  # noqa: A002
        super().__init__(id=id)
        self._lines: list[Text] = []

    def set_lines(self, lines: list[Text]) -> None:
        self._lines = lines
        self.refresh()

    def on_resize(self, event: events.Resize) -> None:
        region = self.content_region
        self.post_message(self.Resized(region.width, region.height))

    def render(self) -> Text:
        return Text("\n").join(self._lines)
