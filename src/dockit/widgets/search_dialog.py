"""Modal dialog for entering a log search pattern."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Checkbox, Input, Label

from dockit.models import SearchQuery

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType
    from textual.events import Key


class SearchDialog(ModalScreen[SearchQuery | None]):
    """Search entry. Dismisses with a query (possibly empty) or None when cancelled."""

    DEFAULT_CSS = """
    SearchDialog {
        align: center bottom;
    }

    SearchDialog > Vertical {
        width: 80%;
        height: auto;
        background: $surface;
        border: tall $accent;
        padding: 0 2;
        margin-bottom: 3;
    }

    SearchDialog > Vertical > .title {
        text-style: bold;
    }

    SearchDialog > Vertical > Input {
        width: 100%;
    }

    SearchDialog > Vertical > Horizontal {
        height: auto;
    }

    SearchDialog > Vertical > .hint {
        color: $text-muted;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, last_query: SearchQuery | None = None, *, regex: bool = True) -> None:
        super().__init__()
        self._last_query = last_query
        self._regex = last_query.is_regex if last_query else regex

    def compose(self) -> ComposeResult:
        initial_value = self._last_query.pattern if self._last_query else ""
        with Vertical():
            yield Label("🔍 Search logs (/)", classes="title")
            yield Input(value=initial_value, placeholder="Enter search pattern (regex supported)", id="search-input")
            with Horizontal():
                yield Checkbox("Regex", self._regex, id="regex")
            yield Label("Enter to apply (empty clears the filter), Escape to cancel", classes="hint")

    def on_key(self, event: Key) -> None:
        """Intercept Enter on the checkbox to submit instead of toggling."""
        if event.key == "enter" and isinstance(self.focused, Checkbox):
            event.prevent_default()
            event.stop()
            self._submit_search()

    def on_input_submitted(self, _event: Input.Submitted) -> None:
        self._submit_search()

    def _submit_search(self) -> None:
        pattern = self.query_one("#search-input", Input).value.strip()
        is_regex = self.query_one("#regex", Checkbox).value
        self.dismiss(SearchQuery(pattern=pattern, is_regex=is_regex))

    def action_cancel(self) -> None:
        self.dismiss(None)
