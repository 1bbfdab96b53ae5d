"""Interactive log viewer screen."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, ClassVar

from rich.text import Text
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import Static
from textual.worker import Worker, get_current_worker

from dockit.controller import (
    ChunkReceived,
    Effect,
    Event,
    KeyPressed,
    LogViewerController,
    Mode,
    SearchCancelled,
    SearchSubmitted,
    StreamEnded,
    StreamFailed,
    StreamOpenFailed,
)
from dockit.controller import Resized as ControllerResized
from dockit.errors import DockitError, StreamReadError
from dockit.keys import Action, log_view_bindings
from dockit.models import AppConfig
from dockit.widgets.log_pane import LogPane
from dockit.widgets.search_dialog import SearchDialog
from dockit.widgets.status_bar import StatusBar

if TYPE_CHECKING:
    from datetime import datetime

    from textual.app import ComposeResult
    from textual.binding import BindingType

    from dockit.models import SearchQuery
    from dockit.runtime import LogStream, RuntimeClient

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1


class LogScreen(Screen[int]):
    """Log session for one container. Dismisses with an exit code."""

    DEFAULT_CSS = """
    LogScreen > #log-title {
        height: 1;
        padding: 0 1;
    }

    LogScreen > #log-info {
        height: 1;
        padding: 0 1;
    }

    LogScreen > #log-error {
        width: 100%;
        height: auto;
        border: heavy $error;
        padding: 1 2;
        color: $error;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = log_view_bindings()

    def __init__(
        self,
        client: RuntimeClient,
        container_ref: str,
        *,
        follow: bool = False,
        tail_lines: int | None = None,
        since: datetime | None = None,
        config: AppConfig | None = None,
    ) -> None:
        super().__init__()
        self._client = client
        self._ref = container_ref
        self._follow = follow
        self._config = config or AppConfig()
        self._tail_lines = self._config.tail_lines if tail_lines is None else tail_lines
        self._since = since
        self._stream: LogStream | None = None
        self._released = False
        self._worker: Worker[None] | None = None
        self._last_query: SearchQuery | None = None
        self.controller = LogViewerController(
            container_ref,
            capacity=self._config.log_capacity,
            live=follow,
            regex=self._config.regex_search,
        )

    def compose(self) -> ComposeResult:
        yield Static(id="log-title")
        yield Static(id="log-info")
        yield Vertical(Static(id="log-error-text"), id="log-error")
        yield LogPane(id="log-pane")
        yield StatusBar(id="status-bar")

    def on_mount(self) -> None:
        self.query_one("#log-error").display = False
        self._refresh_view()
        self._worker = self.run_worker(self._stream_worker(), exclusive=True, group="log-stream")

    def on_unmount(self) -> None:
        self._release()

    # --- Stream ---

    def _open(self) -> tuple[str, LogStream]:
        """Resolve the container name and open its log stream (blocking).

        Runs on a worker thread that outlives a cancelled worker, so the
        stream is published to the screen as soon as it exists and closed
        here if the session was released while the open was in flight.
        """
        info = self._client.inspect_container(self._ref)
        name = str(info.get("Name", "")).lstrip("/") or self._ref
        stream = self._client.open_log_stream(
            self._ref, follow=self._follow, tail_lines=self._tail_lines, since=self._since
        )
        self._stream = stream
        if self._released:
            stream.close()
        return name, stream

    async def _stream_worker(self) -> None:
        """Read the stream one chunk per await, feeding the controller between reads."""
        worker = get_current_worker()
        try:
            name, stream = await asyncio.to_thread(self._open)
        except DockitError as e:
            self.feed_event(StreamOpenFailed(e))
            return
        self.controller.title = name
        with stream:
            effect = self.controller.start()
            self._refresh_view()
            while effect is Effect.READ_MORE and not worker.is_cancelled:
                try:
                    chunk = await asyncio.to_thread(stream.read)
                except StreamReadError as e:
                    self.feed_event(StreamFailed(e))
                    return
                if worker.is_cancelled:
                    return
                if chunk is None:
                    self.feed_event(StreamEnded())
                    return
                effect = self.feed_event(ChunkReceived(chunk))

    def _release(self) -> None:
        """Cancel the reader and close the stream; safe to call more than once."""
        self._released = True
        if self._worker is not None and self._worker.is_running:
            self._worker.cancel()
        if self._stream is not None:
            self._stream.close()

    # --- Events ---

    def feed_event(self, event: Event) -> Effect | None:
        """Feed one event to the controller, redraw, and act on its effect."""
        effect = self.controller.handle(event)
        if effect is Effect.CLOSE:
            self._release()
            self.dismiss(EXIT_ERROR if self.controller.fatal_error is not None else EXIT_OK)
            return effect
        self._refresh_view()
        return effect

    def action_log_action(self, name: str) -> None:
        action = Action(name)
        self.feed_event(KeyPressed(action))
        if action is Action.SEARCH and self.controller.mode is Mode.SEARCH_ENTRY:
            self.app.push_screen(
                SearchDialog(self._last_query, regex=self.controller.regex), callback=self._on_search_result
            )

    def _on_search_result(self, result: SearchQuery | None) -> None:
        if result is None:
            self.feed_event(SearchCancelled())
            return
        self.controller.regex = result.is_regex
        if result.pattern:
            self._last_query = result
        self.feed_event(SearchSubmitted(result.pattern))
        if self.controller.search_error is not None:
            self.notify(self.controller.search_error, severity="error")

    def on_log_pane_resized(self, message: LogPane.Resized) -> None:
        self.feed_event(ControllerResized(message.width, message.height))

    # --- Rendering ---

    def _refresh_view(self) -> None:
        if not self.is_mounted:
            return
        frame = self.controller.render()
        self.query_one("#log-title", Static).update(frame.title)
        info = self.query_one("#log-info", Static)
        info.display = frame.info is not None
        if frame.info is not None:
            info.update(frame.info)
        error_panel = self.query_one("#log-error")
        pane = self.query_one("#log-pane", LogPane)
        if frame.error is not None:
            self.query_one("#log-error-text", Static).update(Text(f"Error: {frame.error}"))
            error_panel.display = True
            pane.display = False
        else:
            error_panel.display = False
            pane.display = True
            pane.set_lines(frame.lines)
        self.query_one("#status-bar", StatusBar).update_parts(frame.status, frame.help)
