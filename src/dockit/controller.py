"""Log viewer state machine.

The controller owns one session's buffer, demultiplexer and viewport. It
consumes a closed set of events and answers each with an optional effect for
the host loop: READ_MORE asks for the next stream read, CLOSE asks the host to
cancel the reader and release the stream. It never performs I/O itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from rich.text import Text

from dockit.buffer import DEFAULT_CAPACITY, LogBuffer, ViewLine
from dockit.colors import PALETTE, Palette
from dockit.demux import FrameDemultiplexer
from dockit.errors import PatternCompileError
from dockit.keys import SEARCH_ENTRY_HINTS, Action, format_hints, help_hints
from dockit.models import LogRecord, SearchQuery, StreamTag

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 80
DEFAULT_HEIGHT = 20


class Mode(StrEnum):
    """Input mode of the log viewer."""

    NORMAL = "normal"
    SEARCH_ENTRY = "search_entry"
    FILTERED = "filtered"


class Effect(StrEnum):
    """Follow-up request returned to the host loop."""

    READ_MORE = "read_more"
    CLOSE = "close"


@dataclass(frozen=True, slots=True)
class KeyPressed:
    action: Action


@dataclass(frozen=True, slots=True)
class SearchSubmitted:
    text: str


@dataclass(frozen=True, slots=True)
class SearchCancelled:
    pass


@dataclass(frozen=True, slots=True)
class ChunkReceived:
    data: bytes


@dataclass(frozen=True, slots=True)
class StreamEnded:
    pass


@dataclass(frozen=True, slots=True)
class StreamFailed:
    error: Exception


@dataclass(frozen=True, slots=True)
class StreamOpenFailed:
    error: Exception


@dataclass(frozen=True, slots=True)
class Resized:
    width: int
    height: int


Event = (
    KeyPressed
    | SearchSubmitted
    | SearchCancelled
    | ChunkReceived
    | StreamEnded
    | StreamFailed
    | StreamOpenFailed
    | Resized
)


@dataclass(slots=True)
class RenderedFrame:
    """Everything the host needs to draw one frame."""

    title: Text
    lines: list[Text]
    status: Text
    help: Text
    info: Text | None = None
    error: str | None = None
    search_active: bool = False


@dataclass(slots=True)
class Viewport:
    """Scroll position and display flags."""

    scroll_offset: int = 0
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    paused: bool = False
    follow_mode: bool = True


class LogViewerController:
    """Interactive state machine for one log session."""

    def __init__(
        self,
        title: str = "",
        *,
        capacity: int = DEFAULT_CAPACITY,
        live: bool = False,
        regex: bool = True,
        palette: Palette = PALETTE,
    ) -> None:
        self.title = title
        self.live = live
        self.regex = regex
        self.buffer = LogBuffer(capacity)
        self._frozen: LogBuffer | None = None
        self.demux = FrameDemultiplexer()
        self.viewport = Viewport()
        self.mode = Mode.NORMAL
        self._mode_before_search = Mode.NORMAL
        self._palette = palette
        self.done = False
        self.closed = False
        self.read_count = 0
        self.fatal_error: str | None = None
        self.read_error: str | None = None
        self.search_error: str | None = None

    # --- Derived state ---

    @property
    def paused(self) -> bool:
        return self.viewport.paused

    @property
    def follow_mode(self) -> bool:
        return self.viewport.follow_mode

    @property
    def scroll_offset(self) -> int:
        return self.viewport.scroll_offset

    @property
    def view_buffer(self) -> LogBuffer:
        """The buffer the viewport shows: the live one, or its copy taken at pause."""
        return self._frozen if self._frozen is not None else self.buffer

    @property
    def active_count(self) -> int:
        return self.view_buffer.active_count()

    @property
    def max_scroll(self) -> int:
        return max(0, self.active_count - self.viewport.height)

    @property
    def new_while_paused(self) -> int:
        if self._frozen is None:
            return 0
        return self.buffer.next_seq - self._frozen.next_seq

    @property
    def wants_read(self) -> bool:
        return not (self.done or self.closed)

    def visible_lines(self) -> list[ViewLine]:
        start = self.viewport.scroll_offset
        return self.view_buffer.active_view(start, start + self.viewport.height)

    # --- Event dispatch ---

    def start(self) -> Effect | None:
        """Effect to issue once the stream is open."""
        return Effect.READ_MORE if self.wants_read else None

    def handle(self, event: Event) -> Effect | None:  # noqa: PLR0911
        """Apply one event and return the follow-up effect, if any."""
        match event:
            case KeyPressed(action=action):
                return self._on_key(action)
            case SearchSubmitted(text=text):
                self._on_search_submitted(text)
                return None
            case SearchCancelled():
                if self.mode is Mode.SEARCH_ENTRY:
                    self.mode = self._mode_before_search
                return None
            case ChunkReceived(data=data):
                if not self.wants_read:
                    return None
                self.read_count += 1
                self.ingest(self.demux.feed(data))
                return Effect.READ_MORE if self.wants_read else None
            case StreamEnded():
                self._finish_stream()
                return None
            case StreamFailed(error=error):
                logger.warning("Log stream read failed after %d lines: %s", self.buffer.next_seq, error)
                self.read_error = str(error) or type(error).__name__
                self._finish_stream()
                return None
            case StreamOpenFailed(error=error):
                self.fatal_error = str(error) or type(error).__name__
                self.done = True
                return None
            case Resized(width=width, height=height):
                self.viewport.width = max(1, width)
                self.viewport.height = max(1, height)
                self._settle_scroll()
                return None
        return None

    def ingest(self, records: list[LogRecord]) -> None:
        """Append decoded records, keeping the viewport anchored or pinned."""
        if not records:
            return
        if self._frozen is not None:
            self.buffer.extend(records)
            return
        anchor = self.buffer.seq_at_view_position(self.viewport.scroll_offset)
        self.buffer.extend(records)
        if self._pinned:
            self.viewport.scroll_offset = self.max_scroll
            return
        self._anchor_to(anchor)

    def _anchor_to(self, seq: int | None) -> None:
        """Scroll the live view so the line with this sequence number is on top."""
        if seq is not None:
            self.viewport.scroll_offset = self.buffer.view_position_of_seq(max(seq, self.buffer.first_seq))
        self._clamp()

    @property
    def _pinned(self) -> bool:
        return self.viewport.follow_mode and not self.viewport.paused

    def _finish_stream(self) -> None:
        if self.done:
            return
        if self.demux.pending:
            logger.debug("Flushing %d undecoded bytes at end of stream", self.demux.pending)
        self.ingest(self.demux.finish())
        self.done = True

    # --- Keys ---

    def _on_key(self, action: Action) -> Effect | None:  # noqa: C901, PLR0911, PLR0912
        if self.fatal_error is not None:
            if action in {Action.QUIT, Action.BACK}:
                return self._close()
            return None
        if action is Action.QUIT:
            return self._close()
        if self.mode is Mode.SEARCH_ENTRY:
            return None

        match action:
            case Action.BACK:
                if self.mode is Mode.FILTERED:
                    self._clear_filter()
                    return None
                return self._close()
            case Action.SEARCH:
                self._mode_before_search = self.mode
                self.mode = Mode.SEARCH_ENTRY
                self.search_error = None
            case Action.TOGGLE_PAUSE:
                self._toggle_pause()
            case Action.NEXT_MATCH | Action.PREVIOUS_MATCH:
                self._jump(forward=action is Action.NEXT_MATCH)
            case Action.LINE_UP:
                self._scroll_to(self.viewport.scroll_offset - 1)
            case Action.LINE_DOWN:
                self._scroll_to(self.viewport.scroll_offset + 1)
            case Action.PAGE_UP:
                self._scroll_to(self.viewport.scroll_offset - self.viewport.height)
            case Action.PAGE_DOWN:
                self._scroll_to(self.viewport.scroll_offset + self.viewport.height)
            case Action.TOP:
                self._scroll_to(0)
            case Action.BOTTOM:
                self._scroll_to(self.max_scroll)
        return None

    def _close(self) -> Effect:
        self.closed = True
        return Effect.CLOSE

    def _scroll_to(self, offset: int) -> None:
        self.viewport.scroll_offset = offset
        self._clamp()
        self.viewport.follow_mode = self.viewport.scroll_offset >= self.max_scroll

    def _clamp(self) -> None:
        self.viewport.scroll_offset = max(0, min(self.viewport.scroll_offset, self.max_scroll))

    def _settle_scroll(self) -> None:
        if self._pinned:
            self.viewport.scroll_offset = self.max_scroll
        else:
            self._clamp()

    def _toggle_pause(self) -> None:
        vp = self.viewport
        if self._frozen is None:
            self._frozen = self.buffer.snapshot()
            vp.paused = True
            return
        top = self._frozen.seq_at_view_position(vp.scroll_offset)
        self._frozen = None
        vp.paused = False
        if self._pinned:
            vp.scroll_offset = self.max_scroll
        else:
            self._anchor_to(top)

    # --- Search ---

    def _top_index(self) -> int:
        """Buffer index of the first visible line, or 0 for an empty view."""
        seq = self.view_buffer.seq_at_view_position(self.viewport.scroll_offset)
        return 0 if seq is None else self.view_buffer.index_of_seq(seq)

    def _on_search_submitted(self, text: str) -> None:
        if self.mode is not Mode.SEARCH_ENTRY:
            return
        pattern = text.strip()
        if not pattern:
            if self.view_buffer.has_pattern:
                self._clear_filter()
            self.mode = Mode.NORMAL
            return

        top = self._top_index() if self._mode_before_search is Mode.NORMAL else self._focused_index()
        query = SearchQuery(pattern=pattern, is_regex=self.regex)
        try:
            self.view_buffer.set_pattern(query)
        except PatternCompileError as e:
            logger.debug("Rejected search pattern: %s", e)
            self.search_error = str(e)
            self.mode = self._mode_before_search
            return
        if self._frozen is not None:
            self.buffer.set_pattern(query)

        self.search_error = None
        self.mode = Mode.FILTERED
        cursor = self.view_buffer.first_match_at_or_after(top)
        self.viewport.scroll_offset = 0 if cursor is None else cursor
        self._clamp()
        self.viewport.follow_mode = self.viewport.scroll_offset >= self.max_scroll

    def _focused_index(self) -> int:
        indices = self.view_buffer.match_indices()
        if not indices:
            return self._top_index()
        cursor = min(self.view_buffer.search_state.cursor, len(indices) - 1)
        return indices[cursor]

    def _clear_filter(self) -> None:
        was_pinned = self.viewport.follow_mode and self.viewport.scroll_offset >= self.max_scroll
        top = self._top_index()
        self.buffer.clear_pattern()
        if self._frozen is not None:
            self._frozen.clear_pattern()
        self.mode = Mode.NORMAL
        if was_pinned:
            self.viewport.scroll_offset = self.max_scroll
            return
        self.viewport.scroll_offset = top
        self._clamp()

    def _jump(self, *, forward: bool) -> None:
        if self.mode is not Mode.FILTERED or self.view_buffer.match_count() == 0:
            return
        current = self._focused_index()
        if forward:
            self.view_buffer.jump_to_next_match(current)
        else:
            self.view_buffer.jump_to_previous_match(current)
        self._scroll_to(self.view_buffer.search_state.cursor)

    # --- Rendering ---

    def render(self) -> RenderedFrame:
        """Build the text for the current state."""
        p = self._palette
        title = Text(f"📋 LOGS: {self.title}", style=p.title)
        if self.fatal_error is not None:
            return RenderedFrame(
                title=title,
                lines=[],
                status=Text("ERROR", style=p.error),
                help=Text("q: quit | esc: back", style=p.help),
                error=self.fatal_error,
            )
        return RenderedFrame(
            title=title,
            lines=self._render_lines(),
            status=self._render_status(),
            help=self._render_help(),
            info=self._render_info(),
            search_active=self.mode is Mode.SEARCH_ENTRY,
        )

    def _render_lines(self) -> list[Text]:
        p = self._palette
        visible = self.visible_lines()
        if not visible:
            query = self.view_buffer.query
            if query is not None:
                return [Text(f"No matches found for '{query.pattern}'", style=p.placeholder)]
            if self.done:
                return [Text("No logs available", style=p.placeholder)]
            return [Text("Loading logs...", style=p.placeholder)]
        focused = self._focused_index() if self.view_buffer.has_pattern else None
        return [self.format_line(line, current=line.index == focused) for line in visible]

    def format_line(self, line: ViewLine, *, current: bool = False) -> Text:
        """Render one view line with its match spans highlighted."""
        p = self._palette
        style = p.stderr if line.record.stream_tag is StreamTag.STDERR else ""
        text = Text(line.text, style=style, no_wrap=True, overflow="ellipsis")
        match_style = p.current_match if current else p.match
        for start, end in line.spans:
            text.stylize(match_style, start, end)
        return text

    def _render_status(self) -> Text:
        p = self._palette
        total = self.active_count
        position = min(self.viewport.scroll_offset + 1, total)
        status = Text(f" Line {position}/{total} ", style=p.status_bar)
        if self.view_buffer.has_pattern:
            status.append(f"of {len(self.view_buffer)} ", style=p.status_bar)
        if self.viewport.paused:
            status.append(" PAUSED ", style=p.paused)
            if self.new_while_paused:
                status.append(f" +{self.new_while_paused} new", style=p.status_bar)
        if self.viewport.follow_mode:
            status.append(" FOLLOW ", style=p.follow)
        if self.read_error is not None:
            status.append(f" read error: {self.read_error}", style=p.error)
        elif self.done:
            status.append(" DONE", style=p.muted)
        elif self.live:
            status.append(" LIVE", style=p.ok)
        if self.view_buffer.has_pattern:
            status.append(f" | Matches: {self.view_buffer.match_count()}", style=p.status_bar)
        return status

    def _render_help(self) -> Text:
        p = self._palette
        if self.mode is Mode.SEARCH_ENTRY:
            return Text(format_hints(SEARCH_ENTRY_HINTS), style=p.help)
        filtered = self.mode is Mode.FILTERED
        full = format_hints(help_hints(filtered=filtered))
        if len(full) > self.viewport.width:
            return Text(format_hints(help_hints(filtered=filtered, minimal=True)), style=p.help)
        return Text(full, style=p.help)

    def _render_info(self) -> Text | None:
        p = self._palette
        if self.search_error is not None:
            return Text(self.search_error, style=p.error)
        query = self.view_buffer.query
        if self.mode is Mode.FILTERED and query is not None:
            count = self.view_buffer.match_count()
            return Text(f"Filtered: {count} matches for '{query.pattern}' (esc to clear)", style=p.filtered)
        return None
