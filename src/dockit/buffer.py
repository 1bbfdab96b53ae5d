"""Capped log line buffer with a case-insensitive search index."""

from __future__ import annotations

import bisect
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dockit.search import CompiledSearch, compile_query

if TYPE_CHECKING:
    from collections.abc import Iterator

    from dockit.models import LogRecord, SearchQuery

DEFAULT_CAPACITY = 500


@dataclass(frozen=True, slots=True)
class ViewLine:
    """One line of the active view."""

    index: int
    record: LogRecord
    spans: tuple[tuple[int, int], ...] = ()

    @property
    def text(self) -> str:
        return self.record.text


@dataclass(slots=True)
class SearchState:
    """Active pattern plus the sequence numbers of the lines it matches."""

    search: CompiledSearch | None = None
    matches: list[int] = field(default_factory=list)
    cursor: int = 0

    @property
    def query(self) -> SearchQuery | None:
        return self.search.query if self.search is not None else None


class LogBuffer:
    """Append-only sequence of LogRecords capped at ``capacity``.

    Every appended record gets a sequence number. Match positions are kept as
    sequence numbers so eviction from the front never invalidates them; the
    buffer index of a sequence number is ``seq - first_seq``.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            msg = f"capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self.capacity = capacity
        self._lines: deque[LogRecord] = deque(maxlen=capacity)
        self._next_seq = 0
        self._state = SearchState()

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[LogRecord]:
        return iter(self._lines)

    def __getitem__(self, index: int) -> LogRecord:
        return self._lines[index]

    @property
    def lines(self) -> list[LogRecord]:
        """Snapshot of the buffered records, oldest first."""
        return list(self._lines)

    @property
    def first_seq(self) -> int:
        """Sequence number of the oldest retained record."""
        return self._next_seq - len(self._lines)

    @property
    def next_seq(self) -> int:
        """Sequence number the next appended record will get."""
        return self._next_seq

    @property
    def search_state(self) -> SearchState:
        return self._state

    @property
    def query(self) -> SearchQuery | None:
        return self._state.query

    @property
    def has_pattern(self) -> bool:
        return self._state.search is not None

    def index_of_seq(self, seq: int) -> int:
        """Buffer index for a sequence number (may be out of range if evicted)."""
        return seq - self.first_seq

    def append(self, record: LogRecord) -> int:
        """Append a record, evicting the oldest when full. Returns how many were evicted."""
        evicted = 1 if len(self._lines) == self.capacity else 0
        seq = self._next_seq
        self._lines.append(record)
        self._next_seq += 1

        state = self._state
        if evicted and state.matches and state.matches[0] < self.first_seq:
            state.matches.pop(0)
            state.cursor = max(0, state.cursor - 1)
        if state.search is not None and state.search.matches(record.text):
            state.matches.append(seq)
        return evicted

    def extend(self, records: list[LogRecord]) -> int:
        """Append several records. Returns how many were evicted."""
        return sum(self.append(r) for r in records)

    def snapshot(self) -> LogBuffer:
        """Independent copy with the same records, sequence numbers and matches."""
        copy = LogBuffer(self.capacity)
        copy._lines.extend(self._lines)
        copy._next_seq = self._next_seq
        state = self._state
        copy._state = SearchState(search=state.search, matches=list(state.matches), cursor=state.cursor)
        return copy

    def set_pattern(self, query: SearchQuery | None) -> None:
        """Replace the active pattern and recompute matches over the whole buffer.

        Raises PatternCompileError for an invalid expression; the previous
        pattern stays in effect in that case.
        """
        if query is None or not query.pattern:
            self._state = SearchState()
            return
        search = compile_query(query)
        first = self.first_seq
        matches = [first + i for i, record in enumerate(self._lines) if search.matches(record.text)]
        self._state = SearchState(search=search, matches=matches, cursor=0)

    def clear_pattern(self) -> None:
        self.set_pattern(None)

    def match_indices(self) -> list[int]:
        """Buffer indices of matching lines."""
        first = self.first_seq
        return [seq - first for seq in self._state.matches]

    def match_count(self) -> int:
        """Number of lines in the filtered view (0 when no pattern)."""
        if self._state.search is None:
            return 0
        return len(self._state.matches)

    def active_view(self, start: int = 0, stop: int | None = None) -> list[ViewLine]:
        """Lines of the active view, in order.

        Without a pattern this is the whole buffer, unhighlighted. With one it
        is only the matching lines, each carrying its match spans. start/stop
        slice the view the way a list slice would.
        """
        search = self._state.search
        if search is None:
            count = len(self._lines)
            end = count if stop is None else min(count, stop)
            return [ViewLine(index=i, record=self._lines[i]) for i in range(max(0, start), end)]
        views: list[ViewLine] = []
        for index in self.match_indices()[start:stop]:
            record = self._lines[index]
            views.append(ViewLine(index=index, record=record, spans=tuple(search.spans(record.text))))
        return views

    def active_count(self) -> int:
        """Length of the active view without materialising it."""
        if self._state.search is not None:
            return self.match_count()
        return len(self._lines)

    def jump_to_next_match(self, from_index: int) -> int:
        """Buffer index of the first match after from_index, wrapping to the start."""
        indices = self.match_indices()
        if not indices:
            return from_index
        pos = bisect.bisect_right(indices, from_index)
        target = pos if pos < len(indices) else 0
        self._state.cursor = target
        return indices[target]

    def jump_to_previous_match(self, from_index: int) -> int:
        """Buffer index of the last match before from_index, wrapping to the end."""
        indices = self.match_indices()
        if not indices:
            return from_index
        pos = bisect.bisect_left(indices, from_index) - 1
        target = pos if pos >= 0 else len(indices) - 1
        self._state.cursor = target
        return indices[target]

    def first_match_at_or_after(self, from_index: int) -> int | None:
        """Position in the match list of the first match at or after from_index, wrapping."""
        indices = self.match_indices()
        if not indices:
            return None
        pos = bisect.bisect_left(indices, from_index)
        target = pos if pos < len(indices) else 0
        self._state.cursor = target
        return target

    def view_position_of_seq(self, seq: int) -> int:
        """Row in the active view where the line with this sequence number sits (or would sit)."""
        if self._state.search is None:
            return max(0, seq - self.first_seq)
        return bisect.bisect_left(self._state.matches, seq)

    def seq_at_view_position(self, position: int) -> int | None:
        """Sequence number of the line at a row of the active view."""
        if position < 0 or position >= self.active_count():
            return None
        if self._state.search is None:
            return self.first_seq + position
        return self._state.matches[position]
