"""Case-insensitive pattern compilation and span finding for log search."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from dockit.errors import PatternCompileError

if TYPE_CHECKING:
    from dockit.models import SearchQuery


class CompiledSearch:
    """A search query ready to be matched against log text.

    Regex queries are compiled with an embedded ``(?i)`` flag; plain queries
    compare lower-cased text on both sides.
    """

    def __init__(self, query: SearchQuery) -> None:
        self.query = query
        self._needle = query.pattern.lower()
        self._regex: re.Pattern[str] | None = None
        if query.is_regex:
            try:
                self._regex = re.compile("(?i)" + query.pattern)
            except re.error as e:
                raise PatternCompileError(query.pattern, str(e)) from e

    @property
    def pattern(self) -> str:
        return self.query.pattern

    def matches(self, text: str) -> bool:
        """Whether text contains at least one match."""
        if self._regex is not None:
            return self._regex.search(text) is not None
        return bool(self._needle) and self._needle in text.lower()

    def spans(self, text: str) -> list[tuple[int, int]]:
        """Return non-overlapping (start, end) spans of every match in text."""
        if self._regex is not None:
            return [(m.start(), m.end()) for m in self._regex.finditer(text) if m.end() > m.start()]
        pat_len = len(self._needle)
        if pat_len == 0:
            return []
        haystack = text.lower()
        results: list[tuple[int, int]] = []
        start = 0
        while True:
            pos = haystack.find(self._needle, start)
            if pos == -1:
                break
            results.append((pos, pos + pat_len))
            start = pos + pat_len
        return results


def compile_query(query: SearchQuery) -> CompiledSearch:
    """Compile a query, raising PatternCompileError for an invalid expression."""
    return CompiledSearch(query)
