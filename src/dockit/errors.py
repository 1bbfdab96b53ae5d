"""Error taxonomy shared by the runtime client, log viewer and listing views."""

from __future__ import annotations


class DockitError(Exception):
    """Base class for all dockit errors."""


class RuntimeConnectionError(DockitError):
    """The container runtime daemon cannot be reached."""


class NotFoundError(DockitError):
    """The referenced container, image, volume or network does not exist."""


class StreamReadError(DockitError):
    """Reading from an open log stream failed mid-stream."""


class PatternCompileError(DockitError):
    """A search expression could not be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid search pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


class DecodeAnomaly(DockitError):  # noqa: N818 - named after the condition, never raised past the demultiplexer
    """A malformed frame header or length was seen in a log stream."""
