"""Incremental decoder for the runtime's multiplexed log stream.

The log endpoint of a container started without a TTY prefixes every frame
with an 8-byte header:

  - byte 0: stream tag (0 stdin, 1 stdout, 2 stderr, 3 systemerr)
  - bytes 1-3: reserved, zero
  - bytes 4-7: payload length (big-endian uint32)

TTY-backed containers send plain text instead. Batches that cannot be framed
fall back to newline splitting.
"""

from __future__ import annotations

import logging
import struct
from datetime import UTC, datetime

from dockit.errors import DecodeAnomaly
from dockit.models import LogRecord, StreamTag

logger = logging.getLogger(__name__)

HEADER_SIZE = 8
_HEADER_FORMAT = ">BxxxI"
_KNOWN_TAGS = frozenset(tag.value for tag in StreamTag)


def parse_frame_header(header: bytes) -> tuple[StreamTag, int]:
    """Parse an 8-byte frame header into (stream_tag, payload_length).

    Raises DecodeAnomaly when the bytes cannot be a header: too short, an
    unknown stream tag, or non-zero reserved bytes.
    """
    if len(header) < HEADER_SIZE:
        msg = f"short frame header: {len(header)} bytes"
        raise DecodeAnomaly(msg)
    if not _plausible_header(header, 0):
        msg = f"not a frame header: {header[:HEADER_SIZE].hex()}"
        raise DecodeAnomaly(msg)
    stream_tag, length = struct.unpack(_HEADER_FORMAT, header[:HEADER_SIZE])
    return StreamTag(stream_tag), length


def encode_frame(payload: bytes, stream_tag: StreamTag = StreamTag.STDOUT) -> bytes:
    """Build one wire frame around payload."""
    return struct.pack(_HEADER_FORMAT, stream_tag, len(payload)) + payload


def _plausible_header(data: bytes | bytearray, pos: int) -> bool:
    """Whether the bytes at pos could start a frame header."""
    if data[pos] not in _KNOWN_TAGS:
        return False
    return not any(data[pos + 1 : pos + 4])


def _decode(payload: bytes) -> str:
    return payload.decode("utf-8", errors="replace").strip()


class FrameDemultiplexer:
    """Turns successive byte chunks into LogRecords, in wire order.

    Call feed() for every chunk read from the stream and finish() once the
    stream ends. Neither method raises on malformed input.
    """

    def __init__(self) -> None:
        self._buf = bytearray()
        self._framed_records = 0
        self._fallback_batches = 0

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet turned into records."""
        return len(self._buf)

    @property
    def fallback_batches(self) -> int:
        """How many batches were decoded by newline splitting."""
        return self._fallback_batches

    def feed(self, chunk: bytes) -> list[LogRecord]:
        """Append a chunk and return every record that is now complete."""
        if chunk:
            self._buf.extend(chunk)
        records = self._parse_frames()
        if records or not self._buf:
            return records
        if self._waiting_for_frame():
            return records
        return self._split_lines(final=False)

    def finish(self) -> list[LogRecord]:
        """Flush whatever is left at end of stream as best-effort records."""
        records = self._parse_frames()
        if not self._buf:
            return records
        try:
            stream_tag, length = parse_frame_header(bytes(self._buf[:HEADER_SIZE]))
        except DecodeAnomaly as e:
            logger.debug("Unframed tail at end of stream: %s", e)
            records.extend(self._split_lines(final=True))
            return records
        logger.debug("Truncated frame at end of stream: %d of %d payload bytes", len(self._buf) - HEADER_SIZE, length)
        raw = bytes(self._buf)
        self._buf.clear()
        text = _decode(raw[HEADER_SIZE:])
        if text:
            records.append(LogRecord(raw_payload=raw, text=text, stream_tag=stream_tag))
        return records

    def _waiting_for_frame(self) -> bool:
        """Whether the buffer looks like the start of a frame that is still arriving."""
        if len(self._buf) < HEADER_SIZE:
            # Too short to judge; a frame is only ruled out by a bad leading byte.
            return _plausible_header(self._buf, 0) and self._fallback_batches == 0
        return _plausible_header(self._buf, 0)

    def _parse_frames(self) -> list[LogRecord]:
        records: list[LogRecord] = []
        pos = 0
        buf = self._buf
        while len(buf) - pos >= HEADER_SIZE:
            try:
                stream_tag, length = parse_frame_header(bytes(buf[pos : pos + HEADER_SIZE]))
            except DecodeAnomaly as e:
                logger.debug("Framed decode stopped at offset %d: %s", pos, e)
                break
            end = pos + HEADER_SIZE + length
            if end > len(buf):
                break
            payload = bytes(buf[pos + HEADER_SIZE : end])
            pos = end
            text = _decode(payload)
            if text:
                records.append(LogRecord(raw_payload=payload, text=text, stream_tag=stream_tag))
        if pos:
            del buf[:pos]
        self._framed_records += len(records)
        return records

    def _split_lines(self, *, final: bool) -> list[LogRecord]:
        """Decode the buffered bytes as newline-delimited text."""
        self._fallback_batches += 1
        if self._framed_records:
            logger.debug("Unframed bytes after %d framed records; splitting on newlines", self._framed_records)
        data = bytes(self._buf)
        if final:
            complete, rest = data, b""
        else:
            cut = data.rfind(b"\n")
            if cut == -1:
                return []
            complete, rest = data[: cut + 1], data[cut + 1 :]
        self._buf = bytearray(rest)
        now = datetime.now(tz=UTC)
        records: list[LogRecord] = []
        for segment in complete.split(b"\n"):
            text = _decode(segment)
            if text:
                records.append(LogRecord(raw_payload=segment, text=text, received_at=now))
        return records
