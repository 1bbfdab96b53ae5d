"""Shared test fixtures."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

import pytest

from dockit.demux import encode_frame
from dockit.errors import NotFoundError, StreamReadError
from dockit.models import (
    ContainerState,
    ContainerStats,
    ContainerSummary,
    ImageSummary,
    NetworkSummary,
    StreamTag,
    VolumeSummary,
)
from dockit.runtime import LogStream

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime
    from pathlib import Path


def frames(*lines: str, stream_tag: StreamTag = StreamTag.STDOUT) -> bytes:
    """Concatenate one frame per line, each payload ending in a newline."""
    return b"".join(encode_frame(f"{line}\n".encode(), stream_tag) for line in lines)


def numbered_frames(start: int, stop: int, prefix: str = "line") -> bytes:
    return frames(*(f"{prefix} {i}" for i in range(start, stop)))


def failing_chunks(chunks: list[bytes], error: Exception) -> Iterator[bytes]:
    yield from chunks
    raise error


def held_chunks(chunks: list[bytes], released: threading.Event) -> Iterator[bytes]:
    """Serve chunks, then block like an idle follow connection until released."""
    yield from chunks
    released.wait(timeout=5)


class FakeRuntimeClient:
    """In-memory RuntimeClient; records calls and serves canned log chunks."""

    def __init__(
        self,
        log_chunks: list[bytes] | None = None,
        *,
        fail_after: bool = False,
        hold_open: bool = False,
        open_gate: threading.Event | None = None,
        missing: frozenset[str] = frozenset(),
    ) -> None:
        self.log_chunks = log_chunks or []
        self.fail_after = fail_after
        self.hold_open = hold_open
        self.open_gate = open_gate
        self.missing = missing
        self.calls: list[tuple[str, Any]] = []
        self.streams: list[LogStream] = []
        self.containers = [
            ContainerSummary(
                id="a" * 64, name="web", image="nginx:latest", state=ContainerState.RUNNING, status="Up 2 hours"
            ),
            ContainerSummary(
                id="b" * 64, name="db", image="postgres:16", state=ContainerState.EXITED, status="Exited (0)"
            ),
        ]
        self.images = [ImageSummary(id="sha256:" + "c" * 64, tags=["nginx:latest"], size=2048)]
        self.volumes = [VolumeSummary(name="data")]
        self.networks = [NetworkSummary(id="d" * 64, name="bridge", driver="bridge", scope="local")]

    def _check(self, ref: str) -> None:
        if ref in self.missing:
            msg = f"No such container: {ref}"
            raise NotFoundError(msg)

    def list_containers(self, *, all: bool = True) -> list[ContainerSummary]:  # noqa: A002
        self.calls.append(("list_containers", all))
        return self.containers if all else [c for c in self.containers if c.state is ContainerState.RUNNING]

    def start_container(self, ref: str) -> None:
        self.calls.append(("start", ref))

    def stop_container(self, ref: str) -> None:
        self.calls.append(("stop", ref))

    def restart_container(self, ref: str) -> None:
        self.calls.append(("restart", ref))

    def remove_container(self, ref: str, *, force: bool = False) -> None:
        self.calls.append(("remove_container", (ref, force)))

    def inspect_container(self, ref: str) -> dict[str, Any]:
        self._check(ref)
        return {"Id": ref, "Name": f"/{ref}"}

    def container_stats(self, ref: str) -> ContainerStats:
        return ContainerStats(cpu_percent=1.5, memory_usage=1024, memory_limit=4096)

    def list_images(self) -> list[ImageSummary]:
        return self.images

    def remove_image(self, ref: str, *, force: bool = False) -> None:
        self.calls.append(("remove_image", ref))

    def list_volumes(self) -> list[VolumeSummary]:
        return self.volumes

    def remove_volume(self, name: str, *, force: bool = False) -> None:
        self.calls.append(("remove_volume", name))

    def list_networks(self) -> list[NetworkSummary]:
        return self.networks

    def remove_network(self, ref: str) -> None:
        self.calls.append(("remove_network", ref))

    def open_log_stream(
        self, ref: str, *, follow: bool, tail_lines: int, since: datetime | None = None
    ) -> LogStream:
        if self.open_gate is not None:
            self.open_gate.wait(timeout=5)
        self._check(ref)
        self.calls.append(("open_log_stream", (ref, follow, tail_lines)))
        released = threading.Event()
        chunks: Iterator[bytes]
        if self.fail_after:
            chunks = failing_chunks(self.log_chunks, StreamReadError("connection reset"))
        elif self.hold_open:
            chunks = held_chunks(self.log_chunks, released)
        else:
            chunks = iter(self.log_chunks)
        stream = LogStream(chunks, closer=released.set, name=ref)
        self.streams.append(stream)
        return stream

    def close(self) -> None:
        self.calls.append(("close", None))


@pytest.fixture
def fake_client() -> FakeRuntimeClient:
    return FakeRuntimeClient(log_chunks=[numbered_frames(0, 10)])


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point DOCKIT_CONFIG_DIR at a temporary directory."""
    monkeypatch.setenv("DOCKIT_CONFIG_DIR", str(tmp_path))
    return tmp_path
