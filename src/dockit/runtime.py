"""Runtime client capability and its docker SDK implementation."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, Self
from urllib.parse import quote

import docker
import requests

from dockit.errors import DockitError, NotFoundError, RuntimeConnectionError, StreamReadError
from dockit.models import (
    ContainerState,
    ContainerStats,
    ContainerSummary,
    ImageSummary,
    NetworkSummary,
    PortMapping,
    VolumeSummary,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096


class LogStream:
    """An open log byte stream.

    read() blocks until the next chunk arrives and returns None at end of
    stream. close() is idempotent. Use it as a context manager so the
    underlying connection is released on every exit path.
    """

    def __init__(self, chunks: Iterable[bytes], closer: Callable[[], None] | None = None, name: str = "") -> None:
        self._chunks: Iterator[bytes] = iter(chunks)
        self._closer = closer
        self.name = name
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self) -> bytes | None:
        """Return the next non-empty chunk, or None once the stream is exhausted."""
        if self._closed:
            return None
        try:
            for chunk in self._chunks:
                if chunk:
                    return chunk
        except (requests.RequestException, OSError, ValueError) as e:
            if self._closed:
                return None
            raise StreamReadError(str(e) or type(e).__name__) from e
        return None

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._closer is not None:
            try:
                self._closer()
            except (requests.RequestException, OSError) as e:
                logger.debug("Error while closing log stream %s: %s", self.name, e)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


class RuntimeClient(Protocol):
    """What dockit needs from a container runtime."""

    def list_containers(self, *, all: bool = True) -> list[ContainerSummary]: ...  # noqa: A002

    def start_container(self, ref: str) -> None: ...

    def stop_container(self, ref: str) -> None: ...

    def restart_container(self, ref: str) -> None: ...

    def remove_container(self, ref: str, *, force: bool = False) -> None: ...

    def inspect_container(self, ref: str) -> dict[str, Any]: ...

    def container_stats(self, ref: str) -> ContainerStats: ...

    def list_images(self) -> list[ImageSummary]: ...

    def remove_image(self, ref: str, *, force: bool = False) -> None: ...

    def list_volumes(self) -> list[VolumeSummary]: ...

    def remove_volume(self, name: str, *, force: bool = False) -> None: ...

    def list_networks(self) -> list[NetworkSummary]: ...

    def remove_network(self, ref: str) -> None: ...

    def open_log_stream(
        self, ref: str, *, follow: bool, tail_lines: int, since: datetime | None = None
    ) -> LogStream: ...

    def close(self) -> None: ...


@contextmanager
def translate_errors(what: str) -> Iterator[None]:
    """Map docker SDK and transport exceptions onto the dockit taxonomy."""
    try:
        yield
    except docker.errors.NotFound as e:
        raise NotFoundError(f"{what}: not found") from e
    except docker.errors.APIError as e:
        raise DockitError(f"{what}: {e.explanation or e}") from e
    except (docker.errors.DockerException, requests.ConnectionError) as e:
        raise RuntimeConnectionError(f"Cannot connect to the container runtime: {e}") from e


def _timestamp(value: Any) -> datetime | None:
    if isinstance(value, int | float) and value > 0:
        return datetime.fromtimestamp(value, tz=UTC)
    return None


def container_from_api(data: dict[str, Any]) -> ContainerSummary:
    """Build a ContainerSummary from one entry of the container list endpoint."""
    names = data.get("Names") or [""]
    try:
        state = ContainerState(str(data.get("State", "")).lower())
    except ValueError:
        state = ContainerState.UNKNOWN
    ports = [
        PortMapping(
            private_port=p.get("PrivatePort", 0), public_port=p.get("PublicPort"), protocol=p.get("Type", "tcp")
        )
        for p in data.get("Ports") or []
    ]
    return ContainerSummary(
        id=data.get("Id", ""),
        name=names[0].lstrip("/"),
        image=data.get("Image", ""),
        state=state,
        status=data.get("Status", ""),
        ports=ports,
        created=_timestamp(data.get("Created")),
    )


def image_from_api(data: dict[str, Any]) -> ImageSummary:
    tags = [t for t in data.get("RepoTags") or [] if t != "<none>:<none>"]
    return ImageSummary(
        id=data.get("Id", ""), tags=tags, size=data.get("Size", 0) or 0, created=_timestamp(data.get("Created"))
    )


def stats_from_api(data: dict[str, Any]) -> ContainerStats:
    """Compute CPU and memory usage from a one-shot stats sample."""
    cpu = data.get("cpu_stats") or {}
    precpu = data.get("precpu_stats") or {}
    cpu_delta = (cpu.get("cpu_usage") or {}).get("total_usage", 0) - (precpu.get("cpu_usage") or {}).get(
        "total_usage", 0
    )
    system_delta = cpu.get("system_cpu_usage", 0) - precpu.get("system_cpu_usage", 0)
    online = cpu.get("online_cpus") or len((cpu.get("cpu_usage") or {}).get("percpu_usage") or []) or 1
    cpu_percent = cpu_delta / system_delta * online * 100.0 if cpu_delta > 0 and system_delta > 0 else 0.0
    memory = data.get("memory_stats") or {}
    return ContainerStats(
        cpu_percent=cpu_percent,
        memory_usage=memory.get("usage", 0),
        memory_limit=memory.get("limit", 0),
        raw=data,
    )


class DockerRuntimeClient:
    """RuntimeClient backed by the docker SDK's low-level API client."""

    def __init__(self, client: docker.DockerClient) -> None:
        self._client = client
        self._api = client.api

    @classmethod
    def from_env(cls) -> DockerRuntimeClient:
        """Connect using DOCKER_HOST and friends, like the docker CLI does."""
        with translate_errors("connect"):
            return cls(docker.from_env())

    def close(self) -> None:
        self._client.close()

    def list_containers(self, *, all: bool = True) -> list[ContainerSummary]:  # noqa: A002
        with translate_errors("list containers"):
            return [container_from_api(c) for c in self._api.containers(all=all)]

    def start_container(self, ref: str) -> None:
        with translate_errors(f"start {ref}"):
            self._api.start(ref)

    def stop_container(self, ref: str) -> None:
        with translate_errors(f"stop {ref}"):
            self._api.stop(ref)

    def restart_container(self, ref: str) -> None:
        with translate_errors(f"restart {ref}"):
            self._api.restart(ref)

    def remove_container(self, ref: str, *, force: bool = False) -> None:
        with translate_errors(f"remove {ref}"):
            self._api.remove_container(ref, force=force)

    def inspect_container(self, ref: str) -> dict[str, Any]:
        with translate_errors(f"container {ref}"):
            return self._api.inspect_container(ref)

    def container_stats(self, ref: str) -> ContainerStats:
        with translate_errors(f"stats {ref}"):
            return stats_from_api(self._api.stats(ref, stream=False))

    def list_images(self) -> list[ImageSummary]:
        with translate_errors("list images"):
            return [image_from_api(i) for i in self._api.images()]

    def remove_image(self, ref: str, *, force: bool = False) -> None:
        with translate_errors(f"remove image {ref}"):
            self._api.remove_image(ref, force=force)

    def list_volumes(self) -> list[VolumeSummary]:
        with translate_errors("list volumes"):
            volumes = self._api.volumes().get("Volumes") or []
        return [
            VolumeSummary(name=v.get("Name", ""), driver=v.get("Driver", ""), mountpoint=v.get("Mountpoint", ""))
            for v in volumes
        ]

    def remove_volume(self, name: str, *, force: bool = False) -> None:
        with translate_errors(f"remove volume {name}"):
            self._api.remove_volume(name, force=force)

    def list_networks(self) -> list[NetworkSummary]:
        with translate_errors("list networks"):
            networks = self._api.networks()
        return [
            NetworkSummary(
                id=n.get("Id", ""), name=n.get("Name", ""), driver=n.get("Driver", ""), scope=n.get("Scope", "")
            )
            for n in networks
        ]

    def remove_network(self, ref: str) -> None:
        with translate_errors(f"remove network {ref}"):
            self._api.remove_network(ref)

    def open_log_stream(self, ref: str, *, follow: bool, tail_lines: int, since: datetime | None = None) -> LogStream:
        """Open the raw, still-multiplexed log stream of a container.

        The SDK's own logs() demultiplexes for us; the raw endpoint is used
        instead so frames reach the FrameDemultiplexer untouched.
        """
        params: dict[str, Any] = {
            "stdout": 1,
            "stderr": 1,
            "follow": int(follow),
            "timestamps": 0,
            "tail": str(tail_lines) if tail_lines > 0 else "all",
        }
        if since is not None:
            params["since"] = int(since.timestamp())
        url = f"{self._api.base_url}/v{self._api.api_version}/containers/{quote(ref, safe='')}/logs"
        with translate_errors(f"container {ref}"):
            response = self._api.get(url, params=params, stream=True, timeout=None)
        if response.status_code == requests.codes.not_found:
            response.close()
            msg = f"No such container: {ref}"
            raise NotFoundError(msg)
        if response.status_code >= requests.codes.bad_request:
            detail = response.text.strip()
            response.close()
            msg = f"Cannot open logs for {ref}: {response.status_code} {detail}"
            raise DockitError(msg)
        logger.debug("Opened log stream for %s (follow=%s, tail=%s)", ref, follow, tail_lines)
        return LogStream(response.iter_content(chunk_size=READ_CHUNK_SIZE), response.close, name=ref)
