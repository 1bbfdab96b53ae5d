"""Pydantic models for dockit."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import IntEnum, StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StreamTag(IntEnum):
    """Substream a multiplexed log frame was written to."""

    STDIN = 0
    STDOUT = 1
    STDERR = 2
    SYSTEMERR = 3


class LogRecord(BaseModel):
    """A single decoded log line."""

    model_config = ConfigDict(frozen=True)

    raw_payload: bytes
    text: str
    stream_tag: StreamTag | None = None
    received_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))


class SearchQuery(BaseModel):
    """A search pattern, matched case-insensitively."""

    model_config = ConfigDict(frozen=True)

    pattern: str
    is_regex: bool = True


class AppConfig(BaseModel):
    """Application configuration persisted to disk."""

    model_config = ConfigDict(frozen=True)

    theme: str = "textual-dark"
    log_capacity: int = Field(default=500, ge=1)
    tail_lines: int = Field(default=100, ge=0)
    docker_binary: str = "docker"
    regex_search: bool = True
    status_timeout: float = 3.0


class ContainerState(StrEnum):
    """Lifecycle state reported by the runtime for a container."""

    CREATED = "created"
    RUNNING = "running"
    PAUSED = "paused"
    RESTARTING = "restarting"
    REMOVING = "removing"
    EXITED = "exited"
    DEAD = "dead"
    UNKNOWN = "unknown"


class PortMapping(BaseModel):
    """A published or exposed container port."""

    private_port: int
    public_port: int | None = None
    protocol: str = "tcp"


class ContainerSummary(BaseModel):
    """One row of a container listing."""

    id: str
    name: str
    image: str
    state: ContainerState = ContainerState.UNKNOWN
    status: str = ""
    ports: list[PortMapping] = []
    created: datetime | None = None


class ImageSummary(BaseModel):
    """One row of an image listing."""

    id: str
    tags: list[str] = []
    size: int = 0
    created: datetime | None = None


class VolumeSummary(BaseModel):
    """One row of a volume listing."""

    name: str
    driver: str = "local"
    mountpoint: str = ""


class NetworkSummary(BaseModel):
    """One row of a network listing."""

    id: str
    name: str
    driver: str = ""
    scope: str = ""


class ContainerStats(BaseModel):
    """A one-shot resource usage snapshot for a container."""

    cpu_percent: float = 0.0
    memory_usage: int = 0
    memory_limit: int = 0
    raw: dict[str, Any] = {}

    @property
    def memory_percent(self) -> float:
        """Memory usage as a percentage of the limit."""
        if self.memory_limit <= 0:
            return 0.0
        return self.memory_usage / self.memory_limit * 100.0
