"""Shared formatting and parsing helpers for dockit."""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import dateparser

if TYPE_CHECKING:
    from dockit.models import PortMapping

_TIME_UNITS: dict[str, str] = {
    "s": "seconds",
    "sec": "seconds",
    "m": "minutes",
    "minute": "minutes",
    "minutes": "minutes",
    "h": "hours",
    "hour": "hours",
    "hours": "hours",
    "d": "days",
    "day": "days",
    "days": "days",
    "w": "weeks",
    "week": "weeks",
    "weeks": "weeks",
}

_SIZE_UNIT = 1024
_SIZE_PREFIXES = "KMGTPE"

_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_WEEK = 7 * _DAY
_MONTH = 30 * _DAY
_YEAR = 365 * _DAY

SHORT_ID_LENGTH = 12


def parse_time(value: str, reference_date: datetime | None = None) -> datetime:
    """Parse a time value for ``--since``.

    Supports:
    - Relative shorthand: 5m, 1h, 2d, 30s, 1week
    - Natural language: "2 days ago", "yesterday 7:58"
    - ISO 8601: 2024-01-15T10:30:00Z
    """
    stripped = value.strip()

    match = re.match(r"^(\d+)\s*([a-z]+)$", stripped.lower())
    if match:
        amount = int(match.group(1))
        unit = match.group(2)
        if unit in _TIME_UNITS:
            delta = timedelta(**{_TIME_UNITS[unit]: amount})
            ref = reference_date or datetime.now(tz=UTC)
            return ref - delta

    settings: dict[str, object] = {
        "TIMEZONE": "UTC",
        "RETURN_AS_TIMEZONE_AWARE": True,
        "PREFER_DATES_FROM": "past",
    }
    if reference_date is not None:
        settings["RELATIVE_BASE"] = reference_date.replace(tzinfo=None)

    result = dateparser.parse(stripped, settings=settings)
    if result is not None:
        return result

    msg = f"Cannot parse time: {value!r}"
    raise ValueError(msg)


def short_id(identifier: str) -> str:
    """Shorten a container or image id: 'sha256:abcdef...' -> 'abcdef012345'."""
    if identifier.startswith("sha256:"):
        identifier = identifier[len("sha256:") :]
    return identifier[:SHORT_ID_LENGTH]


def truncate(text: str, width: int) -> str:
    """Truncate text to width, marking the cut with '...'."""
    if len(text) <= width:
        return text
    if width <= 3:  # noqa: PLR2004
        return text[:width]
    return text[: width - 3] + "..."


def format_size(size: int) -> str:
    """Format a byte count: 512 -> '512 B', 1536 -> '1.5 KB'."""
    if size < _SIZE_UNIT:
        return f"{size} B"
    div, exp = _SIZE_UNIT, 0
    n = size // _SIZE_UNIT
    while n >= _SIZE_UNIT and exp < len(_SIZE_PREFIXES) - 1:
        div *= _SIZE_UNIT
        exp += 1
        n //= _SIZE_UNIT
    return f"{size / div:.1f} {_SIZE_PREFIXES[exp]}B"


def format_age(created: datetime | None, now: datetime | None = None) -> str:
    """Format a creation time as a coarse relative age: '3 hours ago'."""
    if created is None:
        return "unknown"
    now = now or datetime.now(tz=UTC)
    seconds = max(0, int((now - created).total_seconds()))
    if seconds < _MINUTE:
        return f"{seconds} seconds ago"
    if seconds < _HOUR:
        return f"{seconds // _MINUTE} minutes ago"
    if seconds < _DAY:
        return f"{seconds // _HOUR} hours ago"
    if seconds < _WEEK:
        return f"{seconds // _DAY} days ago"
    if seconds < _MONTH:
        return f"{seconds // _WEEK} weeks ago"
    if seconds < _YEAR:
        return f"{seconds // _MONTH} months ago"
    return f"{seconds // _YEAR} years ago"


def format_ports(ports: list[PortMapping]) -> str:
    """Format port mappings: '8080:80/tcp, 443/tcp'."""
    parts: list[str] = []
    for port in ports:
        if port.public_port:
            parts.append(f"{port.public_port}:{port.private_port}/{port.protocol}")
        else:
            parts.append(f"{port.private_port}/{port.protocol}")
    return ", ".join(parts)
