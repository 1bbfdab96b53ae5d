"""Tests for formatting and time parsing helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from dockit.models import PortMapping
from dockit.utils import format_age, format_ports, format_size, parse_time, short_id, truncate

REF = datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)


class TestParseTime:
    @pytest.mark.parametrize(
        ("value", "delta"),
        [
            ("30s", timedelta(seconds=30)),
            ("5m", timedelta(minutes=5)),
            ("1h", timedelta(hours=1)),
            ("2d", timedelta(days=2)),
            ("1week", timedelta(weeks=1)),
        ],
    )
    def test_relative_shorthand(self, value: str, delta: timedelta) -> None:
        assert parse_time(value, REF) == REF - delta

    def test_iso(self) -> None:
        result = parse_time("2024-01-15T10:30:00+00:00")
        assert (result.year, result.month, result.day, result.hour, result.minute) == (2024, 1, 15, 10, 30)
        assert result.tzinfo is not None

    def test_garbage_raises(self) -> None:
        with pytest.raises(ValueError, match="Cannot parse time"):
            parse_time("not a date at all xyz123")


class TestFormatting:
    def test_short_id_strips_digest_prefix(self) -> None:
        assert short_id("sha256:" + "a" * 64) == "a" * 12
        assert short_id("abc") == "abc"

    def test_truncate(self) -> None:
        assert truncate("short", 10) == "short"
        assert truncate("a-very-long-name", 10) == "a-very-..."

    @pytest.mark.parametrize(
        ("size", "expected"),
        [(512, "512 B"), (1536, "1.5 KB"), (5 * 1024**2, "5.0 MB"), (3 * 1024**3, "3.0 GB")],
    )
    def test_format_size(self, size: int, expected: str) -> None:
        assert format_size(size) == expected

    @pytest.mark.parametrize(
        ("delta", "expected"),
        [
            (timedelta(seconds=5), "5 seconds ago"),
            (timedelta(minutes=3), "3 minutes ago"),
            (timedelta(hours=2), "2 hours ago"),
            (timedelta(days=3), "3 days ago"),
            (timedelta(days=14), "2 weeks ago"),
            (timedelta(days=90), "3 months ago"),
            (timedelta(days=800), "2 years ago"),
        ],
    )
    def test_format_age(self, delta: timedelta, expected: str) -> None:
        assert format_age(REF - delta, REF) == expected

    def test_format_age_unknown(self) -> None:
        assert format_age(None) == "unknown"

    def test_format_ports(self) -> None:
        ports = [PortMapping(private_port=80, public_port=8080), PortMapping(private_port=443)]
        assert format_ports(ports) == "8080:80/tcp, 443/tcp"
