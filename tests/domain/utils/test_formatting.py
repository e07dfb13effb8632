"""Tests for name validation and text formatting helpers."""

from datetime import datetime

import pytest

from agentcast.domain.utils.formatting import (
    format_clock,
    format_duration,
    format_timestamp,
    is_valid_stream_name,
    sanitize_text,
)
from agentcast.domain.utils.idgen import new_connection_id, new_stream_token


class TestStreamName:
    @pytest.mark.parametrize("name", ["abc", "Nova1", "agent_007", "A" * 30])
    def test_valid(self, name: str):
        assert is_valid_stream_name(name) is True

    @pytest.mark.parametrize("name", ["", None, "ab", "A" * 31, "no-dash", "no.dot", "sp ace"])
    def test_invalid(self, name):
        assert is_valid_stream_name(name) is False


class TestFormatting:
    def test_sanitize_escapes_markup_and_quotes(self):
        assert sanitize_text("<a href='x'>&</a>") == "&lt;a href=&#x27;x&#x27;&gt;&amp;&lt;/a&gt;"

    def test_clock_is_local_hh_mm(self):
        ts = datetime(2026, 3, 2, 9, 5).timestamp()
        assert format_clock(ts) == "09:05"

    def test_timestamp_is_utc(self):
        assert format_timestamp(0) == "1970-01-01 00:00:00"

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "0s"), (59, "59s"), (61, "1m 1s"), (3600, "1h 0m"), (7322, "2h 2m"), (-5, "0s")],
    )
    def test_duration(self, seconds: float, expected: str):
        assert format_duration(seconds) == expected


class TestIdentifiers:
    def test_tokens_are_unique_hex(self):
        tokens = {new_stream_token() for _ in range(100)}

        assert len(tokens) == 100
        assert all(len(t) == 48 and int(t, 16) >= 0 for t in tokens)

    def test_connection_ids(self):
        assert new_connection_id().startswith("cn_")
        assert new_connection_id() != new_connection_id()
