"""Tests for timestamp formatting."""

from podcast_voice_mcp.utils import format_timestamp


class TestFormatTimestamp:
    def test_zero(self):
        assert format_timestamp(0) == "0:00"

    def test_pads_seconds(self):
        assert format_timestamp(65000) == "1:05"

    def test_floors_milliseconds(self):
        assert format_timestamp(59999) == "0:59"

    def test_minutes_not_wrapped(self):
        assert format_timestamp(3_725_000) == "62:05"

    def test_jump_target(self):
        assert format_timestamp(750000) == "12:30"
