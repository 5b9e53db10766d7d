"""Tests for display formatting helpers."""

from datetime import datetime

import pytest

from session_scope.models import ToolUse
from session_scope.ui.formatters import (
    format_datetime,
    format_duration,
    format_response_time,
    format_session_id,
    format_tool_count,
    format_tool_counts,
    format_with_unit,
    response_time_role,
    tool_count_role,
)


class TestDuration:
    """Tests for format_duration."""

    @pytest.mark.parametrize("ms,expected", [
        (0, "0s"),
        (45_000, "45s"),
        (60_000, "1m"),
        (125_000, "2m 5s"),
        (3_600_000, "1h"),
        (7_500_000, "2h 5m"),
        (90_000_000, "1d 1h"),
    ])
    def test_formats(self, ms, expected):
        assert format_duration(ms) == expected


class TestResponseTime:
    """Tests for response time cells."""

    def test_seconds(self):
        assert format_response_time(12.5) == "12.5s   "

    def test_minutes(self):
        assert format_response_time(224).strip() == "3m44s"

    def test_always_eight_columns(self):
        assert len(format_response_time(3.0)) == 8

    def test_roles(self):
        assert response_time_role(10) == "plain"
        assert response_time_role(600) == "warning"
        assert response_time_role(1800) == "error"


class TestCounts:
    """Tests for count formatting."""

    def test_with_unit(self):
        assert format_with_unit(0) == "0"
        assert format_with_unit(999) == "999"
        assert format_with_unit(1500) == "1.5k"
        assert format_with_unit(2_000_000) == "2.0m"

    def test_tool_count_width(self):
        assert format_tool_count(7) == "    7"

    def test_tool_count_roles(self):
        assert tool_count_role(3) == "plain"
        assert tool_count_role(20) == "warning"
        assert tool_count_role(50) == "error"

    def test_tool_summary(self):
        tools = [ToolUse("1", "Read"), ToolUse("2", "Edit"), ToolUse("3", "Read")]
        assert format_tool_counts(tools) == "Read×2, Edit"


class TestIdentifiers:
    """Tests for timestamps and ids."""

    def test_datetime(self):
        assert format_datetime(datetime(2024, 1, 15, 9, 5)) == "01/15 09:05"

    def test_missing_datetime(self):
        assert format_datetime(None) == "--/-- --:--"

    def test_session_id(self):
        assert format_session_id("short") == "short"
        assert format_session_id("aaaaaaaa-1111-2222-3333-444444444444") == "aaaaaaaa...4444"
