"""Formatting helpers for durations, timestamps and counts."""

from collections import Counter
from datetime import datetime
from typing import Optional

from ..models import ToolUse

SLOW_RESPONSE_SECONDS = 1800
MEDIUM_RESPONSE_SECONDS = 600
MANY_TOOLS = 50
SOME_TOOLS = 20


def format_duration(milliseconds: int) -> str:
    """Format a duration as e.g. ``2h 5m`` or ``45s``."""
    if not milliseconds or milliseconds <= 0:
        return "0s"

    seconds = int(milliseconds // 1000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)

    if days:
        parts = [f"{days}d"]
        if hours:
            parts.append(f"{hours}h")
        if minutes:
            parts.append(f"{minutes}m")
        return " ".join(parts)
    if hours:
        return f"{hours}h {minutes}m" if minutes else f"{hours}h"
    if minutes:
        return f"{minutes}m {seconds}s" if seconds else f"{minutes}m"
    return f"{seconds}s"


def format_datetime(timestamp: Optional[datetime]) -> str:
    """Compact ``MM/DD HH:MM`` in local time."""
    if timestamp is None:
        return "--/-- --:--"
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone()
    return timestamp.strftime("%m/%d %H:%M")


def format_response_time(seconds: float) -> str:
    """Response time padded to 8 columns: ``3m44s`` or ``12.5s``."""
    seconds = max(0.0, seconds or 0.0)
    if seconds >= 60:
        minutes, remainder = divmod(int(seconds), 60)
        text = f"{minutes}m{remainder}s"
    else:
        text = f"{seconds:.1f}s"
    return text.ljust(8)


def response_time_role(seconds: float) -> str:
    """Style role used to colour a response time."""
    if seconds >= SLOW_RESPONSE_SECONDS:
        return "error"
    if seconds >= MEDIUM_RESPONSE_SECONDS:
        return "warning"
    return "plain"


def format_with_unit(num: int | float, decimals: int = 1) -> str:
    """Abbreviate large numbers: 1500 -> ``1.5k``, 2000000 -> ``2.0m``."""
    if not num:
        return "0"
    for threshold, suffix in ((1e9, "b"), (1e6, "m"), (1e3, "k")):
        if abs(num) >= threshold:
            return f"{num / threshold:.{decimals}f}{suffix}"
    return str(num)


def format_tool_count(count: int) -> str:
    """Tool count right-aligned in 5 columns."""
    return format_with_unit(count).rjust(5)


def tool_count_role(count: int) -> str:
    if count >= MANY_TOOLS:
        return "error"
    if count >= SOME_TOOLS:
        return "warning"
    return "plain"


def format_session_id(session_id: str) -> str:
    """Shorten long ids to ``abcdefgh...wxyz``."""
    if len(session_id) <= 8:
        return session_id
    return f"{session_id[:8]}...{session_id[-4:]}"


def format_tool_counts(tool_uses: list[ToolUse]) -> str:
    """Summarise tools as ``Read×3, Edit×1`` in first-use order."""
    counts = Counter(tool.name for tool in tool_uses)
    return ", ".join(f"{name}×{count}" if count > 1 else name for name, count in counts.items())
