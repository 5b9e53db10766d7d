"""Query matching and highlighting shared by the repository and the renderer."""

import logging
import re
from datetime import datetime, timedelta
from typing import Optional

from .ui.text import ANSI_PATTERN, strip_styling

logger = logging.getLogger(__name__)

OR_PATTERN = re.compile(r"\s+(?:OR|or)\s+")
MODIFIER_PATTERN = r"(project|before|after):(\S+)"


def compile_query(query: str, options: Optional[dict] = None) -> Optional[re.Pattern]:
    """Compile a user query into a case-insensitive pattern.

    Plain queries match as substrings, ``a OR b`` matches either term, and
    with ``options["regex"]`` the query is used as a regular expression.
    Returns None for an empty query or an invalid expression.
    """
    query = (query or "").strip()
    if not query:
        return None

    options = options or {}
    if options.get("regex"):
        try:
            return re.compile(query, re.IGNORECASE)
        except re.error as e:
            logger.debug(f"Invalid search pattern {query!r}: {e}")
            return None

    terms = [t.strip() for t in OR_PATTERN.split(query) if t.strip()]
    if not terms:
        return None
    return re.compile("|".join(re.escape(t) for t in terms), re.IGNORECASE)


def text_matches_query(text: str, query: str, options: Optional[dict] = None) -> bool:
    """Check whether text matches a query. Invalid patterns never match."""
    if not text:
        return False
    pattern = compile_query(query, options)
    if pattern is None:
        return False
    return pattern.search(strip_styling(text)) is not None


def highlight_text(text: str, query: str, style_fn, options: Optional[dict] = None) -> str:
    """Wrap every match in text with style_fn, leaving escape sequences alone."""
    pattern = compile_query(query, options)
    if pattern is None or not text:
        return text

    parts = re.split(f"({ANSI_PATTERN.pattern})", text)
    for n in range(0, len(parts), 2):
        if parts[n]:
            parts[n] = pattern.sub(lambda m: style_fn(m.group(0)) if m.group(0) else "", parts[n])
    return "".join(parts)


def find_first_match_line(lines: list[str], query: str, options: Optional[dict] = None) -> int:
    """Index of the first line whose unstyled text matches, or -1."""
    pattern = compile_query(query, options)
    if pattern is None:
        return -1
    for n, line in enumerate(lines):
        if pattern.search(strip_styling(line)):
            return n
    return -1


def match_context(text: str, query: str, options: Optional[dict] = None, radius: int = 50) -> str:
    """Return the match with up to radius characters either side, flattened."""
    pattern = compile_query(query, options)
    if pattern is None or not text:
        return ""
    match = pattern.search(text)
    if match is None:
        return ""
    start = max(0, match.start() - radius)
    end = min(len(text), match.end() + radius)
    snippet = re.sub(r"\s+", " ", text[start:end]).strip()
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."
    return snippet


def parse_search_query(query: str) -> tuple[str, dict]:
    """Parse search query with modifiers.

    Syntax:
        project:api-server      - Filter by project name
        before:2024-01-15       - Sessions before date
        after:2024-01-01        - Sessions after date
        after:7d                - Sessions in the last 7 days

    Returns:
        (clean_query, filters_dict)
    """
    filters = {}

    for key, value in re.findall(MODIFIER_PATTERN, query or ""):
        if key == "project":
            filters["project"] = value
        elif key == "before":
            filters["before"] = parse_date_value(value)
        elif key == "after":
            filters["after"] = parse_date_value(value)

    clean_query = re.sub(MODIFIER_PATTERN, "", query or "")
    clean_query = re.sub(r"\s+", " ", clean_query).strip()

    return clean_query, filters


def parse_date_value(value: str) -> datetime | None:
    """Parse a date value (ISO date or relative like '7d', '1h')."""
    relative_match = re.match(r"^(\d+)([dhwm])$", value.lower())
    if relative_match:
        amount = int(relative_match.group(1))
        unit = relative_match.group(2)
        now = datetime.now()

        if unit == "h":
            return now - timedelta(hours=amount)
        elif unit == "d":
            return now - timedelta(days=amount)
        elif unit == "w":
            return now - timedelta(weeks=amount)
        elif unit == "m":
            return now - timedelta(days=amount * 30)

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass

    for fmt in ["%Y-%m-%d", "%Y/%m/%d", "%m-%d", "%m/%d"]:
        try:
            dt = datetime.strptime(value, fmt)
            if dt.year == 1900:
                dt = dt.replace(year=datetime.now().year)
            return dt
        except ValueError:
            continue

    return None
