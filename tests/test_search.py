"""Tests for search functionality."""

from datetime import datetime, timedelta

from session_scope.search import (
    compile_query,
    find_first_match_line,
    highlight_text,
    match_context,
    parse_date_value,
    parse_search_query,
    text_matches_query,
)


def mark(text):
    return f"[{text}]"


class TestQueryParsing:
    """Tests for search query parsing."""

    def test_simple_query(self):
        """Test parsing a simple query with no modifiers."""
        query, filters = parse_search_query("authentication")
        assert query == "authentication"
        assert filters == {}

    def test_project_modifier(self):
        """Test parsing project: modifier."""
        query, filters = parse_search_query("project:api-server JWT")
        assert query == "JWT"
        assert filters["project"] == "api-server"

    def test_date_modifiers(self):
        """Test parsing date modifiers."""
        query, filters = parse_search_query("after:7d before:1d auth")
        assert query == "auth"
        assert "after" in filters
        assert "before" in filters


class TestDateParsing:
    """Tests for date value parsing."""

    def test_relative_days(self):
        """Test parsing relative day values."""
        result = parse_date_value("7d")
        assert result is not None
        expected = datetime.now() - timedelta(days=7)
        assert abs((result - expected).total_seconds()) < 60

    def test_relative_hours(self):
        """Test parsing relative hour values."""
        result = parse_date_value("24h")
        assert result is not None
        expected = datetime.now() - timedelta(hours=24)
        assert abs((result - expected).total_seconds()) < 60

    def test_iso_date(self):
        """Test parsing ISO date format."""
        result = parse_date_value("2024-01-15")
        assert result is not None
        assert (result.year, result.month, result.day) == (2024, 1, 15)

    def test_invalid_date(self):
        """Test parsing invalid date returns None."""
        assert parse_date_value("not-a-date") is None


class TestQueryMatching:
    """Tests for substring, OR and regex matching."""

    def test_substring_is_case_insensitive(self):
        assert text_matches_query("Use JWT tokens", "jwt")

    def test_special_characters_are_literal(self):
        assert text_matches_query("call f(x)", "f(x)")
        assert not text_matches_query("call fx", "f(x)")

    def test_or_terms(self):
        assert text_matches_query("React component", "vue OR react")
        assert text_matches_query("Vue component", "vue or react")
        assert not text_matches_query("Svelte component", "vue OR react")

    def test_regex(self):
        assert text_matches_query("error 404", r"error \d+", {"regex": True})
        assert not text_matches_query("error x", r"error \d+", {"regex": True})

    def test_invalid_regex_matches_nothing(self):
        assert compile_query("[unclosed", {"regex": True}) is None
        assert not text_matches_query("[unclosed", "[unclosed", {"regex": True})

    def test_empty_query(self):
        assert compile_query("   ") is None
        assert not text_matches_query("anything", "")


class TestHighlighting:
    """Tests for match highlighting and context."""

    def test_highlights_every_match(self):
        assert highlight_text("a cat and a Cat", "cat", mark) == "a [cat] and a [Cat]"

    def test_leaves_escape_sequences_alone(self):
        styled = "\x1b[31mred\x1b[0m"
        assert highlight_text(styled, "31", mark) == styled

    def test_no_query_returns_text(self):
        assert highlight_text("text", "", mark) == "text"

    def test_first_match_line(self):
        lines = ["intro", "nothing", "the Match", "match again"]
        assert find_first_match_line(lines, "match") == 2
        assert find_first_match_line(lines, "absent") == -1

    def test_match_context(self):
        text = "x" * 100 + " needle " + "y" * 100
        context = match_context(text, "needle", radius=10)
        assert context.startswith("...")
        assert context.endswith("...")
        assert "needle" in context

    def test_match_context_short_text(self):
        assert match_context("find the needle", "needle") == "find the needle"
