"""Tests for width measurement, truncation, wrapping and windowing."""

import pytest

from session_scope.ui.text import (
    char_width,
    clean_text,
    display_width,
    fit,
    get_visible_range,
    pad_to_width,
    strip_styling,
    truncate,
    wrap_text,
)

RED = "\x1b[31m"
RESET = "\x1b[0m"


class TestDisplayWidth:
    """Tests for terminal column measurement."""

    def test_ascii(self):
        assert display_width("hello") == 5

    def test_cjk_is_double_width(self):
        assert display_width("日本語") == 6
        assert display_width("한국") == 4

    def test_emoji_is_double_width(self):
        assert display_width("🔍") == 2
        assert char_width("⏺") == 2
        assert char_width("✓") == 1

    def test_surrogate_pair_is_one_glyph(self):
        pair = "\ud83d\udd0d"
        assert display_width(pair) == 2
        assert display_width("a" + pair + "b") == 4

    def test_escape_sequences_are_zero_width(self):
        assert display_width(f"{RED}abc{RESET}") == 3

    def test_styling_does_not_change_width(self):
        from session_scope.ui.styles import RichStyleProvider

        style = RichStyleProvider()
        for role in ("header", "selection", "highlight", "muted"):
            assert display_width(strip_styling(style.apply(role, "日本 text"))) == display_width("日本 text")
            assert display_width(style.apply(role, "日本 text")) == 9

    def test_combining_marks_are_zero_width(self):
        assert display_width("é") == 1

    def test_control_characters_are_zero_width(self):
        assert char_width("\x07") == 0

    def test_empty(self):
        assert display_width("") == 0


class TestTruncate:
    """Tests for width-aware truncation."""

    def test_fitting_text_is_unchanged(self):
        styled = f"{RED}short{RESET}"
        assert truncate(styled, 10) == styled

    def test_adds_ellipsis(self):
        result = truncate("abcdefghij", 5)
        assert result == "abcd…"
        assert display_width(result) == 5

    def test_wide_glyph_never_split(self):
        result = truncate("日本語テキスト", 6)
        assert display_width(result) <= 6
        assert result.endswith("…")

    def test_strips_styling_when_cut(self):
        result = truncate(f"{RED}abcdefghij{RESET}", 4)
        assert "\x1b" not in result
        assert result == "abc…"

    def test_safety_margin(self):
        assert display_width(truncate("abcdefghij", 8, safety_margin=2)) <= 6

    def test_zero_width(self):
        assert truncate("abc", 0) == ""

    @pytest.mark.parametrize("width", [1, 2, 3, 7, 13])
    def test_never_exceeds_width(self, width):
        text = "mixed 日本 text with emoji 🔍 and more"
        assert display_width(truncate(text, width)) <= width


class TestPadding:
    """Tests for padding and fitting to a column width."""

    def test_pad_left_aligned(self):
        assert pad_to_width("ab", 4) == "ab  "

    def test_pad_right_aligned(self):
        assert pad_to_width("ab", 4, "right") == "  ab"

    def test_pad_accounts_for_wide_glyphs(self):
        assert display_width(pad_to_width("日本", 6)) == 6

    def test_fit_is_exact(self):
        assert display_width(fit("a long project name", 8)) == 8
        assert display_width(fit("ab", 8)) == 8


class TestWrap:
    """Tests for word wrapping."""

    def test_wraps_on_words(self):
        assert wrap_text("the quick brown fox", 10) == ["the quick", "brown fox"]

    def test_keeps_newlines(self):
        assert wrap_text("one\n\ntwo", 10) == ["one", "", "two"]

    def test_splits_long_words(self):
        lines = wrap_text("a" * 25, 10)
        assert lines == ["a" * 10, "a" * 10, "a" * 5]

    def test_wide_glyphs_respect_width(self):
        for line in wrap_text("日本語" * 10, 7):
            assert display_width(line) <= 7

    def test_tabs_expanded(self):
        assert wrap_text("\tx", 20) == ["    x"]

    def test_empty(self):
        assert wrap_text("", 10) == [""]

    def test_keeps_indent_on_first_line(self):
        lines = wrap_text("        " + "word " * 30, 40)
        assert lines[0] == "        " + " ".join(["word"] * 6)
        assert all(line.startswith("word") for line in lines[1:])
        assert all(display_width(line) <= 40 for line in lines)


class TestVisibleRange:
    """Tests for list windowing around the selection."""

    def test_short_list_shows_everything(self):
        assert get_visible_range(5, 2, 10) == (0, 5)

    def test_empty_list(self):
        assert get_visible_range(0, 0, 10) == (0, 0)

    def test_centres_selection(self):
        start, end = get_visible_range(100, 50, 10)
        assert start <= 50 < end
        assert end - start == 10

    def test_clamps_at_end(self):
        assert get_visible_range(100, 99, 10) == (90, 100)

    def test_clamps_at_start(self):
        assert get_visible_range(100, 0, 10) == (0, 10)


class TestCleanText:
    """Tests for one-line previews."""

    def test_collapses_whitespace(self):
        assert clean_text("a\n\n  b\tc") == "a b c"

    def test_strips_styling(self):
        assert clean_text(f"{RED}x{RESET}") == "x"
        assert strip_styling(f"{RED}x{RESET}") == "x"
