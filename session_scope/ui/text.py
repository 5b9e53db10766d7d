"""Display-width measurement, truncation, wrapping and list windowing.

All width math for the renderer lives here. Styling escape sequences
(``ESC [ params letter``) take up string length but no terminal columns, so
every function below measures text with them skipped.
"""

import re
import unicodedata
from typing import Iterator

ANSI_PATTERN = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")

ELLIPSIS = "…"

# East-Asian wide blocks and emoji blocks
WIDE_RANGES = [
    (0x1100, 0x115F),  # Hangul Jamo
    (0x2E80, 0x2EFF),  # CJK Radicals Supplement
    (0x2F00, 0x2FDF),  # Kangxi Radicals
    (0x3000, 0x303F),  # CJK Symbols and Punctuation
    (0x3040, 0x309F),  # Hiragana
    (0x30A0, 0x30FF),  # Katakana
    (0x3100, 0x312F),  # Bopomofo
    (0x3130, 0x318F),  # Hangul Compatibility Jamo
    (0x3190, 0x31FF),  # Kanbun, CJK Strokes, Katakana extensions
    (0x3200, 0x32FF),  # Enclosed CJK Letters and Months
    (0x3300, 0x33FF),  # CJK Compatibility
    (0x3400, 0x4DBF),  # CJK Extension A
    (0x4E00, 0x9FFF),  # CJK Unified Ideographs
    (0xA000, 0xA4CF),  # Yi
    (0xAC00, 0xD7AF),  # Hangul Syllables
    (0xF900, 0xFAFF),  # CJK Compatibility Ideographs
    (0xFE30, 0xFE4F),  # CJK Compatibility Forms
    (0xFF00, 0xFF60),  # Fullwidth Forms
    (0xFFE0, 0xFFE6),  # Fullwidth Signs
    (0x1F000, 0x1F02F),  # Mahjong
    (0x1F0A0, 0x1F0FF),  # Playing cards
    (0x1F100, 0x1F1FF),  # Enclosed Alphanumeric Supplement
    (0x1F200, 0x1F2FF),  # Enclosed Ideographic Supplement
    (0x1F300, 0x1F5FF),  # Misc Symbols and Pictographs
    (0x1F600, 0x1F64F),  # Emoticons
    (0x1F680, 0x1F6FF),  # Transport and Map
    (0x1F900, 0x1F9FF),  # Supplemental Symbols and Pictographs
    (0x1FA70, 0x1FAFF),  # Symbols and Pictographs Extended-A
    (0x20000, 0x2FFFD),  # CJK Extensions B-F
    (0x30000, 0x3FFFD),  # CJK Extension G
]

# Single glyphs used by the dashboard that terminals draw two columns wide
WIDE_GLYPHS = {
    0x231A, 0x231B,  # ⌚ ⌛
    0x23BF,  # ⎿
    0x23E9, 0x23EA, 0x23EB, 0x23EC,  # ⏩ ⏪ ⏫ ⏬
    0x23F0, 0x23F1, 0x23F3,  # ⏰ ⏱ ⏳
    0x23FA,  # ⏺
    0x2139,  # ℹ
    0x25B6, 0x25C0,  # ▶ ◀
    0x26A0,  # ⚠
    0x2705,  # ✅
    0x274C,  # ❌
    0x2753, 0x2757,  # ❓ ❗
    0x2B06, 0x2B07,  # ⬆ ⬇
}

ZERO_WIDTH_RANGES = [
    (0x0300, 0x036F),  # Combining Diacritical Marks
    (0x1AB0, 0x1AFF),  # Combining Diacritical Marks Extended
    (0x1DC0, 0x1DFF),  # Combining Diacritical Marks Supplement
    (0x200B, 0x200F),  # zero-width space, joiners, direction marks
    (0x20D0, 0x20FF),  # Combining Marks for Symbols
    (0xFE00, 0xFE0F),  # Variation Selectors
    (0xFE20, 0xFE2F),  # Combining Half Marks
]


def _in_ranges(code: int, ranges: list[tuple[int, int]]) -> bool:
    for start, end in ranges:
        if start <= code <= end:
            return True
    return False


def _is_high_surrogate(char: str) -> bool:
    return 0xD800 <= ord(char) <= 0xDBFF


def _is_low_surrogate(char: str) -> bool:
    return 0xDC00 <= ord(char) <= 0xDFFF


def char_width(char: str) -> int:
    """Terminal columns taken by a single glyph (0, 1 or 2)."""
    if not char:
        return 0
    # A surrogate pair that survived decoding is one astral glyph
    if len(char) >= 2 and _is_high_surrogate(char[0]) and _is_low_surrogate(char[1]):
        return 2
    code = ord(char[0])
    if code < 0x20 or 0x7F <= code < 0xA0:
        return 0
    if code < 0x7F:
        return 1
    if _in_ranges(code, ZERO_WIDTH_RANGES):
        return 0
    if code in WIDE_GLYPHS or _in_ranges(code, WIDE_RANGES):
        return 2
    if unicodedata.combining(char[0]):
        return 0
    return 1


def iter_glyphs(text: str) -> Iterator[str]:
    """Yield logical glyphs and escape sequences from text.

    A glyph is a base character together with any zero-width marks that follow
    it. Surrogate pairs are kept together. Escape sequences are yielded whole so
    callers can pass them through without measuring them.
    """
    i = 0
    length = len(text)
    while i < length:
        if text[i] == "\x1b":
            match = ANSI_PATTERN.match(text, i)
            if match:
                yield match.group(0)
                i = match.end()
                continue
        end = i + 1
        if _is_high_surrogate(text[i]) and end < length and _is_low_surrogate(text[end]):
            end += 1
        # Attach trailing combining marks to the base glyph
        while end < length and text[end] != "\x1b" and char_width(text[end]) == 0 and ord(text[end]) >= 0x20:
            end += 1
        yield text[i:end]
        i = end


def glyph_width(glyph: str) -> int:
    if glyph.startswith("\x1b"):
        return 0
    return char_width(glyph)


def display_width(text: str) -> int:
    """Terminal columns needed to show text."""
    if not text:
        return 0
    return sum(glyph_width(g) for g in iter_glyphs(text))


def strip_styling(text: str) -> str:
    """Remove styling escape sequences."""
    return ANSI_PATTERN.sub("", text)


def truncate(text: str, max_width: int, ellipsis: str = ELLIPSIS, safety_margin: int = 0) -> str:
    """Cut text down to max_width columns, ending with an ellipsis.

    Text that already fits is returned unchanged, styling included. Otherwise
    the styling is dropped and glyphs are kept while they fit in
    ``max_width - width(ellipsis) - safety_margin``.
    """
    if max_width <= 0:
        return ""
    if display_width(text) <= max_width:
        return text

    plain = strip_styling(text)
    ellipsis_width = display_width(ellipsis)
    if ellipsis_width > max_width:
        ellipsis, ellipsis_width = "", 0
    budget = max(0, max_width - ellipsis_width - safety_margin)

    kept = []
    used = 0
    for glyph in iter_glyphs(plain):
        width = glyph_width(glyph)
        if used + width > budget:
            break
        kept.append(glyph)
        used += width
    return "".join(kept) + ellipsis


def pad_to_width(text: str, width: int, align: str = "left") -> str:
    """Pad text with spaces to exactly width columns (longer text is left alone)."""
    padding = width - display_width(text)
    if padding <= 0:
        return text
    if align == "right":
        return " " * padding + text
    if align == "center":
        left = padding // 2
        return " " * left + text + " " * (padding - left)
    return text + " " * padding


def fit(text: str, width: int, align: str = "left") -> str:
    """Truncate then pad so text occupies exactly width columns."""
    return pad_to_width(truncate(text, width), width, align)


def clean_text(text: str) -> str:
    """Collapse whitespace and drop control characters for one-line previews."""
    if not text:
        return ""
    text = strip_styling(text)
    text = re.sub(r"[\x00-\x08\x0b-\x1f\x7f]", "", text)
    return re.sub(r"\s+", " ", text).strip()


def _sanitize(text: str) -> str:
    """Expand tabs and drop control characters that would move the cursor."""
    text = text.replace("\t", "    ").replace("\r", "")
    return re.sub(r"[\x00-\x08\x0b-\x1a\x1c-\x1f\x7f]", "", text)


def _split_word(word: str, max_width: int) -> list[str]:
    """Hard-split a word wider than max_width glyph by glyph."""
    pieces = []
    current = []
    used = 0
    for glyph in iter_glyphs(word):
        width = glyph_width(glyph)
        if used + width > max_width and current:
            pieces.append("".join(current))
            current, used = [], 0
        current.append(glyph)
        used += width
    if current:
        pieces.append("".join(current))
    return pieces


def wrap_text(text: str, max_width: int) -> list[str]:
    """Word-wrap text into lines of at most max_width columns.

    Explicit newlines are kept. Words wider than a whole line are split glyph
    by glyph. An empty paragraph yields one empty line.
    """
    if max_width < 1:
        max_width = 1
    lines: list[str] = []
    for paragraph in _sanitize(text or "").split("\n"):
        if display_width(paragraph) <= max_width:
            lines.append(paragraph)
            continue

        body = paragraph.lstrip(" ")
        # The first line keeps the paragraph's indentation
        indent = paragraph[:len(paragraph) - len(body)]
        if len(indent) >= max_width:
            indent = ""
        current = indent
        current_width = len(indent)
        for word in body.split(" "):
            word_width = display_width(word)
            separator = 1 if current.strip() else 0
            if current_width + separator + word_width <= max_width:
                current = f"{current} {word}" if separator else current + word
                current_width += separator + word_width
                continue
            if current.strip():
                lines.append(current)
            if word_width > max_width:
                pieces = _split_word(word, max_width)
                lines.extend(pieces[:-1])
                current = pieces[-1] if pieces else ""
            else:
                current = word
            current_width = display_width(current)
        lines.append(current)
    return lines


def get_visible_range(total: int, selected: int, max_visible: int) -> tuple[int, int]:
    """Return the [start, end) window of a list that keeps selected on screen."""
    max_visible = max(1, max_visible)
    if total <= max_visible:
        return 0, max(0, total)
    start = max(0, selected - max_visible // 2)
    end = min(total, start + max_visible)
    if end - start < max_visible:
        start = max(0, end - max_visible)
    return start, end
