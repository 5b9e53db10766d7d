"""Tests for the line diff used by Edit tool inputs."""

from session_scope.ui.diff import create_unified_diff, trim_context


def rebuild(diff, keep):
    return "\n".join(line.content for line in diff if line.type in ("context", keep))


class TestUnifiedDiff:
    """Tests for create_unified_diff."""

    def test_identical_texts(self):
        diff = create_unified_diff("a\nb", "a\nb")
        assert [line.type for line in diff] == ["context", "context"]

    def test_changed_line(self):
        diff = create_unified_diff("a\nb\nc", "a\nB\nc")
        assert [(line.type, line.content) for line in diff] == [
            ("context", "a"),
            ("removed", "b"),
            ("added", "B"),
            ("context", "c"),
        ]

    def test_pure_insertion(self):
        diff = create_unified_diff("a\nc", "a\nb\nc")
        assert [line.type for line in diff] == ["context", "added", "context"]

    def test_pure_deletion(self):
        diff = create_unified_diff("a\nb\nc", "a\nc")
        assert [line.type for line in diff] == ["context", "removed", "context"]

    def test_rebuilds_both_sides(self):
        old = "def f():\n    return 1\n\nprint(f())"
        new = "def f(x):\n    return x\n\n\nprint(f(2))"
        diff = create_unified_diff(old, new)
        assert rebuild(diff, "added") == new
        assert rebuild(diff, "removed") == old

    def test_empty_old_text(self):
        diff = create_unified_diff("", "new")
        assert rebuild(diff, "added") == "new"


class TestTrimContext:
    """Tests for trim_context."""

    def test_no_changes_is_empty(self):
        assert trim_context(create_unified_diff("a", "a"), 3) == []

    def test_gap_markers(self):
        old = "\n".join(str(n) for n in range(20))
        new = old.replace("10", "ten")
        trimmed = trim_context(create_unified_diff(old, new), 2)
        assert trimmed[0] is None
        assert trimmed[-1] is None
        contents = [line.content for line in trimmed if line is not None]
        assert contents == ["8", "9", "10", "ten", "11", "12"]

    def test_wider_context_keeps_more(self):
        old = "\n".join(str(n) for n in range(20))
        new = old.replace("10", "ten")
        narrow = trim_context(create_unified_diff(old, new), 1)
        wide = trim_context(create_unified_diff(old, new), 5)
        assert len(wide) > len(narrow)
