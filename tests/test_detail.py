"""Tests for long-form document layout and scrolling."""

from session_scope.models import RenderLine, ToolUse
from session_scope.ui.detail import (
    build_conversation_document,
    build_subagent_document,
    format_tool_input,
    get_key_params,
    resolve_scroll,
    result_text,
    scroll_indicator,
)
from session_scope.ui.styles import PlainStyleProvider
from session_scope.ui.text import display_width

STYLE = PlainStyleProvider()


def texts(doc):
    return [line.text for line in doc.lines]


class TestConversationDocument:
    """Tests for build_conversation_document."""

    def test_sections_in_order(self, sample_sessions):
        doc = build_conversation_document(sample_sessions[0].conversations[0], STYLE, 80, total=3)
        lines = texts(doc)
        assert "━━━ Conversation #1 of 3 ━━━" in lines
        order = [lines.index(marker) for marker in ("👤 USER", "🤖 ASSISTANT", "⏺ Thinking")]
        assert order == sorted(order)
        assert any(line.startswith("⏺ Read(auth.py)") for line in lines)

    def test_long_output_collapses(self, sample_sessions):
        conversation = sample_sessions[0].conversations[1]
        collapsed = build_conversation_document(conversation, STYLE, 80)
        expanded = build_conversation_document(conversation, STYLE, 80, expanded={"t-bash": True})
        assert collapsed.tool_ids == ["t-bash"]
        assert len(expanded.lines) == len(collapsed.lines) + 19
        assert not any("line 40" in line for line in texts(collapsed))
        assert any("line 40" in line for line in texts(expanded))

    def test_long_thinking_collapses(self, sample_sessions):
        conversation = sample_sessions[0].conversations[0]
        conversation.blocks[0].text = "\n".join(f"thought {n}" for n in range(30))
        doc = build_conversation_document(conversation, STYLE, 80)
        assert "thinking-0-0" in doc.tool_ids

    def test_lines_fit_width(self, sample_sessions):
        conversation = sample_sessions[0].conversations[1]
        conversation.user_message = "x" * 300
        doc = build_conversation_document(conversation, STYLE, 40, expanded={"t-bash": True})
        assert all(display_width(line.text) <= 40 for line in doc.lines)

    def test_highlight(self, sample_sessions):
        doc = build_conversation_document(
            sample_sessions[0].conversations[1], STYLE, 80, highlight_query="refresh"
        )
        assert any("refresh" in line for line in texts(doc))


class TestSubagentDocument:
    """Tests for build_subagent_document."""

    def test_prompt_and_result(self, sample_sessions):
        session = sample_sessions[1]
        tool = session.conversations[0].tool_uses[0]
        lines = texts(build_subagent_document(session, tool, STYLE, 80))
        assert "🤖 Agent: Explore" in lines
        assert "📝 Explore the codebase" in lines
        assert any("Found 12 components" in line for line in lines)

    def test_long_result_uses_subagent_id(self, sample_sessions, long_output):
        tool = ToolUse("t-9", "Task", {"prompt": "go"}, result=long_output)
        doc = build_subagent_document(sample_sessions[1], tool, STYLE, 80)
        assert doc.tool_ids == ["subagent-t-9"]

    def test_missing_tool(self):
        assert "No sub-agent task selected" in texts(build_subagent_document(None, None, STYLE, 80))


class TestToolFormatting:
    """Tests for tool parameter rendering."""

    def test_edit_diff(self, sample_sessions):
        tool = sample_sessions[2].conversations[0].tool_uses[0]
        lines = format_tool_input(tool, 3, STYLE)
        assert lines[0] == "file: /db/migrate.py"
        assert any(line.endswith("- b") for line in lines)
        assert any(line.endswith("+ B") for line in lines)

    def test_bash(self):
        tool = ToolUse("1", "Bash", {"command": "ls\npwd", "description": "look around"})
        assert format_tool_input(tool, 3, STYLE) == ["command: ls", "         pwd", "purpose: look around"]

    def test_todos(self):
        tool = ToolUse("1", "TodoWrite", {"todos": [
            {"content": "done", "status": "completed"},
            {"content": "doing", "status": "in_progress"},
            {"content": "later", "status": "pending"},
        ]})
        assert format_tool_input(tool, 3, STYLE) == ["✓ done", "◐ doing", "○ later"]

    def test_key_params(self):
        assert get_key_params(ToolUse("1", "Read", {"file_path": "/a/b/c.py"})) == "c.py"
        assert get_key_params(ToolUse("1", "Bash", {"command": "x" * 40})) == "x" * 30 + "..."
        assert get_key_params(ToolUse("1", "Grep", {"pattern": "TODO"})) == "TODO"
        assert get_key_params(ToolUse("1", "Unknown", {})) == ""

    def test_result_text(self):
        assert result_text(None) == ""
        assert result_text("plain") == "plain"
        assert "hello" in result_text([{"type": "text", "text": "hello"}])


class TestScrolling:
    """Tests for resolve_scroll and scroll_indicator."""

    LINES = [RenderLine(f"line {n}") for n in range(100)]

    def test_clamps_offset(self):
        assert resolve_scroll(self.LINES, 10, 500).offset == 90
        assert resolve_scroll(self.LINES, 10, -5).offset == 0

    def test_scroll_to_end(self):
        window = resolve_scroll(self.LINES, 10, 0, scroll_to_end=True)
        assert window.offset == 90
        assert window.consumed_scroll_to_end

    def test_scroll_to_match(self):
        window = resolve_scroll(self.LINES, 30, 0, scroll_to_search_match=True, query="line 50")
        assert window.consumed_search_match
        assert window.offset == 50 - 3

    def test_match_wins_over_end(self):
        window = resolve_scroll(self.LINES, 10, 0, scroll_to_end=True, scroll_to_search_match=True, query="line 5")
        assert window.offset == 4

    def test_short_document(self):
        window = resolve_scroll(self.LINES[:5], 10, 3)
        assert (window.offset, window.max_offset) == (0, 0)

    def test_indicator(self):
        assert scroll_indicator(0, 10, 100, 90) == "[1-10/100] 0%"
        assert scroll_indicator(90, 10, 100, 90) == "[91-100/100] 100%"
        assert scroll_indicator(0, 10, 5, 0) == "[1-5/5] 100%"
        assert scroll_indicator(0, 10, 0, 0) == "[0-0/0] 100%"
