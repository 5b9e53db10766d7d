"""Tests for session providers."""

import json
from pathlib import Path

import pytest

from session_scope.models import Session
from session_scope.providers.claude_code import ClaudeCodeProvider, clean_user_text


def entry(kind, content, timestamp, **extra):
    data = {
        "type": kind,
        "sessionId": "test-claude-session",
        "cwd": "/home/user/webapp",
        "timestamp": timestamp,
        "message": {"role": kind, "content": content},
    }
    data.update(extra)
    return data


def write_jsonl(path: Path, entries):
    path.write_text("\n".join(e if isinstance(e, str) else json.dumps(e) for e in entries) + "\n")


class TestClaudeCodeProvider:
    """Tests for Claude Code provider."""

    @pytest.fixture
    def claude_provider(self, tmp_path):
        return ClaudeCodeProvider(sessions_dir=tmp_path)

    @pytest.fixture
    def session_file(self, tmp_path):
        """Write a transcript with two conversations, a tool call and a result."""
        project_dir = tmp_path / "-home-user-webapp"
        project_dir.mkdir()
        path = project_dir / "test-claude-session.jsonl"
        assistant = entry(
            "assistant",
            [
                {"type": "thinking", "thinking": "Need a component file"},
                {"type": "text", "text": "Creating the component."},
                {"type": "tool_use", "id": "toolu_1", "name": "Write",
                 "input": {"file_path": "/src/App.jsx", "content": "export default App"}},
            ],
            "2024-01-15T10:00:30Z",
        )
        assistant["message"]["model"] = "claude-opus-4-5-20251101"
        assistant["message"]["usage"] = {"input_tokens": 100, "output_tokens": 50}
        write_jsonl(path, [
            {"type": "summary", "summary": "React work"},
            entry("user", "Create a React component", "2024-01-15T10:00:00Z"),
            assistant,
            entry("user", [{"type": "tool_result", "tool_use_id": "toolu_1", "content": "File written"}],
                  "2024-01-15T10:00:31Z"),
            "{not valid json",
            entry("user", "<system-reminder>ignore me</system-reminder>Now add tests", "2024-01-15T10:05:00Z"),
            entry("assistant", [{"type": "text", "text": "Tests added."}], "2024-01-15T10:06:00Z"),
            entry("user", "sidechain prompt", "2024-01-15T10:06:10Z", isSidechain=True),
        ])
        return path

    def test_provider_attributes(self, claude_provider):
        """Test provider has required attributes."""
        assert claude_provider.name == "claude-code"
        assert claude_provider.display_name == "Claude Code"
        assert claude_provider.icon == "🧠"

    def test_default_sessions_dir(self):
        """Test sessions directory path."""
        assert ClaudeCodeProvider().get_sessions_dir() == Path.home() / ".claude" / "projects"

    def test_get_resume_command(self, claude_provider):
        """Test resume command generation."""
        session = Session(
            id="test-456",
            harness="claude-code",
            raw_path=Path("/tmp/test.jsonl"),
            project_path=Path("/home/user/webapp"),
            project_name="webapp",
        )
        assert claude_provider.get_resume_command(session) == "claude --resume test-456"

    def test_parse_conversations(self, claude_provider, session_file):
        """Test user turns open conversations and assistant content attaches to them."""
        session = claude_provider.parse_session(session_file)

        assert session is not None
        assert session.id == "test-claude-session"
        assert session.project_name == "webapp"
        assert session.model == "claude-opus-4-5-20251101"
        assert session.total_conversations == 2

        first, second = session.conversations
        assert first.user_message == "Create a React component"
        assert first.assistant_response == "Creating the component."
        assert first.thinking == ["Need a component file"]
        assert [b.kind for b in first.blocks] == ["thinking", "text", "tool_use"]
        assert first.response_time == 30.0
        assert second.user_message == "Now add tests"
        assert second.index == 1

    def test_tool_results_attach_by_id(self, claude_provider, session_file):
        """Test tool_result entries fill in the matching tool use."""
        session = claude_provider.parse_session(session_file)
        tool = session.conversations[0].get_tool("toolu_1")
        assert tool is not None
        assert tool.name == "Write"
        assert tool.result == "File written"
        assert not tool.is_error

    def test_session_metrics(self, claude_provider, session_file):
        """Test duration spans first to last entry and tokens are summed."""
        session = claude_provider.parse_session(session_file)
        assert session.duration_ms == 6 * 60 * 1000
        assert session.total_tokens == 150
        assert session.tool_count == 1

    def test_continuation_is_merged(self, claude_provider, tmp_path):
        """Test a compaction continuation does not open a new conversation."""
        path = tmp_path / "continued.jsonl"
        write_jsonl(path, [
            entry("user", "Refactor the parser", "2024-01-15T10:00:00Z"),
            entry("assistant", [{"type": "text", "text": "Working on it."}], "2024-01-15T10:01:00Z"),
            entry("user", "This session is being continued from a previous conversation.", "2024-01-15T11:00:00Z",
                  isCompactSummary=True),
            entry("assistant", [{"type": "text", "text": "Done."}], "2024-01-15T11:02:00Z"),
        ])
        session = claude_provider.parse_session(path)
        assert session.total_conversations == 1
        assert session.conversations[0].assistant_response == "Working on it.\nDone."

    def test_mixed_timestamp_offsets(self, claude_provider, tmp_path):
        """Test timestamps without an offset are read as UTC."""
        project_dir = tmp_path / "-home-user-webapp"
        project_dir.mkdir()
        write_jsonl(project_dir / "mixed.jsonl", [
            entry("user", "Hello", "2024-01-01T10:00:00"),
            entry("assistant", [{"type": "text", "text": "Hi."}], "2024-01-01T10:00:05Z"),
        ])
        sessions = claude_provider.load_sessions()
        assert len(sessions) == 1
        assert sessions[0].conversations[0].response_time == 5.0
        assert sessions[0].duration_ms == 5000
        assert sessions[0].start_time.tzinfo is not None

    def test_empty_transcript_is_skipped(self, claude_provider, tmp_path):
        """Test files without conversations produce no session."""
        path = tmp_path / "empty.jsonl"
        write_jsonl(path, [{"type": "summary", "summary": "nothing"}])
        assert claude_provider.parse_session(path) is None

    def test_load_sessions(self, claude_provider, session_file):
        """Test discovery walks project directories."""
        sessions = claude_provider.load_sessions()
        assert [s.id for s in sessions] == ["test-claude-session"]

    def test_unreadable_file_is_skipped(self, claude_provider, session_file):
        """Test a file that is not valid UTF-8 does not stop discovery."""
        (session_file.parent / "broken.jsonl").write_bytes(b"\xff\xfe\x00garbage")
        assert [s.id for s in claude_provider.load_sessions()] == ["test-claude-session"]

    def test_missing_directory(self, tmp_path):
        """Test a provider without a sessions directory finds nothing."""
        provider = ClaudeCodeProvider(sessions_dir=tmp_path / "absent")
        assert not provider.is_available()
        assert provider.load_sessions() == []

    def test_clean_user_text(self):
        """Test injected wrappers are stripped and slash commands kept."""
        text = "<command-name>/review</command-name><command-message>review</command-message>"
        assert clean_user_text(text) == "/review"
        assert clean_user_text("<system-reminder>x</system-reminder>hello") == "hello"


class TestProviderRegistry:
    """Tests for provider registry."""

    def test_get_available_providers(self):
        """Test getting available providers."""
        from session_scope.providers import get_available_providers

        providers = get_available_providers()
        # Should return list (may be empty if dirs don't exist)
        assert isinstance(providers, list)

    def test_get_all_providers(self):
        """Test getting all registered providers."""
        from session_scope.providers import get_all_providers

        names = [p.name for p in get_all_providers()]
        assert "claude-code" in names

    def test_get_provider_by_name(self):
        """Test getting provider by name."""
        from session_scope.providers import get_provider

        claude = get_provider("claude-code")
        assert claude is not None
        assert claude.name == "claude-code"
        assert get_provider("unknown-provider") is None

    def test_discover_all_sessions(self, tmp_path):
        """Test discovery merges providers and sorts by last activity."""
        from session_scope.providers import discover_all_sessions

        project_dir = tmp_path / "-home-user-api"
        project_dir.mkdir()
        for name, stamp in (("old", "2024-01-01T10:00:00Z"), ("new", "2024-02-01T10:00:00Z")):
            write_jsonl(project_dir / f"{name}.jsonl", [
                entry("user", f"{name} question", stamp, sessionId=name),
                entry("assistant", [{"type": "text", "text": "answer"}], stamp, sessionId=name),
            ])
        sessions = discover_all_sessions([ClaudeCodeProvider(sessions_dir=tmp_path)])
        assert [s.id for s in sessions] == ["new", "old"]
