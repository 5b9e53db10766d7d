"""Shared fixtures: small in-memory sessions covering the common shapes."""

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from session_scope.models import ContentBlock, ConversationPair, Session, ToolUse
from session_scope.repository import SessionRepository
from session_scope.state import ViewState

BASE_TIME = datetime(2024, 1, 15, 10, 0)


def make_conversation(index, user, assistant="", minutes=0, response=30.0, tools=None, thinking=None):
    user_time = BASE_TIME + timedelta(minutes=minutes)
    tools = tools or []
    thinking = thinking or []
    blocks = [ContentBlock("thinking", t) for t in thinking]
    blocks += [ContentBlock("tool_use", tool_id=t.tool_id) for t in tools]
    if assistant:
        blocks.append(ContentBlock("text", assistant))
    return ConversationPair(
        index=index,
        user_message=user,
        assistant_response=assistant,
        user_time=user_time,
        assistant_time=user_time + timedelta(seconds=response),
        response_time=response,
        tool_uses=tools,
        thinking=thinking,
        blocks=blocks,
        token_count=100,
    )


def make_session(session_id, project, conversations, day_offset=0, duration_minutes=30):
    start = BASE_TIME - timedelta(days=day_offset)
    for conversation in conversations:
        conversation.user_time = conversation.user_time - timedelta(days=day_offset)
    return Session(
        id=session_id,
        raw_path=Path(f"/tmp/{session_id}.jsonl"),
        project_path=Path(f"/home/user/{project}"),
        project_name=project,
        conversations=conversations,
        start_time=start,
        last_activity=start + timedelta(minutes=duration_minutes),
        duration_ms=duration_minutes * 60 * 1000,
        model="claude-sonnet",
        total_tokens=100 * len(conversations),
    )


@pytest.fixture
def long_output():
    return "\n".join(f"line {n}" for n in range(1, 41))


@pytest.fixture
def sample_sessions(long_output):
    """Three sessions: two in project ``api`` and one in ``webapp``."""
    auth = make_session(
        "aaaaaaaa-1111-2222-3333-444444444444",
        "api",
        [
            make_conversation(0, "Help with authentication", "Use JWT tokens for auth.", minutes=0, response=12.0,
                              tools=[ToolUse("t-read", "Read", {"file_path": "/src/auth.py"}, result="import jwt")],
                              thinking=["The user wants secure login"]),
            make_conversation(1, "Add refresh tokens", "Refresh tokens added.", minutes=5, response=700.0,
                              tools=[ToolUse("t-bash", "Bash", {"command": "pytest"}, result=long_output)]),
            make_conversation(2, "Write the docs", "Docs written.", minutes=20, response=3.0),
        ],
        day_offset=0,
        duration_minutes=30,
    )
    react = make_session(
        "bbbbbbbb-1111-2222-3333-444444444444",
        "webapp",
        [
            make_conversation(0, "Create a React component", "Here is the component.", response=45.0,
                              tools=[ToolUse("t-task", "Task", {"description": "Explore the codebase",
                                                                "prompt": "Find all React components",
                                                                "subagent_type": "Explore"},
                                             result="Found 12 components")]),
            make_conversation(1, "Style it with CSS", "Styled.", minutes=10, response=20.0),
        ],
        day_offset=1,
        duration_minutes=120,
    )
    migrations = make_session(
        "cccccccc-1111-2222-3333-444444444444",
        "api",
        [
            make_conversation(0, "Add database migrations", "Migration created.", response=90.0,
                              tools=[ToolUse("t-edit", "Edit", {"file_path": "/db/migrate.py",
                                                                "old_string": "a\nb\nc",
                                                                "new_string": "a\nB\nc"})]),
        ],
        day_offset=2,
        duration_minutes=10,
    )
    return [auth, react, migrations]


@pytest.fixture
def repository(sample_sessions):
    return SessionRepository(sample_sessions)


@pytest.fixture
def state(repository):
    return ViewState(repository, terminal_width=120, terminal_height=40)


@pytest.fixture
def empty_state():
    return ViewState(SessionRepository([]), terminal_width=120, terminal_height=40)
