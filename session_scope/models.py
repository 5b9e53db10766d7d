"""Session, conversation and screen models."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional


@dataclass
class ToolUse:
    """A single tool invocation recorded in an assistant turn."""

    tool_id: str
    name: str
    input: dict = field(default_factory=dict)
    result: Any = None
    is_error: bool = False
    timestamp: Optional[datetime] = None

    @property
    def is_subagent(self) -> bool:
        return self.name == "Task"


@dataclass
class ContentBlock:
    """One piece of assistant content, kept in transcript order."""

    kind: str  # "thinking", "text" or "tool_use"
    text: str = ""
    tool_id: str = ""


@dataclass
class ConversationPair:
    """One user turn and the assistant's reply to it."""

    index: int
    user_message: str
    assistant_response: str = ""

    # Timing
    user_time: Optional[datetime] = None
    assistant_time: Optional[datetime] = None
    response_time: float = 0.0  # seconds

    # Assistant content
    tool_uses: list[ToolUse] = field(default_factory=list)
    thinking: list[str] = field(default_factory=list)
    blocks: list[ContentBlock] = field(default_factory=list)
    token_count: int = 0

    @property
    def tool_count(self) -> int:
        return len(self.tool_uses)

    def get_tool(self, tool_id: str) -> Optional[ToolUse]:
        for tool in self.tool_uses:
            if tool.tool_id == tool_id:
                return tool
        return None


@dataclass
class Session:
    """A recorded transcript with its conversations and aggregate metrics."""

    # Identity
    id: str
    raw_path: Path
    harness: str = "claude-code"

    # Project context
    project_path: Path = field(default_factory=Path)
    project_name: str = ""

    # Content
    conversations: list[ConversationPair] = field(default_factory=list)

    # Timing
    start_time: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    duration_ms: int = 0

    # Metadata
    model: str = ""
    total_tokens: int = 0
    extra: dict = field(default_factory=dict)

    @property
    def display_id(self) -> str:
        if len(self.id) > 8:
            return f"{self.id[:8]}...{self.id[-4:]}"
        return self.id

    @property
    def total_conversations(self) -> int:
        return len(self.conversations)

    @property
    def tool_count(self) -> int:
        return sum(c.tool_count for c in self.conversations)


@dataclass
class SearchResult:
    """A conversation that matched a search, with surrounding context."""

    session_id: str
    project_name: str
    conversation_index: int
    match_type: str  # "user", "assistant" or "thinking"
    match_context: str
    user_time: Optional[datetime] = None
    response_time: float = 0.0
    tool_count: int = 0


@dataclass
class RenderLine:
    """A single screen row: text (possibly styled) plus its semantic role."""

    text: str
    style: str = "plain"

    @property
    def plain(self) -> str:
        from .ui.text import strip_styling

        return strip_styling(self.text)


@dataclass
class RenderResult:
    """The output of one render pass.

    Besides the screen rows, a pass reports the collapsible region ids it laid
    out and how it resolved scrolling, so the caller can fold those back into
    the view state once rendering is done.
    """

    lines: list[RenderLine] = field(default_factory=list)
    tool_ids: list[str] = field(default_factory=list)
    max_scroll_offset: int = 0
    scroll_offset: int = 0
    consumed_scroll_to_end: bool = False
    consumed_search_match: bool = False
