"""Claude Code session provider."""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..models import ContentBlock, ConversationPair, Session, ToolUse
from . import register_provider
from .base import SessionProvider

logger = logging.getLogger(__name__)

SESSIONS_DIR = Path.home() / ".claude" / "projects"

# Wrappers Claude Code injects into user turns
WRAPPER_PATTERN = re.compile(
    r"<(system-reminder|local-command-stdout|local-command-caveat|command-message|command-args)>.*?</\1>",
    re.DOTALL,
)
COMMAND_NAME_PATTERN = re.compile(r"<command-name>(.*?)</command-name>", re.DOTALL)
CONTINUATION_PATTERNS = [
    re.compile(r"Please continue the conversation from where we left it off", re.IGNORECASE),
    re.compile(r"This session is being continued from a previous conversation", re.IGNORECASE),
]
CONTINUATION_MESSAGES = {"つづけて", "続けて"}


def decode_path(encoded: str) -> str:
    """Decode directory name back to original path."""
    return encoded.replace("-", "/")


def parse_timestamp(value) -> Optional[datetime]:
    """Aware datetime for a transcript timestamp; values without an offset are UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def clean_user_text(text: str) -> str:
    """Strip injected wrappers, keeping the slash command a user typed."""
    text = COMMAND_NAME_PATTERN.sub(lambda m: m.group(1).strip(), text)
    return WRAPPER_PATTERN.sub("", text).strip()


def extract_user_text(content) -> str:
    """Text a user typed, from string or list message content."""
    if isinstance(content, str):
        return clean_user_text(content)
    if isinstance(content, list):
        texts = []
        for item in content:
            if isinstance(item, dict) and item.get("type") == "text":
                texts.append(item.get("text", ""))
            elif isinstance(item, str):
                texts.append(item)
        return clean_user_text("\n".join(texts))
    return ""


def tool_results(content) -> list[dict]:
    if not isinstance(content, list):
        return []
    return [item for item in content if isinstance(item, dict) and item.get("type") == "tool_result"]


def is_continuation(entry: dict, text: str) -> bool:
    """Check whether a user entry only resumes the previous turn after compaction."""
    if entry.get("isCompactSummary"):
        return True
    if text.strip() in CONTINUATION_MESSAGES:
        return True
    return any(p.search(text) for p in CONTINUATION_PATTERNS)


def token_usage(message: dict) -> int:
    usage = message.get("usage") or {}
    total = 0
    for key in ("input_tokens", "output_tokens"):
        value = usage.get(key)
        if isinstance(value, int):
            total += value
    return total


class ConversationBuilder:
    """Folds transcript entries into conversation pairs.

    A user text entry opens a pair, assistant entries append thinking, text
    and tool-use blocks to the open pair, and tool results are attached to
    their tool use by id.
    """

    def __init__(self):
        self.pairs: list[ConversationPair] = []
        self.current: Optional[ConversationPair] = None
        self.tools: dict[str, ToolUse] = {}
        self.total_tokens = 0
        self.model = ""

    def add(self, entry: dict):
        if entry.get("isSidechain"):
            return
        entry_type = entry.get("type")
        if entry_type == "user":
            self._add_user(entry)
        elif entry_type == "assistant":
            self._add_assistant(entry)

    def _add_user(self, entry: dict):
        message = entry.get("message") or {}
        content = message.get("content", "")
        timestamp = parse_timestamp(entry.get("timestamp"))

        results = tool_results(content)
        if results:
            for item in results:
                tool = self.tools.get(item.get("tool_use_id", ""))
                if tool is not None:
                    tool.result = item.get("content")
                    tool.is_error = bool(item.get("is_error"))
            return

        text = extract_user_text(content)
        if not text:
            return

        if self.current is not None and is_continuation(entry, text):
            logger.debug(f"Merging continuation into conversation #{self.current.index + 1}")
            return

        self.current = ConversationPair(index=len(self.pairs), user_message=text, user_time=timestamp)
        self.pairs.append(self.current)

    def _add_assistant(self, entry: dict):
        pair = self.current
        if pair is None:
            return
        message = entry.get("message") or {}
        timestamp = parse_timestamp(entry.get("timestamp"))
        if not self.model and message.get("model"):
            self.model = message["model"]

        tokens = token_usage(message)
        pair.token_count += tokens
        self.total_tokens += tokens

        content = message.get("content", "")
        if isinstance(content, str):
            content = [{"type": "text", "text": content}]
        for item in content if isinstance(content, list) else []:
            if not isinstance(item, dict):
                continue
            kind = item.get("type")
            if kind == "thinking" and item.get("thinking"):
                pair.thinking.append(item["thinking"])
                pair.blocks.append(ContentBlock("thinking", item["thinking"]))
            elif kind == "text" and item.get("text"):
                pair.blocks.append(ContentBlock("text", item["text"]))
                if pair.assistant_response:
                    pair.assistant_response += "\n"
                pair.assistant_response += item["text"]
            elif kind == "tool_use":
                tool = ToolUse(
                    tool_id=item.get("id", ""),
                    name=item.get("name", "unknown"),
                    input=item.get("input") or {},
                    timestamp=timestamp,
                )
                self.tools[tool.tool_id] = tool
                pair.tool_uses.append(tool)
                pair.blocks.append(ContentBlock("tool_use", tool_id=tool.tool_id))

        if timestamp is not None:
            pair.assistant_time = timestamp
            if pair.user_time is not None:
                pair.response_time = max(0.0, (timestamp - pair.user_time).total_seconds())


@register_provider
class ClaudeCodeProvider(SessionProvider):
    """Provider for Claude Code sessions."""

    name = "claude-code"
    display_name = "Claude Code"
    icon = "🧠"

    def __init__(self, sessions_dir: Optional[Path] = None):
        self.sessions_dir = sessions_dir or SESSIONS_DIR

    def get_sessions_dir(self) -> Path:
        return self.sessions_dir

    def parse_session(self, path: Path) -> Session | None:
        """Read one ``<project>/<session id>.jsonl`` transcript."""
        project_dir = path.parent.name
        builder = ConversationBuilder()
        session_id = ""
        cwd = ""
        first_time: Optional[datetime] = None
        last_time: Optional[datetime] = None
        version = ""
        git_branch = ""

        with open(path, encoding="utf-8") as f:
            for number, line in enumerate(f, 1):
                if not line.strip():
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError:
                    logger.debug(f"Skipping malformed line {number} in {path}")
                    continue
                if not isinstance(data, dict):
                    continue

                if data.get("type") in ("user", "assistant"):
                    if data.get("isSidechain"):
                        continue
                    session_id = session_id or data.get("sessionId", "")
                    cwd = cwd or data.get("cwd", "")
                    version = version or data.get("version", "")
                    git_branch = git_branch or data.get("gitBranch", "")
                    timestamp = parse_timestamp(data.get("timestamp"))
                    if timestamp is not None:
                        first_time = first_time or timestamp
                        last_time = timestamp

                builder.add(data)

        # Skip empty and sub-agent-only transcripts
        if not builder.pairs:
            return None

        project_path = Path(cwd) if cwd else Path(decode_path(project_dir))
        duration_ms = 0
        if first_time and last_time:
            duration_ms = max(0, int((last_time - first_time).total_seconds() * 1000))

        return Session(
            id=session_id or path.stem,
            harness=self.name,
            raw_path=path,
            project_path=project_path,
            project_name=project_path.name or project_dir,
            conversations=builder.pairs,
            start_time=first_time,
            last_activity=last_time,
            duration_ms=duration_ms,
            model=builder.model or "unknown",
            total_tokens=builder.total_tokens,
            extra={
                "version": version,
                "git_branch": git_branch,
            },
        )

    def get_resume_command(self, session: Session) -> str:
        return f"claude --resume {session.id}"
