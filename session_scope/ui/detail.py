"""Long-form documents for the full-detail and sub-agent views.

A document is built once per render as a flat list of lines already wrapped
to the terminal width. The view then shows a window of it at the current
scroll offset.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Optional

from ..config import COLLAPSE_THRESHOLD
from ..models import ConversationPair, RenderLine, Session, ToolUse
from ..search import find_first_match_line, highlight_text
from .diff import create_unified_diff, trim_context
from .formatters import format_datetime, format_response_time
from .styles import StyleProvider
from .text import display_width, truncate, wrap_text

logger = logging.getLogger(__name__)

BLOCK_FIRST_PREFIX = "  ⎿  "
BLOCK_PREFIX = "      "
TOOL_MARK = "⏺"


def get_key_params(tool: ToolUse) -> str:
    """Short argument summary shown after the tool name."""
    params = tool.input or {}
    name = tool.name
    if name in ("Read", "Write", "Edit", "MultiEdit", "NotebookEdit"):
        path = params.get("file_path") or params.get("notebook_path") or ""
        return PurePath(path).name if path else ""
    if name == "Bash":
        command = str(params.get("command", "")).split("\n")[0]
        return command[:30] + ("..." if len(command) > 30 else "")
    if name == "Task":
        return str(params.get("description", ""))
    if name in ("Grep", "Glob"):
        return str(params.get("pattern", ""))
    if name == "TodoWrite":
        todos = params.get("todos")
        return f"{len(todos)} todos" if isinstance(todos, list) else ""
    if name == "WebFetch":
        return str(params.get("url", ""))
    if name == "WebSearch":
        return str(params.get("query", ""))
    for key in ("file_path", "path", "command", "description", "pattern"):
        value = params.get(key)
        if isinstance(value, str) and value:
            return value[:30]
    return ""


def result_text(result) -> str:
    """Flatten a tool result (string, content blocks or JSON) into text."""
    if result is None or result == "":
        return ""
    if isinstance(result, str):
        return result
    if isinstance(result, list):
        parts = []
        for item in result:
            if isinstance(item, dict) and item.get("type") == "text":
                parts.append(item.get("text", ""))
            elif isinstance(item, str):
                parts.append(item)
            else:
                parts.append(json.dumps(item, indent=2, default=str))
        return "\n".join(parts)
    if isinstance(result, dict):
        return json.dumps(result, indent=2, default=str)
    return str(result)


def process_markdown(text: str, style: StyleProvider) -> str:
    """Light markdown for terminal display: headers, inline code and bullets."""
    out = []
    in_code = False
    for line in text.split("\n"):
        stripped = line.strip()
        if stripped.startswith("```"):
            in_code = not in_code
            out.append(style.muted(line))
            continue
        if in_code:
            out.append(style.info(line))
            continue
        header = re.match(r"^(#{1,6})\s+(.*)$", stripped)
        if header:
            out.append(style.header(header.group(2)))
            continue
        bullet = re.match(r"^(\s*)[-*]\s+(.*)$", line)
        if bullet:
            line = f"{bullet.group(1)}• {bullet.group(2)}"
        line = re.sub(r"`([^`]+)`", lambda m: style.info(m.group(1)), line)
        out.append(line)
    return "\n".join(out)


@dataclass
class Document:
    """Accumulates wrapped lines and the collapsible ids laid out so far."""

    style: StyleProvider
    width: int
    expanded: dict = field(default_factory=dict)
    highlight_query: str = ""
    highlight_options: dict = field(default_factory=dict)
    lines: list[RenderLine] = field(default_factory=list)
    tool_ids: list[str] = field(default_factory=list)

    def blank(self):
        self.lines.append(RenderLine(""))

    def add(self, text: str, role: str = "plain"):
        """Add a line; anything wider than the terminal is wrapped."""
        for piece in wrap_text(text, self.width):
            self.lines.append(RenderLine(piece, role))

    def add_heading(self, text: str, role: str = "header"):
        self.add(self.style.apply(role, text), role)

    def highlight(self, text: str) -> str:
        if not self.highlight_query:
            return text
        return highlight_text(text, self.highlight_query, self.style.highlight, self.highlight_options)

    def add_wrapped(self, text: str, indent: str = "  ", role: str = "plain"):
        """Wrap text under an indent, highlighting the active query."""
        available = max(1, self.width - display_width(indent))
        for piece in wrap_text(self.highlight(text), available):
            self.lines.append(RenderLine(indent + piece, role))

    def add_block(self, block_id: Optional[str], content: list[str], role: str = "plain"):
        """Add a ``⎿`` block that collapses past COLLAPSE_THRESHOLD source lines."""
        if not content:
            content = [self.style.muted("(no output)")]

        shown = content
        hidden = 0
        if block_id and len(content) > COLLAPSE_THRESHOLD:
            self.tool_ids.append(block_id)
            if not self.expanded.get(block_id, False):
                shown = content[:COLLAPSE_THRESHOLD]
                hidden = len(content) - COLLAPSE_THRESHOLD

        available = max(1, self.width - display_width(BLOCK_PREFIX))
        first = True
        for source in shown:
            for piece in wrap_text(self.highlight(source), available):
                prefix = BLOCK_FIRST_PREFIX if first else BLOCK_PREFIX
                self.lines.append(RenderLine(truncate(prefix + piece, self.width), role))
                first = False

        if hidden:
            self.add(BLOCK_PREFIX + self.style.muted(f"… +{hidden} lines (ctrl+r to expand)"), "muted")


def format_diff_lines(old: str, new: str, context: int, style: StyleProvider) -> list[str]:
    diff = trim_context(create_unified_diff(old, new), context)
    if not diff:
        return [style.muted("(No visible changes)")]
    lines = []
    for entry in diff:
        if entry is None:
            lines.append(style.dim("    │ ..."))
            continue
        number = style.dim(f"{entry.line_number:>4}│")
        if entry.type == "removed":
            lines.append(f"{number} {style.error('- ' + entry.content)}")
        elif entry.type == "added":
            lines.append(f"{number} {style.success('+ ' + entry.content)}")
        else:
            lines.append(f"{number}   {entry.content}")
    return lines


def format_tool_input(tool: ToolUse, context: int, style: StyleProvider) -> list[str]:
    """Readable rendering of a tool's parameters."""
    params = tool.input or {}
    label = style.muted
    lines: list[str] = []

    if tool.name == "Bash":
        command = str(params.get("command", ""))
        for n, part in enumerate(command.split("\n")):
            lines.append(f"{label('command:')} {part}" if n == 0 else f"         {part}")
        if params.get("description"):
            lines.append(f"{label('purpose:')} {params['description']}")
        return lines

    if tool.name in ("Read", "Write", "Edit", "MultiEdit"):
        lines.append(f"{label('file:')} {params.get('file_path', '')}")
        if tool.name == "Edit":
            lines.extend(format_diff_lines(
                str(params.get("old_string", "")), str(params.get("new_string", "")), context, style
            ))
        elif tool.name == "MultiEdit":
            edits = params.get("edits") or []
            lines.append(f"{label('edits:')} {len(edits)} changes")
            for n, edit in enumerate(edits):
                if n:
                    lines.append("")
                if isinstance(edit, dict):
                    lines.extend(format_diff_lines(
                        str(edit.get("old_string", "")), str(edit.get("new_string", "")), context, style
                    ))
        elif tool.name == "Write":
            content = str(params.get("content", ""))
            content_lines = content.split("\n")
            lines.append(f"{label('writing:')} {len(content_lines)} lines")
            for n, line in enumerate(content_lines, 1):
                lines.append(f"{style.dim(f'{n:>4}│')} {line}")
        elif tool.name == "Read":
            if params.get("offset"):
                lines.append(f"{label('offset:')} line {params['offset']}")
            if params.get("limit"):
                lines.append(f"{label('limit:')} {params['limit']} lines")
        return lines

    if tool.name == "Grep":
        lines.append(f"{label('pattern:')} {style.info(str(params.get('pattern', '')))}")
        for key in ("path", "glob", "output_mode"):
            if params.get(key):
                lines.append(f"{label(key + ':')} {params[key]}")
        return lines

    if tool.name == "Task":
        if params.get("subagent_type"):
            lines.append(f"{label('agent:')} {params['subagent_type']}")
        if params.get("description"):
            lines.append(f"{label('description:')} {params['description']}")
        prompt = str(params.get("prompt", ""))
        if prompt:
            lines.append(label("prompt:"))
            lines.extend(prompt.split("\n"))
        return lines

    if tool.name == "TodoWrite":
        for todo in params.get("todos") or []:
            if not isinstance(todo, dict):
                continue
            status = todo.get("status", "")
            content = todo.get("content", "")
            if status == "completed":
                lines.append(style.success(f"✓ {content}"))
            elif status == "in_progress":
                lines.append(style.warning(f"◐ {content}"))
            else:
                lines.append(f"○ {content}")
        return lines

    for key, value in params.items():
        text = value if isinstance(value, str) else json.dumps(value, default=str)
        for n, part in enumerate(text.split("\n")):
            lines.append(f"{label(key + ':')} {part}" if n == 0 else f"  {part}")
    return lines


def add_tool(doc: Document, tool: ToolUse, context: int):
    """Tool header, collapsible input block and collapsible result block."""
    style = doc.style
    header = f"{TOOL_MARK} {tool.name}"
    params = get_key_params(tool)
    if params:
        header += f"({params})"
    role = "error" if tool.is_error else "success"
    when = f" {style.muted(format_datetime(tool.timestamp))}" if tool.timestamp else ""
    doc.add(style.apply(role, header) + when, role)

    input_lines = format_tool_input(tool, context, style)
    if input_lines:
        doc.add_block(f"input-{tool.tool_id}", input_lines)

    output = result_text(tool.result)
    if output or tool.result is not None:
        doc.add_block(tool.tool_id, output.split("\n") if output else [], "error" if tool.is_error else "plain")
    doc.blank()


def add_thinking(doc: Document, text: str, block_id: str):
    doc.add(doc.style.warning(f"{TOOL_MARK} Thinking"), "warning")
    doc.add_block(block_id, text.split("\n"), "dim")
    doc.blank()


def build_conversation_document(
    conversation: ConversationPair,
    style: StyleProvider,
    width: int,
    total: int = 1,
    expanded: Optional[dict] = None,
    highlight_query: str = "",
    highlight_options: Optional[dict] = None,
    context: int = 3,
) -> Document:
    """Lay out one conversation: metadata, user turn, then assistant content in order."""
    doc = Document(style, width, expanded or {}, highlight_query, highlight_options or {})

    doc.blank()
    doc.add_heading(f"━━━ Conversation #{conversation.index + 1} of {total} ━━━")
    doc.add(f"📅 {format_datetime(conversation.user_time)}")
    doc.add(f"⏱ Response Time: {format_response_time(conversation.response_time).strip()}")
    doc.add(f"🔧 Tools: {conversation.tool_count}")
    doc.blank()

    doc.add_heading("👤 USER", "info")
    doc.add_wrapped(conversation.user_message or style.muted("(empty message)"))
    doc.blank()

    doc.add_heading("🤖 ASSISTANT", "success")
    doc.blank()

    thinking_count = 0
    if conversation.blocks:
        for block in conversation.blocks:
            if block.kind == "thinking":
                add_thinking(doc, block.text, f"thinking-{conversation.index}-{thinking_count}")
                thinking_count += 1
            elif block.kind == "tool_use":
                tool = conversation.get_tool(block.tool_id)
                if tool is not None:
                    add_tool(doc, tool, context)
            elif block.text.strip():
                doc.add_wrapped(process_markdown(block.text, style))
                doc.blank()
    else:
        for text in conversation.thinking:
            add_thinking(doc, text, f"thinking-{conversation.index}-{thinking_count}")
            thinking_count += 1
        for tool in conversation.tool_uses:
            add_tool(doc, tool, context)
        if conversation.assistant_response.strip():
            doc.add_wrapped(process_markdown(conversation.assistant_response, style))

    if not conversation.blocks and not conversation.tool_uses and not conversation.assistant_response.strip() \
            and not conversation.thinking:
        doc.add(style.muted("  (no assistant response)"), "muted")

    return doc


def build_subagent_document(
    session: Optional[Session],
    tool: Optional[ToolUse],
    style: StyleProvider,
    width: int,
    expanded: Optional[dict] = None,
    highlight_query: str = "",
    highlight_options: Optional[dict] = None,
) -> Document:
    """Lay out a Task invocation: who ran, what it was asked and what it returned."""
    doc = Document(style, width, expanded or {}, highlight_query, highlight_options or {})
    if tool is None:
        doc.blank()
        doc.add(style.muted("No sub-agent task selected"), "muted")
        return doc

    params = tool.input or {}
    doc.blank()
    doc.add_heading("━━━ Sub-agent Task ━━━")
    doc.add(f"🤖 Agent: {params.get('subagent_type') or 'general'}")
    if params.get("description"):
        doc.add(f"📝 {params['description']}")
    if tool.timestamp:
        doc.add(f"📅 {format_datetime(tool.timestamp)}")
    if session is not None:
        doc.add(style.muted(f"Session {session.display_id} • {session.project_name}"), "muted")
    doc.blank()

    doc.add_heading("📋 PROMPT", "info")
    prompt = str(params.get("prompt", ""))
    if prompt:
        doc.add_wrapped(prompt)
    else:
        doc.add_wrapped(style.muted("(no prompt)"))
    doc.blank()

    doc.add_heading("📤 RESULT", "error" if tool.is_error else "success")
    output = result_text(tool.result)
    doc.add_block(f"subagent-{tool.tool_id}", output.split("\n") if output else [])
    return doc


@dataclass
class ScrollWindow:
    offset: int
    max_offset: int
    consumed_scroll_to_end: bool = False
    consumed_search_match: bool = False


def resolve_scroll(
    lines: list[RenderLine],
    content_height: int,
    offset: int,
    scroll_to_end: bool = False,
    scroll_to_search_match: bool = False,
    query: str = "",
    options: Optional[dict] = None,
) -> ScrollWindow:
    """Work out the scroll offset for a document, applying pending auto-scrolls.

    Scroll-to-end jumps to the last page. Scroll-to-match then puts the first
    matching line a few rows below the top of the viewport.
    """
    content_height = max(1, content_height)
    max_offset = max(0, len(lines) - content_height)
    window = ScrollWindow(offset, max_offset)

    if scroll_to_end:
        window.offset = max_offset
        window.consumed_scroll_to_end = True

    if scroll_to_search_match:
        window.consumed_search_match = True
        match = find_first_match_line([line.text for line in lines], query, options)
        if match >= 0:
            top_margin = min(5, content_height // 10)
            window.offset = match - top_margin
            logger.debug(f"Scrolling to first match on line {match}")

    window.offset = max(0, min(window.offset, max_offset))
    return window


def scroll_indicator(offset: int, content_height: int, total: int, max_offset: int) -> str:
    """``[start-end/total] pct%`` for the header of a long-form view."""
    if total == 0:
        return "[0-0/0] 100%"
    start = offset + 1
    end = min(offset + content_height, total)
    percent = 100 if max_offset == 0 else round(offset * 100 / max_offset)
    return f"[{start}-{end}/{total}] {percent}%"
