"""Screen assembly for every dashboard view.

``Renderer.render`` takes a view bundle from ``ViewState.project_view()`` and
the terminal size and returns a ``RenderResult``. Every screen is exactly
``height`` rows and no row is wider than ``width`` columns, except below the
minimum terminal size where a single notice line is returned.
"""

import logging
from typing import Optional

from ..config import MIN_TERMINAL_HEIGHT, MIN_TERMINAL_WIDTH, WIDE_LAYOUT_THRESHOLD
from ..models import ConversationPair, RenderLine, RenderResult, Session
from ..search import highlight_text, match_context, text_matches_query
from ..state import (
    ConversationDetailBundle,
    ConversationTreeBundle,
    FilterBundle,
    FullDetailBundle,
    HelpBundle,
    SearchBundle,
    SearchResultsBundle,
    SessionListBundle,
    SubagentDetailBundle,
    View,
)
from .detail import (
    build_conversation_document,
    build_subagent_document,
    get_key_params,
    resolve_scroll,
    result_text,
    scroll_indicator,
)
from .formatters import (
    format_datetime,
    format_duration,
    format_response_time,
    format_session_id,
    format_tool_count,
    format_tool_counts,
    format_with_unit,
    response_time_role,
    tool_count_role,
)
from .styles import PlainStyleProvider, StyleProvider
from .text import clean_text, display_width, fit, get_visible_range, pad_to_width, strip_styling, truncate

logger = logging.getLogger(__name__)

TOO_SMALL_MESSAGE = "Terminal too small. Please resize to at least {w}x{h}."
SELECTED_PREFIX = "▶ "
UNSELECTED_PREFIX = " " * display_width(SELECTED_PREFIX)
RECENT_ACTIVITY_LINES = 5

SESSION_SORT_LABELS = {
    "last_activity": "Last Activity",
    "duration": "Duration",
    "conversations": "Conversations",
    "start_time": "Start Time",
    "project_name": "Project",
}
CONVERSATION_SORT_LABELS = {"date_time": "DateTime", "duration": "Duration", "tools": "Tools"}

# Fixed row counts per view, used to size the scrolling lists
SESSION_LIST_CHROME = 17
CONVERSATION_DETAIL_CHROME = 15
LONG_FORM_HEADER = 3
LONG_FORM_FOOTER = 2


def _arrow(direction: str) -> str:
    return "↓" if direction == "desc" else "↑"


class Renderer:
    """Pure renderer: view bundle + terminal size -> screen rows."""

    def __init__(
        self,
        style: Optional[StyleProvider] = None,
        min_width: int = MIN_TERMINAL_WIDTH,
        min_height: int = MIN_TERMINAL_HEIGHT,
    ):
        self.style = style or PlainStyleProvider()
        self.min_width = min_width
        self.min_height = min_height
        self._routines = {
            View.SESSION_LIST: self.render_session_list,
            View.CONVERSATION_DETAIL: self.render_conversation_detail,
            View.FULL_DETAIL: self.render_full_detail,
            View.SEARCH: self.render_search,
            View.FILTER: self.render_filter,
            View.SEARCH_RESULTS: self.render_search_results,
            View.HELP: self.render_help,
            View.CONVERSATION_TREE: self.render_conversation_tree,
            View.SUBAGENT_DETAIL: self.render_subagent_detail,
        }

    def render(self, bundle, width: int, height: int) -> RenderResult:
        if width < self.min_width or height < self.min_height:
            message = TOO_SMALL_MESSAGE.format(w=self.min_width, h=self.min_height)
            return RenderResult(lines=[RenderLine(truncate(message, width), "warning")])

        routine = self._routines.get(getattr(bundle, "view", None))
        if routine is None:
            logger.debug(f"No renderer for {bundle!r}, showing the session list")
            if not isinstance(bundle, SessionListBundle):
                bundle = SessionListBundle(sessions=[], selected_index=0, total_sessions=0)
            routine = self.render_session_list

        result = routine(bundle, width, height)
        result.lines = self._fit_screen(result.lines, width, height)
        return result

    # Shared pieces

    def _fit_screen(self, lines: list[RenderLine], width: int, height: int) -> list[RenderLine]:
        fitted = []
        for line in lines[:height]:
            if display_width(line.text) > width:
                line = RenderLine(truncate(line.text, width), line.style)
            fitted.append(line)
        while len(fitted) < height:
            fitted.append(RenderLine(""))
        return fitted

    def _line(self, text: str, role: str = "plain", width: Optional[int] = None) -> RenderLine:
        if width is not None:
            text = truncate(text, width)
        return RenderLine(self.style.apply(role, text), role)

    def _title(self, text: str, width: int, rule: str = "=") -> list[RenderLine]:
        return [self._line(text, "header", width), self._line(rule * width, "muted")]

    def _separator(self, width: int, rule: str = "─") -> RenderLine:
        return self._line(rule * width, "muted")

    def _controls(self, text: str, width: int) -> RenderLine:
        return self._line(text, "muted", width)

    def _row(self, cells: list[tuple[str, int, str, str]], selected: bool, width: int) -> RenderLine:
        """Lay out fixed-width cells.

        Each cell is ``(text, width, align, role)``; a width of 0 means "the
        rest of the line". A selected row is one selection-styled run padded to
        the full terminal width.
        """
        prefix = SELECTED_PREFIX if selected else UNSELECTED_PREFIX
        used = display_width(prefix)
        parts = []
        for n, (text, cell_width, align, role) in enumerate(cells):
            gap = 1 if n else 0
            if cell_width == 0:
                cell_width = max(0, width - used - gap)
            cell = fit(clean_text(text) if role != "raw" else text, cell_width, align)
            parts.append((" " * gap, cell, role))
            used += gap + cell_width

        if selected:
            plain = strip_styling(prefix + "".join(gap + cell for gap, cell, _ in parts))
            return RenderLine(self.style.selection(pad_to_width(truncate(plain, width), width)), "selection")

        styled = prefix + "".join(
            gap + (cell if role in ("plain", "raw") else self.style.apply(role, cell)) for gap, cell, role in parts
        )
        return RenderLine(styled, "plain")

    def _pad_rows(self, lines: list[RenderLine], count: int):
        for _ in range(count):
            lines.append(RenderLine(""))

    # Session list

    def _session_columns(self, session: Session, number: int, bookmarked: bool, width: int):
        wide = width > WIDE_LAYOUT_THRESHOLD
        marker = ("★" if bookmarked else " ", 1, "left", "warning")
        if wide:
            project_width = max(10, min(30, width - 66))
            return [
                marker,
                (str(number), 4, "left", "muted"),
                (format_session_id(session.id), 15, "left", "info"),
                (session.project_name, project_width, "left", "accent"),
                (str(session.total_conversations), 5, "right", "plain"),
                (format_duration(session.duration_ms), 10, "left", "plain"),
                (format_datetime(session.start_time), 11, "left", "muted"),
                (format_datetime(session.last_activity), 11, "left", "muted"),
            ]
        project_width = max(10, min(30, width - 32))
        return [
            marker,
            (str(number), 4, "left", "muted"),
            (format_session_id(session.id), 15, "left", "info"),
            (session.project_name, project_width, "left", "accent"),
            (str(session.total_conversations), 5, "right", "plain"),
        ]

    def _session_header(self, width: int) -> list[RenderLine]:
        wide = width > WIDE_LAYOUT_THRESHOLD
        labels = ["", "No.", "ID", "Project", "Convs"]
        if wide:
            labels += ["Duration", "Started", "Updated"]
        dummy = Session(id="", raw_path=None)
        columns = self._session_columns(dummy, 0, False, width)
        cells = [(label, w, align, "header") for label, (_, w, align, _) in zip(labels, columns)]
        header = self._row(cells, False, width)
        return [header, self._line("-" * width, "muted")]

    def _session_rows(self, sessions: list[Session], selected: int, rows: int, width: int, bookmarks=frozenset()):
        lines = []
        if not sessions:
            lines.append(self._line("  No sessions found.", "muted", width))
        else:
            start, end = get_visible_range(len(sessions), selected, rows)
            for n in range(start, end):
                session = sessions[n]
                columns = self._session_columns(session, n + 1, session.id in bookmarks, width)
                lines.append(self._row(columns, n == selected, width))
        self._pad_rows(lines, rows - len(lines))
        return lines

    def _query_summary(self, query: str, options: dict, filters: dict, sort_order: str, direction: str) -> str:
        parts = []
        if query:
            mode = " [regex]" if options.get("regex") else ""
            parts.append(f"Search: \"{query}\"{mode}")
        active = [f"{key}={value}" for key, value in filters.items() if value]
        if active:
            parts.append("Filter: " + ", ".join(active))
        parts.append(f"Sort: {SESSION_SORT_LABELS.get(sort_order, sort_order)} {_arrow(direction)}")
        return " • ".join(parts)

    def render_session_list(self, bundle: SessionListBundle, width: int, height: int) -> RenderResult:
        sessions = bundle.sessions
        selected = bundle.selected_index
        current = sessions[selected] if 0 <= selected < len(sessions) else None

        lines = self._title("🔍 Session Scope - Session Browser", width)
        conversations = sum(s.total_conversations for s in sessions)
        duration = sum(s.duration_ms for s in sessions)
        tools = sum(s.tool_count for s in sessions)
        lines.append(self._line(
            f"Sessions: {len(sessions)}/{bundle.total_sessions} • Conversations: {conversations} • "
            f"Duration: {format_duration(duration)} • Tools: {format_with_unit(tools)}",
            "info", width,
        ))
        lines.append(self._line(self._query_summary(
            bundle.search_query, bundle.search_options, bundle.filters, bundle.sort_order, bundle.sort_direction
        ), "muted", width))
        lines.append(RenderLine(""))

        lines.extend(self._session_header(width))
        rows = max(1, height - SESSION_LIST_CHROME)
        lines.extend(self._session_rows(sessions, selected, rows, width, bundle.bookmarks))

        lines.append(self._separator(width))
        if current is not None:
            lines.append(self._line(f"Selected: [{current.display_id}] {current.project_name}", "accent", width))
            lines.append(self._line(f"File: {current.raw_path}", "muted", width))
        else:
            lines.append(self._line("Selected: none", "muted", width))
            lines.append(RenderLine(""))
        lines.append(self._line("📝 Recent Activity:", "header", width))
        lines.extend(self._recent_activity(current, width))
        lines.append(self._controls(
            "↑↓ select • Enter open • / search • f filter • s sort • t tree • m bookmark • ? help • q quit", width
        ))
        return RenderResult(lines=lines)

    def _recent_activity(self, session: Optional[Session], width: int) -> list[RenderLine]:
        lines = []
        if session is not None:
            recent = sorted(
                session.conversations,
                key=lambda c: c.user_time.timestamp() if c.user_time else 0.0,
                reverse=True,
            )[:RECENT_ACTIVITY_LINES]
            for n, conversation in enumerate(recent, 1):
                stamp = format_datetime(conversation.user_time)
                text = f"  {n}. {stamp} {clean_text(conversation.user_message)}"
                lines.append(self._line(text, "plain", width))
        if not lines:
            lines.append(self._line("  No recent activity", "muted", width))
        self._pad_rows(lines, RECENT_ACTIVITY_LINES - len(lines))
        return lines

    # Conversation detail

    def _conversation_columns(self, conversation: ConversationPair, number: int, width: int, query: str, options):
        message = clean_text(conversation.user_message)
        message_width = max(1, width - 36)
        message = truncate(message, message_width)
        role = "raw"
        if query:
            message = highlight_text(message, query, self.style.highlight, options)
        return [
            (str(number), 4, "left", "muted"),
            (format_datetime(conversation.user_time), 11, "left", "info"),
            (format_response_time(conversation.response_time), 8, "left",
             response_time_role(conversation.response_time)),
            (format_tool_count(conversation.tool_count), 5, "right", tool_count_role(conversation.tool_count)),
            (" " + message, 0, "left", role),
        ]

    def render_conversation_detail(self, bundle: ConversationDetailBundle, width: int, height: int) -> RenderResult:
        session = bundle.session
        conversations = bundle.conversations
        selected = bundle.selected_index
        lines = self._title("🔍 Session Scope - Conversation Browser", width)

        if session is None:
            lines.append(self._line("No session selected.", "muted", width))
            lines.append(self._controls("Esc back • q quit", width))
            return RenderResult(lines=lines)

        lines.append(self._line(
            f"Conversations: {len(conversations)} • Duration: {format_duration(session.duration_ms)} • "
            f"Tools: {format_with_unit(session.tool_count)} • Tokens: {format_with_unit(session.total_tokens)}",
            "info", width,
        ))
        lines.append(self._line(f"Selected: [{session.display_id}] {session.project_name}", "accent", width))
        lines.append(self._line(f"File: {session.raw_path}", "muted", width))
        sort_label = CONVERSATION_SORT_LABELS.get(bundle.sort_order, bundle.sort_order)
        lines.append(self._line(
            f"📊 Sort: {sort_label} {_arrow(bundle.sort_direction)}  (1 DateTime • 2 Duration • 3 Tools)", "muted", width
        ))
        lines.append(RenderLine(""))

        header_cells = [
            ("No.", 4, "left", "header"),
            ("DateTime", 11, "left", "header"),
            ("Duration", 8, "left", "header"),
            ("Tools", 5, "right", "header"),
            (" User Message", 0, "left", "header"),
        ]
        lines.append(self._row(header_cells, False, width))
        lines.append(self._line("-" * width, "muted"))

        rows = max(1, height - CONVERSATION_DETAIL_CHROME)
        body = []
        if not conversations:
            body.append(self._line("  No conversations in this session.", "muted", width))
        else:
            start, end = get_visible_range(len(conversations), selected, rows)
            for n in range(start, end):
                columns = self._conversation_columns(
                    conversations[n], n + 1, width, bundle.highlight_query, bundle.highlight_options
                )
                body.append(self._row(columns, n == selected, width))
        self._pad_rows(body, rows - len(body))
        lines.extend(body)

        current = conversations[selected] if 0 <= selected < len(conversations) else None
        lines.extend(self._conversation_preview(current, bundle, width))
        lines.append(self._controls(
            "↑↓ select • ←→ session • Enter detail • 1/2/3 sort • t tree • Esc back • q quit", width
        ))
        return RenderResult(lines=lines)

    def _conversation_preview(self, conversation: Optional[ConversationPair], bundle, width: int) -> list[RenderLine]:
        lines = [self._separator(width)]
        if conversation is None:
            lines.append(self._line("👤 -", "muted", width))
            lines.append(self._line("🤖 -", "muted", width))
            lines.append(self._line("🔧 Tools: -", "muted", width))
            lines.append(RenderLine(""))
            return lines

        lines.append(self._line(f"👤 {clean_text(conversation.user_message)}", "info", width))
        lines.append(self._line(f"🤖 {clean_text(conversation.assistant_response) or '-'}", "success", width))
        tools = format_tool_counts(conversation.tool_uses) or "none"
        lines.append(self._line(f"🔧 Tools: {tools}", "warning", width))

        query = bundle.highlight_query
        match_line = RenderLine("")
        if query:
            for label, text in (
                ("user", conversation.user_message),
                ("assistant", conversation.assistant_response),
                ("thinking", "\n".join(conversation.thinking)),
            ):
                if text_matches_query(text, query, bundle.highlight_options):
                    context = match_context(text, query, bundle.highlight_options)
                    match_line = self._line(f"💭 Match in {label}: {context}", "accent", width)
                    break
        lines.append(match_line)
        return lines

    # Long-form views

    def _long_form(self, title: str, subtitle: str, doc, bundle, width: int, height: int, controls: str,
                   extra: str = "") -> RenderResult:
        content_height = max(1, height - LONG_FORM_HEADER - LONG_FORM_FOOTER)
        window = resolve_scroll(
            doc.lines,
            content_height,
            bundle.scroll_offset,
            bundle.scroll_to_end,
            bundle.scroll_to_search_match,
            bundle.highlight_query,
            bundle.highlight_options,
        )

        indicator = scroll_indicator(window.offset, content_height, len(doc.lines), window.max_offset)
        if extra:
            indicator = f"{extra}  {indicator}"
        indicator_width = display_width(indicator)
        title_width = max(0, width - indicator_width - 1)
        header = pad_to_width(truncate(title, title_width), title_width) + " " + indicator
        lines = [
            RenderLine(self.style.header(truncate(header, width)), "header"),
            self._line(subtitle, "muted", width),
            self._separator(width),
        ]
        visible = doc.lines[window.offset:window.offset + content_height]
        lines.extend(visible)
        self._pad_rows(lines, content_height - len(visible))
        lines.append(self._separator(width))
        lines.append(self._controls(controls, width))

        return RenderResult(
            lines=lines,
            tool_ids=list(doc.tool_ids),
            max_scroll_offset=window.max_offset,
            scroll_offset=window.offset,
            consumed_scroll_to_end=window.consumed_scroll_to_end,
            consumed_search_match=window.consumed_search_match,
        )

    def render_full_detail(self, bundle: FullDetailBundle, width: int, height: int) -> RenderResult:
        session = bundle.session
        conversation = bundle.conversation
        if session is None or conversation is None:
            lines = self._title("📄 Conversation Detail", width)
            lines.append(self._line("No conversation data available.", "muted", width))
            lines.append(self._controls("Esc back • q quit", width))
            return RenderResult(lines=lines)

        doc = build_conversation_document(
            conversation,
            self.style,
            width,
            total=session.total_conversations,
            expanded=bundle.expanded_tools,
            highlight_query=bundle.highlight_query,
            highlight_options=bundle.highlight_options,
            context=bundle.context_range,
        )
        title = f"📄 [{session.display_id}] {session.project_name} • Conversation {bundle.selected_index + 1}/" \
                f"{len(bundle.conversations)}"
        subtitle = f"{format_datetime(conversation.user_time)} • context ±{bundle.context_range}"
        extra = ""
        if bundle.search_position:
            extra = f"match {bundle.search_position[0]}/{bundle.search_position[1]}"
            subtitle += f" • highlighting \"{bundle.highlight_query}\""
        controls = "↑↓ scroll • ←→ conversation • Space/b page • g/G top/end • Ctrl+R expand • +/- context • Esc back"
        if bundle.search_position:
            controls = "↑↓ scroll • ←→ prev/next match • Space/b page • g/G top/end • Ctrl+R expand • Esc results"
        return self._long_form(title, subtitle, doc, bundle, width, height, controls, extra)

    def render_subagent_detail(self, bundle: SubagentDetailBundle, width: int, height: int) -> RenderResult:
        doc = build_subagent_document(
            bundle.session,
            bundle.tool,
            self.style,
            width,
            expanded=bundle.expanded_tools,
            highlight_query=bundle.highlight_query,
            highlight_options=bundle.highlight_options,
        )
        agent = (bundle.tool.input or {}).get("subagent_type", "general") if bundle.tool else "-"
        title = f"🤖 Sub-agent: {agent}"
        subtitle = ""
        if bundle.conversation is not None:
            subtitle = f"From conversation #{bundle.conversation.index + 1}"
        controls = "↑↓ scroll • Space/b page • g/G top/end • Ctrl+R expand • Esc back"
        return self._long_form(title, subtitle, doc, bundle, width, height, controls)

    # Search, filter and results

    def render_search(self, bundle: SearchBundle, width: int, height: int) -> RenderResult:
        lines = self._title("🔍 Search Sessions", width)
        lines.append(RenderLine(
            truncate(f"{self.style.accent('Search:')} {bundle.query}{self.style.highlight(' ')}", width), "accent"
        ))
        if bundle.options.get("regex"):
            mode = "Mode: regular expression (Tab for text)"
        else:
            mode = "Mode: text, \"a OR b\" matches either (Tab for regex)"
        lines.append(self._line(mode, "muted", width))
        lines.append(self._line(f"{len(bundle.sessions)} of {bundle.total_sessions} sessions match", "info", width))
        lines.append(self._line("-" * width, "muted"))

        rows = max(1, height - 8)
        lines.extend(self._session_rows(bundle.sessions, bundle.selected_index, rows, width))
        lines.append(self._separator(width))
        lines.append(self._controls("Type to filter • Enter search conversations • Tab regex • Esc cancel", width))
        return RenderResult(lines=lines)

    def render_filter(self, bundle: FilterBundle, width: int, height: int) -> RenderResult:
        lines = self._title("🔽 Filter Sessions", width)
        active = [f"{key} = {value}" for key, value in bundle.filters.items() if value]
        lines.append(self._line("Current: " + (", ".join(active) if active else "no filters"), "info", width))
        lines.append(RenderLine(""))
        lines.append(self._line("Project:", "header", width))

        rows = max(1, height - 7)
        options = bundle.options
        body = []
        start, end = get_visible_range(len(options), bundle.selected_index, rows)
        current = bundle.filters.get("project")
        for n in range(start, end):
            option = options[n]
            label = "All projects" if option is None else option
            mark = "✓" if option == current else " "
            body.append(self._row(
                [(mark, 1, "left", "success"), (label, 0, "left", "plain")], n == bundle.selected_index, width
            ))
        self._pad_rows(body, rows - len(body))
        lines.extend(body)
        lines.append(self._separator(width))
        lines.append(self._controls("↑↓ select • Enter apply • Esc cancel", width))
        return RenderResult(lines=lines)

    def render_search_results(self, bundle: SearchResultsBundle, width: int, height: int) -> RenderResult:
        lines = self._title("🔍 Session Scope - Search Results", width)
        mode = " [regex]" if bundle.options.get("regex") else ""
        lines.append(self._line(f"Query: \"{bundle.query}\"{mode}", "accent", width))
        lines.append(self._line(f"Found {len(bundle.results)} matches", "info", width))
        lines.append(self._line("Enter opens the conversation; ←→ there steps through matches", "muted", width))
        lines.append(self._separator(width))

        available = max(1, height - 8)
        body = []
        if not bundle.results:
            body.append(self._line("No matches found.", "muted", width))
        else:
            per_page = max(1, available // 5)
            start, end = get_visible_range(len(bundle.results), bundle.selected_index, per_page)
            for n in range(start, end):
                body.extend(self._search_result_lines(bundle, n, width))
        self._pad_rows(body, available - len(body))
        lines.extend(body)

        lines.append(self._separator(width))
        lines.append(self._controls("↑↓ select • Enter open • Esc back • q quit", width))
        return RenderResult(lines=lines)

    def _search_result_lines(self, bundle: SearchResultsBundle, n: int, width: int) -> list[RenderLine]:
        result = bundle.results[n]
        selected = n == bundle.selected_index
        indent = UNSELECTED_PREFIX
        title = [
            (format_session_id(result.session_id), 15, "left", "info"),
            (result.project_name, max(10, min(30, width - 40)), "left", "accent"),
            (f"Conv #{result.conversation_index + 1}", 0, "left", "plain"),
        ]
        context_width = max(1, width - display_width(indent))
        context = truncate(clean_text(result.match_context), context_width)
        context = highlight_text(context, bundle.query, self.style.highlight, bundle.options)
        return [
            self._row(title, selected, width),
            self._line(
                f"{indent}⏱ {format_response_time(result.response_time).strip()} • 🔧 {result.tool_count} tools • "
                f"📅 {format_datetime(result.user_time)}",
                "muted", width,
            ),
            self._line(f"{indent}Match in {result.match_type}:", "warning", width),
            RenderLine(indent + context, "plain"),
            RenderLine(""),
        ]

    # Help

    def render_help(self, bundle: HelpBundle, width: int, height: int) -> RenderResult:
        lines = self._title("❓ Session Scope - Help", width)
        sections = [
            ("Navigation", [
                "↑/k ↓/j   move selection",
                "←/h →/l   switch session or conversation",
                "Enter     open        Esc  back",
                "g/G       first/last  q    quit",
            ]),
            ("Detail view", [
                "Space/b   page down/up   Ctrl+D/U  half page",
                "Ctrl+R    expand or collapse long output",
                "+/-       more or less diff context",
            ]),
            ("Search & Filter", [
                "/         search (Tab regex, Enter conversations)",
                "f         filter by project   c  clear",
                "s         cycle sort          1/2/3  conversation sort",
            ]),
            ("Actions", [
                "t  tree   m  bookmark   r  resume   R  reload",
            ]),
        ]
        for title, entries in sections:
            lines.append(self._line(title, "accent", width))
            for entry in entries:
                lines.append(self._line(f"  {entry}", "plain", width))
        lines.append(self._line("Press any key to return", "muted", width))
        return RenderResult(lines=lines)

    # Conversation tree

    def _tree_row(self, bundle: ConversationTreeBundle, n: int, width: int) -> RenderLine:
        node = bundle.nodes[n]
        selected = n == bundle.selected_index
        conversation = node.conversation
        if node.tool is None:
            label = f"▾ #{conversation.index + 1} {format_datetime(conversation.user_time)} " \
                    f"{clean_text(conversation.user_message)}"
            role = "info"
        else:
            siblings = conversation.tool_uses
            branch = "└─" if node.tool is siblings[-1] else "├─"
            if node.is_subagent:
                agent = (node.tool.input or {}).get("subagent_type", "general")
                label = f"   {branch} 🤖 Task: {get_key_params(node.tool)} [{agent}]"
                role = "accent"
            else:
                params = get_key_params(node.tool)
                label = f"   {branch} ⏺ {node.tool.name}" + (f"({params})" if params else "")
                role = "error" if node.tool.is_error else "plain"
        return self._row([(label, 0, "left", role)], selected, width)

    def render_conversation_tree(self, bundle: ConversationTreeBundle, width: int, height: int) -> RenderResult:
        lines = self._title("🌳 Conversation Tree", width)
        session = bundle.session
        if session is None:
            lines.append(self._line("No session selected.", "muted", width))
            lines.append(self._controls("Esc back • q quit", width))
            return RenderResult(lines=lines)

        lines.append(self._line(
            f"Selected: [{session.display_id}] {session.project_name} • {session.total_conversations} conversations"
            f" • {session.tool_count} tools",
            "accent", width,
        ))
        lines.append(RenderLine(""))

        rows = max(1, height - 7)
        body = []
        if not bundle.nodes:
            body.append(self._line("  No conversations in this session.", "muted", width))
        else:
            start, end = get_visible_range(len(bundle.nodes), bundle.selected_index, rows)
            for n in range(start, end):
                body.append(self._tree_row(bundle, n, width))
        self._pad_rows(body, rows - len(body))
        lines.extend(body)

        lines.append(self._separator(width))
        lines.append(self._tree_node_summary(bundle, width))
        lines.append(self._controls("↑↓ select • Enter open • Esc back • q quit", width))
        return RenderResult(lines=lines)

    def _tree_node_summary(self, bundle: ConversationTreeBundle, width: int) -> RenderLine:
        if not bundle.nodes or not 0 <= bundle.selected_index < len(bundle.nodes):
            return RenderLine("")
        node = bundle.nodes[bundle.selected_index]
        if node.tool is None:
            conversation = node.conversation
            text = f"Conversation #{conversation.index + 1}: {conversation.tool_count} tools, " \
                   f"response {format_response_time(conversation.response_time).strip()}"
        elif node.is_subagent:
            text = "Sub-agent task • Enter shows prompt and result"
        else:
            output = result_text(node.tool.result)
            count = len(output.split("\n")) if output else 0
            text = f"{node.tool.name}: {count} result lines • Enter shows it in context"
        return self._line(text, "muted", width)

    # Statistics (printed by the CLI, not bound to a terminal height)

    def render_daily_statistics(self, stats: list[dict], width: int) -> list[str]:
        s = self.style
        lines = [s.header(truncate("📅 Daily Statistics", width)), s.muted("=" * width)]
        header = f"{'Date':<12}{'Sessions':>10}{'Convs':>8}{'Duration':>14}{'Tools':>8}{'Tokens':>10}"
        lines.append(s.header(truncate(header, width)))
        for day in stats:
            row = (
                f"{day['date']:<12}{day['sessions']:>10}{day['conversations']:>8}"
                f"{format_duration(day['duration_ms']):>14}{format_with_unit(day['tools']):>8}"
                f"{format_with_unit(day['tokens']):>10}"
            )
            lines.append(truncate(row, width))
        if not stats:
            lines.append(s.muted("No sessions found."))
        return lines

    def render_project_statistics(self, stats: list[dict], width: int) -> list[str]:
        s = self.style
        name_width = max(10, min(30, width - 52))
        lines = [s.header(truncate("📁 Project Statistics", width)), s.muted("=" * width)]
        header = (
            pad_to_width("Project", name_width)
            + f"{'Sessions':>10}{'Convs':>8}{'Duration':>14}{'Tools':>8}  {'Last':<11}"
        )
        lines.append(s.header(truncate(header, width)))
        for project in stats:
            row = (
                fit(project["project"], name_width)
                + f"{project['sessions']:>10}{project['conversations']:>8}"
                f"{format_duration(project['duration_ms']):>14}{format_with_unit(project['tools']):>8}  "
                f"{format_datetime(project['last_activity']):<11}"
            )
            lines.append(truncate(row, width))
        if not stats:
            lines.append(s.muted("No sessions found."))
        return lines
