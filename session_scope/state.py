"""Interactive view state: navigation, selection, scrolling, search and sort."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional

from .config import (
    DEFAULT_CONTEXT_RANGE,
    DEFAULT_LANGUAGE,
    DEFAULT_TERMINAL_HEIGHT,
    DEFAULT_TERMINAL_WIDTH,
    DEFAULT_THEME,
    MAX_CONTEXT_RANGE,
    MIN_CONTEXT_RANGE,
    SUPPORTED_LANGUAGES,
)
from .models import ConversationPair, RenderResult, SearchResult, Session, ToolUse
from .repository import FILTER_KEYS, SessionRepository
from .ui.styles import THEMES

logger = logging.getLogger(__name__)


class View(str, Enum):
    SESSION_LIST = "session_list"
    CONVERSATION_DETAIL = "conversation_detail"
    FULL_DETAIL = "full_detail"
    SEARCH = "search"
    FILTER = "filter"
    SEARCH_RESULTS = "search_results"
    HELP = "help"
    CONVERSATION_TREE = "conversation_tree"
    SUBAGENT_DETAIL = "subagent_detail"


LONG_FORM_VIEWS = frozenset({View.FULL_DETAIL, View.SUBAGENT_DETAIL})

SESSION_SORT_ORDERS = ("last_activity", "duration", "conversations", "start_time", "project_name")
SORT_CYCLE = ("conversations", "duration", "start_time", "last_activity")
CONVERSATION_SORT_ORDERS = ("date_time", "duration", "tools")
DEFAULT_SORT_DIRECTION = "desc"

HEADER_LINES = 3
FOOTER_LINES = 2
MAX_HISTORY = 50


def _timestamp(dt: Optional[datetime]) -> float:
    return dt.timestamp() if dt else 0.0


SESSION_SORT_KEYS = {
    "last_activity": lambda s: _timestamp(s.last_activity),
    "duration": lambda s: s.duration_ms,
    "conversations": lambda s: s.total_conversations,
    "start_time": lambda s: _timestamp(s.start_time),
    "project_name": lambda s: s.project_name.lower(),
}

CONVERSATION_SORT_KEYS = {
    "date_time": lambda c: _timestamp(c.user_time),
    "duration": lambda c: c.response_time,
    "tools": lambda c: c.tool_count,
}


def _clamp_index(index: int, length: int) -> int:
    """Clamp into [0, length - 1]; empty collections clamp to 0."""
    if length <= 0:
        return 0
    return max(0, min(index, length - 1))


def _parse_view(view) -> Optional[View]:
    if isinstance(view, View):
        return view
    try:
        return View(view)
    except ValueError:
        return None


@dataclass
class TreeNode:
    """A row of the conversation tree: a conversation or one of its tool uses."""

    position: int  # index into the sorted conversation list
    conversation: ConversationPair
    tool: Optional[ToolUse] = None

    @property
    def depth(self) -> int:
        return 0 if self.tool is None else 1

    @property
    def is_subagent(self) -> bool:
        return self.tool is not None and self.tool.is_subagent


def build_conversation_tree(conversations: list[ConversationPair]) -> list[TreeNode]:
    nodes = []
    for position, conversation in enumerate(conversations):
        nodes.append(TreeNode(position, conversation))
        for tool in conversation.tool_uses:
            nodes.append(TreeNode(position, conversation, tool))
    return nodes


# View bundles handed to the renderer


@dataclass
class SessionListBundle:
    view: ClassVar[View] = View.SESSION_LIST
    sessions: list[Session]
    selected_index: int
    total_sessions: int
    search_query: str = ""
    search_options: dict = field(default_factory=dict)
    filters: dict = field(default_factory=dict)
    sort_order: str = "last_activity"
    sort_direction: str = DEFAULT_SORT_DIRECTION
    bookmarks: frozenset = frozenset()


@dataclass
class ConversationDetailBundle:
    view: ClassVar[View] = View.CONVERSATION_DETAIL
    session: Optional[Session]
    conversations: list[ConversationPair]
    selected_index: int
    sort_order: str = "date_time"
    sort_direction: str = DEFAULT_SORT_DIRECTION
    highlight_query: str = ""
    highlight_options: dict = field(default_factory=dict)


@dataclass
class FullDetailBundle:
    view: ClassVar[View] = View.FULL_DETAIL
    session: Optional[Session]
    conversations: list[ConversationPair]
    selected_index: int
    scroll_offset: int = 0
    scroll_to_end: bool = False
    scroll_to_search_match: bool = False
    highlight_query: str = ""
    highlight_options: dict = field(default_factory=dict)
    expanded_tools: dict = field(default_factory=dict)
    context_range: int = DEFAULT_CONTEXT_RANGE
    search_position: Optional[tuple[int, int]] = None

    @property
    def conversation(self) -> Optional[ConversationPair]:
        if 0 <= self.selected_index < len(self.conversations):
            return self.conversations[self.selected_index]
        return None


@dataclass
class SearchBundle:
    view: ClassVar[View] = View.SEARCH
    query: str
    options: dict
    sessions: list[Session]
    selected_index: int
    total_sessions: int


@dataclass
class FilterBundle:
    view: ClassVar[View] = View.FILTER
    filters: dict
    options: list[Optional[str]]
    selected_index: int


@dataclass
class SearchResultsBundle:
    view: ClassVar[View] = View.SEARCH_RESULTS
    query: str
    options: dict
    results: list[SearchResult]
    selected_index: int


@dataclass
class HelpBundle:
    view: ClassVar[View] = View.HELP
    previous_view: Optional[View] = None


@dataclass
class ConversationTreeBundle:
    view: ClassVar[View] = View.CONVERSATION_TREE
    session: Optional[Session]
    nodes: list[TreeNode]
    selected_index: int


@dataclass
class SubagentDetailBundle:
    view: ClassVar[View] = View.SUBAGENT_DETAIL
    session: Optional[Session]
    conversation: Optional[ConversationPair]
    tool: Optional[ToolUse]
    scroll_offset: int = 0
    scroll_to_end: bool = False
    scroll_to_search_match: bool = False
    highlight_query: str = ""
    highlight_options: dict = field(default_factory=dict)
    expanded_tools: dict = field(default_factory=dict)


class ViewState:
    """All interactive state of the dashboard.

    Every mutating operation ends in ``validate_state()``, which is the one
    place indices and offsets are pulled back into range. Nothing here raises
    for out-of-range input; unknown views, sort orders and filter keys are
    ignored.
    """

    def __init__(
        self,
        repository: SessionRepository,
        terminal_width: int = DEFAULT_TERMINAL_WIDTH,
        terminal_height: int = DEFAULT_TERMINAL_HEIGHT,
    ):
        self.repository = repository
        self.terminal_width = terminal_width
        self.terminal_height = terminal_height
        self._reset_fields()

    def _reset_fields(self):
        # Views
        self.current_view = View.SESSION_LIST
        self.view_history: list[View] = []

        # Selection
        self.selected_session_index = 0
        self.selected_conversation_index = 0
        self.selected_search_result_index = 0
        self.selected_tree_node_index = 0
        self.selected_filter_index = 0

        # Scrolling in long-form views
        self.scroll_offset = 0
        self.max_scroll_offset = 0
        self.scroll_to_end = False
        self.scroll_to_search_match = False

        # Session search (live filter) and conversation search results
        self.search_query = ""
        self.search_options: dict = {}
        self.search_input = ""
        self.search_results: list[SearchResult] = []
        self.search_results_query = ""
        self.search_results_options: dict = {}
        self.previous_search_state: Optional[dict] = None
        self.highlight_query = ""
        self.highlight_options: dict = {}

        # Sort and filter
        self.sort_order = "last_activity"
        self.sort_direction = DEFAULT_SORT_DIRECTION
        self.conversation_sort_order = "date_time"
        self.conversation_sort_direction = DEFAULT_SORT_DIRECTION
        self.filters: dict = {key: None for key in FILTER_KEYS}

        # Collapsible regions of the active long-form view
        self.expanded_tools: dict[str, bool] = {}
        self.registered_tool_ids: set[str] = set()

        # Preferences
        self.bookmarks: set[str] = set()
        self.context_range = DEFAULT_CONTEXT_RANGE
        self.language = DEFAULT_LANGUAGE
        self.theme = DEFAULT_THEME
        self.is_loading = False

        # Filtered session cache
        self._filtered_sessions: Optional[list[Session]] = None
        self._cache_invalidated = True

    # Derived collections

    @property
    def cache_invalidated(self) -> bool:
        return self._cache_invalidated

    def _invalidate_cache(self):
        self._cache_invalidated = True

    def get_filtered_sessions(self) -> list[Session]:
        """Search, filter and sort the repository's sessions.

        The result is cached and the same list object is returned until a
        search, filter or sort change invalidates it.
        """
        if self._filtered_sessions is not None and not self._cache_invalidated:
            return self._filtered_sessions

        sessions = self.repository.sessions
        if self.search_query.strip():
            sessions = self.repository.search(self.search_query, self.search_options, sessions)
        sessions = self.repository.filter(self.filters, sessions)

        key = SESSION_SORT_KEYS[self.sort_order]
        self._filtered_sessions = sorted(sessions, key=key, reverse=self.sort_direction == "desc")
        self._cache_invalidated = False
        logger.debug(f"Recomputed filtered sessions: {len(self._filtered_sessions)} of {len(self.repository.sessions)}")
        return self._filtered_sessions

    def get_current_session(self) -> Optional[Session]:
        sessions = self.get_filtered_sessions()
        if not sessions:
            return None
        return sessions[_clamp_index(self.selected_session_index, len(sessions))]

    def get_sorted_conversations(self, session: Optional[Session] = None) -> list[ConversationPair]:
        if session is None:
            session = self.get_current_session()
        if session is None:
            return []
        key = CONVERSATION_SORT_KEYS[self.conversation_sort_order]
        return sorted(session.conversations, key=key, reverse=self.conversation_sort_direction == "desc")

    def get_current_conversation(self) -> Optional[ConversationPair]:
        conversations = self.get_sorted_conversations()
        if not conversations:
            return None
        return conversations[_clamp_index(self.selected_conversation_index, len(conversations))]

    def get_tree_nodes(self) -> list[TreeNode]:
        return build_conversation_tree(self.get_sorted_conversations())

    def filter_options(self) -> list[Optional[str]]:
        """Project filter choices; None stands for all projects."""
        return [None] + self.repository.get_projects()

    @property
    def page_size(self) -> int:
        return max(1, self.terminal_height - HEADER_LINES - FOOTER_LINES)

    @property
    def half_page_size(self) -> int:
        return max(1, self.page_size // 2)

    # Validation

    def validate_state(self):
        """Clamp every index and range to what the current data allows."""
        sessions = self.get_filtered_sessions()
        self.selected_session_index = _clamp_index(self.selected_session_index, len(sessions))

        conversations = self.get_sorted_conversations()
        self.selected_conversation_index = _clamp_index(self.selected_conversation_index, len(conversations))
        self.selected_tree_node_index = _clamp_index(
            self.selected_tree_node_index, len(build_conversation_tree(conversations))
        )
        self.selected_search_result_index = _clamp_index(self.selected_search_result_index, len(self.search_results))
        self.selected_filter_index = _clamp_index(self.selected_filter_index, len(self.filter_options()))

        if self.previous_search_state:
            results = self.previous_search_state.get("results") or []
            self.previous_search_state["selected_index"] = _clamp_index(
                self.previous_search_state.get("selected_index", 0), len(results)
            )

        self.max_scroll_offset = max(0, self.max_scroll_offset)
        self.scroll_offset = max(0, min(self.scroll_offset, self.max_scroll_offset))
        self.context_range = max(MIN_CONTEXT_RANGE, min(self.context_range, MAX_CONTEXT_RANGE))

        if self.language not in SUPPORTED_LANGUAGES:
            self.language = DEFAULT_LANGUAGE
        if self.theme not in THEMES:
            self.theme = DEFAULT_THEME

        self.expanded_tools = {k: v for k, v in self.expanded_tools.items() if k in self.registered_tool_ids}

    # Views

    def set_view(self, view):
        """Switch to a view, remembering the current one for go_back()."""
        target = _parse_view(view)
        if target is None:
            logger.debug(f"Ignoring unknown view {view!r}")
            return

        leaving = self.current_view
        self.view_history.append(leaving)
        del self.view_history[:-MAX_HISTORY]
        self.current_view = target
        self.scroll_offset = 0
        self.max_scroll_offset = 0
        self.scroll_to_end = target == View.FULL_DETAIL
        if leaving in LONG_FORM_VIEWS:
            self._clear_tool_expansion()
        self.validate_state()

    def go_back(self):
        if not self.view_history:
            return
        leaving = self.current_view
        self.current_view = self.view_history.pop()
        if leaving in LONG_FORM_VIEWS:
            self._clear_tool_expansion()
        self.validate_state()

    def return_from_detail(self):
        """Leave the current view, returning to search results when we came from there."""
        if self.current_view in (View.FULL_DETAIL, View.CONVERSATION_DETAIL) and self.previous_search_state:
            saved = self.previous_search_state
            self.previous_search_state = None
            self.search_results = saved["results"]
            self.search_results_query = saved["query"]
            self.search_results_options = saved["options"]
            self.selected_search_result_index = saved["selected_index"]
            self.highlight_query = ""
            self.highlight_options = {}
            self.go_back()
            if self.current_view != View.SEARCH_RESULTS:
                self.set_view(View.SEARCH_RESULTS)
            return

        if self.current_view in (View.FULL_DETAIL, View.CONVERSATION_DETAIL):
            self.highlight_query = ""
            self.highlight_options = {}
        self.go_back()

    def open_selected(self):
        """Open whatever is selected in the current view (the Enter key)."""
        view = self.current_view
        if view == View.SESSION_LIST:
            if self.get_current_session() is not None:
                self.selected_conversation_index = 0
                self.set_view(View.CONVERSATION_DETAIL)
        elif view == View.CONVERSATION_DETAIL:
            if self.get_current_conversation() is not None:
                self.set_view(View.FULL_DETAIL)
        elif view == View.SEARCH_RESULTS:
            self._open_search_result()
        elif view == View.FILTER:
            self.apply_selected_filter()
        elif view == View.CONVERSATION_TREE:
            self._open_tree_node()
        elif view == View.SEARCH:
            self.submit_search()
        elif view == View.HELP:
            self.go_back()

    def _open_search_result(self):
        if not self.search_results:
            return
        self.previous_search_state = {
            "results": self.search_results,
            "selected_index": self.selected_search_result_index,
            "query": self.search_results_query,
            "options": dict(self.search_results_options),
        }
        result = self.search_results[self.selected_search_result_index]

        self.search_query = ""
        self.search_options = {}
        self.filters = {key: None for key in FILTER_KEYS}
        self._invalidate_cache()

        if not self._navigate_to_search_result(result):
            self.previous_search_state = None
            self.validate_state()
            return
        self.set_view(View.FULL_DETAIL)

    def _navigate_to_search_result(self, result: SearchResult) -> bool:
        sessions = self.get_filtered_sessions()
        position = next((n for n, s in enumerate(sessions) if s.id == result.session_id), None)
        if position is None:
            logger.debug(f"Search result session {result.session_id} is no longer loaded")
            return False

        self.selected_session_index = position
        conversations = self.get_sorted_conversations(sessions[position])
        self.selected_conversation_index = next(
            (n for n, c in enumerate(conversations) if c.index == result.conversation_index), 0
        )

        saved = self.previous_search_state or {}
        self.highlight_query = saved.get("query", self.search_results_query)
        self.highlight_options = dict(saved.get("options", self.search_results_options))
        self.scroll_offset = 0
        self.scroll_to_search_match = True
        self._clear_tool_expansion()
        return True

    def _step_search_result(self, delta: int):
        saved = self.previous_search_state
        results = saved["results"]
        index = _clamp_index(saved["selected_index"] + delta, len(results))
        if index == saved["selected_index"]:
            return
        saved["selected_index"] = index
        self._navigate_to_search_result(results[index])
        self.scroll_to_end = False
        self.validate_state()

    def _open_tree_node(self):
        nodes = self.get_tree_nodes()
        if not nodes:
            return
        node = nodes[self.selected_tree_node_index]
        self.selected_conversation_index = node.position
        if node.is_subagent:
            self.set_view(View.SUBAGENT_DETAIL)
        else:
            self.set_view(View.FULL_DETAIL)

    def show_help(self):
        if self.current_view != View.HELP:
            self.set_view(View.HELP)

    def show_tree(self):
        if self.get_current_session() is not None:
            self.selected_tree_node_index = 0
            self.set_view(View.CONVERSATION_TREE)

    # Navigation

    def move_selection(self, delta: int):
        """Move the selection of the current view by delta rows."""
        view = self.current_view
        if view in (View.SESSION_LIST, View.SEARCH):
            self.selected_session_index += delta
        elif view == View.CONVERSATION_DETAIL:
            self.selected_conversation_index += delta
        elif view == View.FULL_DETAIL:
            self._move_detail_conversation(delta)
        elif view == View.SEARCH_RESULTS:
            self.selected_search_result_index += delta
        elif view == View.CONVERSATION_TREE:
            self.selected_tree_node_index += delta
        elif view == View.FILTER:
            self.selected_filter_index += delta
        self.validate_state()

    def _move_detail_conversation(self, delta: int):
        conversations = self.get_sorted_conversations()
        index = _clamp_index(self.selected_conversation_index + delta, len(conversations))
        if index == self.selected_conversation_index:
            return
        self.selected_conversation_index = index
        self.scroll_offset = 0
        self.scroll_to_end = True
        self.scroll_to_search_match = False
        self._clear_tool_expansion()

    def navigate_up(self):
        self.move_selection(-1)

    def navigate_down(self):
        self.move_selection(1)

    def _navigate_horizontal(self, delta: int):
        view = self.current_view
        from_search = bool(self.previous_search_state and self.previous_search_state.get("results"))
        if view in (View.CONVERSATION_DETAIL, View.FULL_DETAIL) and from_search:
            self._step_search_result(delta)
            return

        if view == View.CONVERSATION_DETAIL:
            sessions = self.get_filtered_sessions()
            index = _clamp_index(self.selected_session_index + delta, len(sessions))
            if index != self.selected_session_index:
                self.selected_session_index = index
                self.selected_conversation_index = 0
        elif view == View.FULL_DETAIL:
            self._move_detail_conversation(delta)
        self.validate_state()

    def navigate_left(self):
        self._navigate_horizontal(-1)

    def navigate_right(self):
        self._navigate_horizontal(1)

    def navigate_to_first(self):
        if self.current_view in LONG_FORM_VIEWS:
            self.scroll_to_top()
        else:
            self.move_selection(-(10 ** 9))

    def navigate_to_last(self):
        if self.current_view in LONG_FORM_VIEWS:
            self.scroll_to_bottom()
        else:
            self.move_selection(10 ** 9)

    # Scrolling

    def _scroll_to(self, offset: int):
        self.scroll_offset = max(0, min(offset, self.max_scroll_offset))
        self.scroll_to_end = False
        self.scroll_to_search_match = False
        self.validate_state()

    def scroll_up(self, lines: int = 1):
        self._scroll_to(self.scroll_offset - lines)

    def scroll_down(self, lines: int = 1):
        self._scroll_to(self.scroll_offset + lines)

    def page_up(self):
        self.scroll_up(self.page_size)

    def page_down(self):
        self.scroll_down(self.page_size)

    def half_page_up(self):
        self.scroll_up(self.half_page_size)

    def half_page_down(self):
        self.scroll_down(self.half_page_size)

    def scroll_to_top(self):
        self._scroll_to(0)

    def scroll_to_bottom(self):
        self._scroll_to(self.max_scroll_offset)

    def resize(self, width: int, height: int):
        self.terminal_width = max(0, width)
        self.terminal_height = max(0, height)
        self.validate_state()

    # Search

    def set_search_query(self, query: str, options: Optional[dict] = None):
        self.search_query = query or ""
        if options is not None:
            self.search_options = dict(options)
        self.selected_session_index = 0
        self._invalidate_cache()
        self.validate_state()

    def clear_search(self):
        self.search_query = ""
        self.search_options = {}
        self.search_input = ""
        self.selected_session_index = 0
        self._invalidate_cache()
        self.validate_state()

    def begin_search(self):
        """Open the search prompt, seeded with the active query."""
        self.search_input = self.search_query
        self.set_view(View.SEARCH)

    def append_search_input(self, text: str):
        self.search_input += text
        self.set_search_query(self.search_input, self.search_options)

    def backspace_search_input(self):
        self.search_input = self.search_input[:-1]
        self.set_search_query(self.search_input, self.search_options)

    def toggle_search_regex(self):
        options = dict(self.search_options)
        options["regex"] = not options.get("regex", False)
        self.set_search_query(self.search_input, options)

    def cancel_search(self):
        self.clear_search()
        if self.current_view == View.SEARCH:
            self.go_back()

    def submit_search(self):
        """Search conversations for the typed query and show the matches."""
        query = self.search_input.strip()
        if not query:
            if self.current_view == View.SEARCH:
                self.go_back()
            return
        results = self.repository.search_conversations(query, self.search_options)
        self.set_search_results(query, results, self.search_options)
        if self.current_view == View.SEARCH:
            self.go_back()
        self.set_view(View.SEARCH_RESULTS)

    def set_search_results(self, query: str, results: list[SearchResult], options: Optional[dict] = None):
        self.search_results = list(results)
        self.search_results_query = query or ""
        self.search_results_options = dict(options or {})
        self.selected_search_result_index = 0
        self.previous_search_state = None
        self.validate_state()

    # Filters

    def set_filter(self, key: str, value):
        if key not in FILTER_KEYS:
            return
        self.filters[key] = value
        self.selected_session_index = 0
        self._invalidate_cache()
        self.validate_state()

    def clear_filter(self, key: str):
        self.set_filter(key, None)

    def clear_filters(self):
        self.filters = {key: None for key in FILTER_KEYS}
        self.selected_session_index = 0
        self._invalidate_cache()
        self.validate_state()

    def begin_filter(self):
        options = self.filter_options()
        current = self.filters.get("project")
        self.selected_filter_index = options.index(current) if current in options else 0
        self.set_view(View.FILTER)

    def apply_selected_filter(self):
        options = self.filter_options()
        choice = options[_clamp_index(self.selected_filter_index, len(options))]
        if choice is None:
            self.clear_filter("project")
        else:
            self.set_filter("project", choice)
        if self.current_view == View.FILTER:
            self.go_back()

    # Sorting

    def set_sort_order(self, order: str):
        """Sort sessions by order; repeating the current order flips direction."""
        if order not in SESSION_SORT_ORDERS:
            return
        if order == self.sort_order:
            self.sort_direction = "asc" if self.sort_direction == "desc" else "desc"
        else:
            self.sort_order = order
            self.sort_direction = DEFAULT_SORT_DIRECTION
        self.selected_session_index = 0
        self._invalidate_cache()
        self.validate_state()

    def cycle_sort_order(self):
        if self.sort_order in SORT_CYCLE:
            next_order = SORT_CYCLE[(SORT_CYCLE.index(self.sort_order) + 1) % len(SORT_CYCLE)]
        else:
            next_order = SORT_CYCLE[0]
        self.set_sort_order(next_order)

    def set_conversation_sort_order(self, order: str):
        if order not in CONVERSATION_SORT_ORDERS:
            return
        if order == self.conversation_sort_order:
            self.conversation_sort_direction = "asc" if self.conversation_sort_direction == "desc" else "desc"
        else:
            self.conversation_sort_order = order
            self.conversation_sort_direction = DEFAULT_SORT_DIRECTION
        self.selected_conversation_index = 0
        self.validate_state()

    # Collapsible regions

    def register_tool_id(self, tool_id: str):
        self.registered_tool_ids.add(tool_id)

    def is_tool_expanded(self, tool_id: str) -> bool:
        return self.expanded_tools.get(tool_id, False)

    def toggle_tool_expansion(self, tool_id: str):
        if tool_id not in self.registered_tool_ids:
            return
        self.expanded_tools[tool_id] = not self.expanded_tools.get(tool_id, False)
        self.validate_state()

    def toggle_all_tool_expansions(self):
        """Collapse everything if anything is open, otherwise expand every region."""
        if any(self.expanded_tools.values()):
            self.expanded_tools = {}
        else:
            self.expanded_tools = {tool_id: True for tool_id in self.registered_tool_ids}
        self.validate_state()

    def _clear_tool_expansion(self):
        self.expanded_tools = {}
        self.registered_tool_ids = set()

    def apply_render_result(self, result: RenderResult):
        """Fold a finished render pass back into the state."""
        for tool_id in result.tool_ids:
            self.register_tool_id(tool_id)
        if self.current_view in LONG_FORM_VIEWS:
            self.max_scroll_offset = result.max_scroll_offset
            self.scroll_offset = result.scroll_offset
            if result.consumed_scroll_to_end:
                self.scroll_to_end = False
            if result.consumed_search_match:
                self.scroll_to_search_match = False
        self.validate_state()

    # Preferences

    def toggle_bookmark(self):
        session = self.get_current_session()
        if session is None:
            return
        if session.id in self.bookmarks:
            self.bookmarks.discard(session.id)
        else:
            self.bookmarks.add(session.id)

    def is_bookmarked(self, session_id: str) -> bool:
        return session_id in self.bookmarks

    def increase_context_range(self):
        self.context_range += 1
        self.validate_state()

    def decrease_context_range(self):
        self.context_range -= 1
        self.validate_state()

    def toggle_language(self):
        index = SUPPORTED_LANGUAGES.index(self.language) if self.language in SUPPORTED_LANGUAGES else -1
        self.language = SUPPORTED_LANGUAGES[(index + 1) % len(SUPPORTED_LANGUAGES)]

    def set_theme(self, theme: str):
        if theme in THEMES:
            self.theme = theme

    def set_loading(self, loading: bool):
        self.is_loading = loading

    def refresh_sessions(self):
        """Call after the repository reloaded its sessions."""
        self._invalidate_cache()
        self.validate_state()

    def reset_state(self):
        self._reset_fields()
        self.validate_state()

    def get_state_statistics(self) -> dict:
        return {
            "current_view": self.current_view.value,
            "history_depth": len(self.view_history),
            "total_sessions": len(self.repository.sessions),
            "filtered_sessions": len(self.get_filtered_sessions()),
            "search_results": len(self.search_results),
            "bookmarks": len(self.bookmarks),
            "expanded_tools": sum(1 for v in self.expanded_tools.values() if v),
            "registered_tools": len(self.registered_tool_ids),
            "cache_valid": not self._cache_invalidated,
        }

    # Projection

    def project_view(self):
        """Build the data bundle the renderer needs for the current view."""
        projectors = {
            View.SESSION_LIST: self._project_session_list,
            View.CONVERSATION_DETAIL: self._project_conversation_detail,
            View.FULL_DETAIL: self._project_full_detail,
            View.SEARCH: self._project_search,
            View.FILTER: self._project_filter,
            View.SEARCH_RESULTS: self._project_search_results,
            View.HELP: self._project_help,
            View.CONVERSATION_TREE: self._project_conversation_tree,
            View.SUBAGENT_DETAIL: self._project_subagent_detail,
        }
        return projectors.get(self.current_view, self._project_session_list)()

    def _project_session_list(self) -> SessionListBundle:
        return SessionListBundle(
            sessions=self.get_filtered_sessions(),
            selected_index=self.selected_session_index,
            total_sessions=len(self.repository.sessions),
            search_query=self.search_query,
            search_options=dict(self.search_options),
            filters=dict(self.filters),
            sort_order=self.sort_order,
            sort_direction=self.sort_direction,
            bookmarks=frozenset(self.bookmarks),
        )

    def _project_conversation_detail(self) -> ConversationDetailBundle:
        return ConversationDetailBundle(
            session=self.get_current_session(),
            conversations=self.get_sorted_conversations(),
            selected_index=self.selected_conversation_index,
            sort_order=self.conversation_sort_order,
            sort_direction=self.conversation_sort_direction,
            highlight_query=self.highlight_query,
            highlight_options=dict(self.highlight_options),
        )

    def _project_full_detail(self) -> FullDetailBundle:
        position = None
        if self.previous_search_state and self.previous_search_state.get("results"):
            position = (self.previous_search_state["selected_index"] + 1, len(self.previous_search_state["results"]))
        return FullDetailBundle(
            session=self.get_current_session(),
            conversations=self.get_sorted_conversations(),
            selected_index=self.selected_conversation_index,
            scroll_offset=self.scroll_offset,
            scroll_to_end=self.scroll_to_end,
            scroll_to_search_match=self.scroll_to_search_match,
            highlight_query=self.highlight_query,
            highlight_options=dict(self.highlight_options),
            expanded_tools=dict(self.expanded_tools),
            context_range=self.context_range,
            search_position=position,
        )

    def _project_search(self) -> SearchBundle:
        return SearchBundle(
            query=self.search_input,
            options=dict(self.search_options),
            sessions=self.get_filtered_sessions(),
            selected_index=self.selected_session_index,
            total_sessions=len(self.repository.sessions),
        )

    def _project_filter(self) -> FilterBundle:
        return FilterBundle(
            filters=dict(self.filters),
            options=self.filter_options(),
            selected_index=self.selected_filter_index,
        )

    def _project_search_results(self) -> SearchResultsBundle:
        return SearchResultsBundle(
            query=self.search_results_query,
            options=dict(self.search_results_options),
            results=self.search_results,
            selected_index=self.selected_search_result_index,
        )

    def _project_help(self) -> HelpBundle:
        return HelpBundle(previous_view=self.view_history[-1] if self.view_history else None)

    def _project_conversation_tree(self) -> ConversationTreeBundle:
        return ConversationTreeBundle(
            session=self.get_current_session(),
            nodes=self.get_tree_nodes(),
            selected_index=self.selected_tree_node_index,
        )

    def _project_subagent_detail(self) -> SubagentDetailBundle:
        nodes = self.get_tree_nodes()
        node = nodes[self.selected_tree_node_index] if nodes else None
        return SubagentDetailBundle(
            session=self.get_current_session(),
            conversation=node.conversation if node else None,
            tool=node.tool if node else None,
            scroll_offset=self.scroll_offset,
            scroll_to_end=self.scroll_to_end,
            scroll_to_search_match=self.scroll_to_search_match,
            highlight_query=self.highlight_query,
            highlight_options=dict(self.highlight_options),
            expanded_tools=dict(self.expanded_tools),
        )

    # Snapshot

    def export_state(self) -> dict:
        """Flat, JSON-serialisable snapshot of the user-visible state."""
        return {
            "current_view": self.current_view.value,
            "selected_session_index": self.selected_session_index,
            "selected_conversation_index": self.selected_conversation_index,
            "scroll_offset": self.scroll_offset,
            "search_query": self.search_query,
            "filters": dict(self.filters),
            "sort_order": self.sort_order,
            "sort_direction": self.sort_direction,
            "context_range": self.context_range,
            "language": self.language,
            "theme": self.theme,
            "bookmarked_session_ids": sorted(self.bookmarks),
        }

    def import_state(self, snapshot: dict):
        """Restore a snapshot; unknown keys and wrong types are ignored."""
        if not isinstance(snapshot, dict):
            return

        view = _parse_view(snapshot.get("current_view"))
        if view is not None:
            self.current_view = view
            self.view_history = []

        for key in ("selected_session_index", "selected_conversation_index", "scroll_offset", "context_range"):
            value = snapshot.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                setattr(self, key, value)

        for key in ("search_query", "language", "theme"):
            value = snapshot.get(key)
            if isinstance(value, str):
                setattr(self, key, value)

        if snapshot.get("sort_order") in SESSION_SORT_ORDERS:
            self.sort_order = snapshot["sort_order"]
        if snapshot.get("sort_direction") in ("asc", "desc"):
            self.sort_direction = snapshot["sort_direction"]

        filters = snapshot.get("filters")
        if isinstance(filters, dict):
            self.filters = {key: filters.get(key) for key in FILTER_KEYS}

        bookmarks = snapshot.get("bookmarked_session_ids")
        if isinstance(bookmarks, list):
            self.bookmarks = {b for b in bookmarks if isinstance(b, str)}

        # The first render of a long-form view replaces this with the real maximum
        self.max_scroll_offset = self.scroll_offset if self.current_view in LONG_FORM_VIEWS else 0
        self._invalidate_cache()
        self.validate_state()
