"""Session Scope TUI application."""

import logging
from typing import Optional

from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding

from .config import KEY_BINDINGS, KEY_SCROLL_LINES, MOUSE_SCROLL_LINES
from .providers import discover_all_sessions, get_provider
from .repository import SessionRepository
from .state import LONG_FORM_VIEWS, View, ViewState
from .store import StateStore
from .ui.renderer import Renderer
from .ui.styles import APP_CSS, get_style_provider
from .ui.widgets import ScreenView

logger = logging.getLogger(__name__)

# key or character -> action name
KEY_ACTIONS = {key: action for action, keys in KEY_BINDINGS.items() for key in keys}


class SessionScopeApp(App):
    """Full-screen dashboard: every key mutates the view state, then the screen is re-rendered."""

    CSS = APP_CSS

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        repository: Optional[SessionRepository] = None,
        theme: str = "default",
        color: bool = True,
        search: Optional[str] = None,
        regex: bool = False,
        snapshot: Optional[dict] = None,
        store: Optional[StateStore] = None,
        discover: bool = True,
    ):
        super().__init__()
        self.repository = repository or SessionRepository()
        self.view_state = ViewState(self.repository)
        self.view_state.set_theme(theme)
        self._color = color
        self.renderer = Renderer(get_style_provider(self.view_state.theme, color))
        self._style_theme = self.view_state.theme
        self.store = store
        self._snapshot = snapshot
        self._initial_search = search
        self._initial_regex = regex
        self._discover = discover

    def compose(self) -> ComposeResult:
        yield ScreenView(id="screen")

    def on_mount(self):
        self.title = "Session Scope"
        self.view_state.resize(self.size.width, self.size.height)
        if self._discover:
            self.view_state.set_loading(True)
            self._refresh()
            self._load_sessions_background()
        else:
            self._on_sessions_loaded(None)

    @work(thread=True)
    def _load_sessions_background(self):
        """Discover transcripts off the UI thread."""
        sessions = discover_all_sessions()
        self.call_from_thread(self._on_sessions_loaded, sessions)

    def _on_sessions_loaded(self, sessions):
        state = self.view_state
        if sessions is not None:
            self.repository.replace(sessions)
            logger.info(f"Loaded {len(sessions)} sessions")
        state.set_loading(False)
        state.refresh_sessions()

        if self._snapshot is not None:
            state.import_state(self._snapshot)
            if state.current_view != View.SESSION_LIST:
                state.view_history.insert(0, View.SESSION_LIST)
            self._snapshot = None
        if self._initial_search:
            state.set_search_query(self._initial_search, {"regex": self._initial_regex})
            self._initial_search = None
        self._refresh()

    # Rendering

    def _refresh(self):
        state = self.view_state
        screen = self.query_one("#screen", ScreenView)
        if state.is_loading:
            screen.show_message("Loading sessions...")
            return

        if state.theme != self._style_theme:
            self.renderer.style = get_style_provider(state.theme, self._color)
            self._style_theme = state.theme

        bundle = state.project_view()
        result = self.renderer.render(bundle, state.terminal_width, state.terminal_height)
        state.apply_render_result(result)
        screen.show(result.lines)

    def on_resize(self, event: events.Resize):
        self.view_state.resize(event.size.width, event.size.height)
        self._refresh()

    # Input

    def on_key(self, event: events.Key):
        state = self.view_state
        if state.is_loading:
            return
        event.stop()

        if state.current_view == View.SEARCH:
            self._handle_search_key(event)
        elif state.current_view == View.HELP:
            state.go_back()
        else:
            action = KEY_ACTIONS.get(event.key) or KEY_ACTIONS.get(event.character or "")
            if action is None:
                return
            handler = getattr(self, f"_handle_{action}", None)
            if handler is not None:
                handler()
        if self.is_running:
            self._refresh()

    def _handle_search_key(self, event: events.Key):
        state = self.view_state
        if event.key == "escape":
            state.cancel_search()
        elif event.key == "enter":
            state.submit_search()
        elif event.key == "backspace":
            state.backspace_search_input()
        elif event.key == "tab":
            state.toggle_search_regex()
        elif event.key in ("up", "down"):
            state.move_selection(-1 if event.key == "up" else 1)
        elif event.is_printable and event.character:
            state.append_search_input(event.character)

    def on_mouse_scroll_up(self, event: events.MouseScrollUp):
        if self.view_state.current_view in LONG_FORM_VIEWS:
            self.view_state.scroll_up(MOUSE_SCROLL_LINES)
        else:
            self.view_state.navigate_up()
        self._refresh()

    def on_mouse_scroll_down(self, event: events.MouseScrollDown):
        if self.view_state.current_view in LONG_FORM_VIEWS:
            self.view_state.scroll_down(MOUSE_SCROLL_LINES)
        else:
            self.view_state.navigate_down()
        self._refresh()

    # Actions

    @property
    def _long_form(self) -> bool:
        return self.view_state.current_view in LONG_FORM_VIEWS

    def _handle_up(self):
        if self._long_form:
            self.view_state.scroll_up(KEY_SCROLL_LINES)
        else:
            self.view_state.navigate_up()

    def _handle_down(self):
        if self._long_form:
            self.view_state.scroll_down(KEY_SCROLL_LINES)
        else:
            self.view_state.navigate_down()

    def _handle_left(self):
        self.view_state.navigate_left()

    def _handle_right(self):
        self.view_state.navigate_right()

    def _handle_enter(self):
        self.view_state.open_selected()

    def _handle_back(self):
        self.view_state.return_from_detail()

    def _handle_quit(self):
        self.action_quit()

    def _handle_first(self):
        self.view_state.navigate_to_first()

    def _handle_last(self):
        self.view_state.navigate_to_last()

    def _handle_page_down(self):
        if self._long_form:
            self.view_state.page_down()
        else:
            self.view_state.move_selection(self.view_state.page_size)

    def _handle_page_up(self):
        if self._long_form:
            self.view_state.page_up()
        else:
            self.view_state.move_selection(-self.view_state.page_size)

    def _handle_half_page_down(self):
        if self._long_form:
            self.view_state.half_page_down()
        else:
            self.view_state.move_selection(self.view_state.half_page_size)

    def _handle_half_page_up(self):
        if self._long_form:
            self.view_state.half_page_up()
        else:
            self.view_state.move_selection(-self.view_state.half_page_size)

    def _handle_toggle_expansion(self):
        if self._long_form:
            self.view_state.toggle_all_tool_expansions()

    def _handle_help(self):
        self.view_state.show_help()

    def _handle_search(self):
        if self.view_state.current_view == View.SESSION_LIST:
            self.view_state.begin_search()

    def _handle_filter(self):
        if self.view_state.current_view == View.SESSION_LIST:
            self.view_state.begin_filter()

    def _handle_sort(self):
        if self.view_state.current_view == View.SESSION_LIST:
            self.view_state.cycle_sort_order()

    def _sort_conversations(self, order: str):
        if self.view_state.current_view == View.CONVERSATION_DETAIL:
            self.view_state.set_conversation_sort_order(order)

    def _handle_sort_datetime(self):
        self._sort_conversations("date_time")

    def _handle_sort_duration(self):
        self._sort_conversations("duration")

    def _handle_sort_tools(self):
        self._sort_conversations("tools")

    def _handle_tree(self):
        if self.view_state.current_view in (View.SESSION_LIST, View.CONVERSATION_DETAIL):
            self.view_state.show_tree()

    def _handle_bookmark(self):
        if self.view_state.current_view == View.SESSION_LIST:
            self.view_state.toggle_bookmark()

    def _handle_refresh(self):
        self.view_state.set_loading(True)
        self._refresh()
        self._load_sessions_background()

    def _handle_resume(self):
        session = self.view_state.get_current_session()
        if session is None:
            return
        provider = get_provider(session.harness)
        if provider:
            self._save_state()
            self.exit(result=(provider.get_resume_command(session), str(session.project_path)))

    def _handle_clear_search(self):
        self.view_state.clear_search()
        self.view_state.clear_filters()

    def _handle_context_more(self):
        if self.view_state.current_view == View.FULL_DETAIL:
            self.view_state.increase_context_range()

    def _handle_context_less(self):
        if self.view_state.current_view == View.FULL_DETAIL:
            self.view_state.decrease_context_range()

    def _handle_language(self):
        self.view_state.toggle_language()

    def _save_state(self):
        if self.store is not None:
            self.store.save(self.view_state.export_state())

    def action_quit(self):
        self._save_state()
        self.exit()
