"""Defaults for layout, navigation and key bindings."""

from pathlib import Path

# Terminal
DEFAULT_TERMINAL_WIDTH = 120
DEFAULT_TERMINAL_HEIGHT = 40
WIDE_LAYOUT_THRESHOLD = 90
MIN_TERMINAL_WIDTH = 60
MIN_TERMINAL_HEIGHT = 20

# Diff context shown for Edit/MultiEdit inputs
DEFAULT_CONTEXT_RANGE = 3
MIN_CONTEXT_RANGE = 1
MAX_CONTEXT_RANGE = 10

# Long-form detail views
COLLAPSE_THRESHOLD = 20  # lines before a block collapses
MOUSE_SCROLL_LINES = 3
KEY_SCROLL_LINES = 5

# Search
SEARCH_CONTEXT_CHARS = 50

# Preferences
SUPPORTED_LANGUAGES = ["en", "ja"]
DEFAULT_LANGUAGE = "en"
DEFAULT_THEME = "default"

# Storage
CACHE_DIR = Path.home() / ".cache" / "session-scope"
STATE_PATH = CACHE_DIR / "state.json"
DEBUG_LOG_PATH = CACHE_DIR / "debug.log"

# Action name -> keys (textual key names or printable characters)
KEY_BINDINGS: dict[str, list[str]] = {
    "up": ["up", "k"],
    "down": ["down", "j"],
    "left": ["left", "h"],
    "right": ["right", "l"],
    "enter": ["enter"],
    "back": ["escape"],
    "quit": ["q", "ctrl+c"],
    "first": ["home", "g"],
    "last": ["end", "G"],
    "page_down": ["pagedown", "space", " "],
    "page_up": ["pageup", "b"],
    "half_page_down": ["ctrl+d"],
    "half_page_up": ["ctrl+u"],
    "toggle_expansion": ["ctrl+r"],
    "help": ["?"],
    "search": ["/"],
    "filter": ["f"],
    "sort": ["s"],
    "sort_datetime": ["1"],
    "sort_duration": ["2"],
    "sort_tools": ["3"],
    "tree": ["t"],
    "bookmark": ["m"],
    "refresh": ["R"],
    "resume": ["r"],
    "clear_search": ["c"],
    "context_more": ["+", "="],
    "context_less": ["-"],
    "language": ["L"],
}
