"""Semantic text styling and the textual CSS for the host app."""

from abc import ABC, abstractmethod

from rich.color import ColorSystem
from rich.style import Style

from .text import strip_styling

ROLES = ("header", "muted", "info", "success", "warning", "error", "accent", "highlight", "dim", "selection")

# Role -> rich style definition, per theme
THEMES: dict[str, dict[str, str]] = {
    "default": {
        "header": "bold bright_blue",
        "muted": "bright_black",
        "info": "bright_cyan",
        "success": "bright_green",
        "warning": "bright_yellow",
        "error": "bright_red",
        "accent": "bright_magenta",
        "highlight": "bold black on bright_yellow",
        "dim": "dim",
        "selection": "bright_white on blue",
    },
    "dark": {
        "header": "bold bright_cyan",
        "muted": "bright_black",
        "info": "bright_cyan",
        "success": "bright_green",
        "warning": "bright_yellow",
        "error": "bright_red",
        "accent": "bright_magenta",
        "highlight": "bold black on yellow",
        "dim": "dim",
        "selection": "bright_white on bright_black",
    },
    "light": {
        "header": "bold blue",
        "muted": "white",
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red",
        "accent": "magenta",
        "highlight": "bold on bright_yellow",
        "dim": "dim",
        "selection": "black on white",
    },
    "minimal": {
        "header": "bold",
        "muted": "",
        "info": "",
        "success": "",
        "warning": "",
        "error": "",
        "accent": "",
        "highlight": "reverse",
        "dim": "",
        "selection": "reverse",
    },
}


class StyleProvider(ABC):
    """Maps semantic roles to styled text.

    Implementations only decorate text. Measuring it is the job of
    ``session_scope.ui.text``, which skips whatever escape sequences a
    provider emits.
    """

    name: str = ""

    @abstractmethod
    def apply(self, role: str, text: str) -> str:
        """Style text for a role. Unknown roles return text unchanged."""
        ...

    def header(self, text: str) -> str:
        return self.apply("header", text)

    def muted(self, text: str) -> str:
        return self.apply("muted", text)

    def info(self, text: str) -> str:
        return self.apply("info", text)

    def success(self, text: str) -> str:
        return self.apply("success", text)

    def warning(self, text: str) -> str:
        return self.apply("warning", text)

    def error(self, text: str) -> str:
        return self.apply("error", text)

    def accent(self, text: str) -> str:
        return self.apply("accent", text)

    def highlight(self, text: str) -> str:
        return self.apply("highlight", text)

    def dim(self, text: str) -> str:
        return self.apply("dim", text)

    def selection(self, text: str, selected: bool = True) -> str:
        return self.apply("selection", text) if selected else text

    def strip_styling(self, text: str) -> str:
        return strip_styling(text)


class PlainStyleProvider(StyleProvider):
    """No colours at all, for tests, pipes and ``--no-color``."""

    name = "plain"

    def apply(self, role: str, text: str) -> str:
        return text


class RichStyleProvider(StyleProvider):
    """Renders roles to ANSI sequences through rich styles."""

    def __init__(self, theme: str = "default", color_system: ColorSystem = ColorSystem.STANDARD):
        self.color_system = color_system
        self.name = theme if theme in THEMES else "default"
        self._styles = {role: Style.parse(spec) if spec else Style.null() for role, spec in THEMES[self.name].items()}

    def apply(self, role: str, text: str) -> str:
        style = self._styles.get(role)
        if not text or style is None or not style:
            return text
        return style.render(text, color_system=self.color_system)


def get_style_provider(theme: str = "default", color: bool = True) -> StyleProvider:
    """Build the provider for a theme name, or the plain one without colour."""
    if not color:
        return PlainStyleProvider()
    return RichStyleProvider(theme)


APP_CSS = """
Screen {
    overflow: hidden;
}

#screen {
    width: 100%;
    height: 100%;
    padding: 0;
}
"""
