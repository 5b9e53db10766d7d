"""UI widgets for the Session Scope TUI."""

from rich.text import Text
from textual.widgets import Static

from ..models import RenderLine


class ScreenView(Static):
    """Full-screen widget showing one rendered frame.

    Rendered rows already carry their styling as escape sequences, so each
    frame is converted with ``Text.from_ansi`` and replaces the previous one.
    """

    def show(self, lines: list[RenderLine]):
        text = Text()
        for n, line in enumerate(lines):
            if n:
                text.append("\n")
            text.append_text(Text.from_ansi(line.text, no_wrap=True, end=""))
        text.no_wrap = True
        text.overflow = "crop"
        self.update(text)

    def show_message(self, message: str):
        self.update(Text(message, style="dim"))
