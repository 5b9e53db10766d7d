"""UI components for Session Scope."""

from .styles import APP_CSS, PlainStyleProvider, RichStyleProvider, StyleProvider

__all__ = [
    "APP_CSS",
    "PlainStyleProvider",
    "RichStyleProvider",
    "StyleProvider",
]
