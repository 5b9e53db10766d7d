"""Session Scope - terminal dashboard for AI coding session transcripts."""

__version__ = "0.1.0"
