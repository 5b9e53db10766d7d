"""Base class for transcript providers."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from ..models import Session

logger = logging.getLogger(__name__)


class SessionProvider(ABC):
    """A source of session transcripts on disk.

    Subclasses say where transcripts live and how one file becomes a
    ``Session``; discovery and bulk loading are shared.
    """

    name: str = ""  # registry key, e.g. "claude-code"
    display_name: str = ""
    icon: str = ""
    # Transcript files relative to the sessions directory
    session_glob: str = "*/*.jsonl"

    @abstractmethod
    def get_sessions_dir(self) -> Path:
        ...

    def is_available(self) -> bool:
        return self.get_sessions_dir().is_dir()

    def discover_session_files(self) -> list[Path]:
        """Transcript files under the sessions directory, in path order."""
        if not self.is_available():
            return []
        return sorted(p for p in self.get_sessions_dir().glob(self.session_glob) if p.is_file())

    @abstractmethod
    def parse_session(self, path: Path) -> Session | None:
        """Build a session from one transcript, or None if it holds no conversations."""
        ...

    def load_sessions(self) -> list[Session]:
        """Parse every discovered transcript; unreadable files are logged and skipped."""
        sessions = []
        for path in self.discover_session_files():
            try:
                session = self.parse_session(path)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Could not read {path}: {e}")
                continue
            if session is not None:
                sessions.append(session)
        logger.debug(f"{self.name}: parsed {len(sessions)} sessions from {self.get_sessions_dir()}")
        return sessions

    @abstractmethod
    def get_resume_command(self, session: Session) -> str:
        """Shell command that reopens the session in its harness."""
        ...
