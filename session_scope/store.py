"""Persistence of the dashboard state snapshot between runs."""

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from .config import STATE_PATH

logger = logging.getLogger(__name__)


class StateStore:
    """Thread-safe JSON file holding the last exported view state."""

    _lock = threading.Lock()

    def __init__(self, path: Optional[Path] = None):
        self.path = path or STATE_PATH

    def load(self) -> Optional[dict]:
        """Load the snapshot, or None when missing or unreadable."""
        if not self.path.exists():
            return None
        with self._lock:
            try:
                with open(self.path) as f:
                    data = json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Ignoring corrupt state snapshot {self.path}: {e}")
                return None
        if not isinstance(data, dict):
            logger.warning(f"Ignoring state snapshot {self.path}: not an object")
            return None
        return data

    def save(self, snapshot: dict) -> bool:
        """Write the snapshot. Returns False if it could not be written."""
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "w") as f:
                    json.dump(snapshot, f, indent=2)
            except IOError as e:
                logger.warning(f"Could not save state snapshot to {self.path}: {e}")
                return False
        logger.debug(f"Saved state snapshot to {self.path}")
        return True

    def clear(self):
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
