"""Thread-safe record of which files each user has uploaded."""

from __future__ import annotations

import threading


class FileStore:
    """Maps user identifiers to the names of the files they stored."""

    def __init__(self) -> None:
        self.files: dict[str, list[str]] = {}
        self._lock = threading.Lock()

    def add_file(self, user_id: str, file_name: str) -> None:
        """Record that ``user_id`` owns ``file_name``."""
        with self._lock:
            self.files.setdefault(user_id, []).append(file_name)

    def has_file(self, user_id: str, file_name: str) -> bool:
        """Return whether ``user_id`` has stored a file called ``file_name``."""
        with self._lock:
            return file_name in self.files.get(user_id, ())