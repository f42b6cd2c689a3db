"""SQLite connection layer for the search index."""

from __future__ import annotations

import sqlite3
from pathlib import Path

DEFAULT_BUSY_TIMEOUT_MS = 500


class Database:
    """File-backed SQLite database opened per call.

    WAL journaling lets readers keep querying the last committed generation
    while a rebuild holds the write transaction.
    """

    def __init__(self, db_path: Path | str, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS) -> None:
        """Nothing is opened until connect().

        Args:
            db_path: Index file; it and its parent folder are created on connect.
            busy_timeout_ms: How long a statement waits on a locked database.
        """
        self.db_path = Path(db_path)
        self.busy_timeout_ms = busy_timeout_ms

    def connect(self) -> sqlite3.Connection:
        """Create the parent folder, open a connection and apply pragmas."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout_ms / 1000)
        conn.row_factory = sqlite3.Row
        conn.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout_ms)}")
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

