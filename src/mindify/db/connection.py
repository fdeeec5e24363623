"""SQLite connection layer for the local item store."""

from __future__ import annotations

import sqlite3
from pathlib import Path


class Database:
    """Per-user SQLite database holding items, projects, sync queue and settings."""

    def __init__(self, db_path: Path | str, max_page_count: int | None = None) -> None:
        """Store the database path. Call connect() to open the connection.

        Args:
            db_path: Path to the SQLite database file (created if missing).
            max_page_count: Optional storage quota in pages. Writes past the
                quota fail with "database or disk is full".
        """
        self.db_path = Path(db_path)
        self.max_page_count = max_page_count
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Open a connection and return it.

        The connection may be used from the background processor thread;
        callers serialise access (see Repository).
        """
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        if self.max_page_count:
            conn.execute(f"PRAGMA max_page_count = {int(self.max_page_count)}")
        return conn

    def __enter__(self) -> sqlite3.Connection:
        """Open the database and return the connection (context manager support)."""
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        """Close the connection when leaving the context manager."""
        if self._conn:
            self._conn.close()
            self._conn = None
