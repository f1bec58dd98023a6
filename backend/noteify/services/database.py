"""SQLite database helpers for the local note store."""

from __future__ import annotations

from pathlib import Path
import sqlite3
from typing import Iterable

from .config import DEFAULT_DB_PATH

DDL_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS notes (
        user_id TEXT NOT NULL,
        note_id TEXT NOT NULL,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        categories TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL,
        is_public INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (user_id, note_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_notes_user_created ON notes(user_id, created_at DESC)",
    """
    CREATE TABLE IF NOT EXISTS public_notes (
        note_id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_profiles (
        user_id TEXT PRIMARY KEY,
        onboarded INTEGER NOT NULL DEFAULT 0,
        wants_updates INTEGER NOT NULL DEFAULT 0,
        onboarded_at TEXT
    )
    """,
)


class DatabaseService:
    """Manage SQLite connections and schema initialization."""

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH

    def _ensure_directory(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        """Return a sqlite3 connection with the proper data directory created."""
        self._ensure_directory()
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self, statements: Iterable[str] | None = None) -> Path:
        """Create all schema artifacts required by the note store."""
        conn = self.connect()
        try:
            with conn:  # Transactional apply of DDL
                for statement in statements or DDL_STATEMENTS:
                    conn.execute(statement)
        finally:
            conn.close()
        return self.db_path


def init_database(db_path: str | Path | None = None) -> Path:
    """Convenience wrapper used at application startup."""
    return DatabaseService(db_path).initialize()


__all__ = ["DatabaseService", "init_database", "DDL_STATEMENTS"]
