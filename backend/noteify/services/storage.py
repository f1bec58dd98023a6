"""Pick the note store backend from configuration."""

from __future__ import annotations

from typing import Optional

from .config import AppConfig, get_config
from .database import DatabaseService
from .firestore import FirestoreNoteStore
from .note_store import NoteStore, SqliteNoteStore


def get_note_store(id_token: Optional[str] = None, config: AppConfig | None = None) -> NoteStore:
    """Return the configured NoteStore.

    ``id_token`` is the caller's bearer token. The hosted backend forwards it so
    the database's own access rules apply; anonymous share lookups pass None.
    """
    config = config or get_config()
    if config.storage_backend == "firestore":
        return FirestoreNoteStore(config.firebase_project_id, id_token)
    return SqliteNoteStore(DatabaseService(config.database_path))


__all__ = ["get_note_store"]
