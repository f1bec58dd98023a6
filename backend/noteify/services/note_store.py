"""Note persistence: the store interface and the local SQLite backend."""

from __future__ import annotations

import abc
import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import status

from ..models.note import Note, NoteCreate, NoteUpdate
from ..models.user import UserProfile
from .database import DatabaseService

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the note store cannot complete an operation."""

    def __init__(
        self,
        error: str,
        message: str,
        *,
        status_code: int = status.HTTP_502_BAD_GATEWAY,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.status_code = status_code


class NoteNotFoundError(StoreError):
    """Raised when a note does not exist in the caller's collection."""

    def __init__(self, note_id: str) -> None:
        super().__init__(
            "not_found",
            f"Note not found: {note_id}",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.note_id = note_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_note_id() -> str:
    return uuid.uuid4().hex


class NoteStore(abc.ABC):
    """Per-user note collection plus the global share-pointer namespace.

    Invariants every backend upholds:
    - a note id never changes and is unique within its owner's collection;
    - a share pointer exists iff the note's ``is_public`` flag is set;
    - deleting a note also deletes its share pointer.
    """

    @abc.abstractmethod
    def list_notes(self, user_id: str) -> list[Note]:
        """Return the user's notes, newest first."""

    @abc.abstractmethod
    def get_note(self, user_id: str, note_id: str) -> Note:
        """Return one note or raise NoteNotFoundError."""

    @abc.abstractmethod
    def add_note(self, user_id: str, draft: NoteCreate) -> Note:
        """Persist a new note; the store assigns ``id`` and ``created_at``."""

    @abc.abstractmethod
    def update_note(self, user_id: str, note_id: str, patch: NoteUpdate) -> Note:
        """Apply title/content/categories changes and return the stored note."""

    @abc.abstractmethod
    def delete_note(self, user_id: str, note_id: str) -> None:
        """Delete the note and its share pointer, if any."""

    @abc.abstractmethod
    def share_note(self, user_id: str, note_id: str) -> Note:
        """Mark the note public and write its share pointer."""

    @abc.abstractmethod
    def unshare_note(self, user_id: str, note_id: str) -> Note:
        """Clear the public flag and remove the share pointer."""

    @abc.abstractmethod
    def get_public_note(self, note_id: str) -> Optional[Note]:
        """Resolve a share pointer. None when missing, orphaned or not public."""

    @abc.abstractmethod
    def get_profile(self, user_id: str) -> UserProfile:
        """Return onboarding state (defaults when the user has none yet)."""

    @abc.abstractmethod
    def complete_onboarding(self, user_id: str, wants_updates: bool) -> UserProfile:
        """Record that the user finished onboarding."""


class SqliteNoteStore(NoteStore):
    """Local backend used for development and tests."""

    def __init__(self, db_service: DatabaseService | None = None) -> None:
        self.db_service = db_service or DatabaseService()

    @staticmethod
    def _row_to_note(row: sqlite3.Row) -> Note:
        return Note(
            id=row["note_id"],
            title=row["title"],
            content=row["content"],
            categories=json.loads(row["categories"] or "[]"),
            created_at=datetime.fromisoformat(row["created_at"]),
            is_public=bool(row["is_public"]),
        )

    def _fetch(self, conn: sqlite3.Connection, user_id: str, note_id: str) -> Note:
        row = conn.execute(
            "SELECT * FROM notes WHERE user_id = ? AND note_id = ?",
            (user_id, note_id),
        ).fetchone()
        if row is None:
            raise NoteNotFoundError(note_id)
        return self._row_to_note(row)

    def list_notes(self, user_id: str) -> list[Note]:
        conn = self.db_service.connect()
        try:
            rows = conn.execute(
                "SELECT * FROM notes WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_note(row) for row in rows]

    def get_note(self, user_id: str, note_id: str) -> Note:
        conn = self.db_service.connect()
        try:
            return self._fetch(conn, user_id, note_id)
        finally:
            conn.close()

    def add_note(self, user_id: str, draft: NoteCreate) -> Note:
        note = Note(
            id=new_note_id(),
            title=draft.title,
            content=draft.content,
            categories=list(draft.categories),
            created_at=_utcnow(),
            is_public=False,
        )
        conn = self.db_service.connect()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO notes (user_id, note_id, title, content, categories, created_at, is_public)
                    VALUES (?, ?, ?, ?, ?, ?, 0)
                    """,
                    (
                        user_id,
                        note.id,
                        note.title,
                        note.content,
                        json.dumps(note.categories),
                        note.created_at.isoformat(timespec="microseconds"),
                    ),
                )
        finally:
            conn.close()
        logger.info("Note created", extra={"user_id": user_id, "note_id": note.id})
        return note

    def update_note(self, user_id: str, note_id: str, patch: NoteUpdate) -> Note:
        conn = self.db_service.connect()
        try:
            with conn:
                current = self._fetch(conn, user_id, note_id)
                updated = current.model_copy(update=patch.changes())
                conn.execute(
                    """
                    UPDATE notes SET title = ?, content = ?, categories = ?
                    WHERE user_id = ? AND note_id = ?
                    """,
                    (
                        updated.title,
                        updated.content,
                        json.dumps(updated.categories),
                        user_id,
                        note_id,
                    ),
                )
        finally:
            conn.close()
        return updated

    def delete_note(self, user_id: str, note_id: str) -> None:
        conn = self.db_service.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM notes WHERE user_id = ? AND note_id = ?",
                    (user_id, note_id),
                )
                if cursor.rowcount == 0:
                    raise NoteNotFoundError(note_id)
                conn.execute(
                    "DELETE FROM public_notes WHERE note_id = ? AND user_id = ?",
                    (note_id, user_id),
                )
        finally:
            conn.close()
        logger.info("Note deleted", extra={"user_id": user_id, "note_id": note_id})

    def _set_public(self, user_id: str, note_id: str, is_public: bool) -> Note:
        conn = self.db_service.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "UPDATE notes SET is_public = ? WHERE user_id = ? AND note_id = ?",
                    (int(is_public), user_id, note_id),
                )
                if cursor.rowcount == 0:
                    raise NoteNotFoundError(note_id)
                if is_public:
                    conn.execute(
                        "INSERT OR REPLACE INTO public_notes (note_id, user_id) VALUES (?, ?)",
                        (note_id, user_id),
                    )
                else:
                    conn.execute(
                        "DELETE FROM public_notes WHERE note_id = ? AND user_id = ?",
                        (note_id, user_id),
                    )
                return self._fetch(conn, user_id, note_id)
        finally:
            conn.close()

    def share_note(self, user_id: str, note_id: str) -> Note:
        return self._set_public(user_id, note_id, True)

    def unshare_note(self, user_id: str, note_id: str) -> Note:
        return self._set_public(user_id, note_id, False)

    def get_public_note(self, note_id: str) -> Optional[Note]:
        conn = self.db_service.connect()
        try:
            pointer = conn.execute(
                "SELECT user_id FROM public_notes WHERE note_id = ?", (note_id,)
            ).fetchone()
            if pointer is None:
                return None
            try:
                note = self._fetch(conn, pointer["user_id"], note_id)
            except NoteNotFoundError:
                logger.warning("Orphaned share pointer", extra={"note_id": note_id})
                return None
        finally:
            conn.close()
        return note if note.is_public else None

    def get_profile(self, user_id: str) -> UserProfile:
        conn = self.db_service.connect()
        try:
            row = conn.execute(
                "SELECT * FROM user_profiles WHERE user_id = ?", (user_id,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return UserProfile(user_id=user_id)
        return UserProfile(
            user_id=user_id,
            onboarded=bool(row["onboarded"]),
            wants_updates=bool(row["wants_updates"]),
            onboarded_at=datetime.fromisoformat(row["onboarded_at"]) if row["onboarded_at"] else None,
        )

    def complete_onboarding(self, user_id: str, wants_updates: bool) -> UserProfile:
        profile = UserProfile(
            user_id=user_id,
            onboarded=True,
            wants_updates=wants_updates,
            onboarded_at=_utcnow(),
        )
        conn = self.db_service.connect()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO user_profiles (user_id, onboarded, wants_updates, onboarded_at)
                    VALUES (?, 1, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        onboarded = 1,
                        wants_updates = excluded.wants_updates,
                        onboarded_at = excluded.onboarded_at
                    """,
                    (user_id, int(wants_updates), profile.onboarded_at.isoformat()),
                )
        finally:
            conn.close()
        return profile


__all__ = [
    "NoteStore",
    "SqliteNoteStore",
    "StoreError",
    "NoteNotFoundError",
    "new_note_id",
]
