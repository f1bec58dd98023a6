"""Hosted document database backend (Firestore REST API).

Requests are made with the caller's own ID token so the database's security
rules decide what each user may read or write. Layout:

    users/{uid}                 onboarding profile
    users/{uid}/notes/{noteId}  the user's notes
    publicNotes/{noteId}        share pointer -> {userId, noteId}
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from fastapi import status

from ..models.note import Note, NoteCreate, NoteUpdate
from ..models.user import UserProfile
from .note_store import NoteNotFoundError, NoteStore, StoreError

logger = logging.getLogger(__name__)

FIRESTORE_BASE = "https://firestore.googleapis.com/v1"
PUBLIC_COLLECTION = "publicNotes"
LIST_PAGE_SIZE = 300

# Timestamps carry up to nanosecond precision; datetime keeps microseconds
_FRACTION_RE = re.compile(r"\.(\d{1,9})")


def parse_timestamp(raw: str) -> datetime:
    raw = raw.replace("Z", "+00:00")
    raw = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), raw, count=1)
    return datetime.fromisoformat(raw)


def encode_value(value: Any) -> Dict[str, Any]:
    """Convert a Python value to a Firestore typed value."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {"timestampValue": value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(item) for item in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": {k: encode_value(v) for k, v in value.items()}}}
    raise TypeError(f"Unsupported Firestore value type: {type(value).__name__}")


def decode_value(value: Dict[str, Any]) -> Any:
    """Convert a Firestore typed value to a Python value."""
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return parse_timestamp(value["timestampValue"])
    if "arrayValue" in value:
        return [decode_value(item) for item in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    return None


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: decode_value(raw) for key, raw in fields.items()}


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: encode_value(value) for key, value in data.items()}


def _doc_id(document: Dict[str, Any]) -> str:
    return document["name"].rsplit("/", 1)[-1]


def document_to_note(document: Dict[str, Any]) -> Note:
    data = decode_fields(document.get("fields", {}))
    created_at = data.get("createdAt")
    if not isinstance(created_at, datetime):
        created_at = datetime.now(timezone.utc)
    return Note(
        id=_doc_id(document),
        title=data.get("title") or "",
        content=data.get("content") or "",
        categories=list(data.get("categories") or []),
        created_at=created_at,
        is_public=bool(data.get("isPublic", False)),
    )


class FirestoreNoteStore(NoteStore):
    """NoteStore backed by the hosted document database."""

    def __init__(
        self,
        project_id: str,
        id_token: Optional[str] = None,
        *,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 15.0,
    ) -> None:
        self.project_id = project_id
        self.id_token = id_token
        self.transport = transport
        self.timeout = timeout
        self.database = f"projects/{project_id}/databases/(default)"
        self.documents_root = f"{self.database}/documents"

    # -- HTTP plumbing -------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{FIRESTORE_BASE}/{self.documents_root}/{path}"

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: Any = None,
        json: Optional[Dict[str, Any]] = None,
        missing_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        headers = {}
        if self.id_token:
            headers["Authorization"] = f"Bearer {self.id_token}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.request(method, url, params=params, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Document database unreachable: %s", exc)
            raise StoreError("upstream_error", "Could not reach the database. Please try again.") from exc

        if response.status_code == status.HTTP_404_NOT_FOUND and missing_id is not None:
            raise NoteNotFoundError(missing_id)
        if response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
            raise StoreError(
                "permission_denied",
                "Permission denied. Please check your database security rules.",
                status_code=status.HTTP_403_FORBIDDEN,
            )
        if response.status_code >= 400:
            logger.error(
                "Document database error",
                extra={"status": response.status_code, "method": method, "url": url},
            )
            raise StoreError("upstream_error", f"Database request failed ({response.status_code})")
        return response.json() if response.content else {}

    def _note_path(self, user_id: str, note_id: str) -> str:
        return f"users/{user_id}/notes/{note_id}"

    def _commit(self, writes: list[Dict[str, Any]], missing_id: str) -> None:
        self._request(
            "POST",
            f"{FIRESTORE_BASE}/{self.database}/documents:commit",
            json={"writes": writes},
            missing_id=missing_id,
        )

    # -- NoteStore -----------------------------------------------------

    def list_notes(self, user_id: str) -> list[Note]:
        notes: list[Note] = []
        params: Dict[str, Any] = {"orderBy": "createdAt desc", "pageSize": LIST_PAGE_SIZE}
        while True:
            page = self._request("GET", self._url(f"users/{user_id}/notes"), params=params)
            notes.extend(document_to_note(doc) for doc in page.get("documents", []))
            token = page.get("nextPageToken")
            if not token:
                break
            params = {**params, "pageToken": token}
        return notes

    def get_note(self, user_id: str, note_id: str) -> Note:
        document = self._request(
            "GET", self._url(self._note_path(user_id, note_id)), missing_id=note_id
        )
        return document_to_note(document)

    def add_note(self, user_id: str, draft: NoteCreate) -> Note:
        fields = encode_fields(
            {
                "title": draft.title,
                "content": draft.content,
                "categories": list(draft.categories),
                "createdAt": datetime.now(timezone.utc),
                "isPublic": False,
            }
        )
        document = self._request(
            "POST", self._url(f"users/{user_id}/notes"), json={"fields": fields}
        )
        note = document_to_note(document)
        logger.info("Note created", extra={"user_id": user_id, "note_id": note.id})
        return note

    def update_note(self, user_id: str, note_id: str, patch: NoteUpdate) -> Note:
        changes = patch.changes()
        if not changes:
            return self.get_note(user_id, note_id)
        params = [("updateMask.fieldPaths", key) for key in changes]
        params.append(("currentDocument.exists", "true"))
        document = self._request(
            "PATCH",
            self._url(self._note_path(user_id, note_id)),
            params=params,
            json={"fields": encode_fields(changes)},
            missing_id=note_id,
        )
        return document_to_note(document)

    def delete_note(self, user_id: str, note_id: str) -> None:
        # Not transactional: an interrupted delete may leave an orphaned
        # pointer, which get_public_note treats as "not found".
        note = self.get_note(user_id, note_id)
        self._request("DELETE", self._url(self._note_path(user_id, note_id)), missing_id=note_id)
        if note.is_public:
            try:
                self._request("DELETE", self._url(f"{PUBLIC_COLLECTION}/{note_id}"))
            except StoreError as exc:
                logger.warning(
                    "Share pointer left behind after delete",
                    extra={"note_id": note_id, "error": exc.message},
                )
        logger.info("Note deleted", extra={"user_id": user_id, "note_id": note_id})

    def _set_public(self, user_id: str, note_id: str, is_public: bool) -> Note:
        note = self.get_note(user_id, note_id)
        note_name = f"{self.documents_root}/{self._note_path(user_id, note_id)}"
        pointer_name = f"{self.documents_root}/{PUBLIC_COLLECTION}/{note_id}"
        writes: list[Dict[str, Any]] = [
            {
                "update": {"name": note_name, "fields": encode_fields({"isPublic": is_public})},
                "updateMask": {"fieldPaths": ["isPublic"]},
                "currentDocument": {"exists": True},
            }
        ]
        if is_public:
            writes.append(
                {
                    "update": {
                        "name": pointer_name,
                        "fields": encode_fields({"userId": user_id, "noteId": note_id}),
                    }
                }
            )
        else:
            writes.append({"delete": pointer_name})
        self._commit(writes, missing_id=note_id)
        return note.model_copy(update={"is_public": is_public})

    def share_note(self, user_id: str, note_id: str) -> Note:
        return self._set_public(user_id, note_id, True)

    def unshare_note(self, user_id: str, note_id: str) -> Note:
        return self._set_public(user_id, note_id, False)

    def get_public_note(self, note_id: str) -> Optional[Note]:
        try:
            pointer = self._request(
                "GET", self._url(f"{PUBLIC_COLLECTION}/{note_id}"), missing_id=note_id
            )
        except NoteNotFoundError:
            return None
        owner = decode_fields(pointer.get("fields", {})).get("userId")
        if not owner:
            return None
        try:
            note = self.get_note(owner, note_id)
        except NoteNotFoundError:
            logger.warning("Orphaned share pointer", extra={"note_id": note_id})
            return None
        return note if note.is_public else None

    def get_profile(self, user_id: str) -> UserProfile:
        try:
            document = self._request("GET", self._url(f"users/{user_id}"), missing_id=user_id)
        except NoteNotFoundError:
            return UserProfile(user_id=user_id)
        data = decode_fields(document.get("fields", {}))
        return UserProfile(
            user_id=user_id,
            onboarded=bool(data.get("onboarded", False)),
            wants_updates=bool(data.get("wantsUpdates", False)),
            onboarded_at=data.get("onboardedAt"),
        )

    def complete_onboarding(self, user_id: str, wants_updates: bool) -> UserProfile:
        profile = UserProfile(
            user_id=user_id,
            onboarded=True,
            wants_updates=wants_updates,
            onboarded_at=datetime.now(timezone.utc),
        )
        fields = {
            "onboarded": True,
            "wantsUpdates": wants_updates,
            "onboardedAt": profile.onboarded_at,
        }
        self._request(
            "PATCH",
            self._url(f"users/{user_id}"),
            params=[("updateMask.fieldPaths", key) for key in fields],
            json={"fields": encode_fields(fields)},
        )
        return profile


__all__ = [
    "FirestoreNoteStore",
    "encode_value",
    "decode_value",
    "encode_fields",
    "decode_fields",
    "document_to_note",
]
