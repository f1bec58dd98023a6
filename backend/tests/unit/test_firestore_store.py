"""Tests for the hosted document database backend using a mocked transport."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from backend.noteify.models.note import NoteCreate, NoteUpdate
from backend.noteify.services.firestore import (
    FirestoreNoteStore,
    decode_fields,
    document_to_note,
    encode_fields,
    parse_timestamp,
)
from backend.noteify.services.note_store import NoteNotFoundError, StoreError

PROJECT = "noteify-test"
ROOT = f"projects/{PROJECT}/databases/(default)/documents"
USER = "uid-1"


def _note_doc(note_id: str, *, is_public: bool = False, title: str = "Trip") -> dict:
    return {
        "name": f"{ROOT}/users/{USER}/notes/{note_id}",
        "fields": encode_fields(
            {
                "title": title,
                "content": "- **Lisbon**",
                "categories": ["Travel"],
                "createdAt": datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc),
                "isPublic": is_public,
            }
        ),
    }


def _store(handler) -> FirestoreNoteStore:
    return FirestoreNoteStore(PROJECT, "id-token", transport=httpx.MockTransport(handler))


def test_typed_values_round_trip() -> None:
    data = {
        "title": "x",
        "count": 3,
        "ratio": 0.5,
        "flag": True,
        "tags": ["a", "b"],
        "when": datetime(2025, 1, 1, tzinfo=timezone.utc),
        "nested": {"k": "v"},
        "nothing": None,
    }

    assert decode_fields(encode_fields(data)) == data


def test_document_to_note() -> None:
    note = document_to_note(_note_doc("n1", is_public=True))

    assert note.id == "n1"
    assert note.categories == ["Travel"]
    assert note.is_public is True
    assert note.created_at == datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


def test_list_notes_follows_pages_and_sends_token() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        assert request.headers["Authorization"] == "Bearer id-token"
        if "pageToken" not in request.url.params:
            return httpx.Response(200, json={"documents": [_note_doc("n2")], "nextPageToken": "p2"})
        return httpx.Response(200, json={"documents": [_note_doc("n1")]})

    notes = _store(handler).list_notes(USER)

    assert [n.id for n in notes] == ["n2", "n1"]
    assert requests[0].url.params["orderBy"] == "createdAt desc"
    assert requests[1].url.params["pageToken"] == "p2"


def test_list_notes_empty_collection() -> None:
    assert _store(lambda request: httpx.Response(200, json={})).list_notes(USER) == []


def test_get_missing_note_raises_not_found() -> None:
    store = _store(lambda request: httpx.Response(404, json={"error": {"status": "NOT_FOUND"}}))

    with pytest.raises(NoteNotFoundError):
        store.get_note(USER, "missing")


def test_permission_denied_is_reported() -> None:
    store = _store(lambda request: httpx.Response(403, json={"error": {"status": "PERMISSION_DENIED"}}))

    with pytest.raises(StoreError) as exc_info:
        store.list_notes(USER)

    assert exc_info.value.error == "permission_denied"
    assert exc_info.value.status_code == 403


def test_server_error_is_upstream_failure() -> None:
    store = _store(lambda request: httpx.Response(500, json={}))

    with pytest.raises(StoreError) as exc_info:
        store.list_notes(USER)

    assert exc_info.value.status_code == 502


def test_add_note_posts_fields() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        body = json.loads(request.content)
        seen["fields"] = decode_fields(body["fields"])
        return httpx.Response(200, json={"name": f"{ROOT}/users/{USER}/notes/new-id", **body})

    note = _store(handler).add_note(USER, NoteCreate(title="Trip", content="body", categories=["A"]))

    assert note.id == "new-id"
    assert seen["method"] == "POST"
    assert seen["path"].endswith(f"/users/{USER}/notes")
    assert seen["fields"]["isPublic"] is False
    assert seen["fields"]["categories"] == ["A"]


def test_update_note_sends_field_mask() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["masks"] = request.url.params.get_list("updateMask.fieldPaths")
        seen["exists"] = request.url.params["currentDocument.exists"]
        return httpx.Response(200, json=_note_doc("n1", title="Renamed"))

    note = _store(handler).update_note(USER, "n1", NoteUpdate(title="Renamed"))

    assert note.title == "Renamed"
    assert seen["masks"] == ["title"]
    assert seen["exists"] == "true"


def test_share_commits_flag_and_pointer_together() -> None:
    commits = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("documents:commit"):
            commits.append(json.loads(request.content))
            return httpx.Response(200, json={"writeResults": [{}, {}]})
        return httpx.Response(200, json=_note_doc("n1"))

    note = _store(handler).share_note(USER, "n1")

    assert note.is_public is True
    writes = commits[0]["writes"]
    assert writes[0]["update"]["name"] == f"{ROOT}/users/{USER}/notes/n1"
    assert writes[0]["updateMask"] == {"fieldPaths": ["isPublic"]}
    assert writes[1]["update"]["name"] == f"{ROOT}/publicNotes/n1"
    assert decode_fields(writes[1]["update"]["fields"]) == {"userId": USER, "noteId": "n1"}


def test_unshare_deletes_pointer_in_same_commit() -> None:
    commits = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("documents:commit"):
            commits.append(json.loads(request.content))
            return httpx.Response(200, json={})
        return httpx.Response(200, json=_note_doc("n1", is_public=True))

    note = _store(handler).unshare_note(USER, "n1")

    assert note.is_public is False
    assert commits[0]["writes"][1] == {"delete": f"{ROOT}/publicNotes/n1"}


def test_delete_public_note_removes_pointer() -> None:
    deleted = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE":
            deleted.append(request.url.path)
            return httpx.Response(200, json={})
        return httpx.Response(200, json=_note_doc("n1", is_public=True))

    _store(handler).delete_note(USER, "n1")

    assert deleted[0].endswith(f"/users/{USER}/notes/n1")
    assert deleted[1].endswith("/publicNotes/n1")


def test_delete_tolerates_pointer_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE" and "publicNotes" in request.url.path:
            return httpx.Response(500, json={})
        if request.method == "DELETE":
            return httpx.Response(200, json={})
        return httpx.Response(200, json=_note_doc("n1", is_public=True))

    _store(handler).delete_note(USER, "n1")


def test_public_note_resolves_through_pointer() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "publicNotes" in request.url.path:
            return httpx.Response(
                200,
                json={
                    "name": f"{ROOT}/publicNotes/n1",
                    "fields": encode_fields({"userId": USER, "noteId": "n1"}),
                },
            )
        return httpx.Response(200, json=_note_doc("n1", is_public=True))

    note = FirestoreNoteStore(PROJECT, transport=httpx.MockTransport(handler)).get_public_note("n1")

    assert note is not None
    assert note.title == "Trip"


def test_public_note_missing_pointer_or_orphan() -> None:
    missing = _store(lambda request: httpx.Response(404, json={}))
    assert missing.get_public_note("n1") is None

    def orphan(request: httpx.Request) -> httpx.Response:
        if "publicNotes" in request.url.path:
            return httpx.Response(
                200,
                json={"name": f"{ROOT}/publicNotes/n1", "fields": encode_fields({"userId": USER})},
            )
        return httpx.Response(404, json={})

    assert _store(orphan).get_public_note("n1") is None


def test_profile_defaults_when_missing() -> None:
    profile = _store(lambda request: httpx.Response(404, json={})).get_profile(USER)

    assert profile.onboarded is False


def test_parse_timestamp_truncates_nanoseconds():
    parsed = parse_timestamp("2025-01-10T09:00:00.123456789Z")

    assert parsed == datetime(2025, 1, 10, 9, 0, 0, 123456, tzinfo=timezone.utc)
    assert parse_timestamp("2025-01-10T09:00:00Z").tzinfo is not None
