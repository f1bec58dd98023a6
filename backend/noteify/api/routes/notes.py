"""HTTP API routes for note operations."""

from __future__ import annotations

import logging
from typing import Literal, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Response, status

from ...models.note import Note, NoteCreate, NoteUpdate, NoteView, ShareResponse
from ...services.config import get_config
from ...services.export import export_note
from ...services.markdown import render_markdown
from ...services.note_store import NoteStore
from ...services.search import all_categories, filter_notes
from ..middleware import AuthContext, get_auth_context, get_user_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def share_url(note_id: str) -> str:
    return f"{get_config().public_base_url}/share/{quote(note_id, safe='')}"


def _content_disposition(filename: str) -> str:
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.get("/notes", response_model=list[Note])
def list_notes(
    q: Optional[str] = Query(None, description="Keyword matched against title and content"),
    category: list[str] = Query(default=[], description="Required categories (all must match)"),
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
):
    """List the caller's notes, newest first."""
    return filter_notes(store.list_notes(auth.user_id), q, category)


@router.get("/categories", response_model=list[str])
def list_categories(
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
):
    """Sorted unique categories across the caller's notes."""
    return all_categories(store.list_notes(auth.user_id))


@router.post("/notes", response_model=Note, status_code=status.HTTP_201_CREATED)
def create_note(
    create: NoteCreate,
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
):
    return store.add_note(auth.user_id, create)


@router.get("/notes/{note_id}", response_model=NoteView)
def get_note(
    note_id: str,
    render: bool = Query(False, description="Include rendered HTML"),
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
):
    note = store.get_note(auth.user_id, note_id)
    html = render_markdown(note.content) if render else None
    return NoteView(**note.model_dump(), html=html)


@router.put("/notes/{note_id}", response_model=Note)
def update_note(
    note_id: str,
    update: NoteUpdate,
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
):
    """Edit title, content or categories."""
    return store.update_note(auth.user_id, note_id, update)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_note(
    note_id: str,
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
):
    """Delete the note and its share link."""
    store.delete_note(auth.user_id, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/notes/{note_id}/share", response_model=ShareResponse)
def share_note(
    note_id: str,
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
):
    """Publish a read-only link to the note."""
    note = store.share_note(auth.user_id, note_id)
    logger.info("Note shared", extra={"user_id": auth.user_id, "note_id": note_id})
    return ShareResponse(note=note, share_url=share_url(note.id))


@router.delete("/notes/{note_id}/share", response_model=ShareResponse)
def unshare_note(
    note_id: str,
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
):
    note = store.unshare_note(auth.user_id, note_id)
    logger.info("Note unshared", extra={"user_id": auth.user_id, "note_id": note_id})
    return ShareResponse(note=note, share_url=None)


@router.get("/notes/{note_id}/export")
def export(
    note_id: str,
    format: Literal["txt", "pdf", "docx"] = Query("txt"),
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
):
    """Download the note as a text, PDF or Word file."""
    note = store.get_note(auth.user_id, note_id)
    payload, media_type, filename = export_note(note, format)
    return Response(
        content=payload,
        media_type=media_type,
        headers={"Content-Disposition": _content_disposition(filename)},
    )


__all__ = ["router", "share_url"]
