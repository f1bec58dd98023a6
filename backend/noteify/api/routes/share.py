"""Public, unauthenticated access to shared notes."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from ...models.note import Note, PublicNote
from ...services.markdown import render_markdown
from ...services.note_store import NoteStore
from ..middleware import get_public_store

# backend/noteify/api/routes/share.py -> backend/templates/
TEMPLATES_DIR = Path(__file__).resolve().parents[3] / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter()


def _resolve(note_id: str, store: NoteStore) -> Note:
    note = store.get_public_note(note_id)
    if note is None:
        # Missing, unshared and orphaned links all look the same to visitors
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "not_found",
                "message": "This note is private or does not exist.",
            },
        )
    return note


def to_public(note: Note) -> PublicNote:
    return PublicNote(
        id=note.id,
        title=note.title,
        content=note.content,
        created_at=note.created_at,
        html=render_markdown(note.content),
    )


@router.get("/api/share/{note_id}", response_model=PublicNote)
def get_shared_note(note_id: str, store: NoteStore = Depends(get_public_store)):
    """Read-only JSON view of a shared note."""
    return to_public(_resolve(note_id, store))


@router.get("/share/{note_id}", response_class=HTMLResponse)
def shared_note_page(
    note_id: str,
    request: Request,
    store: NoteStore = Depends(get_public_store),
):
    """Standalone HTML page for a shared note."""
    note = store.get_public_note(note_id)
    if note is None:
        return templates.TemplateResponse(
            request,
            "share.html",
            {"note": None},
            status_code=status.HTTP_404_NOT_FOUND,
        )
    return templates.TemplateResponse(request, "share.html", {"note": to_public(note)})


__all__ = ["router", "to_public"]
