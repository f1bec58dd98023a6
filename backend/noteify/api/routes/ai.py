"""AI assistant routes: categorize, brainstorm, search and research."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool

from ...models.ai import (
    AISearchRequest,
    AISearchResponse,
    BrainstormRequest,
    BrainstormResult,
    CategorizeRequest,
    CategorizeResult,
    NoteContext,
    ResearchRequest,
)
from ...models.note import MAX_CONTENT_CHARS, MAX_TITLE_CHARS, Note, NoteCreate
from ...services.ai_flows import AIFlowService, get_ai_service
from ...services.llm_client import AIFlowError
from ...services.note_store import NoteStore
from ..middleware import AuthContext, get_auth_context, get_user_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai")

RESEARCH_CATEGORY = "AI Generated"


@router.post("/categorize", response_model=CategorizeResult)
async def categorize(
    request: CategorizeRequest,
    auth: AuthContext = Depends(get_auth_context),
    ai: AIFlowService = Depends(get_ai_service),
):
    """Suggest categories for a draft; ``existing`` ones are kept first."""
    return await ai.categorize_note(request.title, request.content, request.existing)


@router.post("/brainstorm", response_model=BrainstormResult)
async def brainstorm(
    request: BrainstormRequest,
    auth: AuthContext = Depends(get_auth_context),
    ai: AIFlowService = Depends(get_ai_service),
):
    """Rewrite and expand a draft."""
    return await ai.brainstorm_note(request.title, request.content)


@router.post("/search", response_model=AISearchResponse)
async def ai_search(
    request: AISearchRequest,
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
    ai: AIFlowService = Depends(get_ai_service),
):
    """Natural-language search over the caller's notes."""
    notes = await run_in_threadpool(store.list_notes, auth.user_id)
    result = await ai.find_notes(
        request.description, [NoteContext.from_note(note) for note in notes]
    )
    matched = set(result.note_ids)
    return AISearchResponse(notes=[note for note in notes if note.id in matched])


@router.post("/research", response_model=Note, status_code=status.HTTP_201_CREATED)
async def research(
    request: ResearchRequest,
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
    ai: AIFlowService = Depends(get_ai_service),
):
    """Generate a note on ``topic`` and save it to the caller's collection."""
    notes = await run_in_threadpool(store.list_notes, auth.user_id)
    if request.context_note_ids is not None:
        wanted = set(request.context_note_ids)
        notes = [note for note in notes if note.id in wanted]

    result = await ai.research_note(
        request.topic, [NoteContext.from_note(note) for note in notes]
    )
    if len(result.content) > MAX_CONTENT_CHARS:
        raise AIFlowError(
            "The generated note is too long to save. Try a narrower topic.",
            error="ai_output_too_long",
        )

    draft = NoteCreate(
        title=result.title.strip()[:MAX_TITLE_CHARS],
        content=result.content,
        categories=[RESEARCH_CATEGORY],
    )
    note = await run_in_threadpool(store.add_note, auth.user_id, draft)
    logger.info(
        "Research note created",
        extra={"user_id": auth.user_id, "note_id": note.id, "context_notes": len(notes)},
    )
    return note


__all__ = ["router", "RESEARCH_CATEGORY"]
