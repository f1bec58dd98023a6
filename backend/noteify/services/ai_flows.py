"""AI note flows: categorize, brainstorm, find and research.

Each flow renders one prompt template and validates the model's JSON reply
against a pydantic schema.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, Optional, Sequence

from fastapi import status

from ..models.ai import (
    BrainstormResult,
    CategorizeResult,
    FindNotesResult,
    NoteContext,
    ResearchResult,
)
from ..models.note import clean_categories
from .llm_client import AIFlowError, LLMClient
from .prompt_loader import PromptLoader, PromptLoaderError

logger = logging.getLogger(__name__)


def _notes_json(notes: Sequence[NoteContext]) -> str:
    return json.dumps([note.model_dump() for note in notes], ensure_ascii=False, indent=2)


def _require_text(*values: str, message: str) -> None:
    if not any(value.strip() for value in values):
        raise AIFlowError(message, error="empty_input", status_code=status.HTTP_400_BAD_REQUEST)


class AIFlowService:
    """Run the note AI flows against the configured model."""

    def __init__(
        self,
        llm: LLMClient | None = None,
        prompts: PromptLoader | None = None,
    ) -> None:
        self.llm = llm or LLMClient()
        self.prompts = prompts or PromptLoader()

    def _render(self, path: str, **context) -> str:
        try:
            return self.prompts.load(path, context)
        except PromptLoaderError as e:
            raise AIFlowError(f"Prompt unavailable: {path}", details={"error": str(e)}) from e

    async def categorize_note(
        self, title: str, content: str, existing: Iterable[str] = ()
    ) -> CategorizeResult:
        """Suggest categories, merged after any the note already has."""
        _require_text(title, content, message="Please add a title or content before categorizing.")
        existing = list(existing)
        prompt = self._render("ai/categorize.md", title=title, content=content, existing=existing)
        result = await self.llm.complete_json(prompt, CategorizeResult)
        merged = clean_categories(existing + result.categories)
        logger.debug("Categorized note", extra={"suggested": result.categories})
        return CategorizeResult(categories=merged, reasoning=result.reasoning)

    async def brainstorm_note(self, title: str, content: str) -> BrainstormResult:
        _require_text(title, content, message="Please add a title or content before brainstorming.")
        prompt = self._render("ai/brainstorm.md", title=title, content=content)
        result = await self.llm.complete_json(prompt, BrainstormResult)
        if not result.rewritten_content.strip():
            raise AIFlowError("AI service returned an empty note", error="ai_invalid_output")
        return result

    async def find_notes(
        self, description: str, notes: Sequence[NoteContext]
    ) -> FindNotesResult:
        """Return the ids of notes relevant to ``description``.

        An empty note list short-circuits without calling the model. Ids the
        model invents are dropped and duplicates collapse, keeping model order.
        """
        _require_text(description, message="Please describe what you are looking for.")
        if not notes:
            return FindNotesResult(note_ids=[])
        prompt = self._render(
            "ai/find_notes.md", description=description, notes_json=_notes_json(notes)
        )
        result = await self.llm.complete_json(prompt, FindNotesResult)

        known = {note.id for note in notes}
        note_ids: list[str] = []
        for note_id in result.note_ids:
            if note_id in known and note_id not in note_ids:
                note_ids.append(note_id)
        dropped = len(result.note_ids) - len(note_ids)
        if dropped:
            logger.debug("Dropped unknown note ids from AI search", extra={"dropped": dropped})
        return FindNotesResult(note_ids=note_ids)

    async def research_note(
        self, topic: str, context_notes: Sequence[NoteContext]
    ) -> ResearchResult:
        _require_text(topic, message="Please enter a research topic.")
        prompt = self._render(
            "ai/research.md", topic=topic, notes_json=_notes_json(context_notes)
        )
        return await self.llm.complete_json(prompt, ResearchResult)


_ai_service: Optional[AIFlowService] = None


def get_ai_service() -> AIFlowService:
    """Return the shared AIFlowService."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIFlowService()
    return _ai_service


__all__ = ["AIFlowService", "AIFlowError", "get_ai_service"]
