"""Request/response schemas for the AI note flows."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field, field_validator

from .note import MAX_CONTENT_CHARS, MAX_TITLE_CHARS, Note


class NoteContext(BaseModel):
    """Slim note projection sent to the model."""

    id: str
    title: str
    content: str

    @classmethod
    def from_note(cls, note: Note) -> "NoteContext":
        return cls(id=note.id, title=note.title, content=note.content)


class CategorizeRequest(BaseModel):
    title: str = Field("", max_length=MAX_TITLE_CHARS)
    content: str = Field("", max_length=MAX_CONTENT_CHARS)
    existing: list[str] = Field(
        default_factory=list, description="Categories already on the note"
    )


class CategorizeResult(BaseModel):
    categories: list[str] = Field(..., description="Suggested categories")
    reasoning: str = Field(..., description="Why these categories were chosen")


class BrainstormRequest(BaseModel):
    title: str = Field("", max_length=MAX_TITLE_CHARS)
    content: str = Field("", max_length=MAX_CONTENT_CHARS)


class BrainstormResult(BaseModel):
    rewritten_content: str = Field(
        ...,
        validation_alias=AliasChoices("rewritten_content", "rewrittenContent"),
        description="Rewritten and expanded note body",
    )


class AISearchRequest(BaseModel):
    description: str = Field(..., min_length=1, max_length=1000)


class FindNotesResult(BaseModel):
    note_ids: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("note_ids", "noteIds")
    )


class AISearchResponse(BaseModel):
    notes: list[Note]


class ResearchRequest(BaseModel):
    topic: str = Field(..., min_length=1, max_length=2000)
    context_note_ids: list[str] | None = Field(
        None, description="Notes to use as context; all notes when omitted"
    )


class ResearchResult(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Field cannot be empty")
        return value


__all__ = [
    "NoteContext",
    "CategorizeRequest",
    "CategorizeResult",
    "BrainstormRequest",
    "BrainstormResult",
    "AISearchRequest",
    "FindNotesResult",
    "AISearchResponse",
    "ResearchRequest",
    "ResearchResult",
]
