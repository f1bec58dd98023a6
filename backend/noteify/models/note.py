"""Note-related Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_TITLE_CHARS = 100
MAX_CONTENT_CHARS = 10_000


def clean_categories(values: list[str]) -> list[str]:
    """Strip labels, drop blanks and duplicates while keeping order."""
    seen: set[str] = set()
    cleaned: list[str] = []
    for value in values:
        label = value.strip()
        if label and label not in seen:
            seen.add(label)
            cleaned.append(label)
    return cleaned


class Note(BaseModel):
    """A stored note owned by a single user."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "f3b1c2d4e5",
                "title": "Trip ideas",
                "content": "- **Lisbon** in spring\n- _maybe_ Porto",
                "categories": ["Travel", "Planning"],
                "created_at": "2025-01-10T09:00:00Z",
                "is_public": False,
            }
        }
    )

    id: str = Field(..., min_length=1, description="Immutable note identifier")
    title: str = Field(..., description="Display title")
    content: str = Field(..., description="Markdown-like note body")
    categories: list[str] = Field(default_factory=list, description="Category labels")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    is_public: bool = Field(False, description="Whether a share link is active")


class NoteCreate(BaseModel):
    """Request payload to create a note."""

    title: str = Field(..., min_length=1, max_length=MAX_TITLE_CHARS)
    content: str = Field(..., min_length=1, max_length=MAX_CONTENT_CHARS)
    categories: list[str] = Field(default_factory=list)

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Field cannot be empty")
        return value

    @field_validator("categories")
    @classmethod
    def _normalize_categories(cls, value: list[str]) -> list[str]:
        return clean_categories(value)


class NoteUpdate(BaseModel):
    """Request payload to update a note. Omitted fields are left unchanged."""

    title: Optional[str] = Field(None, min_length=1, max_length=MAX_TITLE_CHARS)
    content: Optional[str] = Field(None, min_length=1, max_length=MAX_CONTENT_CHARS)
    categories: Optional[list[str]] = None

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("Field cannot be empty")
        return value

    @field_validator("categories")
    @classmethod
    def _normalize_categories(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return None
        return clean_categories(value)

    def changes(self) -> dict:
        """Return only the fields the caller supplied."""
        return self.model_dump(exclude_none=True)


class NoteView(Note):
    """Note returned by the view endpoint, optionally with rendered HTML."""

    html: Optional[str] = None


class ShareResponse(BaseModel):
    """Result of toggling the public flag."""

    note: Note
    share_url: Optional[str] = Field(None, description="Public link while shared")


class PublicNote(BaseModel):
    """Read-only projection served on share links."""

    id: str
    title: str
    content: str
    created_at: datetime
    html: str


__all__ = [
    "MAX_TITLE_CHARS",
    "MAX_CONTENT_CHARS",
    "clean_categories",
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "NoteView",
    "ShareResponse",
    "PublicNote",
]
