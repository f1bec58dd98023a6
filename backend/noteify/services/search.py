"""Keyword and category filtering over a user's notes."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..models.note import Note


def filter_notes(
    notes: Iterable[Note],
    query: Optional[str] = None,
    categories: Optional[Sequence[str]] = None,
) -> list[Note]:
    """Return notes matching ``query`` and carrying every one of ``categories``.

    The keyword match is a case-insensitive substring test on title or content.
    Input order is preserved.
    """
    needle = (query or "").strip().lower()
    required = [c for c in (categories or []) if c]
    matches: list[Note] = []
    for note in notes:
        if needle and needle not in note.title.lower() and needle not in note.content.lower():
            continue
        if any(category not in note.categories for category in required):
            continue
        matches.append(note)
    return matches


def all_categories(notes: Iterable[Note]) -> list[str]:
    """Sorted unique category labels across ``notes``."""
    return sorted({category for note in notes for category in note.categories})


__all__ = ["filter_notes", "all_categories"]
