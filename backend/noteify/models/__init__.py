"""Pydantic models for data validation and serialization."""

from .ai import (
    AISearchRequest,
    AISearchResponse,
    BrainstormRequest,
    BrainstormResult,
    CategorizeRequest,
    CategorizeResult,
    FindNotesResult,
    NoteContext,
    ResearchRequest,
    ResearchResult,
)
from .auth import (
    Credentials,
    GoogleSignInRequest,
    MessageResponse,
    RecoverRequest,
    RefreshRequest,
    SessionResponse,
    SignupResponse,
    TokenPayload,
)
from .note import Note, NoteCreate, NoteUpdate, NoteView, PublicNote, ShareResponse
from .user import MeResponse, OnboardingRequest, UserProfile

__all__ = [
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "NoteView",
    "PublicNote",
    "ShareResponse",
    "UserProfile",
    "OnboardingRequest",
    "MeResponse",
    "TokenPayload",
    "Credentials",
    "RecoverRequest",
    "GoogleSignInRequest",
    "RefreshRequest",
    "SessionResponse",
    "SignupResponse",
    "MessageResponse",
    "NoteContext",
    "CategorizeRequest",
    "CategorizeResult",
    "BrainstormRequest",
    "BrainstormResult",
    "AISearchRequest",
    "AISearchResponse",
    "FindNotesResult",
    "ResearchRequest",
    "ResearchResult",
]
