"""Service layer for business logic and external integrations."""

from .ai_flows import AIFlowService, get_ai_service
from .auth import AuthError, AuthService
from .config import AppConfig, get_config, reload_config
from .database import DatabaseService, init_database
from .export import ExportError, export_note, parse_for_export
from .firestore import FirestoreNoteStore
from .identity import IdentityClient, IdentityProviderError
from .llm_client import AIFlowError, LLMClient
from .markdown import render_markdown
from .note_store import NoteNotFoundError, NoteStore, SqliteNoteStore, StoreError
from .prompt_loader import PromptLoader, PromptLoaderError
from .search import all_categories, filter_notes
from .storage import get_note_store

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "DatabaseService",
    "init_database",
    "AuthService",
    "AuthError",
    "IdentityClient",
    "IdentityProviderError",
    "NoteStore",
    "SqliteNoteStore",
    "FirestoreNoteStore",
    "NoteNotFoundError",
    "StoreError",
    "get_note_store",
    "filter_notes",
    "all_categories",
    "render_markdown",
    "ExportError",
    "export_note",
    "parse_for_export",
    "PromptLoader",
    "PromptLoaderError",
    "LLMClient",
    "AIFlowError",
    "AIFlowService",
    "get_ai_service",
]
