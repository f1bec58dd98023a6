"""HTTP API route handlers."""

from . import account, ai, auth, notes, share

__all__ = ["account", "ai", "auth", "notes", "share"]
