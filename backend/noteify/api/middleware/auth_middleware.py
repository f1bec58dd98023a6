"""Authentication dependency helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status

from ...models.auth import TokenPayload
from ...services.auth import AuthError, AuthService
from ...services.note_store import NoteStore
from ...services.storage import get_note_store


def _unauthorized(message: str, error: str = "unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
    )


@dataclass
class AuthContext:
    """Context extracted from a bearer token."""

    user_id: str
    token: str
    payload: TokenPayload


@lru_cache(maxsize=1)
def get_auth_service() -> AuthService:
    return AuthService()


def get_auth_context(
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthContext:
    """
    Validate the Bearer token and return the caller's identity.

    Raises HTTPException if the header is missing/invalid.
    """
    if not authorization:
        raise _unauthorized("Authorization header required")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("Authorization header must be in format: Bearer <token>")

    try:
        payload = auth_service.validate_token(token)
    except AuthError as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail={"error": exc.error, "message": exc.message, "detail": exc.detail},
        ) from exc

    return AuthContext(user_id=payload.sub, token=token, payload=payload)


def get_user_store(auth: AuthContext = Depends(get_auth_context)) -> NoteStore:
    """Note store acting on behalf of the signed-in user."""
    return get_note_store(auth.token)


def get_public_store() -> NoteStore:
    """Note store for anonymous share-link lookups."""
    return get_note_store()


__all__ = [
    "AuthContext",
    "get_auth_context",
    "get_auth_service",
    "get_user_store",
    "get_public_store",
]
