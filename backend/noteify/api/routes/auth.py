"""Account routes backed by the hosted identity provider."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, status

from ...models.auth import (
    Credentials,
    GoogleSignInRequest,
    MessageResponse,
    RecoverRequest,
    RefreshRequest,
    SessionResponse,
    SignupResponse,
)
from ...services.identity import IdentityClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


@lru_cache(maxsize=1)
def get_identity_client() -> IdentityClient:
    return IdentityClient()


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    credentials: Credentials,
    identity: IdentityClient = Depends(get_identity_client),
):
    """Create an account and send the verification email.

    No session is issued: the user has to verify their email and then sign in.
    """
    return await identity.sign_up(credentials.email, credentials.password)


@router.post("/login", response_model=SessionResponse)
async def login(
    credentials: Credentials,
    identity: IdentityClient = Depends(get_identity_client),
):
    """Email/password sign-in."""
    return await identity.sign_in(credentials.email, credentials.password)


@router.post("/google", response_model=SessionResponse)
async def google_sign_in(
    request: GoogleSignInRequest,
    identity: IdentityClient = Depends(get_identity_client),
):
    """Sign in with a Google credential obtained by the client."""
    return await identity.sign_in_with_google(request.id_token, request.request_uri)


@router.post("/recover", response_model=MessageResponse)
async def recover(
    request: RecoverRequest,
    identity: IdentityClient = Depends(get_identity_client),
):
    """Send a password-reset email."""
    await identity.send_password_reset(request.email)
    return MessageResponse(message="Check your inbox for password reset instructions.")


@router.post("/refresh", response_model=SessionResponse)
async def refresh(
    request: RefreshRequest,
    identity: IdentityClient = Depends(get_identity_client),
):
    return await identity.refresh(request.refresh_token)


__all__ = ["router", "get_identity_client"]
