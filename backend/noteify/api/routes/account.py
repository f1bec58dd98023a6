"""Signed-in identity and onboarding."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...models.user import MeResponse, OnboardingRequest, UserProfile
from ...services.note_store import NoteStore
from ..middleware import AuthContext, get_auth_context, get_user_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/me", response_model=MeResponse)
def me(
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
):
    """Return the caller's identity and onboarding state."""
    return MeResponse(
        user_id=auth.user_id,
        email=auth.payload.email,
        email_verified=auth.payload.email_verified,
        profile=store.get_profile(auth.user_id),
    )


@router.post("/onboarding", response_model=UserProfile)
def complete_onboarding(
    request: OnboardingRequest,
    auth: AuthContext = Depends(get_auth_context),
    store: NoteStore = Depends(get_user_store),
):
    """Record that the user accepted the terms and chose their update preference."""
    if not request.agreed_to_terms:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "terms_not_accepted",
                "message": "You must agree to the terms and conditions.",
            },
        )
    profile = store.complete_onboarding(auth.user_id, request.wants_updates)
    logger.info(
        "Onboarding completed",
        extra={"user_id": auth.user_id, "wants_updates": request.wants_updates},
    )
    return profile


__all__ = ["router"]
