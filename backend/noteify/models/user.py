"""User and profile models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserProfile(BaseModel):
    """Per-account onboarding state."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": "Xy12AbCd",
                "onboarded": True,
                "wants_updates": True,
                "onboarded_at": "2025-01-15T10:30:00Z",
            }
        }
    )

    user_id: str = Field(..., min_length=1, max_length=128, description="Identity provider uid")
    onboarded: bool = False
    wants_updates: bool = False
    onboarded_at: Optional[datetime] = None


class OnboardingRequest(BaseModel):
    agreed_to_terms: bool = Field(..., description="Terms and conditions accepted")
    wants_updates: bool = True


class MeResponse(BaseModel):
    """Signed-in identity plus onboarding state."""

    user_id: str
    email: Optional[str] = None
    email_verified: bool = False
    profile: UserProfile


__all__ = ["UserProfile", "OnboardingRequest", "MeResponse"]
