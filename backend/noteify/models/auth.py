"""Authentication models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class TokenPayload(BaseModel):
    """Claims of a verified identity token."""

    model_config = ConfigDict(extra="ignore")

    sub: str = Field(..., description="Subject (user_id)")
    iat: int = Field(..., description="Issued at timestamp")
    exp: int = Field(..., description="Expiration timestamp")
    email: Optional[str] = None
    email_verified: bool = False
    sign_in_provider: Optional[str] = Field(
        None, description="Provider the session was created with (password, google.com, ...)"
    )


class Credentials(BaseModel):
    """Email/password pair."""

    email: EmailStr
    password: str = Field(..., min_length=6, description="At least 6 characters")


class RecoverRequest(BaseModel):
    """Password-reset request."""

    email: EmailStr


class GoogleSignInRequest(BaseModel):
    """Federated sign-in with a Google ID token obtained by the client."""

    id_token: str = Field(..., min_length=1)
    request_uri: str = Field("http://localhost", description="URI the credential was issued to")


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    """Session tokens issued by the identity provider."""

    user_id: str
    email: Optional[str] = None
    id_token: str
    refresh_token: str
    expires_in: int = Field(..., description="Seconds until the ID token expires")


class SignupResponse(BaseModel):
    """Account created; the user must verify their email before signing in."""

    user_id: str
    email: str
    verification_sent: bool = True


class MessageResponse(BaseModel):
    message: str


__all__ = [
    "TokenPayload",
    "Credentials",
    "RecoverRequest",
    "GoogleSignInRequest",
    "RefreshRequest",
    "SessionResponse",
    "SignupResponse",
    "MessageResponse",
]
