"""Authentication helpers (static dev token + Firebase ID tokens)."""

from __future__ import annotations

import abc
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import jwt
from fastapi import status

from ..models.auth import TokenPayload
from .config import AppConfig, get_config

logger = logging.getLogger(__name__)

GOOGLE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
)
LOCAL_DEV_USER = "local-dev"


class AuthError(Exception):
    """Domain-specific authentication error."""

    def __init__(
        self,
        error: str,
        message: str,
        *,
        status_code: int = status.HTTP_401_UNAUTHORIZED,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.status_code = status_code
        self.detail = detail or {}


class TokenValidator(abc.ABC):
    """Abstract base class for token validation strategies."""

    @abc.abstractmethod
    def validate(self, token: str) -> Optional[TokenPayload]:
        """
        Validate the token and return payload if valid, or None if this validator
        does not recognize the token (allow fallthrough).
        Raises AuthError if token is recognized but invalid/expired.
        """


class StaticTokenValidator(TokenValidator):
    """Validates against a configured static token (local development)."""

    def __init__(self, static_token: Optional[str], user_id: str):
        self.static_token = static_token
        self.user_id = user_id

    def validate(self, token: str) -> Optional[TokenPayload]:
        if self.static_token and token == self.static_token:
            now = datetime.now(timezone.utc)
            return TokenPayload(
                sub=self.user_id,
                iat=int(now.timestamp()),
                exp=int((now + timedelta(days=365)).timestamp()),
                email=f"{self.user_id}@localhost",
                email_verified=True,
                sign_in_provider="custom",
            )
        return None


class FirebaseTokenValidator(TokenValidator):
    """Verifies RS256 ID tokens minted by the hosted identity provider."""

    def __init__(self, project_id: str, jwks_client: Any | None = None):
        self.project_id = project_id
        self.issuer = f"https://securetoken.google.com/{project_id}"
        self.jwks_client = jwks_client or jwt.PyJWKClient(GOOGLE_JWKS_URL)

    def validate(self, token: str) -> Optional[TokenPayload]:
        try:
            header = jwt.get_unverified_header(token)
        except jwt.DecodeError:
            # Not a JWT at all
            return None
        if header.get("alg") != "RS256":
            return None

        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(token)
        except jwt.PyJWKClientError as exc:
            logger.warning("Could not resolve signing key", extra={"error": str(exc)})
            raise AuthError("invalid_token", f"Unknown signing key: {exc}") from exc

        try:
            decoded = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.project_id,
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("token_expired", "Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthError("invalid_token", f"Invalid token: {exc}") from exc

        if not decoded.get("sub"):
            raise AuthError("invalid_token", "Token has an empty subject")

        firebase_claims = decoded.get("firebase") or {}
        return TokenPayload(
            sub=decoded["sub"],
            iat=decoded["iat"],
            exp=decoded["exp"],
            email=decoded.get("email"),
            email_verified=bool(decoded.get("email_verified", False)),
            sign_in_provider=firebase_claims.get("sign_in_provider"),
        )


class AuthService:
    """Validate bearer tokens using configured strategies."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        jwks_client: Any | None = None,
    ) -> None:
        self.config = config or get_config()

        self.validators: List[TokenValidator] = []

        # 1. Local Dev Token (Highest priority)
        if self.config.enable_local_mode:
            self.validators.append(
                StaticTokenValidator(self.config.local_dev_token, LOCAL_DEV_USER)
            )

        # 2. Hosted identity provider
        if self.config.firebase_project_id:
            self.validators.append(
                FirebaseTokenValidator(self.config.firebase_project_id, jwks_client)
            )

    def validate_token(self, token: str) -> TokenPayload:
        """
        Validate a token against all registered strategies.
        Returns the first successful payload.
        Raises AuthError if no validator accepts it or if validation explicitly fails.
        """
        last_error = None

        for validator in self.validators:
            try:
                payload = validator.validate(token)
                if payload:
                    self.require_verified_email(payload)
                    return payload
            except AuthError:
                # Validator recognized the token type but rejected it
                raise
            except Exception as e:
                last_error = e

        if last_error:
            logger.warning("Token validation failed", extra={"error": str(last_error)})
            raise AuthError("invalid_token", f"Token validation failed: {last_error}")

        raise AuthError("invalid_token", "Invalid authentication credentials")

    @staticmethod
    def require_verified_email(payload: TokenPayload) -> None:
        """Password accounts must verify their email before using the app."""
        if payload.sign_in_provider == "password" and not payload.email_verified:
            raise AuthError(
                "email_not_verified",
                "Please verify your email to access your notes.",
                status_code=status.HTTP_403_FORBIDDEN,
            )


__all__ = [
    "AuthService",
    "AuthError",
    "TokenValidator",
    "StaticTokenValidator",
    "FirebaseTokenValidator",
    "GOOGLE_JWKS_URL",
    "LOCAL_DEV_USER",
]
