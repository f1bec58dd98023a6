"""Client for the hosted identity provider (Identity Toolkit REST API).

Passwords never touch our storage: every account operation is forwarded to the
provider, which owns credentials, email verification and password resets.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import status

from ..models.auth import SessionResponse, SignupResponse
from .auth import AuthError
from .config import AppConfig, get_config

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_BASE = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_BASE = "https://securetoken.googleapis.com/v1"

# Provider error codes -> (our error code, HTTP status, user-facing message)
PROVIDER_ERRORS: Dict[str, tuple[str, int, str]] = {
    "EMAIL_EXISTS": ("email_exists", 409, "An account with this email already exists."),
    "EMAIL_NOT_FOUND": ("invalid_credentials", 401, "Invalid email or password."),
    "INVALID_PASSWORD": ("invalid_credentials", 401, "Invalid email or password."),
    "INVALID_LOGIN_CREDENTIALS": ("invalid_credentials", 401, "Invalid email or password."),
    "USER_DISABLED": ("user_disabled", 403, "This account has been disabled."),
    "TOO_MANY_ATTEMPTS_TRY_LATER": (
        "too_many_attempts",
        429,
        "Too many attempts. Please try again later.",
    ),
    "WEAK_PASSWORD": ("weak_password", 400, "Password must be at least 6 characters long."),
    "INVALID_EMAIL": ("invalid_email", 400, "Please enter a valid email address."),
    "INVALID_REFRESH_TOKEN": ("invalid_token", 401, "Session expired. Please sign in again."),
    "TOKEN_EXPIRED": ("token_expired", 401, "Session expired. Please sign in again."),
    "INVALID_IDP_RESPONSE": ("invalid_credentials", 401, "Federated sign-in was rejected."),
}


class IdentityProviderError(AuthError):
    """Raised when the identity provider rejects or fails a request."""


def _translate_error(response: httpx.Response) -> IdentityProviderError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    raw_message = str((body.get("error") or {}).get("message", "")) if isinstance(body, dict) else ""
    # Messages look like "WEAK_PASSWORD : Password should be at least 6 characters"
    code = raw_message.split(":", 1)[0].strip()
    if code in PROVIDER_ERRORS:
        error, status_code, message = PROVIDER_ERRORS[code]
        return IdentityProviderError(error, message, status_code=status_code, detail={"provider_code": code})
    logger.error(
        "Identity provider error",
        extra={"status": response.status_code, "provider_message": raw_message},
    )
    return IdentityProviderError(
        "upstream_error",
        "The sign-in service is unavailable. Please try again.",
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"provider_code": code or None},
    )


class IdentityClient:
    """Async wrapper over the identity provider's account endpoints."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 15.0,
    ) -> None:
        self.config = config or get_config()
        self.transport = transport
        self.timeout = timeout

    def _api_key(self) -> str:
        if not self.config.firebase_api_key:
            raise IdentityProviderError(
                "identity_not_configured",
                "Sign-in is not configured. Set FIREBASE_API_KEY.",
                status_code=status.HTTP_501_NOT_IMPLEMENTED,
            )
        return self.config.firebase_api_key

    async def _post(
        self,
        url: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        params = {"key": self._api_key()}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, params=params, json=json, data=data)
        except httpx.HTTPError as exc:
            logger.error("Identity provider unreachable: %s", exc)
            raise IdentityProviderError(
                "upstream_error",
                "The sign-in service is unavailable. Please try again.",
                status_code=status.HTTP_502_BAD_GATEWAY,
            ) from exc
        if response.status_code >= 400:
            raise _translate_error(response)
        return response.json()

    async def _account_call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post(f"{IDENTITY_TOOLKIT_BASE}/accounts:{method}", json=payload)

    async def sign_up(self, email: str, password: str) -> SignupResponse:
        """Create an account and send the verification email.

        No session is returned: the account cannot be used until verified.
        """
        created = await self._account_call(
            "signUp", {"email": email, "password": password, "returnSecureToken": True}
        )
        await self._account_call(
            "sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": created["idToken"]}
        )
        logger.info("Account created, verification email sent", extra={"user_id": created["localId"]})
        return SignupResponse(user_id=created["localId"], email=created.get("email", email))

    async def sign_in(self, email: str, password: str) -> SessionResponse:
        """Email/password sign-in. Unverified accounts are refused."""
        session = await self._account_call(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        lookup = await self._account_call("lookup", {"idToken": session["idToken"]})
        users = lookup.get("users") or [{}]
        if not users[0].get("emailVerified", False):
            raise IdentityProviderError(
                "email_not_verified",
                "Please verify your email to access your notes.",
                status_code=status.HTTP_403_FORBIDDEN,
            )
        return self._session(session)

    async def sign_in_with_google(self, id_token: str, request_uri: str) -> SessionResponse:
        """Exchange a Google credential for a session."""
        session = await self._account_call(
            "signInWithIdp",
            {
                "postBody": f"id_token={id_token}&providerId=google.com",
                "requestUri": request_uri,
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        return self._session(session)

    async def send_password_reset(self, email: str) -> None:
        await self._account_call("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})
        logger.info("Password reset email requested")

    async def refresh(self, refresh_token: str) -> SessionResponse:
        data = await self._post(
            f"{SECURE_TOKEN_BASE}/token",
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
        return SessionResponse(
            user_id=data["user_id"],
            id_token=data["id_token"],
            refresh_token=data["refresh_token"],
            expires_in=int(data["expires_in"]),
        )

    @staticmethod
    def _session(data: Dict[str, Any]) -> SessionResponse:
        return SessionResponse(
            user_id=data["localId"],
            email=data.get("email"),
            id_token=data["idToken"],
            refresh_token=data["refreshToken"],
            expires_in=int(data["expiresIn"]),
        )


__all__ = ["IdentityClient", "IdentityProviderError", "PROVIDER_ERRORS"]
