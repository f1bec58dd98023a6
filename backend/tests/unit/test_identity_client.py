"""Tests for the identity provider client using a mocked transport."""

import json

import httpx
import pytest

from backend.noteify.services.config import AppConfig
from backend.noteify.services.identity import IdentityClient, IdentityProviderError


def _client(handler) -> IdentityClient:
    config = AppConfig(firebase_api_key="api-key", firebase_project_id="noteify-test")
    return IdentityClient(config, transport=httpx.MockTransport(handler))


def _error(code: str, status: int = 400) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": code}})


@pytest.mark.asyncio
async def test_sign_up_sends_verification_email() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        calls.append((request.url.path, body))
        assert request.url.params["key"] == "api-key"
        if request.url.path.endswith("accounts:signUp"):
            return httpx.Response(
                200, json={"localId": "uid-1", "email": body["email"], "idToken": "id-1"}
            )
        return httpx.Response(200, json={"email": "ada@example.com"})

    result = await _client(handler).sign_up("ada@example.com", "secret1")

    assert result.user_id == "uid-1"
    assert result.verification_sent is True
    assert calls[1][0].endswith("accounts:sendOobCode")
    assert calls[1][1] == {"requestType": "VERIFY_EMAIL", "idToken": "id-1"}


@pytest.mark.asyncio
async def test_sign_up_existing_email_maps_to_conflict() -> None:
    client = _client(lambda request: _error("EMAIL_EXISTS"))

    with pytest.raises(IdentityProviderError) as exc_info:
        await client.sign_up("ada@example.com", "secret1")

    assert exc_info.value.status_code == 409
    assert exc_info.value.error == "email_exists"


@pytest.mark.asyncio
async def test_sign_in_returns_session_for_verified_user() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("accounts:signInWithPassword"):
            return httpx.Response(
                200,
                json={
                    "localId": "uid-1",
                    "email": "ada@example.com",
                    "idToken": "id-1",
                    "refreshToken": "refresh-1",
                    "expiresIn": "3600",
                },
            )
        return httpx.Response(200, json={"users": [{"localId": "uid-1", "emailVerified": True}]})

    session = await _client(handler).sign_in("ada@example.com", "secret1")

    assert session.id_token == "id-1"
    assert session.refresh_token == "refresh-1"
    assert session.expires_in == 3600


@pytest.mark.asyncio
async def test_sign_in_rejects_unverified_email() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("accounts:signInWithPassword"):
            return httpx.Response(
                200,
                json={
                    "localId": "uid-1",
                    "idToken": "id-1",
                    "refreshToken": "refresh-1",
                    "expiresIn": "3600",
                },
            )
        return httpx.Response(200, json={"users": [{"localId": "uid-1", "emailVerified": False}]})

    with pytest.raises(IdentityProviderError) as exc_info:
        await _client(handler).sign_in("ada@example.com", "secret1")

    assert exc_info.value.status_code == 403
    assert exc_info.value.error == "email_not_verified"


@pytest.mark.asyncio
async def test_bad_credentials_map_to_401() -> None:
    client = _client(lambda request: _error("INVALID_LOGIN_CREDENTIALS"))

    with pytest.raises(IdentityProviderError) as exc_info:
        await client.sign_in("ada@example.com", "wrong-password")

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid email or password."


@pytest.mark.asyncio
async def test_provider_message_with_detail_suffix() -> None:
    client = _client(lambda request: _error("WEAK_PASSWORD : Password should be at least 6 characters"))

    with pytest.raises(IdentityProviderError) as exc_info:
        await client.sign_up("ada@example.com", "12345")

    assert exc_info.value.error == "weak_password"


@pytest.mark.asyncio
async def test_unknown_provider_error_is_upstream_failure() -> None:
    client = _client(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(IdentityProviderError) as exc_info:
        await client.send_password_reset("ada@example.com")

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_password_reset_request() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content))
        return httpx.Response(200, json={"email": "ada@example.com"})

    await _client(handler).send_password_reset("ada@example.com")

    assert seen == {"requestType": "PASSWORD_RESET", "email": "ada@example.com"}


@pytest.mark.asyncio
async def test_google_sign_in_posts_idp_credential() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "localId": "uid-g",
                "email": "ada@gmail.com",
                "idToken": "id-g",
                "refreshToken": "refresh-g",
                "expiresIn": "3600",
            },
        )

    session = await _client(handler).sign_in_with_google("google-token", "http://localhost")

    assert session.user_id == "uid-g"
    assert seen["postBody"] == "id_token=google-token&providerId=google.com"


@pytest.mark.asyncio
async def test_refresh_uses_secure_token_endpoint() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.host == "securetoken.googleapis.com"
        assert b"grant_type=refresh_token" in request.content
        return httpx.Response(
            200,
            json={
                "user_id": "uid-1",
                "id_token": "id-2",
                "refresh_token": "refresh-2",
                "expires_in": "3600",
            },
        )

    session = await _client(handler).refresh("refresh-1")

    assert session.id_token == "id-2"


@pytest.mark.asyncio
async def test_missing_api_key_is_not_configured() -> None:
    client = IdentityClient(AppConfig(), transport=httpx.MockTransport(lambda r: httpx.Response(200)))

    with pytest.raises(IdentityProviderError) as exc_info:
        await client.send_password_reset("ada@example.com")

    assert exc_info.value.status_code == 501
