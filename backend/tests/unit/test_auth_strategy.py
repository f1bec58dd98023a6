import time
from types import SimpleNamespace
from unittest.mock import Mock

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from backend.noteify.services.auth import (
    AuthError,
    AuthService,
    FirebaseTokenValidator,
    StaticTokenValidator,
)
from backend.noteify.services.config import AppConfig

PROJECT_ID = "noteify-test"


@pytest.fixture(scope="module")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def jwks_client(rsa_key):
    client = Mock()
    client.get_signing_key_from_jwt.return_value = SimpleNamespace(key=rsa_key.public_key())
    return client


def _mint(rsa_key, **overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": f"https://securetoken.google.com/{PROJECT_ID}",
        "aud": PROJECT_ID,
        "sub": "uid-123",
        "iat": now,
        "exp": now + 3600,
        "email": "ada@example.com",
        "email_verified": True,
        "firebase": {"sign_in_provider": "password"},
    }
    claims.update(overrides)
    pem = rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return jwt.encode(claims, pem, algorithm="RS256", headers={"kid": "key-1"})


@pytest.fixture
def mock_config():
    config = Mock(spec=AppConfig)
    config.enable_local_mode = True
    config.local_dev_token = "local-test"
    config.firebase_project_id = PROJECT_ID
    return config


def test_static_token_validator():
    validator = StaticTokenValidator("my-secret", "test-user")

    payload = validator.validate("my-secret")
    assert payload is not None
    assert payload.sub == "test-user"
    assert payload.email_verified is True

    assert validator.validate("wrong") is None
    assert validator.validate("") is None


def test_static_token_validator_without_token_accepts_nothing():
    assert StaticTokenValidator(None, "test-user").validate("anything") is None


def test_firebase_validator_accepts_valid_token(rsa_key, jwks_client):
    validator = FirebaseTokenValidator(PROJECT_ID, jwks_client)

    payload = validator.validate(_mint(rsa_key))

    assert payload.sub == "uid-123"
    assert payload.email == "ada@example.com"
    assert payload.sign_in_provider == "password"


def test_firebase_validator_ignores_non_jwt(jwks_client):
    validator = FirebaseTokenValidator(PROJECT_ID, jwks_client)

    assert validator.validate("local-test") is None
    jwks_client.get_signing_key_from_jwt.assert_not_called()


def test_firebase_validator_ignores_hs256_tokens(jwks_client):
    token = jwt.encode({"sub": "x"}, "a-shared-secret-of-enough-length", algorithm="HS256")

    assert FirebaseTokenValidator(PROJECT_ID, jwks_client).validate(token) is None


def test_firebase_validator_rejects_expired(rsa_key, jwks_client):
    token = _mint(rsa_key, iat=int(time.time()) - 7200, exp=int(time.time()) - 3600)

    with pytest.raises(AuthError) as exc_info:
        FirebaseTokenValidator(PROJECT_ID, jwks_client).validate(token)
    assert exc_info.value.error == "token_expired"


def test_firebase_validator_rejects_wrong_audience(rsa_key, jwks_client):
    token = _mint(rsa_key, aud="someone-else")

    with pytest.raises(AuthError) as exc_info:
        FirebaseTokenValidator(PROJECT_ID, jwks_client).validate(token)
    assert exc_info.value.error == "invalid_token"


def test_firebase_validator_rejects_unknown_key(rsa_key):
    client = Mock()
    client.get_signing_key_from_jwt.side_effect = jwt.PyJWKClientError("no kid")

    with pytest.raises(AuthError):
        FirebaseTokenValidator(PROJECT_ID, client).validate(_mint(rsa_key))


def test_auth_service_strategies(mock_config, rsa_key, jwks_client):
    auth = AuthService(config=mock_config, jwks_client=jwks_client)

    assert auth.validate_token("local-test").sub == "local-dev"
    assert auth.validate_token(_mint(rsa_key)).sub == "uid-123"

    with pytest.raises(AuthError, match="Invalid authentication credentials"):
        auth.validate_token("invalid-token")


def test_auth_service_priority(mock_config, jwks_client):
    auth = AuthService(config=mock_config, jwks_client=jwks_client)

    assert isinstance(auth.validators[0], StaticTokenValidator)
    assert auth.validators[0].static_token == "local-test"
    assert isinstance(auth.validators[1], FirebaseTokenValidator)


def test_auth_service_without_local_mode(mock_config, jwks_client):
    mock_config.enable_local_mode = False
    auth = AuthService(config=mock_config, jwks_client=jwks_client)

    assert len(auth.validators) == 1
    with pytest.raises(AuthError):
        auth.validate_token("local-test")


def test_unverified_password_account_is_rejected(mock_config, rsa_key, jwks_client):
    auth = AuthService(config=mock_config, jwks_client=jwks_client)
    token = _mint(rsa_key, email_verified=False)

    with pytest.raises(AuthError) as exc_info:
        auth.validate_token(token)
    assert exc_info.value.status_code == 403
    assert exc_info.value.error == "email_not_verified"


def test_unverified_google_account_is_allowed(mock_config, rsa_key, jwks_client):
    auth = AuthService(config=mock_config, jwks_client=jwks_client)
    token = _mint(rsa_key, email_verified=False, firebase={"sign_in_provider": "google.com"})

    assert auth.validate_token(token).sign_in_provider == "google.com"
