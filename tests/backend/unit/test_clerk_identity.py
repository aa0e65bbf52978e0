"""
Unit tests for core.identity module.
Tests Clerk session token verification and profile loading.
"""
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from writique.core import errors
from writique.core.identity import ClerkIdentityVerifier, profile_from_payload


@pytest.fixture
def rsa_key_pair():
    """Generate a fresh RSA key pair for each test."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key, private_key.public_key()


@pytest.fixture
def mock_jwks_client(rsa_key_pair):
    """Create a mock JWKS client that returns our test public key."""
    _, public_key = rsa_key_pair
    mock_client = MagicMock()
    mock_signing_key = MagicMock()
    mock_signing_key.key = public_key
    mock_client.get_signing_key_from_jwt.return_value = mock_signing_key
    return mock_client


def create_session_token(private_key, subject: str = "user_123", expires_in: int = 60, **claims) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "sid": "sess_abc",
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    payload.update(claims)
    return jwt.encode(payload, private_key, algorithm="RS256")


def _verifier(jwks_client=None, transport=None, authorized_parties=None) -> ClerkIdentityVerifier:
    return ClerkIdentityVerifier(
        secret_key="sk_test_abc",
        api_url="https://clerk.test/v1",
        jwks_url="https://clerk.test/v1/jwks",
        authorized_parties=authorized_parties,
        jwks_client=jwks_client or MagicMock(),
        transport=transport,
    )


CLERK_USER = {
    "id": "user_123",
    "primary_email_address_id": "idn_2",
    "email_addresses": [
        {"id": "idn_1", "email_address": "old@example.com"},
        {"id": "idn_2", "email_address": "primary@example.com"},
    ],
    "first_name": "Jane",
    "last_name": "Doe",
    "image_url": "https://img.clerk.test/jane.png",
}


class TestTokenVerification:
    """Tests for ClerkIdentityVerifier.verify."""

    @pytest.mark.asyncio
    async def test_valid_token(self, rsa_key_pair, mock_jwks_client):
        private_key, _ = rsa_key_pair
        principal = await _verifier(mock_jwks_client).verify(create_session_token(private_key))
        assert principal.subject_id == "user_123"
        assert principal.session_id == "sess_abc"

    @pytest.mark.asyncio
    async def test_expired_token(self, rsa_key_pair, mock_jwks_client):
        private_key, _ = rsa_key_pair
        token = create_session_token(private_key, expires_in=-60)
        with pytest.raises(errors.AuthenticationError):
            await _verifier(mock_jwks_client).verify(token)

    @pytest.mark.asyncio
    async def test_token_signed_by_other_key(self, mock_jwks_client):
        other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        with pytest.raises(errors.AuthenticationError):
            await _verifier(mock_jwks_client).verify(create_session_token(other_key))

    @pytest.mark.asyncio
    async def test_garbage_token(self, mock_jwks_client):
        mock_jwks_client.get_signing_key_from_jwt.side_effect = jwt.PyJWKClientError("bad token")
        with pytest.raises(errors.AuthenticationError) as exc_info:
            await _verifier(mock_jwks_client).verify("not.a.jwt")
        assert exc_info.value.code == "AUTH_INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_authorized_parties(self, rsa_key_pair, mock_jwks_client):
        private_key, _ = rsa_key_pair
        verifier = _verifier(mock_jwks_client, authorized_parties=["https://writique.app"])

        ok = create_session_token(private_key, azp="https://writique.app")
        assert (await verifier.verify(ok)).subject_id == "user_123"

        foreign = create_session_token(private_key, azp="https://evil.example")
        with pytest.raises(errors.AuthenticationError):
            await verifier.verify(foreign)

    def test_secret_key_is_required(self):
        with pytest.raises(ValueError):
            ClerkIdentityVerifier(secret_key="", api_url="https://x", jwks_url="https://x/jwks")


class TestProfileLoading:
    """Tests for profile parsing and the Backend API call."""

    def test_primary_email_is_selected(self):
        profile = profile_from_payload(CLERK_USER)
        assert profile.external_id == "user_123"
        assert profile.email == "primary@example.com"
        assert profile.avatar_url == "https://img.clerk.test/jane.png"

    def test_missing_primary_email(self):
        profile = profile_from_payload({"id": "user_9", "email_addresses": []})
        assert profile.email is None

    @pytest.mark.asyncio
    async def test_get_profile_calls_backend_api(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, content=json.dumps(CLERK_USER))

        verifier = _verifier(transport=httpx.MockTransport(handler))
        profile = await verifier.get_profile("user_123")

        assert seen == {"url": "https://clerk.test/v1/users/user_123", "auth": "Bearer sk_test_abc"}
        assert profile.first_name == "Jane"
        assert profile.email == "primary@example.com"

    @pytest.mark.asyncio
    async def test_get_profile_upstream_failure_is_generic(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"errors": [{"message": "invalid secret sk_test_abc"}]})

        verifier = _verifier(transport=httpx.MockTransport(handler))
        with pytest.raises(errors.UpstreamError) as exc_info:
            await verifier.get_profile("user_123")
        assert "sk_test" not in exc_info.value.message
        assert exc_info.value.status_code == 500
