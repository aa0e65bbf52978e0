# writique/core/identity.py
"""
Identity provider contract and the Clerk adapter.

The API never trusts a bearer token on its own: it asks an `IdentityVerifier`
to turn the token into a `Principal`, and asks it again for the profile of a
subject it has not seen before. The concrete verifier is built from settings
at startup and injected into the auth dependencies.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx
import jwt
from fastapi.concurrency import run_in_threadpool
from jwt import PyJWKClient

from writique.core import errors

logger = logging.getLogger(__name__)

JWKS_CACHE_DURATION = 3600  # 1 hour
JWT_ALGORITHMS = ["RS256"]
CLOCK_SKEW_LEEWAY = 5  # seconds


@dataclass(frozen=True)
class Principal:
    """Verified identity behind a request's bearer token."""
    subject_id: str
    session_id: Optional[str] = None


@dataclass
class IdentityProfile:
    """Account details the identity provider holds for one subject."""
    external_id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None


def profile_from_payload(data: dict[str, Any]) -> IdentityProfile:
    """
    Build an IdentityProfile from a Clerk user object.

    The same shape is returned by `GET /users/{id}` and carried in the `data`
    field of `user.*` webhook events. The email is the entry whose id matches
    `primary_email_address_id`.
    """
    primary_id = data.get("primary_email_address_id")
    email = None
    for entry in data.get("email_addresses") or []:
        if entry.get("id") == primary_id:
            email = entry.get("email_address")
            break
    return IdentityProfile(
        external_id=data.get("id") or "",
        email=email,
        first_name=data.get("first_name"),
        last_name=data.get("last_name"),
        avatar_url=data.get("image_url"),
    )


class IdentityVerifier(ABC):
    """Identity provider abstract base class"""

    @abstractmethod
    async def verify(self, token: str) -> Principal:
        """
        Verify a bearer token.

        Raises:
            errors.AuthenticationError: for any failure (expired, malformed,
                bad signature, key-set fetch failure)
        """

    @abstractmethod
    async def get_profile(self, subject_id: str) -> IdentityProfile:
        """
        Fetch the provider's profile for a subject.

        Raises:
            errors.UpstreamError: if the provider cannot be reached or
                answers with an error
        """


class ClerkIdentityVerifier(IdentityVerifier):
    """
    Verifies Clerk session tokens locally against the instance JWKS and reads
    user profiles from the Clerk Backend API.
    """

    def __init__(
        self,
        secret_key: str,
        api_url: str,
        jwks_url: str,
        authorized_parties: Optional[list[str]] = None,
        timeout: float = 10.0,
        jwks_client: Optional[PyJWKClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not secret_key:
            raise ValueError("Clerk secret key is required")
        self._secret_key = secret_key
        self._api_url = api_url.rstrip("/")
        self._authorized_parties = list(authorized_parties or [])
        self._timeout = timeout
        self._transport = transport
        self._jwks_client = jwks_client or PyJWKClient(
            jwks_url,
            cache_keys=True,
            lifespan=JWKS_CACHE_DURATION,
            headers={"Authorization": f"Bearer {secret_key}"},
            timeout=int(timeout),
        )

    def _decode(self, token: str) -> dict[str, Any]:
        signing_key = self._jwks_client.get_signing_key_from_jwt(token)
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=JWT_ALGORITHMS,
            leeway=CLOCK_SKEW_LEEWAY,
            options={"require": ["exp", "sub"], "verify_aud": False},
        )
        azp = claims.get("azp")
        if self._authorized_parties and azp and azp not in self._authorized_parties:
            raise jwt.InvalidTokenError(f"Unauthorized party: {azp}")
        return claims

    async def verify(self, token: str) -> Principal:
        try:
            # PyJWKClient fetches keys with blocking urllib calls
            claims = await run_in_threadpool(self._decode, token)
        except jwt.ExpiredSignatureError:
            logger.warning("Clerk session token expired")
            raise errors.AuthenticationError()
        except jwt.PyJWTError as e:
            logger.warning("Invalid Clerk session token: %s", e)
            raise errors.AuthenticationError()
        return Principal(subject_id=claims["sub"], session_id=claims.get("sid"))

    async def get_profile(self, subject_id: str) -> IdentityProfile:
        url = f"{self._api_url}/users/{subject_id}"
        headers = {"Authorization": f"Bearer {self._secret_key}"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(url, headers=headers)
                resp.raise_for_status()
                payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Clerk profile fetch failed for %s: %s", subject_id, e)
            raise errors.UpstreamError(message="Could not load the user profile")
        return profile_from_payload(payload)
