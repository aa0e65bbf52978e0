import asyncio
import base64
import dataclasses
import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from svix.webhooks import Webhook
from tortoise import Tortoise

TEST_DB_URL = "sqlite://:memory:?cache=shared"
TEST_WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"writique-test-webhook-secret-32b").decode()

# Settings are read at import time, so the environment must be ready first
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ.setdefault("CLERK_SECRET_KEY", "sk_test_writique")
os.environ["CLERK_WEBHOOK_SECRET"] = TEST_WEBHOOK_SECRET

from writique.core import db as db_module  # noqa: E402
from writique.core import errors  # noqa: E402
from writique.core.identity import IdentityProfile, IdentityVerifier, Principal  # noqa: E402
from writique.main import app  # noqa: E402
from writique.services.media_relay import MediaRelay  # noqa: E402

db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


class FakeIdentityVerifier(IdentityVerifier):
    """
    In-memory identity provider.
    `issue()` registers a subject and returns ready-to-use auth headers.
    """

    def __init__(self):
        self.tokens: dict[str, str] = {}
        self.profiles: dict[str, IdentityProfile] = {}
        self.profile_calls = 0
        self.fail_profiles = False

    def issue(
        self,
        subject_id: str,
        email: str | None = None,
        first_name: str | None = "Test",
        last_name: str | None = "Writer",
        avatar_url: str | None = None,
    ) -> dict[str, str]:
        token = f"token-{subject_id}"
        self.tokens[token] = subject_id
        self.profiles[subject_id] = IdentityProfile(
            external_id=subject_id,
            email=email or f"{subject_id}@example.com",
            first_name=first_name,
            last_name=last_name,
            avatar_url=avatar_url,
        )
        return {"Authorization": f"Bearer {token}"}

    async def verify(self, token: str) -> Principal:
        subject_id = self.tokens.get(token)
        if subject_id is None:
            raise errors.AuthenticationError()
        return Principal(subject_id=subject_id, session_id="sess_test")

    async def get_profile(self, subject_id: str) -> IdentityProfile:
        self.profile_calls += 1
        # yield so concurrent first requests interleave
        await asyncio.sleep(0)
        if self.fail_profiles or subject_id not in self.profiles:
            raise errors.UpstreamError(message="Could not load the user profile")
        return dataclasses.replace(self.profiles[subject_id])


class FakeMediaRelay(MediaRelay):
    """Records uploads instead of sending them anywhere."""

    def __init__(self):
        self.calls: list[tuple[str, int]] = []
        self.fail = False

    @property
    def name(self) -> str:
        return "Fake"

    def is_available(self) -> bool:
        return True

    async def upload(self, data: bytes, filename: str, content_type: str | None = None) -> str:
        self.calls.append((filename, len(data)))
        if self.fail:
            raise errors.UpstreamError(message="Image upload failed")
        return f"https://media.test/writique_blogs/{filename}"


@pytest.fixture
def identity() -> FakeIdentityVerifier:
    return FakeIdentityVerifier()


@pytest.fixture
def media_relay() -> FakeMediaRelay:
    return FakeMediaRelay()


@pytest.fixture
def webhook() -> Webhook:
    return Webhook(TEST_WEBHOOK_SECRET)


@pytest_asyncio.fixture
async def db():
    """
    Fresh database for tests that use the ORM without the HTTP client.
    """
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client(identity, media_relay, webhook):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB
    and fake external collaborators on app.state.
    """
    await _init_test_db()
    app.state.identity_verifier = identity
    app.state.media_relay = media_relay
    app.state.webhook_verifier = webhook
    # Use ASGITransport without lifespan parameter (not supported in all httpx versions)
    try:
        transport = ASGITransport(app=app, lifespan="off")
    except TypeError:
        # Fallback for httpx versions that don't support lifespan parameter
        transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    for name in ("identity_verifier", "media_relay", "webhook_verifier"):
        delattr(app.state, name)
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_post(client):
    """
    Factory fixture creating a post through the API as the given caller.
    """

    async def _create_post(headers: dict[str, str], **overrides) -> dict:
        form = {
            "title": "First steps",
            "excerpt": "A short excerpt",
            "category": "Technology",
            "content": "word " * 250,
        }
        form.update(overrides)
        resp = await client.post("/api/v1/posts", data=form, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create_post
