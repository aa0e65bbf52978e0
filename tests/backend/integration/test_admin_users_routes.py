import pytest

from writique.config import settings


pytestmark = pytest.mark.asyncio


async def test_regular_user_is_forbidden(client, identity):
    headers = identity.issue("user_plain")
    resp = await client.get("/api/v1/admin/users", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "FORBIDDEN_ADMIN_ONLY"


async def test_anonymous_is_unauthorized(client):
    resp = await client.get("/api/v1/admin/users")
    assert resp.status_code == 401


async def test_bootstrap_admin_lists_and_searches_users(client, identity, monkeypatch):
    monkeypatch.setattr(settings, "bootstrap_admin_ids", ["user_boss"])
    admin_headers = identity.issue("user_boss", email="boss@example.com", first_name="Bo", last_name="Ss")

    for subject, first in (("user_a", "Alice"), ("user_b", "Bob")):
        resp = await client.get("/api/v1/users/me", headers=identity.issue(subject, first_name=first))
        assert resp.status_code == 200

    me = await client.get("/api/v1/users/me", headers=admin_headers)
    assert me.json()["role"] == "admin"

    resp = await client.get("/api/v1/admin/users", headers=admin_headers, params={"offset": 0, "limit": 20})
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 3
    assert {item["externalId"] for item in body["items"]} == {"user_boss", "user_a", "user_b"}

    resp = await client.get("/api/v1/admin/users", headers=admin_headers, params={"q": "ali"})
    assert [item["externalId"] for item in resp.json()["items"]] == ["user_a"]

    resp = await client.get("/api/v1/admin/users", headers=admin_headers, params={"limit": 1})
    assert resp.json()["total"] == 3
    assert len(resp.json()["items"]) == 1
