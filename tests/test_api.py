"""HTTP API tests through the ASGI transport with in-memory stores.

The lifespan is not run: every store dependency is overridden, so no
database is needed.
"""

import httpx
import pytest

from fakes import FakeFallbackStore, FakeMessageStore, FakeProfileStore, make_message
from messagerie.app import app
from messagerie.core.models import ProfileFragment
from messagerie.core.ports import FallbackUnavailable
from messagerie.infra.profile_db import get_fallback_capability
from messagerie.infra.stores.deps import (
    get_message_store,
    get_presence_repository,
    get_profile_store,
)
from messagerie.infra.stores.users import UserPresenceRepository


@pytest.fixture
def stores():
    messages = FakeMessageStore(
        [
            make_message("alice", "bob", "hi bob", "2024-01-01T10:00:00.000Z"),
            make_message("carol", "alice", "hi alice", "2024-01-02T10:00:00.000Z"),
            make_message("bob", "alice", "hey", "2024-01-03T10:00:00.000Z"),
        ]
    )
    profiles = FakeProfileStore(
        [ProfileFragment(username="bob", first_name="Robert", bio=30, photo="p.jpg")]
    )
    fallback = FakeFallbackStore(
        {"carol": ProfileFragment(username="carol", first_name="Carol")}
    )
    app.dependency_overrides[get_message_store] = lambda: messages
    app.dependency_overrides[get_profile_store] = lambda: profiles
    app.dependency_overrides[get_fallback_capability] = lambda: fallback
    app.dependency_overrides[get_presence_repository] = lambda: (
        UserPresenceRepository(None)
    )
    yield messages
    app.dependency_overrides.clear()


@pytest.fixture
async def client(stores):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "OK"

    @pytest.mark.asyncio
    async def test_root_lists_endpoints(self, client):
        body = (await client.get("/")).json()
        assert body["service"] == "messagerie"
        assert "conversations" in body["endpoints"]


class TestMessagesAPI:
    @pytest.mark.asyncio
    async def test_history(self, client):
        response = await client.get("/api/messages/history/alice", params={"limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["username"] == "alice"
        assert data["count"] == 2
        assert [m["content"] for m in data["messages"]] == ["hi alice", "hey"]

    @pytest.mark.asyncio
    async def test_history_bad_limit_uses_default(self, client):
        response = await client.get(
            "/api/messages/history/alice", params={"limit": "lots"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["count"] == 3

    @pytest.mark.asyncio
    async def test_history_oversized_limit_is_capped(self, client):
        response = await client.get(
            "/api/messages/history/alice", params={"limit": "9" * 20}
        )
        assert response.status_code == 200
        assert response.json()["data"]["count"] == 3

    @pytest.mark.asyncio
    async def test_conversation(self, client):
        response = await client.get("/api/messages/conversation/bob/alice")
        data = response.json()["data"]
        assert data["participants"] == ["bob", "alice"]
        assert [m["content"] for m in data["messages"]] == ["hi bob", "hey"]

    @pytest.mark.asyncio
    async def test_conversations_are_enriched_and_sorted(self, client):
        response = await client.get("/api/messages/conversations/alice")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["count"] == 2
        bob, carol = data["conversations"]
        assert bob == {
            "counterpart_username": "bob",
            "first_name": "Robert",
            "bio": 30,
            "photo": "p.jpg",
            "last_message": "hey",
            "last_message_timestamp": "2024-01-03T10:00:00.000Z",
        }
        assert carol["first_name"] == "Carol"
        assert carol["photo"] == ""

    @pytest.mark.asyncio
    async def test_conversations_without_fallback(self, client):
        app.dependency_overrides[get_fallback_capability] = lambda: (
            FallbackUnavailable("offline")
        )
        data = (await client.get("/api/messages/conversations/alice")).json()["data"]
        assert data["conversations"][1]["first_name"] == ""

    @pytest.mark.asyncio
    async def test_store_outage_is_500(self, client, stores):
        stores.fail = True
        response = await client.get("/api/messages/conversations/alice")
        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["error"]

    @pytest.mark.asyncio
    async def test_send(self, client, stores):
        response = await client.post(
            "/api/messages/send",
            json={"sender": "alice", "recipient": "dave", "content": "hello"},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == "id-4"
        assert data["message_type"] == "text"
        assert stores.messages[-1].recipient == "dave"

    @pytest.mark.asyncio
    async def test_send_missing_field_is_400(self, client):
        response = await client.post(
            "/api/messages/send", json={"sender": "alice", "recipient": "dave"}
        )
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "content" in body["error"]

    @pytest.mark.asyncio
    async def test_mark_read(self, client):
        response = await client.put(
            "/api/messages/mark-read", json={"sender": "bob", "recipient": "alice"}
        )
        assert response.json()["data"] == {"count": 1}

    @pytest.mark.asyncio
    async def test_delete_conversation(self, client, stores):
        response = await client.delete("/api/messages/conversation/alice/bob")
        assert response.json()["data"] == {"deleted": 2}
        assert len(stores.messages) == 1

    @pytest.mark.asyncio
    async def test_debug_stats(self, client):
        data = (await client.get("/api/messages/debug/stats")).json()["data"]
        assert data["messages"]["count"] == 3


class TestUsersAPI:
    @pytest.mark.asyncio
    async def test_connect_without_database_is_503(self, client):
        response = await client.post("/api/users/connect", json={"username": "bob"})
        assert response.status_code == 503
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_online_users_degrade_to_empty(self, client):
        data = (await client.get("/api/users/online")).json()["data"]
        assert data == {"users": [], "count": 0}

    @pytest.mark.asyncio
    async def test_status_defaults_to_offline(self, client):
        data = (await client.get("/api/users/status/bob")).json()["data"]
        assert data == {"username": "bob", "is_online": False}
