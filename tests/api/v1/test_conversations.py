"""
Integration tests for Conversation API endpoints.
Tests API routes for conversation operations.
"""
import pytest


@pytest.mark.asyncio
class TestConversationAPI:
    """Test conversation API endpoints."""

    async def test_start_direct_conversation(self, client, alice_headers, alice, bob):
        """Test starting a direct conversation via API."""
        response = await client.post(
            "/api/v1/conversations/",
            headers=alice_headers,
            json={"username": "bob"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["isGroup"] is False
        assert data["unreadCounts"] == {alice.id: 0, bob.id: 0}
        assert {p["username"] for p in data["participants"]} == {"alice", "bob"}

    async def test_start_is_idempotent(self, client, alice_headers, bob_headers, alice, bob):
        """Test both users resolve the same conversation."""
        first = await client.post("/api/v1/conversations/", headers=alice_headers, json={"username": "bob"})
        second = await client.post("/api/v1/conversations/", headers=bob_headers, json={"username": "alice"})

        assert first.json()["id"] == second.json()["id"]

    async def test_start_with_self_fails(self, client, alice_headers, alice):
        """Test starting a conversation with yourself via API."""
        response = await client.post(
            "/api/v1/conversations/",
            headers=alice_headers,
            json={"username": "alice"}
        )

        assert response.status_code == 422

    async def test_start_with_unknown_user(self, client, alice_headers):
        """Test starting a conversation with a missing user."""
        response = await client.post(
            "/api/v1/conversations/",
            headers=alice_headers,
            json={"username": "ghost"}
        )

        assert response.status_code == 404

    async def test_create_group_conversation(self, client, alice_headers, bob, carol):
        """Test creating a group conversation via API."""
        response = await client.post(
            "/api/v1/conversations/group",
            headers=alice_headers,
            json={"name": "Test Group", "memberIds": [bob.id, carol.id]}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["isGroup"] is True
        assert data["name"] == "Test Group"
        assert len(data["participants"]) == 3

    async def test_create_group_with_one_member_fails(self, client, alice_headers, bob):
        """Test a group needs at least two other members."""
        response = await client.post(
            "/api/v1/conversations/group",
            headers=alice_headers,
            json={"name": "Too Small", "memberIds": [bob.id]}
        )

        assert response.status_code == 422

    async def test_list_conversations(self, client, alice_headers, direct_conversation):
        """Test listing conversations via API."""
        response = await client.get("/api/v1/conversations/", headers=alice_headers)

        assert response.status_code == 200
        data = response.json()
        assert [c["id"] for c in data["conversations"]] == [direct_conversation.id]
        assert data["pagination"]["total"] == 1

    async def test_get_conversation_not_participant(self, client, carol_headers, direct_conversation):
        """Test outsiders get 404."""
        response = await client.get(
            f"/api/v1/conversations/{direct_conversation.id}",
            headers=carol_headers
        )

        assert response.status_code == 404

    async def test_unread_counts_after_message(
        self, client, alice_headers, bob_headers, direct_conversation, alice, bob
    ):
        """Test a message shows up in the recipient's unread counter only."""
        await client.post(
            f"/api/v1/messages/conversations/{direct_conversation.id}/messages",
            headers=alice_headers,
            json={"content": "hello bob"}
        )

        response = await client.get(
            f"/api/v1/conversations/{direct_conversation.id}/unread-counts",
            headers=bob_headers
        )

        assert response.status_code == 200
        assert response.json() == {alice.id: 0, bob.id: 1}

    async def test_archive_conversation(self, client, alice_headers, direct_conversation):
        """Test archiving hides the conversation from the default list."""
        response = await client.put(
            f"/api/v1/conversations/{direct_conversation.id}/archive",
            headers=alice_headers,
            json={"archived": True}
        )
        assert response.status_code == 200
        assert response.json()["isArchived"] is True

        listed = await client.get("/api/v1/conversations/", headers=alice_headers)
        archived = await client.get(
            "/api/v1/conversations/",
            headers=alice_headers,
            params={"includeArchived": "true"}
        )

        assert listed.json()["conversations"] == []
        assert len(archived.json()["conversations"]) == 1

    async def test_recount_unread(self, client, alice_headers, bob_headers, direct_conversation):
        """Test recount returns the recomputed counter."""
        await client.post(
            f"/api/v1/messages/conversations/{direct_conversation.id}/messages",
            headers=alice_headers,
            json={"content": "one"}
        )

        response = await client.post(
            f"/api/v1/conversations/{direct_conversation.id}/recount",
            headers=bob_headers
        )

        assert response.status_code == 200
        assert response.json() == {"unreadCount": 1}

    async def test_requires_authentication(self, client):
        """Test requests without a token are rejected."""
        response = await client.get("/api/v1/conversations/")

        assert response.status_code == 401
