"""
Integration tests for Message API endpoints.
Tests API routes for message operations.
"""
import pytest


def messages_url(conversation_id: str) -> str:
    return f"/api/v1/messages/conversations/{conversation_id}/messages"


@pytest.mark.asyncio
class TestMessageAPI:
    """Test message API endpoints."""

    async def test_send_message(self, client, alice_headers, direct_conversation, alice):
        """Test sending a message via API."""
        response = await client.post(
            messages_url(direct_conversation.id),
            headers=alice_headers,
            json={"content": "Test message via API"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["content"] == "Test message via API"
        assert data["messageType"] == "text"
        assert data["senderId"] == alice.id
        assert data["sender"]["displayName"] == "Alice"
        assert data["sequenceNumber"] == 1
        assert data["createdAt"].endswith("Z")

    async def test_send_empty_message(self, client, alice_headers, direct_conversation):
        """Test a message without payload returns 400."""
        response = await client.post(
            messages_url(direct_conversation.id),
            headers=alice_headers,
            json={"content": ""}
        )

        assert response.status_code == 400

    async def test_send_too_long_message(self, client, alice_headers, direct_conversation):
        """Test a message longer than 1000 characters returns 422."""
        response = await client.post(
            messages_url(direct_conversation.id),
            headers=alice_headers,
            json={"content": "x" * 1001}
        )

        assert response.status_code == 422

    async def test_send_media_message(self, client, alice_headers, direct_conversation):
        """Test a media-only message."""
        response = await client.post(
            messages_url(direct_conversation.id),
            headers=alice_headers,
            json={"media": [{"type": "gif", "url": "https://cdn.example.com/a.gif"}]}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["messageType"] == "gif"
        assert data["media"][0]["url"] == "https://cdn.example.com/a.gif"

    async def test_send_to_foreign_conversation(self, client, carol_headers, direct_conversation):
        """Test non-participants cannot post."""
        response = await client.post(
            messages_url(direct_conversation.id),
            headers=carol_headers,
            json={"content": "let me in"}
        )

        assert response.status_code == 404

    async def test_list_messages_marks_read(
        self, client, alice_headers, bob_headers, direct_conversation, bob
    ):
        """Test listing returns messages in order and clears unread."""
        for text in ("first", "second"):
            await client.post(messages_url(direct_conversation.id), headers=alice_headers, json={"content": text})

        response = await client.get(messages_url(direct_conversation.id), headers=bob_headers)

        assert response.status_code == 200
        data = response.json()
        assert [m["content"] for m in data["messages"]] == ["first", "second"]
        assert data["pagination"]["total"] == 2

        counts = await client.get(
            f"/api/v1/conversations/{direct_conversation.id}/unread-counts",
            headers=bob_headers
        )
        assert counts.json()[bob.id] == 0

    async def test_mark_conversation_read(self, client, alice_headers, bob_headers, direct_conversation):
        """Test the explicit mark-read endpoint."""
        await client.post(messages_url(direct_conversation.id), headers=alice_headers, json={"content": "hi"})

        response = await client.post(
            f"/api/v1/messages/conversations/{direct_conversation.id}/read",
            headers=bob_headers
        )

        assert response.status_code == 200
        assert response.json() == {"markedCount": 1, "unreadCount": 0}

    async def test_edit_message(self, client, alice_headers, bob_headers, direct_conversation):
        """Test editing a message via API."""
        sent = await client.post(
            messages_url(direct_conversation.id), headers=alice_headers, json={"content": "draft"}
        )
        message_id = sent.json()["id"]

        response = await client.put(
            f"/api/v1/messages/{message_id}",
            headers=alice_headers,
            json={"content": "final"}
        )
        forbidden = await client.put(
            f"/api/v1/messages/{message_id}",
            headers=bob_headers,
            json={"content": "mine now"}
        )

        assert response.status_code == 200
        assert response.json()["content"] == "final"
        assert response.json()["isEdited"] is True
        assert forbidden.status_code == 403

    async def test_toggle_reaction(self, client, alice_headers, bob_headers, direct_conversation, bob):
        """Test toggling a reaction via API."""
        sent = await client.post(
            messages_url(direct_conversation.id), headers=alice_headers, json={"content": "react!"}
        )
        url = f"/api/v1/messages/{sent.json()['id']}/reactions"

        added = await client.post(url, headers=bob_headers, json={"emoji": "❤"})
        removed = await client.post(url, headers=bob_headers, json={"emoji": "❤"})

        assert added.status_code == 200
        assert added.json()["action"] == "add"
        assert added.json()["reactions"][0]["userId"] == bob.id
        assert removed.json() == {"action": "remove", "reactions": []}

    async def test_delete_for_everyone(self, client, alice_headers, bob_headers, direct_conversation):
        """Test delete for everyone redacts the message for the other participant."""
        sent = await client.post(
            messages_url(direct_conversation.id), headers=alice_headers, json={"content": "secret"}
        )
        message_id = sent.json()["id"]

        response = await client.delete(
            f"/api/v1/messages/{message_id}",
            headers=alice_headers,
            params={"scope": "everyone"}
        )

        assert response.status_code == 200
        assert response.json() == {"messageId": message_id, "scope": "everyone", "isDeleted": True}

        seen = await client.get(f"/api/v1/messages/{message_id}", headers=bob_headers)
        assert seen.json()["isDeleted"] is True
        assert seen.json()["content"] is None

    async def test_delete_for_self(self, client, alice_headers, bob_headers, direct_conversation):
        """Test delete for self only hides the message from the caller."""
        sent = await client.post(
            messages_url(direct_conversation.id), headers=alice_headers, json={"content": "oops"}
        )
        message_id = sent.json()["id"]

        response = await client.delete(f"/api/v1/messages/{message_id}", headers=alice_headers)

        assert response.status_code == 200
        assert response.json()["scope"] == "self"
        assert (await client.get(f"/api/v1/messages/{message_id}", headers=alice_headers)).status_code == 404
        assert (await client.get(f"/api/v1/messages/{message_id}", headers=bob_headers)).status_code == 200

    async def test_delete_invalid_scope(self, client, alice_headers, direct_conversation):
        """Test an unknown scope is rejected by validation."""
        sent = await client.post(
            messages_url(direct_conversation.id), headers=alice_headers, json={"content": "hi"}
        )

        response = await client.delete(
            f"/api/v1/messages/{sent.json()['id']}",
            headers=alice_headers,
            params={"scope": "all"}
        )

        assert response.status_code == 422
