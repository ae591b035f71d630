"""
Integration tests for Notification API endpoints.
"""
import pytest

from app.services.notification_service import NotificationService


@pytest.fixture
async def like_notification(db_session, alice, bob, test_tweet):
    """Bob liked alice's tweet."""
    return await NotificationService(db_session).create_notification(
        alice.id, bob.id, "like", test_tweet.id
    )


@pytest.mark.asyncio
class TestNotificationAPI:
    """Test notification API endpoints."""

    async def test_list_notifications(self, client, alice_headers, like_notification, test_tweet, bob):
        """Test listing notifications via API."""
        response = await client.get("/api/v1/notifications/", headers=alice_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["unreadCount"] == 1
        notification = data["notifications"][0]
        assert notification["type"] == "like"
        assert notification["message"] == "liked your tweet"
        assert notification["tweetId"] == test_tweet.id
        assert notification["sender"]["username"] == "bob"
        assert notification["isRead"] is False
        assert notification["timeAgo"] == "now"

    async def test_counts(self, client, alice_headers, like_notification):
        """Test the counts endpoint."""
        response = await client.get("/api/v1/notifications/counts", headers=alice_headers)

        assert response.status_code == 200
        assert response.json() == {"unreadCount": 1, "totalCount": 1}

    async def test_mark_read(self, client, alice_headers, like_notification):
        """Test marking one notification read."""
        response = await client.put(
            f"/api/v1/notifications/{like_notification.id}/read",
            headers=alice_headers
        )

        assert response.status_code == 200
        assert response.json()["isRead"] is True
        assert response.json()["readAt"] is not None

    async def test_mark_read_of_other_user(self, client, carol_headers, like_notification):
        """Test another user's notification cannot be marked."""
        response = await client.put(
            f"/api/v1/notifications/{like_notification.id}/read",
            headers=carol_headers
        )

        assert response.status_code == 403

    async def test_mark_all_read(self, client, alice_headers, like_notification):
        """Test marking everything read reports the flipped count."""
        first = await client.put("/api/v1/notifications/read-all", headers=alice_headers)
        second = await client.put("/api/v1/notifications/read-all", headers=alice_headers)

        assert first.json() == {"updatedCount": 1}
        assert second.json() == {"updatedCount": 0}

        unread = await client.get(
            "/api/v1/notifications/",
            headers=alice_headers,
            params={"unreadOnly": "true"}
        )
        assert unread.json()["notifications"] == []

    async def test_delete_notification(self, client, alice_headers, like_notification):
        """Test deleting a notification."""
        response = await client.delete(
            f"/api/v1/notifications/{like_notification.id}",
            headers=alice_headers
        )
        missing = await client.delete(
            f"/api/v1/notifications/{like_notification.id}",
            headers=alice_headers
        )

        assert response.status_code == 204
        assert missing.status_code == 404

    async def test_like_via_api_creates_notification(self, client, bob_headers, alice_headers, test_tweet):
        """Test liking through the tweets API lands in the author's inbox."""
        liked = await client.post(f"/api/v1/tweets/{test_tweet.id}/like", headers=bob_headers)
        assert liked.json() == {"isLiked": True, "likesCount": 1}

        response = await client.get("/api/v1/notifications/counts", headers=alice_headers)
        assert response.json()["unreadCount"] == 1
