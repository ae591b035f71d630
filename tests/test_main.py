"""
Tests for the application entry point: health endpoints and the ASGI wrapper.
"""
import pytest

from app.main import app, fastapi_app


@pytest.mark.asyncio
class TestHealth:
    """Health check endpoints."""

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_readiness_without_redis(self, client):
        """Test Redis is reported as not configured and does not fail readiness."""
        response = await client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"] == {"database": True, "redis": "not_configured"}

    async def test_websocket_health(self, client):
        response = await client.get("/health/websocket")

        assert response.status_code == 200
        assert response.json()["websocket_endpoint"] == "/socket.io/"


def test_socketio_wraps_fastapi():
    """Test the exported ASGI app is the Socket.IO wrapper around FastAPI."""
    assert app is not fastapi_app
    assert {getattr(route, "path", None) for route in fastapi_app.routes} >= {
        "/health",
        "/api/v1/conversations/",
        "/api/v1/messages/{message_id}",
        "/api/v1/notifications/",
        "/api/v1/tweets/",
        "/api/v1/users/me",
        "/api/v1/communities/",
    }
