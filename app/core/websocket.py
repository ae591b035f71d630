"""
WebSocket manager for real-time notifications.
Handles Socket.IO connections, rooms, and event broadcasting.

Every authenticated socket joins its personal ``user:{id}`` room; clients
may additionally join ``community:{id}`` rooms. Services push intents
through the global ``connection_manager``; delivery is fire-and-forget and
a failed emit never fails the operation that triggered it.
"""
import logging
from typing import Any, Dict, Iterable, Optional, Set

import socketio

from app.config import settings

logger = logging.getLogger(__name__)


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def community_room(community_id: str) -> str:
    return f"community:{community_id}"


class ConnectionManager:
    """
    WebSocket connection manager using Socket.IO.

    Tracks which users are connected and exposes one broadcast method per
    realtime event the services emit.
    """

    def __init__(self):
        """Initialize the connection manager."""
        cors_origins = settings.get_allowed_origins_list() or "*"

        self.sio = socketio.AsyncServer(
            async_mode='asgi',
            cors_allowed_origins=cors_origins,
            # Socket.IO logs every packet; our logger covers the relevant events
            logger=False,
            engineio_logger=False,
            ping_timeout=settings.ws_heartbeat_interval,
            ping_interval=max(settings.ws_heartbeat_interval // 2, 1),
        )

        # Track connections: {sid: user_id}
        self.connections: Dict[str, str] = {}

        # Track user sessions: {user_id: set of sids}
        self.user_sessions: Dict[str, Set[str]] = {}

        self._setup_handlers()

    def _setup_handlers(self):
        """Setup Socket.IO event handlers."""

        @self.sio.event
        async def connect(sid, environ, auth):
            """
            Handle client connection.

            Client must provide its bearer token in the handshake:
            ``io(url, {auth: {token}})``.
            """
            token = auth.get('token') if auth else None
            if not token:
                logger.warning(f"Connection rejected - no token: {sid}")
                return False

            from fastapi import HTTPException

            from app.core.database import AsyncSessionLocal
            from app.core.security import get_user_id_from_token
            from app.models.user import User

            try:
                user_id = get_user_id_from_token(token)
            except HTTPException as e:
                logger.warning(f"Connection rejected - {e.detail}: {sid}")
                return False

            async with AsyncSessionLocal() as db:
                user = await db.get(User, user_id)

            if not user:
                logger.warning(f"Connection rejected - user not found: {sid}")
                return False

            self.connections[sid] = user_id
            self.user_sessions.setdefault(user_id, set()).add(sid)
            await self.sio.enter_room(sid, user_room(user_id))

            logger.info(f"Client connected: {sid} (user: {user_id})")
            return True

        @self.sio.event
        async def disconnect(sid):
            """Handle client disconnection."""
            user_id = self.connections.pop(sid, None)
            if not user_id:
                return

            sessions = self.user_sessions.get(user_id)
            if sessions is not None:
                sessions.discard(sid)
                if not sessions:
                    del self.user_sessions[user_id]

            logger.info(f"Client disconnected: {sid} (user: {user_id})")

        @self.sio.on('join_community')
        async def join_community(sid, data):
            """
            Join a community room.

            Expected data: {'communityId': 'uuid'}
            """
            await self._join_community(sid, data)

        @self.sio.on('leave_community')
        async def leave_community(sid, data):
            """Leave a community room."""
            community_id = (data or {}).get('communityId')
            if community_id:
                await self.sio.leave_room(sid, community_room(community_id))

        @self.sio.on('typing')
        async def typing(sid, data):
            """
            Relay a typing indicator to the recipient.

            Expected data: {'recipientId': 'uuid', 'conversationId': 'uuid'}
            """
            await self._relay_typing(sid, data, 'typing')

        @self.sio.on('stop_typing')
        async def stop_typing(sid, data):
            """Relay the end of a typing indicator to the recipient."""
            await self._relay_typing(sid, data, 'stop-typing')

    async def _join_community(self, sid: str, data: Optional[dict]):
        user_id = self.connections.get(sid)
        community_id = (data or {}).get('communityId')
        if not community_id or not user_id:
            await self.sio.emit('error', {'message': 'communityId is required'}, to=sid)
            return

        if not await self._can_read_community(community_id, user_id):
            logger.warning(f"Room join refused: user {user_id} cannot read community {community_id}")
            await self.sio.emit('error', {'message': 'Community not available'}, to=sid)
            return

        await self.sio.enter_room(sid, community_room(community_id))
        await self.sio.emit('joined_community', {'communityId': community_id}, to=sid)

    async def _can_read_community(self, community_id: str, user_id: str) -> bool:
        """Private community rooms are limited to members."""
        from app.core.database import AsyncSessionLocal
        from app.repositories.community_repo import CommunityRepository

        async with AsyncSessionLocal() as db:
            return await CommunityRepository(db).is_visible_to(community_id, user_id)

    async def _relay_typing(self, sid: str, data: Optional[dict], event: str):
        user_id = self.connections.get(sid)
        recipient_id = (data or {}).get('recipientId')
        if not user_id or not recipient_id:
            return

        await self._emit(event, {
            'conversationId': data.get('conversationId'),
            'userId': user_id,
        }, room=user_room(recipient_id))

    async def _emit(self, event: str, payload: Dict[str, Any], room: str):
        """Emit one event; failures are logged and never propagate."""
        try:
            await self.sio.emit(event, payload, room=room)
        except Exception as e:
            logger.error(f"Failed to emit {event} to {room}: {type(e).__name__}: {e}")

    async def _emit_to_users(self, user_ids: Iterable[str], event: str, payload: Dict[str, Any]):
        for user_id in user_ids:
            await self._emit(event, payload, room=user_room(user_id))

    def is_user_online(self, user_id: str) -> bool:
        """Check whether a user has at least one live socket."""
        return bool(self.user_sessions.get(user_id))

    async def notify_user(self, user_id: str, event: str, payload: Dict[str, Any]):
        """
        Push an event to a single user's room.

        Used for the interaction events (``new-like``, ``new-retweet``,
        ``new-reply``, ``new-mention``, ``new-follower``).
        """
        await self._emit(event, payload, room=user_room(user_id))

    async def broadcast_new_message(
        self,
        recipient_ids: Iterable[str],
        conversation_id: str,
        message: Dict[str, Any],
        sender: Optional[Dict[str, Any]] = None
    ):
        """
        Broadcast a new message to the other conversation participants.

        Args:
            recipient_ids: Participants except the sender
            conversation_id: Conversation ID
            message: Serialized message (camelCase)
            sender: Sender projection
        """
        await self._emit_to_users(recipient_ids, 'new-message', {
            'conversationId': conversation_id,
            'message': message,
            'sender': sender,
        })

    async def broadcast_message_reaction(
        self,
        recipient_ids: Iterable[str],
        message_id: str,
        user_id: str,
        emoji: str,
        action: str
    ):
        """Broadcast a reaction toggle (``action`` is ``add`` or ``remove``)."""
        await self._emit_to_users(recipient_ids, 'message-reaction', {
            'messageId': message_id,
            'userId': user_id,
            'emoji': emoji,
            'action': action,
        })

    async def broadcast_message_deleted(
        self,
        recipient_ids: Iterable[str],
        message_id: str,
        conversation_id: str
    ):
        """Broadcast a delete-for-everyone."""
        await self._emit_to_users(recipient_ids, 'message-deleted', {
            'messageId': message_id,
            'conversationId': conversation_id,
        })

    async def broadcast_message_edited(
        self,
        recipient_ids: Iterable[str],
        message_id: str,
        conversation_id: str,
        content: str
    ):
        """Broadcast an edited message body."""
        await self._emit_to_users(recipient_ids, 'message-edited', {
            'messageId': message_id,
            'conversationId': conversation_id,
            'content': content,
        })

    async def broadcast_community_tweet(self, community_id: str, tweet: Dict[str, Any]):
        """Broadcast a new tweet to everyone in the community room."""
        await self._emit('new-community-tweet', {
            'communityId': community_id,
            'tweet': tweet,
        }, room=community_room(community_id))

    async def notify_community_member_joined(
        self,
        moderator_ids: Iterable[str],
        community_id: str,
        member: Dict[str, Any]
    ):
        """Tell each moderator/admin that a member joined."""
        await self._emit_to_users(moderator_ids, 'new-community-member', {
            'communityId': community_id,
            'member': member,
        })

    def get_asgi_app(self, fastapi_app):
        """
        Get the ASGI app for Socket.IO wrapping FastAPI.

        Socket.IO wraps FastAPI, not the other way around; clients connect to
        ``/socket.io/`` and every other path is forwarded to FastAPI.
        """
        return socketio.ASGIApp(self.sio, fastapi_app)


# Global connection manager instance
connection_manager = ConnectionManager()
