"""
Message service for business logic.
Handles sending, read receipts, reactions, edits, and soft deletes.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import (
    ForbiddenError,
    InvalidMessageError,
    NotFoundError,
    ValidationFailedError,
)
from app.core.websocket import connection_manager
from app.models.message import Message, MessageReaction, MessageType
from app.repositories.conversation_repo import ConversationRepository
from app.repositories.message_repo import (
    MessageReactionRepository,
    MessageReadRepository,
    MessageRepository,
    UserDeletedMessageRepository,
)
from app.repositories.tweet_repo import TweetRepository
from app.schemas.common import to_payload
from app.schemas.message import MessageResponse
from app.schemas.user import UserPublic
from app.services.user_service import UserService
from app.utils.datetime_utils import utc_now
from app.utils.helpers import build_pagination
from app.utils.validators import has_message_payload, validate_emoji

logger = logging.getLogger(__name__)

DELETE_SCOPES = ("self", "everyone")


def serialize_reaction(reaction: MessageReaction) -> Dict[str, Any]:
    return {
        "user_id": reaction.user_id,
        "emoji": reaction.emoji,
        "created_at": reaction.created_at,
    }


def serialize_message(
    message: Message,
    sender: Optional[Dict[str, Any]] = None,
    read_by: Optional[List[str]] = None,
    reactions: Optional[List[MessageReaction]] = None
) -> Dict[str, Any]:
    """
    Build the message view returned by the API.

    Tombstoned messages keep their metadata but never expose content or media.
    """
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "sender_id": message.sender_id,
        "sender": sender,
        "content": None if message.is_deleted else message.content,
        "message_type": message.message_type,
        "media": [] if message.is_deleted else list(message.media_json or []),
        "shared_tweet_id": message.shared_tweet_id,
        "reply_to_id": message.reply_to_id,
        "sequence_number": message.sequence_number,
        "is_edited": message.is_edited,
        "edited_at": message.edited_at,
        "is_deleted": message.is_deleted,
        "deleted_at": message.deleted_at,
        "created_at": message.created_at,
        "read_by": read_by or [],
        "reactions": [serialize_reaction(r) for r in reactions or []],
    }


class MessageService:
    """Service for message-related business logic."""

    def __init__(self, db: AsyncSession):
        """
        Initialize message service.

        Args:
            db: Database session
        """
        self.db = db
        self.message_repo = MessageRepository(db)
        self.read_repo = MessageReadRepository(db)
        self.reaction_repo = MessageReactionRepository(db)
        self.deleted_repo = UserDeletedMessageRepository(db)
        self.conversation_repo = ConversationRepository(db)
        self.tweet_repo = TweetRepository(db)
        self.user_service = UserService(db)
        self.ws_manager = connection_manager

    async def _require_participant(self, conversation_id: str, user_id: str) -> None:
        """Raise NotFoundError unless ``user_id`` participates in the conversation."""
        participant = await self.conversation_repo.get_participant(conversation_id, user_id)
        if participant is None:
            raise NotFoundError("Conversation not found")

    async def _get_accessible_message(self, message_id: str, user_id: str) -> Message:
        message = await self.message_repo.get(message_id)
        if message is None:
            raise NotFoundError("Message not found")

        participant = await self.conversation_repo.get_participant(message.conversation_id, user_id)
        if participant is None:
            raise NotFoundError("Message not found")

        return message

    async def _other_participants(self, conversation_id: str, user_id: str) -> List[str]:
        participant_ids = await self.conversation_repo.get_participant_ids(conversation_id)
        return [pid for pid in participant_ids if pid != user_id]

    async def build_views(self, messages: Iterable[Message]) -> List[Dict[str, Any]]:
        """Serialize messages with senders, read receipts and reactions in batch."""
        messages = list(messages)
        message_ids = [m.id for m in messages]

        readers = await self.read_repo.get_readers(message_ids)
        reactions = await self.reaction_repo.get_for_messages(message_ids)
        senders = await self.user_service.get_projections(m.sender_id for m in messages)

        return [
            serialize_message(
                message,
                sender=senders.get(message.sender_id),
                read_by=readers.get(message.id, []),
                reactions=reactions.get(message.id, [])
            )
            for message in messages
        ]

    async def send_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: Optional[str] = None,
        media: Optional[List[Dict[str, Any]]] = None,
        message_type: MessageType = MessageType.TEXT,
        shared_tweet_id: Optional[str] = None,
        reply_to_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Send a message into a conversation.

        The message row is committed first, then the conversation summary and
        the recipients' unread counters are updated, so an interrupted send
        never loses the message itself.

        Args:
            conversation_id: Target conversation
            sender_id: Sending user (must be a participant)
            content: Message text
            media: Attachments (``{"type", "url", "metadata"}`` dicts)
            message_type: Declared type; inferred from media/shared tweet when TEXT
            shared_tweet_id: Tweet being shared
            reply_to_id: Message being replied to (same conversation)

        Returns:
            Message view including the sender projection

        Raises:
            NotFoundError: Sender is not a participant, or a referenced tweet/message is missing
            InvalidMessageError: No content, media or shared tweet
            ValidationFailedError: Content longer than the configured maximum
        """
        await self._require_participant(conversation_id, sender_id)

        media = list(media or [])
        if not has_message_payload(content, media, shared_tweet_id):
            raise InvalidMessageError()

        if content and len(content) > settings.message_max_length:
            raise ValidationFailedError(
                f"Message content cannot exceed {settings.message_max_length} characters"
            )

        if shared_tweet_id and await self.tweet_repo.get_active(shared_tweet_id) is None:
            raise NotFoundError("Shared tweet not found")

        if reply_to_id:
            parent = await self.message_repo.get(reply_to_id)
            if parent is None or parent.conversation_id != conversation_id:
                raise NotFoundError("Parent message not found")

        message_type = MessageType(message_type)
        if message_type == MessageType.TEXT:
            if shared_tweet_id:
                message_type = MessageType.TWEET_SHARE
            elif media:
                message_type = MessageType(media[0]["type"])

        now = utc_now()
        sequence_number = await self.conversation_repo.next_sequence(conversation_id)
        message = await self.message_repo.create(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            message_type=message_type,
            media_json=media,
            shared_tweet_id=shared_tweet_id,
            reply_to_id=reply_to_id,
            sequence_number=sequence_number,
            created_at=now
        )
        await self.db.commit()

        await self.conversation_repo.touch_last_message(conversation_id, message.id, now)
        await self.conversation_repo.increment_unread_except(conversation_id, sender_id)
        await self.db.commit()

        logger.info(f"Message {message.id} sent to conversation {conversation_id} (seq {sequence_number})")

        view = (await self.build_views([message]))[0]
        recipients = await self._other_participants(conversation_id, sender_id)
        await self.ws_manager.broadcast_new_message(
            recipients,
            conversation_id,
            to_payload(MessageResponse, view),
            sender=to_payload(UserPublic, view["sender"]) if view["sender"] else None
        )

        return view

    async def mark_conversation_read(self, conversation_id: str, user_id: str) -> int:
        """
        Mark every unread message from other senders as read by ``user_id``.

        Inserts read receipts and resets the participant's unread counter.
        Safe to call repeatedly.

        Returns:
            Number of messages newly marked read
        """
        await self._require_participant(conversation_id, user_id)

        unread_ids = await self.message_repo.get_unread_ids(conversation_id, user_id)
        marked = await self.read_repo.add_reads(unread_ids, user_id, utc_now())
        await self.conversation_repo.set_unread(conversation_id, user_id, 0)
        await self.db.commit()

        if marked:
            logger.debug(f"User {user_id} read {marked} messages in {conversation_id}")
        return marked

    async def list_messages(
        self,
        conversation_id: str,
        user_id: str,
        page: int = 1,
        limit: int = 50
    ) -> Dict[str, Any]:
        """
        Get one page of a conversation in chronological order.

        Pages are counted from the newest message. Viewing marks the
        conversation read.
        """
        await self._require_participant(conversation_id, user_id)

        messages = await self.message_repo.list_visible(
            conversation_id,
            user_id,
            limit=limit,
            offset=(page - 1) * limit
        )
        total = await self.message_repo.count_visible(conversation_id, user_id)
        messages.reverse()

        await self.mark_conversation_read(conversation_id, user_id)

        return {
            "messages": await self.build_views(messages),
            "pagination": build_pagination(page, limit, total),
        }

    async def get_message(self, message_id: str, user_id: str) -> Dict[str, Any]:
        """Get one message; messages the viewer deleted for themselves are not found."""
        message = await self._get_accessible_message(message_id, user_id)
        if await self.deleted_repo.is_deleted_for(message_id, user_id):
            raise NotFoundError("Message not found")
        return (await self.build_views([message]))[0]

    async def toggle_reaction(self, message_id: str, user_id: str, emoji: str) -> Dict[str, Any]:
        """
        Add the reaction, or remove it if the user already reacted with that emoji.

        Returns:
            ``{"action": "add" | "remove", "reactions": [...]}``
        """
        if not validate_emoji(emoji):
            raise ValidationFailedError("Invalid emoji")

        message = await self._get_accessible_message(message_id, user_id)
        if message.is_deleted:
            raise ValidationFailedError("Cannot react to a deleted message")
        conversation_id = message.conversation_id

        existing = await self.reaction_repo.get_reaction(message_id, user_id, emoji)
        if existing:
            await self.reaction_repo.delete(existing.id)
            action = "remove"
        else:
            action = "add"
            try:
                await self.reaction_repo.create(
                    message_id=message_id,
                    user_id=user_id,
                    emoji=emoji
                )
            except IntegrityError:
                # Same reaction inserted concurrently; it exists either way
                await self.db.rollback()

        await self.db.commit()

        reactions = (await self.reaction_repo.get_for_messages([message_id])).get(message_id, [])

        recipients = await self._other_participants(conversation_id, user_id)
        await self.ws_manager.broadcast_message_reaction(recipients, message_id, user_id, emoji, action)

        return {
            "action": action,
            "reactions": [serialize_reaction(r) for r in reactions],
        }

    async def edit_message(self, message_id: str, user_id: str, content: str) -> Dict[str, Any]:
        """
        Edit a message's text. Only the sender may edit, and only while not deleted.

        ``original_content`` keeps the text from before the first edit.
        """
        message = await self._get_accessible_message(message_id, user_id)

        if message.sender_id != user_id:
            raise ForbiddenError("You can only edit your own messages")
        if message.is_deleted:
            raise ValidationFailedError("Cannot edit a deleted message")
        if not content or not content.strip():
            raise InvalidMessageError("Message content cannot be empty")
        if len(content) > settings.message_max_length:
            raise ValidationFailedError(
                f"Message content cannot exceed {settings.message_max_length} characters"
            )

        message = await self.message_repo.update(
            message_id,
            content=content,
            is_edited=True,
            edited_at=utc_now(),
            original_content=message.original_content or message.content
        )
        await self.db.commit()

        recipients = await self._other_participants(message.conversation_id, user_id)
        await self.ws_manager.broadcast_message_edited(
            recipients, message.id, message.conversation_id, content
        )

        return (await self.build_views([message]))[0]

    async def _tombstone(self, message_id: str) -> Message:
        return await self.message_repo.update(
            message_id,
            is_deleted=True,
            deleted_at=utc_now(),
            content=None,
            media_json=[]
        )

    async def delete_message(
        self,
        message_id: str,
        user_id: str,
        scope: str = "self"
    ) -> Dict[str, Any]:
        """
        Delete a message for the caller or for everyone.

        ``self`` hides the message from the caller only; once every
        participant has done so the message becomes a tombstone.
        ``everyone`` is reserved to the sender: content and media are
        redacted for all viewers and participants are notified.

        Raises:
            NotFoundError: Message missing or caller not a participant
            ForbiddenError: ``everyone`` requested by someone other than the sender
            ValidationFailedError: Unknown scope
        """
        if scope not in DELETE_SCOPES:
            raise ValidationFailedError(f"Scope must be one of: {', '.join(DELETE_SCOPES)}")

        message = await self._get_accessible_message(message_id, user_id)
        conversation_id = message.conversation_id

        if scope == "everyone":
            if message.sender_id != user_id:
                raise ForbiddenError("Only the sender can delete a message for everyone")

            if not message.is_deleted:
                message = await self._tombstone(message_id)
                await self.db.commit()

                recipients = await self._other_participants(conversation_id, user_id)
                await self.ws_manager.broadcast_message_deleted(recipients, message_id, conversation_id)
                logger.info(f"Message {message_id} deleted for everyone by {user_id}")
        else:
            if not await self.deleted_repo.is_deleted_for(message_id, user_id):
                await self.deleted_repo.create(user_id=user_id, message_id=message_id)

            deleted_by = await self.deleted_repo.get_deleted_by(message_id)
            participant_ids = await self.conversation_repo.get_participant_ids(conversation_id)
            if not message.is_deleted and set(participant_ids) <= deleted_by:
                message = await self._tombstone(message_id)
                logger.info(f"Message {message_id} deleted by every participant")

            await self.db.commit()

        return {
            "message_id": message_id,
            "scope": scope,
            "is_deleted": message.is_deleted,
        }
