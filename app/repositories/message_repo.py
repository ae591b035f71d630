"""
Message repository for database operations.
Handles messages, read receipts, reactions, and per-user deletions.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import and_, desc, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.message import Message, MessageRead, MessageReaction
from app.models.user_deleted_message import UserDeletedMessage
from app.repositories.base import BaseRepository


def _visible_to(user_id: str):
    """Criteria for messages a user may see: not tombstoned, not deleted for them."""
    deleted_for_user = (
        select(UserDeletedMessage.message_id)
        .where(UserDeletedMessage.user_id == user_id)
    )
    return and_(
        Message.is_deleted.is_(False),
        Message.id.not_in(deleted_for_user)
    )


def _unread_by(conversation_id: str, user_id: str):
    """Criteria for messages from others that ``user_id`` has not read."""
    read_by_user = (
        select(MessageRead.message_id)
        .where(MessageRead.user_id == user_id)
    )
    return and_(
        Message.conversation_id == conversation_id,
        Message.sender_id != user_id,
        Message.is_deleted.is_(False),
        Message.id.not_in(read_by_user)
    )


class MessageRepository(BaseRepository[Message]):
    """Repository for message database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(Message, db)

    async def list_visible(
        self,
        conversation_id: str,
        user_id: str,
        limit: int = 50,
        offset: int = 0
    ) -> List[Message]:
        """
        Get one page of a user's view of a conversation, newest first.

        Ties on ``created_at`` are broken by ``sequence_number``.
        """
        result = await self.db.execute(
            select(Message)
            .where(
                and_(
                    Message.conversation_id == conversation_id,
                    _visible_to(user_id)
                )
            )
            .order_by(desc(Message.created_at), desc(Message.sequence_number))
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def count_visible(self, conversation_id: str, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Message)
            .where(
                and_(
                    Message.conversation_id == conversation_id,
                    _visible_to(user_id)
                )
            )
        )
        return result.scalar() or 0

    async def get_unread_ids(self, conversation_id: str, user_id: str) -> List[str]:
        """Ids of messages from other senders not yet read by ``user_id``."""
        result = await self.db.execute(
            select(Message.id).where(_unread_by(conversation_id, user_id))
        )
        return list(result.scalars().all())

    async def count_unread(self, conversation_id: str, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Message)
            .where(_unread_by(conversation_id, user_id))
        )
        return result.scalar() or 0


class MessageReadRepository(BaseRepository[MessageRead]):
    """Repository for read receipts."""

    def __init__(self, db: AsyncSession):
        super().__init__(MessageRead, db)

    async def add_reads(self, message_ids: List[str], user_id: str, read_at: datetime) -> int:
        """
        Insert one receipt per message, skipping receipts that already exist.

        Concurrent read-marking of the same conversation therefore never
        fails on the primary key.
        """
        if not message_ids:
            return 0

        insert = pg_insert if self.db.get_bind().dialect.name == "postgresql" else sqlite_insert
        statement = (
            insert(MessageRead)
            .values([
                {"message_id": message_id, "user_id": user_id, "read_at": read_at}
                for message_id in message_ids
            ])
            .on_conflict_do_nothing(index_elements=["message_id", "user_id"])
        )
        result = await self.db.execute(statement)
        await self.db.flush()
        return result.rowcount if result.rowcount >= 0 else len(message_ids)

    async def get_readers(self, message_ids: Iterable[str]) -> Dict[str, List[str]]:
        """Map message id to the ids of users who read it."""
        message_ids = list(message_ids)
        if not message_ids:
            return {}

        result = await self.db.execute(
            select(MessageRead.message_id, MessageRead.user_id)
            .where(MessageRead.message_id.in_(message_ids))
            .order_by(MessageRead.read_at)
        )
        readers: Dict[str, List[str]] = {}
        for message_id, user_id in result.all():
            readers.setdefault(message_id, []).append(user_id)
        return readers


class MessageReactionRepository(BaseRepository[MessageReaction]):
    """Repository for message reactions."""

    def __init__(self, db: AsyncSession):
        super().__init__(MessageReaction, db)

    async def get_reaction(
        self,
        message_id: str,
        user_id: str,
        emoji: str
    ) -> Optional[MessageReaction]:
        result = await self.db.execute(
            select(MessageReaction).where(
                and_(
                    MessageReaction.message_id == message_id,
                    MessageReaction.user_id == user_id,
                    MessageReaction.emoji == emoji
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_for_messages(self, message_ids: Iterable[str]) -> Dict[str, List[MessageReaction]]:
        """Map message id to its reactions in creation order."""
        message_ids = list(message_ids)
        if not message_ids:
            return {}

        result = await self.db.execute(
            select(MessageReaction)
            .where(MessageReaction.message_id.in_(message_ids))
            .order_by(MessageReaction.created_at, MessageReaction.id)
        )
        reactions: Dict[str, List[MessageReaction]] = {}
        for reaction in result.scalars().all():
            reactions.setdefault(reaction.message_id, []).append(reaction)
        return reactions


class UserDeletedMessageRepository(BaseRepository[UserDeletedMessage]):
    """Repository for "delete for me" rows."""

    def __init__(self, db: AsyncSession):
        super().__init__(UserDeletedMessage, db)

    async def is_deleted_for(self, message_id: str, user_id: str) -> bool:
        result = await self.db.execute(
            select(func.count())
            .select_from(UserDeletedMessage)
            .where(
                and_(
                    UserDeletedMessage.message_id == message_id,
                    UserDeletedMessage.user_id == user_id
                )
            )
        )
        return (result.scalar() or 0) > 0

    async def get_deleted_by(self, message_id: str) -> Set[str]:
        """Ids of users who deleted ``message_id`` for themselves."""
        result = await self.db.execute(
            select(UserDeletedMessage.user_id)
            .where(UserDeletedMessage.message_id == message_id)
        )
        return set(result.scalars().all())

    async def deleted_ids_for(self, user_id: str, message_ids: Iterable[str]) -> Set[str]:
        """Subset of ``message_ids`` that ``user_id`` deleted for themselves."""
        message_ids = list(message_ids)
        if not message_ids:
            return set()

        result = await self.db.execute(
            select(UserDeletedMessage.message_id).where(
                and_(
                    UserDeletedMessage.user_id == user_id,
                    UserDeletedMessage.message_id.in_(message_ids)
                )
            )
        )
        return set(result.scalars().all())
