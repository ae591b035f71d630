"""
Conversation repository for database operations.
Handles conversations, participants, and per-participant unread counters.
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.conversation import Conversation, ConversationParticipant
from app.repositories.base import BaseRepository


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversation database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(Conversation, db)

    async def find_direct(self, participant_key: str) -> Optional[Conversation]:
        """
        Find the direct conversation for a canonical participant key.

        Args:
            participant_key: Sorted ``"a:b"`` user id pair

        Returns:
            Conversation or None
        """
        result = await self.db.execute(
            select(Conversation)
            .where(
                and_(
                    Conversation.participant_key == participant_key,
                    Conversation.is_group.is_(False)
                )
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_with_participants(
        self,
        participant_ids: List[str],
        created_by: str,
        is_group: bool = False,
        name: Optional[str] = None,
        avatar_url: Optional[str] = None,
        participant_key: Optional[str] = None
    ) -> Conversation:
        """
        Create a conversation and one participant row per user.

        Every participant starts with ``unread_count = 0``. Raises
        ``IntegrityError`` on flush when ``participant_key`` already exists.
        """
        conversation = Conversation(
            is_group=is_group,
            name=name,
            avatar_url=avatar_url,
            created_by=created_by,
            participant_key=participant_key
        )
        self.db.add(conversation)
        await self.db.flush()

        for user_id in dict.fromkeys(participant_ids):
            self.db.add(ConversationParticipant(
                conversation_id=conversation.id,
                user_id=user_id,
                unread_count=0
            ))

        await self.db.flush()
        return conversation

    async def get_participant(
        self,
        conversation_id: str,
        user_id: str
    ) -> Optional[ConversationParticipant]:
        """Get a participant row, or None when the user is not a participant."""
        result = await self.db.execute(
            select(ConversationParticipant)
            .where(
                and_(
                    ConversationParticipant.conversation_id == conversation_id,
                    ConversationParticipant.user_id == user_id
                )
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_participant_ids(self, conversation_id: str) -> List[str]:
        """Get participant user ids in join order."""
        result = await self.db.execute(
            select(ConversationParticipant.user_id)
            .where(ConversationParticipant.conversation_id == conversation_id)
            .order_by(ConversationParticipant.joined_at, ConversationParticipant.user_id)
        )
        return list(result.scalars().all())

    async def get_unread_counts_by_conversation(
        self,
        conversation_ids: List[str]
    ) -> Dict[str, Dict[str, int]]:
        """
        Map conversation id to ``{participant id: unread count}``.

        Participants keep join order, so the keys double as the member list.
        """
        if not conversation_ids:
            return {}

        result = await self.db.execute(
            select(
                ConversationParticipant.conversation_id,
                ConversationParticipant.user_id,
                ConversationParticipant.unread_count
            )
            .where(ConversationParticipant.conversation_id.in_(conversation_ids))
            .order_by(ConversationParticipant.joined_at, ConversationParticipant.user_id)
        )
        counts: Dict[str, Dict[str, int]] = {cid: {} for cid in conversation_ids}
        for conversation_id, user_id, unread_count in result.all():
            counts[conversation_id][user_id] = unread_count
        return counts

    async def get_unread_counts(self, conversation_id: str) -> Dict[str, int]:
        """
        Get the unread counter of every participant.

        Example:
            ```python
            counts = await conversation_repo.get_unread_counts(conv_id)
            # {"alice-id": 0, "bob-id": 1}
            ```
        """
        result = await self.db.execute(
            select(ConversationParticipant.user_id, ConversationParticipant.unread_count)
            .where(ConversationParticipant.conversation_id == conversation_id)
        )
        return {user_id: count for user_id, count in result.all()}

    async def get_user_conversations(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
        include_archived: bool = False
    ) -> List[Tuple[Conversation, ConversationParticipant]]:
        """
        Get a user's conversations, most recently active first.

        Archiving is per participant, so only ``user_id``'s own row decides
        whether a conversation is hidden.

        Returns:
            List of (conversation, ``user_id``'s participant row)
        """
        query = (
            select(Conversation, ConversationParticipant)
            .join(
                ConversationParticipant,
                ConversationParticipant.conversation_id == Conversation.id
            )
            .where(ConversationParticipant.user_id == user_id)
        )

        if not include_archived:
            query = query.where(ConversationParticipant.is_archived.is_(False))

        query = (
            query.order_by(desc(Conversation.last_activity_at), desc(Conversation.id))
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )

        result = await self.db.execute(query)
        return [(conversation, participant) for conversation, participant in result.all()]

    async def count_user_conversations(self, user_id: str, include_archived: bool = False) -> int:
        query = (
            select(func.count())
            .select_from(Conversation)
            .join(
                ConversationParticipant,
                ConversationParticipant.conversation_id == Conversation.id
            )
            .where(ConversationParticipant.user_id == user_id)
        )
        if not include_archived:
            query = query.where(ConversationParticipant.is_archived.is_(False))

        result = await self.db.execute(query)
        return result.scalar() or 0

    async def next_sequence(self, conversation_id: str) -> int:
        """
        Reserve the next message sequence number for a conversation.

        The increment is a single UPDATE, so concurrent senders never get the
        same number (the row stays locked until the transaction ends).
        """
        await self.db.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(last_sequence=Conversation.last_sequence + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(
            select(Conversation.last_sequence).where(Conversation.id == conversation_id)
        )
        return result.scalar_one()

    async def touch_last_message(
        self,
        conversation_id: str,
        message_id: str,
        activity_at: datetime
    ) -> None:
        """Set ``last_message_id`` and bump ``last_activity_at``."""
        await self.db.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(last_message_id=message_id, last_activity_at=activity_at)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()

    async def increment_unread_except(self, conversation_id: str, sender_id: str) -> int:
        """
        Add one to the unread counter of every participant but the sender.

        Single targeted UPDATE; returns the number of counters bumped. A new
        message also brings the conversation back into archived inboxes.
        """
        result = await self.db.execute(
            update(ConversationParticipant)
            .where(
                and_(
                    ConversationParticipant.conversation_id == conversation_id,
                    ConversationParticipant.user_id != sender_id
                )
            )
            .values(unread_count=ConversationParticipant.unread_count + 1, is_archived=False)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
        return result.rowcount or 0

    async def set_unread(self, conversation_id: str, user_id: str, count: int = 0) -> None:
        """Overwrite one participant's unread counter (reset or recount)."""
        await self.db.execute(
            update(ConversationParticipant)
            .where(
                and_(
                    ConversationParticipant.conversation_id == conversation_id,
                    ConversationParticipant.user_id == user_id
                )
            )
            .values(unread_count=count)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()

    async def set_archived(self, conversation_id: str, user_id: str, archived: bool) -> None:
        """Archive or unarchive a conversation for one participant."""
        await self.db.execute(
            update(ConversationParticipant)
            .where(
                and_(
                    ConversationParticipant.conversation_id == conversation_id,
                    ConversationParticipant.user_id == user_id
                )
            )
            .values(is_archived=archived)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
