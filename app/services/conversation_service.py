"""
Conversation service for business logic.
Handles direct-conversation resolution, group creation, and the inbox.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import cache
from app.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from app.models.conversation import Conversation, ConversationParticipant
from app.repositories.conversation_repo import ConversationRepository
from app.repositories.message_repo import MessageRepository, UserDeletedMessageRepository
from app.repositories.user_repo import UserRepository
from app.services.message_service import MessageService
from app.services.user_service import UserService
from app.utils.helpers import build_pagination, generate_cache_key
from app.utils.validators import canonical_pair_key, validate_conversation_name

logger = logging.getLogger(__name__)

MIN_GROUP_MEMBERS = 2


class ConversationService:
    """Service for conversation-related business logic."""

    def __init__(self, db: AsyncSession):
        """
        Initialize conversation service.

        Args:
            db: Database session
        """
        self.db = db
        self.conversation_repo = ConversationRepository(db)
        self.message_repo = MessageRepository(db)
        self.deleted_repo = UserDeletedMessageRepository(db)
        self.user_repo = UserRepository(db)
        self.user_service = UserService(db)
        self.message_service = MessageService(db)

    async def _serialize(
        self,
        rows: List[Tuple[Conversation, ConversationParticipant]],
        viewer_id: str
    ) -> List[Dict[str, Any]]:
        """
        Build conversation views for one viewer.

        Participants, unread counters and last messages are loaded in batch.
        A last message the viewer deleted for themselves is hidden.
        """
        conversation_ids = [conversation.id for conversation, _ in rows]
        counts = await self.conversation_repo.get_unread_counts_by_conversation(conversation_ids)

        user_ids = [uid for per_conversation in counts.values() for uid in per_conversation]
        projections = await self.user_service.get_projections(user_ids)

        last_message_ids = [c.last_message_id for c, _ in rows if c.last_message_id]
        hidden = await self.deleted_repo.deleted_ids_for(viewer_id, last_message_ids)
        last_messages = await self.message_repo.get_many(
            [mid for mid in last_message_ids if mid not in hidden]
        )
        last_views = {view["id"]: view for view in await self.message_service.build_views(last_messages)}

        views = []
        for conversation, participant in rows:
            unread_counts = counts.get(conversation.id, {})
            views.append({
                "id": conversation.id,
                "is_group": conversation.is_group,
                "name": conversation.name,
                "avatar_url": conversation.avatar_url,
                "participants": [projections[uid] for uid in unread_counts if uid in projections],
                "last_message": last_views.get(conversation.last_message_id),
                "last_activity_at": conversation.last_activity_at,
                "unread_count": participant.unread_count,
                "unread_counts": dict(unread_counts),
                "is_archived": participant.is_archived,
                "created_at": conversation.created_at,
            })
        return views

    async def resolve_direct_conversation(self, user_a: str, user_b: str) -> Conversation:
        """
        Get or create the direct conversation between two users.

        The pair is keyed by its canonical (sorted) form, so argument order
        does not matter and repeated calls return the same conversation.
        The unique ``participant_key`` index is what guarantees a single
        conversation per pair: a concurrent creator that loses the race
        rolls back and returns the winner's row. A Redis lock narrows the
        race when Redis is configured.

        Raises:
            ValidationFailedError: Both ids are the same user
            NotFoundError: Either user does not exist
            ConflictError: Creation failed and no conversation could be re-read
        """
        if user_a == user_b:
            raise ValidationFailedError("Cannot start conversation with yourself")

        users = await self.user_repo.get_many([user_a, user_b])
        if len(users) != 2:
            raise NotFoundError("User not found")

        participant_key = canonical_pair_key(user_a, user_b)

        conversation = await self.conversation_repo.find_direct(participant_key)
        if conversation:
            return conversation

        async with cache.lock(generate_cache_key("dm", participant_key)):
            conversation = await self.conversation_repo.find_direct(participant_key)
            if conversation:
                return conversation

            try:
                conversation = await self.conversation_repo.create_with_participants(
                    [user_a, user_b],
                    created_by=user_a,
                    participant_key=participant_key
                )
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                conversation = await self.conversation_repo.find_direct(participant_key)
                if conversation is None:
                    raise ConflictError("Conversation could not be created")
                logger.info(f"Direct conversation {participant_key} created concurrently, reusing it")
                return conversation

        logger.info(f"Created direct conversation {conversation.id} for {participant_key}")
        return conversation

    async def start_conversation(self, user_id: str, username: str) -> Dict[str, Any]:
        """Resolve the direct conversation with ``username`` and return its view."""
        target = await self.user_repo.get_by_username(username)
        if target is None:
            raise NotFoundError("User not found")

        conversation = await self.resolve_direct_conversation(user_id, target.id)
        return await self.get_conversation(conversation.id, user_id)

    async def create_group_conversation(
        self,
        creator_id: str,
        member_ids: List[str],
        name: Optional[str]
    ) -> Dict[str, Any]:
        """
        Create a group conversation. Groups are never deduplicated.

        Raises:
            ValidationFailedError: Missing/invalid name or fewer than two other members
            NotFoundError: A member does not exist
        """
        if not validate_conversation_name(name):
            raise ValidationFailedError("Group conversations require a valid name")

        members = [mid for mid in dict.fromkeys(member_ids) if mid != creator_id]
        if len(members) < MIN_GROUP_MEMBERS:
            raise ValidationFailedError(
                f"Group conversations need at least {MIN_GROUP_MEMBERS} other members"
            )

        users = await self.user_repo.get_many(members)
        if len(users) != len(members):
            raise NotFoundError("One or more users not found")

        conversation = await self.conversation_repo.create_with_participants(
            [creator_id, *members],
            created_by=creator_id,
            is_group=True,
            name=name.strip()
        )
        await self.db.commit()

        logger.info(f"Created group conversation {conversation.id} with {len(members) + 1} participants")
        return await self.get_conversation(conversation.id, creator_id)

    async def get_conversation(self, conversation_id: str, user_id: str) -> Dict[str, Any]:
        """Get a conversation as seen by a participant (NotFound for anyone else)."""
        participant = await self.conversation_repo.get_participant(conversation_id, user_id)
        if participant is None:
            raise NotFoundError("Conversation not found")

        conversation = await self.conversation_repo.get(conversation_id)
        return (await self._serialize([(conversation, participant)], user_id))[0]

    async def list_user_conversations(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        include_archived: bool = False
    ) -> Dict[str, Any]:
        """Get a user's conversations, most recently active first."""
        rows = await self.conversation_repo.get_user_conversations(
            user_id,
            limit=limit,
            offset=(page - 1) * limit,
            include_archived=include_archived
        )
        total = await self.conversation_repo.count_user_conversations(
            user_id, include_archived=include_archived
        )

        return {
            "conversations": await self._serialize(rows, user_id),
            "pagination": build_pagination(page, limit, total),
        }

    async def set_archived(self, conversation_id: str, user_id: str, archived: bool) -> Dict[str, Any]:
        """Archive a conversation in the caller's inbox only; others keep seeing it."""
        participant = await self.conversation_repo.get_participant(conversation_id, user_id)
        if participant is None:
            raise NotFoundError("Conversation not found")

        await self.conversation_repo.set_archived(conversation_id, user_id, archived)
        await self.db.commit()
        return await self.get_conversation(conversation_id, user_id)

    async def get_unread_counts(self, conversation_id: str, user_id: str) -> Dict[str, int]:
        participant = await self.conversation_repo.get_participant(conversation_id, user_id)
        if participant is None:
            raise NotFoundError("Conversation not found")
        return await self.conversation_repo.get_unread_counts(conversation_id)

    async def recount_unread(self, conversation_id: str, user_id: str) -> int:
        """
        Recompute a participant's unread counter from read receipts.

        Repairs counters left behind by partially applied sends.
        """
        participant = await self.conversation_repo.get_participant(conversation_id, user_id)
        if participant is None:
            raise NotFoundError("Conversation not found")

        unread = await self.message_repo.count_unread(conversation_id, user_id)
        await self.conversation_repo.set_unread(conversation_id, user_id, unread)
        await self.db.commit()

        logger.debug(f"Recounted unread for {user_id} in {conversation_id}: {unread}")
        return unread
