"""
Unit tests for ConversationService.
Tests direct-conversation resolution, groups, the inbox and unread counters.
"""
import pytest
from sqlalchemy import func, select

from app.core.exceptions import NotFoundError, ValidationFailedError
from app.models.conversation import Conversation, ConversationParticipant
from app.services.conversation_service import ConversationService
from app.services.message_service import MessageService


@pytest.mark.asyncio
class TestResolveDirectConversation:
    """Test cases for direct conversation resolution."""

    async def test_resolve_is_idempotent_and_order_independent(self, db_session, alice, bob):
        """Test resolving the same pair twice returns the same conversation."""
        service = ConversationService(db_session)

        first = await service.resolve_direct_conversation(alice.id, bob.id)
        second = await service.resolve_direct_conversation(bob.id, alice.id)

        assert first.id == second.id
        assert first.is_group is False

        count = await db_session.scalar(select(func.count()).select_from(Conversation))
        assert count == 1

    async def test_lost_creation_race_returns_existing(self, db_session, direct_conversation, alice, bob, mocker):
        """Test a creator that hits the unique key rolls back and returns the winner."""
        alice_id, bob_id, existing_id = alice.id, bob.id, direct_conversation.id
        service = ConversationService(db_session)
        real_find_direct = service.conversation_repo.find_direct
        lookups = []

        async def miss_twice(participant_key):
            # Both pre-checks miss, as when another request creates the pair in between
            lookups.append(participant_key)
            if len(lookups) <= 2:
                return None
            return await real_find_direct(participant_key)

        mocker.patch.object(service.conversation_repo, "find_direct", side_effect=miss_twice)

        conversation = await service.resolve_direct_conversation(bob_id, alice_id)

        assert conversation.id == existing_id
        assert len(lookups) == 3
        count = await db_session.scalar(select(func.count()).select_from(Conversation))
        assert count == 1

    async def test_participants_start_with_zero_unread(self, db_session, direct_conversation, alice, bob):
        """Test both participant rows exist with zero unread."""
        result = await db_session.execute(
            select(ConversationParticipant).where(
                ConversationParticipant.conversation_id == direct_conversation.id
            )
        )
        participants = result.scalars().all()

        assert {p.user_id for p in participants} == {alice.id, bob.id}
        assert all(p.unread_count == 0 for p in participants)

    async def test_resolve_with_self_fails(self, db_session, alice):
        """Test a user cannot start a conversation with themselves."""
        service = ConversationService(db_session)

        with pytest.raises(ValidationFailedError) as exc_info:
            await service.resolve_direct_conversation(alice.id, alice.id)

        assert exc_info.value.status_code == 422

    async def test_resolve_with_unknown_user_fails(self, db_session, alice):
        """Test resolving with a missing user."""
        service = ConversationService(db_session)

        with pytest.raises(NotFoundError):
            await service.resolve_direct_conversation(alice.id, "missing-user")

    async def test_start_conversation_by_username(self, db_session, alice, bob):
        """Test starting a conversation returns the participant view."""
        service = ConversationService(db_session)

        view = await service.start_conversation(alice.id, "bob")

        assert view["is_group"] is False
        assert {p["username"] for p in view["participants"]} == {"alice", "bob"}
        assert view["unread_counts"] == {alice.id: 0, bob.id: 0}
        assert view["last_message"] is None


@pytest.mark.asyncio
class TestUnreadCounters:
    """Test cases for per-participant unread counters."""

    async def test_send_increments_only_recipient(self, db_session, direct_conversation, alice, bob):
        """Test a message bumps the recipient's counter and not the sender's."""
        await MessageService(db_session).send_message(direct_conversation.id, alice.id, content="hi")

        service = ConversationService(db_session)
        alice_view = await service.get_conversation(direct_conversation.id, alice.id)
        bob_view = await service.get_conversation(direct_conversation.id, bob.id)

        assert alice_view["unread_counts"] == {alice.id: 0, bob.id: 1}
        assert alice_view["unread_count"] == 0
        assert bob_view["unread_count"] == 1
        assert bob_view["last_message"]["content"] == "hi"

    async def test_mark_read_resets_counter(self, db_session, direct_conversation, alice, bob):
        """Test reading the conversation resets the reader's counter."""
        message_service = MessageService(db_session)
        await message_service.send_message(direct_conversation.id, alice.id, content="one")
        await message_service.send_message(direct_conversation.id, alice.id, content="two")

        marked = await message_service.mark_conversation_read(direct_conversation.id, bob.id)

        counts = await ConversationService(db_session).get_unread_counts(direct_conversation.id, bob.id)
        assert marked == 2
        assert counts == {alice.id: 0, bob.id: 0}

    async def test_recount_unread_repairs_counter(self, db_session, direct_conversation, alice, bob):
        """Test recounting derives the counter from read receipts."""
        await MessageService(db_session).send_message(direct_conversation.id, alice.id, content="one")
        await MessageService(db_session).send_message(direct_conversation.id, alice.id, content="two")

        service = ConversationService(db_session)
        await service.conversation_repo.set_unread(direct_conversation.id, bob.id, 7)
        await db_session.commit()

        unread = await service.recount_unread(direct_conversation.id, bob.id)

        assert unread == 2
        counts = await service.get_unread_counts(direct_conversation.id, bob.id)
        assert counts[bob.id] == 2

    async def test_unread_counts_require_participant(self, db_session, direct_conversation, carol):
        """Test outsiders cannot read the counters."""
        with pytest.raises(NotFoundError):
            await ConversationService(db_session).get_unread_counts(direct_conversation.id, carol.id)


@pytest.mark.asyncio
class TestGroupConversations:
    """Test cases for group creation."""

    async def test_create_group_success(self, db_session, alice, bob, carol):
        """Test creating a group adds the creator and members."""
        service = ConversationService(db_session)

        view = await service.create_group_conversation(alice.id, [bob.id, carol.id], "  Team  ")

        assert view["is_group"] is True
        assert view["name"] == "Team"
        assert len(view["participants"]) == 3
        assert set(view["unread_counts"]) == {alice.id, bob.id, carol.id}

    async def test_create_group_needs_two_other_members(self, db_session, alice, bob):
        """Test duplicates and the creator do not count toward the minimum."""
        service = ConversationService(db_session)

        with pytest.raises(ValidationFailedError):
            await service.create_group_conversation(alice.id, [bob.id, bob.id, alice.id], "Team")

    async def test_create_group_requires_name(self, db_session, alice, bob, carol):
        """Test a blank group name is rejected."""
        service = ConversationService(db_session)

        with pytest.raises(ValidationFailedError):
            await service.create_group_conversation(alice.id, [bob.id, carol.id], "   ")

    async def test_create_group_with_unknown_member(self, db_session, alice, bob):
        """Test every member must exist."""
        service = ConversationService(db_session)

        with pytest.raises(NotFoundError):
            await service.create_group_conversation(alice.id, [bob.id, "ghost"], "Team")

    async def test_groups_are_not_deduplicated(self, db_session, alice, bob, carol):
        """Test two groups with the same members are distinct."""
        service = ConversationService(db_session)

        first = await service.create_group_conversation(alice.id, [bob.id, carol.id], "Team")
        second = await service.create_group_conversation(alice.id, [bob.id, carol.id], "Team")

        assert first["id"] != second["id"]


@pytest.mark.asyncio
class TestInbox:
    """Test cases for listing and archiving conversations."""

    async def test_non_participant_gets_not_found(self, db_session, direct_conversation, carol):
        """Test a conversation is invisible to outsiders."""
        with pytest.raises(NotFoundError):
            await ConversationService(db_session).get_conversation(direct_conversation.id, carol.id)

    async def test_list_orders_by_last_activity(self, db_session, alice, bob, carol):
        """Test the most recently active conversation comes first."""
        service = ConversationService(db_session)
        with_bob = await service.resolve_direct_conversation(alice.id, bob.id)
        with_carol = await service.resolve_direct_conversation(alice.id, carol.id)

        await MessageService(db_session).send_message(with_bob.id, bob.id, content="ping")

        result = await service.list_user_conversations(alice.id)

        ids = [c["id"] for c in result["conversations"]]
        assert ids == [with_bob.id, with_carol.id]
        assert result["conversations"][0]["unread_count"] == 1
        assert result["pagination"]["total"] == 2

    async def test_last_message_hidden_after_delete_for_self(
        self, db_session, direct_conversation, alice, bob
    ):
        """Test a last message deleted for the viewer is hidden only for them."""
        message_service = MessageService(db_session)
        sent = await message_service.send_message(direct_conversation.id, alice.id, content="oops")
        await message_service.delete_message(sent["id"], alice.id, scope="self")

        service = ConversationService(db_session)
        alice_view = await service.get_conversation(direct_conversation.id, alice.id)
        bob_view = await service.get_conversation(direct_conversation.id, bob.id)

        assert alice_view["last_message"] is None
        assert bob_view["last_message"]["id"] == sent["id"]

    async def test_archive_hides_conversation(self, db_session, direct_conversation, alice):
        """Test archived conversations are excluded unless requested."""
        service = ConversationService(db_session)

        view = await service.set_archived(direct_conversation.id, alice.id, True)
        assert view["is_archived"] is True

        default = await service.list_user_conversations(alice.id)
        with_archived = await service.list_user_conversations(alice.id, include_archived=True)

        assert default["conversations"] == []
        assert [c["id"] for c in with_archived["conversations"]] == [direct_conversation.id]

    async def test_archive_is_per_participant(self, db_session, direct_conversation, alice, bob):
        """Test archiving only hides the conversation from the caller's inbox."""
        service = ConversationService(db_session)
        await service.set_archived(direct_conversation.id, alice.id, True)
        await MessageService(db_session).send_message(direct_conversation.id, alice.id, content="still there?")

        bob_inbox = await service.list_user_conversations(bob.id)
        alice_inbox = await service.list_user_conversations(alice.id)

        assert [c["id"] for c in bob_inbox["conversations"]] == [direct_conversation.id]
        assert bob_inbox["conversations"][0]["is_archived"] is False
        assert alice_inbox["conversations"] == []

    async def test_incoming_message_unarchives(self, db_session, direct_conversation, alice, bob):
        """Test a message from someone else brings the conversation back."""
        service = ConversationService(db_session)
        await service.set_archived(direct_conversation.id, alice.id, True)
        await MessageService(db_session).send_message(direct_conversation.id, bob.id, content="ping")

        inbox = await service.list_user_conversations(alice.id)

        assert [c["id"] for c in inbox["conversations"]] == [direct_conversation.id]
        assert inbox["conversations"][0]["unread_count"] == 1
