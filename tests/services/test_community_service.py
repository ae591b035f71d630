"""
Unit tests for CommunityService.
"""
import pytest

from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from app.models.community import CommunityRole
from app.services.community_service import CommunityService
from app.services.tweet_service import TweetService


@pytest.fixture
async def community(db_session, alice):
    return await CommunityService(db_session).create_community(
        alice.id, "Pythonistas", "Technology", description="All things Python"
    )


@pytest.mark.asyncio
class TestCreateCommunity:
    """Test cases for community creation."""

    async def test_creator_becomes_admin(self, db_session, community, alice):
        """Test the creator is the first member, as admin."""
        assert community["creator_id"] == alice.id
        assert community["members_count"] == 1
        assert community["role"] == CommunityRole.ADMIN

    async def test_unknown_category(self, db_session, alice):
        """Test categories are restricted to the fixed list."""
        with pytest.raises(ValidationFailedError):
            await CommunityService(db_session).create_community(alice.id, "Misc", "Knitting")

    async def test_duplicate_name(self, db_session, community, bob):
        """Test community names are unique."""
        with pytest.raises(ConflictError) as exc_info:
            await CommunityService(db_session).create_community(bob.id, "Pythonistas", "Other")

        assert exc_info.value.status_code == 409

    async def test_list_and_filter(self, db_session, community, bob):
        """Test listing by category and name query."""
        service = CommunityService(db_session)
        await service.create_community(bob.id, "Chefs", "Food")

        food = await service.list_communities(category="Food")
        by_name = await service.list_communities(query="python")

        assert [c["name"] for c in food["communities"]] == ["Chefs"]
        assert [c["name"] for c in by_name["communities"]] == ["Pythonistas"]


@pytest.mark.asyncio
class TestMembership:
    """Test cases for joining and leaving."""

    async def test_join_community(self, db_session, community, alice, bob, mock_websocket_manager):
        """Test joining bumps the count and tells the admins."""
        result = await CommunityService(db_session).join_community(community["id"], bob.id)

        assert result == {"community_id": community["id"], "is_member": True, "members_count": 2}
        mock_websocket_manager.notify_community_member_joined.assert_awaited_once()
        moderator_ids, community_id, member = mock_websocket_manager.notify_community_member_joined.call_args.args
        assert moderator_ids == [alice.id]
        assert community_id == community["id"]
        assert member["username"] == "bob"

    async def test_join_twice(self, db_session, community, bob):
        """Test joining a community you already belong to."""
        service = CommunityService(db_session)
        await service.join_community(community["id"], bob.id)

        with pytest.raises(ConflictError):
            await service.join_community(community["id"], bob.id)

    async def test_join_unknown_community(self, db_session, bob):
        """Test joining a community that does not exist."""
        with pytest.raises(NotFoundError):
            await CommunityService(db_session).join_community("missing", bob.id)

    async def test_leave_community(self, db_session, community, bob):
        """Test a member can leave."""
        service = CommunityService(db_session)
        await service.join_community(community["id"], bob.id)

        result = await service.leave_community(community["id"], bob.id)

        assert result["is_member"] is False
        assert result["members_count"] == 1

    async def test_leave_when_not_member(self, db_session, community, bob):
        """Test leaving without being a member."""
        with pytest.raises(ValidationFailedError):
            await CommunityService(db_session).leave_community(community["id"], bob.id)

    async def test_creator_cannot_leave(self, db_session, community, alice):
        """Test the creator is pinned to the community."""
        with pytest.raises(ForbiddenError):
            await CommunityService(db_session).leave_community(community["id"], alice.id)

    async def test_user_communities(self, db_session, community, bob):
        """Test listing the communities a user belongs to."""
        service = CommunityService(db_session)
        await service.join_community(community["id"], bob.id)

        result = await service.list_user_communities(bob.id)

        assert [c["id"] for c in result["communities"]] == [community["id"]]


@pytest.mark.asyncio
class TestCommunityPosts:
    """Test cases for community timelines."""

    async def test_private_posts_need_membership(self, db_session, alice, bob):
        """Test only members can read a private community."""
        service = CommunityService(db_session)
        private = await service.create_community(alice.id, "Insiders", "Other", is_private=True)

        with pytest.raises(ForbiddenError):
            await service.list_community_tweets(private["id"], viewer_id=bob.id)

        result = await service.list_community_tweets(private["id"], viewer_id=alice.id)
        assert result["tweets"] == []

    async def test_popular_sort(self, db_session, community, alice, bob):
        """Test ``sort="popular"`` puts the most liked post first."""
        tweets = TweetService(db_session)
        liked = await tweets.create_tweet(alice.id, "liked one", community_id=community["id"])
        await tweets.create_tweet(alice.id, "quiet one", community_id=community["id"])
        await tweets.toggle_like(liked["id"], bob.id)

        result = await CommunityService(db_session).list_community_tweets(
            community["id"], viewer_id=bob.id, sort="popular"
        )

        assert [t["content"] for t in result["tweets"]] == ["liked one", "quiet one"]


@pytest.mark.asyncio
class TestDiscovery:
    """Test cases for discovery and category totals."""

    async def test_discover_skips_joined_and_private(self, db_session, community, alice, bob):
        """Test discovery lists public communities the user is not in."""
        service = CommunityService(db_session)
        await service.create_community(bob.id, "Chefs", "Food")
        await service.create_community(bob.id, "Insiders", "Other", is_private=True)

        result = await service.discover_communities(alice.id)

        assert [c["name"] for c in result["communities"]] == ["Chefs"]

    async def test_discover_largest_first(self, db_session, alice, bob, carol):
        service = CommunityService(db_session)
        await service.create_community(alice.id, "Small", "Food")
        big = await service.create_community(alice.id, "Big", "Food")
        await service.join_community(big["id"], bob.id)

        result = await service.discover_communities(carol.id, limit=5)

        assert [c["name"] for c in result["communities"]] == ["Big", "Small"]

    async def test_category_stats(self, db_session, community, alice, bob, carol):
        """Test community and member totals per category, busiest first."""
        service = CommunityService(db_session)
        chefs = await service.create_community(bob.id, "Chefs", "Food")
        await service.create_community(carol.id, "Bakers", "Food")
        await service.join_community(chefs["id"], alice.id)

        result = await service.get_categories()

        assert result["categories"] == [
            {"name": "Food", "community_count": 2, "total_members": 3},
            {"name": "Technology", "community_count": 1, "total_members": 1},
        ]
