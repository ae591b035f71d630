"""
Unit tests for UserService.
Tests profiles, follow toggling and search.
"""
import pytest

from app.core.exceptions import NotFoundError, ValidationFailedError
from app.models.notification import NotificationType
from app.repositories.notification_repo import NotificationRepository
from app.services.user_service import UserService


@pytest.mark.asyncio
class TestFollow:
    """Test cases for follow toggling."""

    async def test_follow_then_unfollow(self, db_session, alice, bob):
        """Test following twice toggles back to the original counters."""
        service = UserService(db_session)

        followed = await service.toggle_follow(alice.id, "bob")
        unfollowed = await service.toggle_follow(alice.id, "bob")

        assert followed == {"is_following": True, "followers_count": 1, "following_count": 1}
        assert unfollowed == {"is_following": False, "followers_count": 0, "following_count": 0}

    async def test_follow_yourself(self, db_session, alice):
        """Test a user cannot follow themselves."""
        with pytest.raises(ValidationFailedError) as exc_info:
            await UserService(db_session).toggle_follow(alice.id, "alice")

        assert exc_info.value.status_code == 422

    async def test_follow_unknown_user(self, db_session, alice):
        """Test following a user that does not exist."""
        with pytest.raises(NotFoundError):
            await UserService(db_session).toggle_follow(alice.id, "ghost")

    async def test_follow_notifies_target(self, db_session, alice, bob, mock_websocket_manager):
        """Test a new follow notifies once, even after unfollow and refollow."""
        service = UserService(db_session)

        await service.toggle_follow(alice.id, "bob")
        await service.toggle_follow(alice.id, "bob")
        await service.toggle_follow(alice.id, "bob")

        notifications = await NotificationRepository(db_session).list_for_recipient(bob.id)
        assert [n.type for n in notifications] == [NotificationType.FOLLOW]
        assert notifications[0].tweet_id is None

        mock_websocket_manager.notify_user.assert_awaited_once()
        assert mock_websocket_manager.notify_user.call_args.args[:2] == (bob.id, "new-follower")

    async def test_followers_and_following_lists(self, db_session, alice, bob, carol):
        """Test listing follow edges in both directions."""
        service = UserService(db_session)
        await service.toggle_follow(alice.id, "carol")
        await service.toggle_follow(bob.id, "carol")

        followers = await service.list_followers("carol")
        following = await service.list_following("alice")

        assert {u["username"] for u in followers["users"]} == {"alice", "bob"}
        assert followers["pagination"]["total"] == 2
        assert [u["username"] for u in following["users"]] == ["carol"]


@pytest.mark.asyncio
class TestProfile:
    """Test cases for profiles and search."""

    async def test_get_profile_with_viewer(self, db_session, alice, bob):
        """Test is_following reflects the viewer's follow edge."""
        service = UserService(db_session)
        await service.toggle_follow(alice.id, "bob")

        profile = await service.get_profile("bob", viewer_id=alice.id)
        own = await service.get_profile("bob", viewer_id=bob.id)

        assert profile["username"] == "bob"
        assert profile["followers_count"] == 1
        assert profile["is_following"] is True
        assert "is_following" not in own

    async def test_update_profile(self, db_session, alice):
        """Test editable fields are saved."""
        service = UserService(db_session)

        profile = await service.update_profile(alice.id, bio="Building things", display_name=None)

        assert profile["bio"] == "Building things"
        assert profile["display_name"] == "Alice"

    async def test_update_profile_without_fields(self, db_session, alice):
        """Test an update with nothing to change."""
        with pytest.raises(ValidationFailedError):
            await UserService(db_session).update_profile(alice.id, bio=None)

    async def test_get_projections_skips_missing(self, db_session, alice, bob):
        """Test batch projections are keyed by id."""
        projections = await UserService(db_session).get_projections([alice.id, "ghost", bob.id, alice.id])

        assert set(projections) == {alice.id, bob.id}
        assert projections[alice.id]["display_name"] == "Alice"

    async def test_search_users(self, db_session, alice, bob):
        """Test searching by partial username."""
        result = await UserService(db_session).search_users("ali")

        assert [u["username"] for u in result["users"]] == ["alice"]
        assert result["pagination"]["hasNext"] is False

    async def test_search_rejects_wildcards_only(self, db_session, alice):
        """Test a query made only of wildcards is empty."""
        with pytest.raises(ValidationFailedError):
            await UserService(db_session).search_users(" %_ ")


@pytest.mark.asyncio
class TestSuggestions:
    """Test cases for follow suggestions."""

    async def test_suggests_unfollowed_users_most_followed_first(self, db_session, alice, bob, carol):
        """Test suggestions skip the caller and accounts they follow."""
        service = UserService(db_session)
        await service.toggle_follow(alice.id, "carol")

        for_bob = await service.get_suggestions(bob.id)
        for_alice = await service.get_suggestions(alice.id)

        assert [u["username"] for u in for_bob["suggestions"]] == ["carol", "alice"]
        assert for_bob["suggestions"][0]["followers_count"] == 1
        assert [u["username"] for u in for_alice["suggestions"]] == ["bob"]

    async def test_limit(self, db_session, alice, bob, carol):
        result = await UserService(db_session).get_suggestions(alice.id, limit=1)

        assert len(result["suggestions"]) == 1
