"""
Integration tests for Community API endpoints.
"""
import pytest


@pytest.mark.asyncio
class TestCommunityAPI:
    """Test community API endpoints."""

    async def create(self, client, headers, name="Pythonistas", **extra):
        return await client.post(
            "/api/v1/communities/",
            headers=headers,
            json={"name": name, "category": "Technology", **extra}
        )

    async def test_create_community(self, client, alice_headers, alice):
        """Test creating a community via API."""
        response = await self.create(client, alice_headers, description="Snakes welcome")

        assert response.status_code == 201
        data = response.json()
        assert data["creatorId"] == alice.id
        assert data["membersCount"] == 1
        assert data["role"] == "admin"

    async def test_create_with_unknown_category(self, client, alice_headers):
        """Test the category must be one of the fixed list."""
        response = await client.post(
            "/api/v1/communities/",
            headers=alice_headers,
            json={"name": "Knitters", "category": "Knitting"}
        )

        assert response.status_code == 422

    async def test_duplicate_name(self, client, alice_headers, bob_headers):
        """Test names are unique."""
        await self.create(client, alice_headers)
        response = await self.create(client, bob_headers)

        assert response.status_code == 409

    async def test_join_and_leave(self, client, alice_headers, bob_headers):
        """Test the membership lifecycle."""
        community_id = (await self.create(client, alice_headers)).json()["id"]

        joined = await client.post(f"/api/v1/communities/{community_id}/join", headers=bob_headers)
        again = await client.post(f"/api/v1/communities/{community_id}/join", headers=bob_headers)
        mine = await client.get("/api/v1/communities/my-communities", headers=bob_headers)
        left = await client.delete(f"/api/v1/communities/{community_id}/leave", headers=bob_headers)
        creator_leaves = await client.delete(f"/api/v1/communities/{community_id}/leave", headers=alice_headers)

        assert joined.json() == {"communityId": community_id, "isMember": True, "membersCount": 2}
        assert again.status_code == 409
        assert [c["id"] for c in mine.json()["communities"]] == [community_id]
        assert left.json()["membersCount"] == 1
        assert creator_leaves.status_code == 403

    async def test_community_posts(self, client, alice_headers, bob_headers):
        """Test members post into the community timeline."""
        community_id = (await self.create(client, alice_headers)).json()["id"]

        forbidden = await client.post(
            "/api/v1/tweets/",
            headers=bob_headers,
            json={"content": "hi all", "communityId": community_id}
        )
        posted = await client.post(
            "/api/v1/tweets/",
            headers=alice_headers,
            json={"content": "welcome", "communityId": community_id}
        )
        posts = await client.get(f"/api/v1/communities/{community_id}/posts", headers=bob_headers)

        assert forbidden.status_code == 403
        assert posted.status_code == 201
        assert [t["content"] for t in posts.json()["tweets"]] == ["welcome"]

    async def test_popular_posts(self, client, alice_headers, bob_headers):
        """Test sorting community posts by likes."""
        community_id = (await self.create(client, alice_headers)).json()["id"]
        liked = await client.post(
            "/api/v1/tweets/",
            headers=alice_headers,
            json={"content": "liked one", "communityId": community_id}
        )
        await client.post(
            "/api/v1/tweets/",
            headers=alice_headers,
            json={"content": "quiet one", "communityId": community_id}
        )
        await client.post(f"/api/v1/tweets/{liked.json()['id']}/like", headers=bob_headers)

        popular = await client.get(
            f"/api/v1/communities/{community_id}/posts",
            headers=bob_headers,
            params={"sort": "popular"}
        )
        invalid = await client.get(
            f"/api/v1/communities/{community_id}/posts",
            params={"sort": "loudest"}
        )

        assert [t["content"] for t in popular.json()["tweets"]] == ["liked one", "quiet one"]
        assert invalid.status_code == 422

    async def test_discover_and_categories(self, client, alice_headers, bob_headers):
        """Test discovery hides joined communities and categories total them up."""
        await self.create(client, alice_headers)
        await self.create(client, bob_headers, name="Chefs", category="Food")

        discover = await client.get("/api/v1/communities/discover", headers=alice_headers)
        categories = await client.get("/api/v1/communities/categories")

        assert discover.status_code == 200
        assert [c["name"] for c in discover.json()["communities"]] == ["Chefs"]
        assert categories.status_code == 200
        assert {c["name"]: (c["communityCount"], c["totalMembers"]) for c in categories.json()["categories"]} == {
            "Food": (1, 1),
            "Technology": (1, 1),
        }
