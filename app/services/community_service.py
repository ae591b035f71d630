"""
Community service for business logic.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from app.core.websocket import connection_manager
from app.models.community import COMMUNITY_CATEGORIES, Community, CommunityRole
from app.repositories.community_repo import CommunityRepository
from app.schemas.common import to_payload
from app.schemas.user import UserPublic
from app.services.tweet_service import TweetService
from app.services.user_service import UserService
from app.utils.helpers import build_pagination

logger = logging.getLogger(__name__)


def serialize_community(community: Community, role: Optional[CommunityRole] = None) -> Dict[str, Any]:
    return {
        "id": community.id,
        "name": community.name,
        "description": community.description,
        "category": community.category,
        "creator_id": community.creator_id,
        "members_count": community.members_count,
        "is_private": community.is_private,
        "created_at": community.created_at,
        "role": role,
    }


class CommunityService:
    """Service for community-related business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.community_repo = CommunityRepository(db)
        self.user_service = UserService(db)
        self.ws_manager = connection_manager

    async def _get_or_404(self, community_id: str) -> Community:
        community = await self.community_repo.get(community_id)
        if community is None:
            raise NotFoundError("Community not found")
        return community

    async def create_community(
        self,
        creator_id: str,
        name: str,
        category: str,
        description: str = "",
        is_private: bool = False
    ) -> Dict[str, Any]:
        """
        Create a community; the creator becomes its admin.

        Raises:
            ValidationFailedError: Unknown category
            ConflictError: Name already taken
        """
        if category not in COMMUNITY_CATEGORIES:
            raise ValidationFailedError(f"Category must be one of: {', '.join(COMMUNITY_CATEGORIES)}")

        if await self.community_repo.find_one(name=name):
            raise ConflictError("Community name already exists")

        try:
            community = await self.community_repo.create(
                name=name,
                description=description or "",
                category=category,
                creator_id=creator_id,
                is_private=is_private
            )
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Community name already exists")

        community_id = community.id
        await self.community_repo.add_member(community_id, creator_id, CommunityRole.ADMIN)
        await self.db.commit()

        logger.info(f"Community {community_id} created by {creator_id}")
        return await self.get_community(community_id, creator_id)

    async def get_community(self, community_id: str, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        community = await self._get_or_404(community_id)
        member = await self.community_repo.get_member(community_id, viewer_id) if viewer_id else None
        return serialize_community(community, member.role if member else None)

    async def list_communities(
        self,
        category: Optional[str] = None,
        query: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> Dict[str, Any]:
        communities = await self.community_repo.search(
            category=category,
            query=query,
            limit=limit + 1,
            offset=(page - 1) * limit
        )
        has_next = len(communities) > limit
        return {
            "communities": [serialize_community(c) for c in communities[:limit]],
            "pagination": {"currentPage": page, "hasNext": has_next, "hasPrev": page > 1},
        }

    async def list_user_communities(self, user_id: str) -> Dict[str, Any]:
        communities = await self.community_repo.list_for_user(user_id)
        return {
            "communities": [serialize_community(c) for c in communities],
            "pagination": build_pagination(1, max(len(communities), 1), len(communities)),
        }

    async def discover_communities(self, user_id: str, limit: int = 10) -> Dict[str, Any]:
        """Public communities the user has not joined, largest first."""
        communities = await self.community_repo.discover_for(user_id, limit=limit)
        return {"communities": [serialize_community(c) for c in communities]}

    async def get_categories(self) -> Dict[str, Any]:
        return {"categories": await self.community_repo.category_stats()}

    async def join_community(self, community_id: str, user_id: str) -> Dict[str, Any]:
        """
        Join a community and tell its moderators and admins.

        Raises:
            NotFoundError: Community missing
            ConflictError: Already a member
        """
        await self._get_or_404(community_id)

        if await self.community_repo.get_member(community_id, user_id):
            raise ConflictError("Already a member of this community")

        try:
            await self.community_repo.add_member(community_id, user_id)
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Already a member of this community")
        await self.db.commit()

        moderator_ids = [
            mid for mid in await self.community_repo.get_moderator_ids(community_id)
            if mid != user_id
        ]
        member = await self.user_service.get_projection(user_id)
        await self.ws_manager.notify_community_member_joined(
            moderator_ids,
            community_id,
            to_payload(UserPublic, member) if member else None
        )

        community = await self.community_repo.get(community_id)
        logger.info(f"User {user_id} joined community {community_id}")
        return {"community_id": community_id, "is_member": True, "members_count": community.members_count}

    async def leave_community(self, community_id: str, user_id: str) -> Dict[str, Any]:
        """
        Leave a community. The creator cannot leave.

        Raises:
            NotFoundError: Community missing
            ValidationFailedError: Not a member
            ForbiddenError: Caller created the community
        """
        community = await self._get_or_404(community_id)

        if await self.community_repo.get_member(community_id, user_id) is None:
            raise ValidationFailedError("Not a member of this community")
        if community.creator_id == user_id:
            raise ForbiddenError("Community creator cannot leave")

        await self.community_repo.remove_member(community_id, user_id)
        await self.db.commit()

        community = await self.community_repo.get(community_id)
        logger.info(f"User {user_id} left community {community_id}")
        return {"community_id": community_id, "is_member": False, "members_count": community.members_count}

    async def list_community_tweets(
        self,
        community_id: str,
        viewer_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        sort: str = "newest"
    ) -> Dict[str, Any]:
        """
        Community posts, newest first or by popularity (``sort="popular"``).

        Private communities require membership.
        """
        community = await self._get_or_404(community_id)

        if community.is_private:
            member = await self.community_repo.get_member(community_id, viewer_id) if viewer_id else None
            if member is None:
                raise ForbiddenError("Private community - membership required")

        return await TweetService(self.db).list_timeline(
            viewer_id=viewer_id,
            page=page,
            limit=limit,
            community_id=community_id,
            sort=sort
        )
