"""
Community repository for database operations.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, delete, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.community import Community, CommunityMember, CommunityRole
from app.repositories.base import BaseRepository


class CommunityRepository(BaseRepository[Community]):
    """Repository for communities and their members."""

    def __init__(self, db: AsyncSession):
        super().__init__(Community, db)

    async def get_member(self, community_id: str, user_id: str) -> Optional[CommunityMember]:
        result = await self.db.execute(
            select(CommunityMember).where(
                and_(
                    CommunityMember.community_id == community_id,
                    CommunityMember.user_id == user_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def add_member(
        self,
        community_id: str,
        user_id: str,
        role: CommunityRole = CommunityRole.MEMBER
    ) -> CommunityMember:
        """Insert a membership row and bump ``members_count``."""
        member = CommunityMember(community_id=community_id, user_id=user_id, role=role)
        self.db.add(member)
        await self.db.flush()
        await self._bump_members(community_id, 1)
        return member

    async def remove_member(self, community_id: str, user_id: str) -> bool:
        result = await self.db.execute(
            delete(CommunityMember).where(
                and_(
                    CommunityMember.community_id == community_id,
                    CommunityMember.user_id == user_id
                )
            )
        )
        removed = result.rowcount > 0
        if removed:
            await self._bump_members(community_id, -1)
        return removed

    async def _bump_members(self, community_id: str, delta: int) -> None:
        await self.db.execute(
            update(Community)
            .where(Community.id == community_id)
            .values(members_count=Community.members_count + delta)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()

    async def get_moderator_ids(self, community_id: str) -> List[str]:
        """Ids of moderators and admins."""
        result = await self.db.execute(
            select(CommunityMember.user_id).where(
                and_(
                    CommunityMember.community_id == community_id,
                    CommunityMember.role.in_([CommunityRole.MODERATOR, CommunityRole.ADMIN])
                )
            )
        )
        return list(result.scalars().all())

    async def search(
        self,
        category: Optional[str] = None,
        query: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[Community]:
        """List communities, largest first, filtered by category and text."""
        statement = select(Community)
        if category:
            statement = statement.where(Community.category == category)
        if query:
            pattern = f"%{query.strip()}%"
            statement = statement.where(
                or_(Community.name.ilike(pattern), Community.description.ilike(pattern))
            )

        result = await self.db.execute(
            statement.order_by(desc(Community.members_count), Community.name)
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str) -> List[Community]:
        result = await self.db.execute(
            select(Community)
            .join(CommunityMember, CommunityMember.community_id == Community.id)
            .where(CommunityMember.user_id == user_id)
            .order_by(desc(CommunityMember.joined_at))
        )
        return list(result.scalars().all())

    async def discover_for(self, user_id: str, limit: int = 10) -> List[Community]:
        """Public communities ``user_id`` has not joined, largest first."""
        joined = select(CommunityMember.community_id).where(CommunityMember.user_id == user_id)
        result = await self.db.execute(
            select(Community)
            .where(and_(Community.is_private.is_(False), Community.id.not_in(joined)))
            .order_by(desc(Community.members_count), Community.name)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def category_stats(self) -> List[Dict[str, Any]]:
        """
        Community and member totals per category, busiest category first.

        Example:
            ```python
            await community_repo.category_stats()
            # [{"name": "Technology", "community_count": 2, "total_members": 9}]
            ```
        """
        community_count = func.count(Community.id)
        result = await self.db.execute(
            select(
                Community.category,
                community_count,
                func.coalesce(func.sum(Community.members_count), 0)
            )
            .group_by(Community.category)
            .order_by(desc(community_count), Community.category)
        )
        return [
            {"name": category, "community_count": count, "total_members": members}
            for category, count, members in result.all()
        ]

    async def is_visible_to(self, community_id: str, user_id: Optional[str]) -> bool:
        """Public communities are visible to everyone, private ones to members only."""
        community = await self.get(community_id)
        if community is None:
            return False
        if not community.is_private:
            return True
        return user_id is not None and await self.get_member(community_id, user_id) is not None
