"""
Block repository for database operations.
"""
from typing import List, Optional, Set

from sqlalchemy import and_, or_, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user_block import UserBlock
from app.repositories.base import BaseRepository


class BlockRepository(BaseRepository[UserBlock]):
    """Repository for directed user blocks."""

    def __init__(self, db: AsyncSession):
        """Initialize block repository."""
        super().__init__(UserBlock, db)

    async def get_by_pair(self, blocker_id: int, blocked_id: int) -> Optional[UserBlock]:
        """Get the block blocker -> blocked, if any."""
        result = await self.db.execute(
            select(UserBlock).where(
                UserBlock.blocker_id == blocker_id,
                UserBlock.blocked_id == blocked_id,
            )
        )
        return result.scalar_one_or_none()

    async def is_blocked_between(self, user_x: int, user_y: int) -> bool:
        """
        Check for a block in either direction between two users.

        Args:
            user_x: First user ID
            user_y: Second user ID

        Returns:
            True if either user has blocked the other
        """
        result = await self.db.execute(
            select(func.count()).select_from(UserBlock).where(
                or_(
                    and_(UserBlock.blocker_id == user_x, UserBlock.blocked_id == user_y),
                    and_(UserBlock.blocker_id == user_y, UserBlock.blocked_id == user_x),
                )
            )
        )
        return result.scalar() > 0

    async def related_user_ids(self, user_id: int) -> Set[int]:
        """IDs of every user in a block relationship with ``user_id`` (either direction)."""
        result = await self.db.execute(
            select(UserBlock.blocker_id, UserBlock.blocked_id).where(
                or_(UserBlock.blocker_id == user_id, UserBlock.blocked_id == user_id)
            )
        )
        related = set()
        for blocker_id, blocked_id in result.all():
            related.add(blocked_id if blocker_id == user_id else blocker_id)
        return related

    async def list_by_blocker(self, blocker_id: int) -> List[UserBlock]:
        """Blocks created by a user, newest first."""
        result = await self.db.execute(
            select(UserBlock)
            .where(UserBlock.blocker_id == blocker_id)
            .order_by(UserBlock.created_at.desc(), UserBlock.id.desc())
        )
        return list(result.scalars().all())
