"""
Notification repository for database operations.
"""
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for stored user notifications."""

    def __init__(self, db: AsyncSession):
        super().__init__(Notification, db)

    async def list_for_user(self, user_id: int, limit: int = 50) -> List[Notification]:
        """Notifications addressed to a user, newest first."""
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
