"""
User repository for database operations.
Handles accounts, profile photos, the interest catalogue and pair locking.
"""
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import Interest, Photo, User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for user database operations."""

    def __init__(self, db: AsyncSession):
        """Initialize user repository."""
        super().__init__(User, db)

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by normalized email address.

        Args:
            email: Lowercase email

        Returns:
            User instance or None
        """
        result = await self.db.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        result = await self.db.execute(
            select(func.count()).select_from(User).where(User.email == email)
        )
        return result.scalar() > 0

    async def lock_pair(self, user_a_id: int, user_b_id: int) -> List[User]:
        """
        Lock both user rows of a pair with SELECT ... FOR UPDATE.

        Rows are locked in ascending ID order so that two transactions
        working on the same pair from opposite ends cannot deadlock.
        Backends without row locks (SQLite) ignore the FOR UPDATE clause.

        Args:
            user_a_id: First user ID
            user_b_id: Second user ID

        Returns:
            Locked users that exist, ordered by ID
        """
        result = await self.db.execute(
            select(User)
            .where(User.id.in_([user_a_id, user_b_id]))
            .order_by(User.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_expired_bans(self, now: datetime) -> List[User]:
        """Inactive users whose temporary ban has ended."""
        result = await self.db.execute(
            select(User).where(
                User.is_active.is_(False),
                User.banned_until.is_not(None),
                User.banned_until <= now,
            )
        )
        return list(result.scalars().all())

    async def list_interests(self) -> List[Interest]:
        """Full interest catalogue ordered by category then name."""
        result = await self.db.execute(
            select(Interest).order_by(Interest.category, Interest.name)
        )
        return list(result.scalars().all())

    async def get_interests(self, interest_ids: Sequence[int]) -> List[Interest]:
        """Catalogue entries for the given IDs; unknown IDs are simply absent."""
        if not interest_ids:
            return []
        result = await self.db.execute(
            select(Interest).where(Interest.id.in_(list(interest_ids))).order_by(Interest.id)
        )
        return list(result.scalars().all())


class PhotoRepository(BaseRepository[Photo]):
    """Repository for profile photos."""

    def __init__(self, db: AsyncSession):
        super().__init__(Photo, db)

    async def list_for_user(self, user_id: int) -> List[Photo]:
        """Photos of a user in display order."""
        result = await self.db.execute(
            select(Photo)
            .where(Photo.user_id == user_id)
            .order_by(Photo.display_order, Photo.id)
        )
        return list(result.scalars().all())

    async def count_for_user(self, user_id: int) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Photo).where(Photo.user_id == user_id)
        )
        return result.scalar()

    async def next_display_order(self, user_id: int) -> int:
        result = await self.db.execute(
            select(func.max(Photo.display_order)).where(Photo.user_id == user_id)
        )
        current = result.scalar()
        return 0 if current is None else current + 1

    async def clear_primary(self, user_id: int) -> None:
        """
        Unset is_primary on every photo of the user.

        Runs in the caller's transaction so the new primary is set atomically.
        """
        await self.db.execute(
            update(Photo)
            .where(Photo.user_id == user_id, Photo.is_primary.is_(True))
            .values(is_primary=False)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()
