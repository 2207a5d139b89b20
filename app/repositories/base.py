"""
Base repository with the shared row operations.
Repositories only flush; the owning service decides when to commit.
"""
from typing import Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Primary-key access for models with an integer ``id`` column."""

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, **kwargs) -> ModelType:
        """
        Insert a row and load its server-generated columns.

        Example:
            ```python
            block = await block_repo.create(blocker_id=1, blocked_id=2, reason=BlockReason.SPAM)
            ```
        """
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def get(self, id: int) -> Optional[ModelType]:
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_many(self, ids: Sequence[int]) -> List[ModelType]:
        """Rows for the given IDs in no particular order; unknown IDs are skipped."""
        if not ids:
            return []
        result = await self.db.execute(select(self.model).where(self.model.id.in_(list(ids))))
        return list(result.scalars().all())

    async def delete(self, id: int) -> bool:
        """
        Hard-delete a row.

        Returns:
            True if a row was removed
        """
        result = await self.db.execute(delete(self.model).where(self.model.id == id))
        await self.db.flush()
        return result.rowcount > 0

    async def exists(self, id: int) -> bool:
        result = await self.db.execute(
            select(func.count()).select_from(self.model).where(self.model.id == id)
        )
        return result.scalar() > 0
