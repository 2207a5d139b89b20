"""
Message repository for database operations.
Handles message pagination, chat-list summaries and read cursors.
"""
from typing import Dict, List, Optional, Sequence

from sqlalchemy import and_, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.message import Message, ReadCursor
from app.repositories.base import BaseRepository
from app.utils.datetime_utils import utc_now


class MessageRepository(BaseRepository[Message]):
    """Repository for chat messages."""

    def __init__(self, db: AsyncSession):
        """Initialize message repository."""
        super().__init__(Message, db)

    async def get_page(
        self,
        match_id: int,
        before_id: Optional[int] = None,
        limit: int = 50
    ) -> List[Message]:
        """
        Get messages of a match, newest first.

        Fetches ``limit + 1`` rows so the caller can compute has_more.

        Args:
            match_id: Match ID
            before_id: Exclusive upper bound on message ID (cursor)
            limit: Page size

        Returns:
            Up to ``limit + 1`` messages in descending ID order

        Example:
            ```python
            rows = await message_repo.get_page(match_id, before_id=120, limit=50)
            has_more = len(rows) > 50
            ```
        """
        query = select(Message).where(Message.match_id == match_id)
        if before_id is not None:
            query = query.where(Message.id < before_id)

        result = await self.db.execute(
            query.order_by(Message.id.desc()).limit(limit + 1)
        )
        return list(result.scalars().all())

    async def get_latest_id(self, match_id: int) -> int:
        """Highest message ID in a match, 0 when the match has no messages."""
        result = await self.db.execute(
            select(func.max(Message.id)).where(Message.match_id == match_id)
        )
        return result.scalar() or 0

    async def get_latest_for_matches(self, match_ids: Sequence[int]) -> Dict[int, Message]:
        """
        Most recent message of each match.

        Args:
            match_ids: Match IDs

        Returns:
            Dict mapping match_id to its newest message (matches without
            messages are absent)
        """
        if not match_ids:
            return {}

        latest_ids = (
            select(func.max(Message.id).label("id"))
            .where(Message.match_id.in_(list(match_ids)))
            .group_by(Message.match_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Message).join(latest_ids, Message.id == latest_ids.c.id)
        )
        return {message.match_id: message for message in result.scalars().all()}

    async def get_unread_counts(self, user_id: int, match_ids: Sequence[int]) -> Dict[int, int]:
        """
        Count unread messages per match for a user.

        A message is unread when it was sent by the other participant and
        its ID is above the user's read cursor for that match.

        Returns:
            Dict mapping match_id to unread count (zero counts are absent)
        """
        if not match_ids:
            return {}

        result = await self.db.execute(
            select(Message.match_id, func.count(Message.id))
            .outerjoin(
                ReadCursor,
                and_(
                    ReadCursor.match_id == Message.match_id,
                    ReadCursor.user_id == user_id,
                ),
            )
            .where(
                Message.match_id.in_(list(match_ids)),
                Message.sender_id != user_id,
                Message.id > func.coalesce(ReadCursor.last_read_message_id, 0),
            )
            .group_by(Message.match_id)
        )
        return {match_id: count for match_id, count in result.all()}


class ReadCursorRepository:
    """Repository for per-user, per-match read cursors."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, match_id: int, user_id: int, for_update: bool = False) -> Optional[ReadCursor]:
        query = select(ReadCursor).where(
            ReadCursor.match_id == match_id,
            ReadCursor.user_id == user_id,
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def advance(self, match_id: int, user_id: int, message_id: int) -> tuple[ReadCursor, bool]:
        """
        Move the cursor forward to ``message_id``; never moves it back.

        Args:
            match_id: Match ID
            user_id: Reader
            message_id: Highest message ID the reader has seen

        Returns:
            Tuple of (cursor, advanced) where advanced is False when the
            cursor was already at or beyond ``message_id``
        """
        cursor = await self.get(match_id, user_id, for_update=True)
        if cursor is None:
            cursor = ReadCursor(
                match_id=match_id,
                user_id=user_id,
                last_read_message_id=message_id,
                updated_at=utc_now(),
            )
            self.db.add(cursor)
            await self.db.flush()
            return cursor, message_id > 0

        if message_id <= cursor.last_read_message_id:
            return cursor, False

        cursor.last_read_message_id = message_id
        await self.db.flush()
        return cursor, True
