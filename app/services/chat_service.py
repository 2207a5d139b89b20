"""
Chat service containing business logic for match conversations.
Handles chat lists, message history, sending and read cursors.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.errors import Forbidden, InvalidInput, NotFound
from app.core.websocket import presence_hub
from app.models.match import Match
from app.models.message import MessageType
from app.models.user import User
from app.repositories.block_repo import BlockRepository
from app.repositories.match_repo import MatchRepository
from app.repositories.message_repo import MessageRepository, ReadCursorRepository
from app.repositories.user_repo import UserRepository
from app.schemas.chat import ChatSummary, MessageListResponse, MessageResponse
from app.schemas.events import MessageCreatedEvent, MessageReadEvent, ReadReceiptPayload
from app.schemas.user import UserCard
from app.utils.datetime_utils import ensure_utc
from app.utils.helpers import distance_between
from app.utils.validators import validate_choice, validate_page_limit, validate_text_length

logger = logging.getLogger(__name__)

CONTENT_MAX = 1000
# System messages are written by the server only
SENDABLE_TYPES = [MessageType.TEXT.value, MessageType.IMAGE.value]


class ChatService:
    """Service for chat operations with business logic."""

    def __init__(self, db: AsyncSession):
        """
        Initialize chat service.

        Args:
            db: Database session
        """
        self.db = db
        self.user_repo = UserRepository(db)
        self.match_repo = MatchRepository(db)
        self.block_repo = BlockRepository(db)
        self.message_repo = MessageRepository(db)
        self.cursor_repo = ReadCursorRepository(db)
        self.hub = presence_hub

    async def _get_chat(self, user_id: int, match_id: int) -> Match:
        """
        Load a match the user belongs to.

        Raises:
            NotFound: If the match does not exist
            Forbidden: If the user is not a participant
        """
        match = await self.match_repo.get(match_id)
        if match is None:
            raise NotFound("Chat not found")
        if not match.has_member(user_id):
            raise Forbidden("You are not a participant of this chat")
        return match

    async def _ensure_not_blocked(self, user_id: int, partner_id: int) -> None:
        if await self.block_repo.is_blocked_between(user_id, partner_id):
            raise Forbidden("You cannot chat with this user")

    async def list_chats(self, user: User) -> List[ChatSummary]:
        """
        Chat list of the user, most recently active first.

        Activity is the newer of the last message time and the match time.
        Chats with an inactive partner or a block in either direction are
        left out.

        Args:
            user: Current user

        Returns:
            One summary per visible match
        """
        matches = await self.match_repo.list_for_user(user.id)
        if not matches:
            return []

        blocked = await self.block_repo.related_user_ids(user.id)
        partners = {
            p.id: p
            for p in await self.user_repo.get_many([m.partner_of(user.id) for m in matches])
        }

        visible: List[Tuple[Match, User]] = []
        for match in matches:
            partner = partners.get(match.partner_of(user.id))
            if partner is None or not partner.is_active or partner.id in blocked:
                continue
            visible.append((match, partner))

        match_ids = [match.id for match, _ in visible]
        latest = await self.message_repo.get_latest_for_matches(match_ids)
        unread = await self.message_repo.get_unread_counts(user.id, match_ids)

        entries: List[Tuple[datetime, int, ChatSummary]] = []
        for match, partner in visible:
            last_message = latest.get(match.id)
            matched_at = ensure_utc(match.created_at)
            activity = matched_at
            if last_message is not None:
                activity = max(activity, ensure_utc(last_message.created_at))

            summary = ChatSummary(
                match_id=match.id,
                user=UserCard.from_user(partner, distance_km=distance_between(user, partner)),
                last_message=MessageResponse.from_message(last_message) if last_message else None,
                unread_count=unread.get(match.id, 0),
                is_online=await self.hub.is_user_online(partner.id),
                matched_at=matched_at,
            )
            entries.append((activity, match.id, summary))

        entries.sort(key=lambda entry: (entry[0], entry[1]), reverse=True)
        return [summary for _, _, summary in entries]

    async def get_messages(
        self,
        user: User,
        match_id: int,
        cursor: Optional[int] = None,
        limit: Optional[int] = None
    ) -> MessageListResponse:
        """
        Page through a chat's history, newest first.

        Args:
            user: Current user
            match_id: Match ID
            cursor: Exclusive upper bound on message ID (from the previous page)
            limit: Page size (1..100, default 50)

        Returns:
            Messages in descending ID order and whether older ones exist

        Raises:
            InvalidInput: Bad cursor or limit
            NotFound: Unknown match
            Forbidden: Not a participant, or the pair is blocked
        """
        limit = validate_page_limit(
            limit,
            default=settings.message_page_default,
            maximum=settings.message_page_max,
        )
        if cursor is not None and cursor < 1:
            raise InvalidInput("Cursor must be a positive message ID")

        match = await self._get_chat(user.id, match_id)
        await self._ensure_not_blocked(user.id, match.partner_of(user.id))

        rows = await self.message_repo.get_page(match_id, before_id=cursor, limit=limit)
        return MessageListResponse(
            messages=[MessageResponse.from_message(m) for m in rows[:limit]],
            has_more=len(rows) > limit,
        )

    async def send(
        self,
        user: User,
        match_id: int,
        content: str,
        message_type: str = MessageType.TEXT.value
    ) -> MessageResponse:
        """
        Send a message in a match.

        Content is stored verbatim (no trimming or escaping). The pair's
        user rows are locked before the block check so a block committed
        concurrently cannot be bypassed.

        Args:
            user: Sender
            match_id: Match ID
            content: Message text (1..1000 characters)
            message_type: text or image

        Returns:
            The persisted message

        Raises:
            InvalidInput: Bad content or message type
            NotFound: Unknown match
            Forbidden: Not a participant, suspended sender or blocked pair

        Example:
            ```python
            message = await chat_service.send(alice, match_id, "hi")
            ```
        """
        match = await self._get_chat(user.id, match_id)
        content = validate_text_length(content, "Message content", min_length=1, max_length=CONTENT_MAX)
        validate_choice(message_type, SENDABLE_TYPES, "message_type")

        if not user.is_active:
            raise Forbidden("Your account is suspended")

        partner_id = match.partner_of(user.id)
        await self.user_repo.lock_pair(user.id, partner_id)
        await self._ensure_not_blocked(user.id, partner_id)

        message = await self.message_repo.create(
            match_id=match.id,
            sender_id=user.id,
            content=content,
            message_type=MessageType(message_type),
        )
        response = MessageResponse.from_message(message)

        await self.hub.publish(MessageCreatedEvent(payload=response), [user.id, partner_id])
        await self.db.commit()

        logger.info("Message %s sent in match %s by user %s", message.id, match.id, user.id)
        return response

    async def mark_read(
        self,
        user: User,
        match_id: int,
        up_to_message_id: Optional[int] = None
    ) -> int:
        """
        Advance the user's read cursor in a match.

        The cursor only moves forward; the requested ID is clamped to the
        newest message in the match, and None means "everything".
        The partner receives a ``message.read`` event when the cursor moves.

        Returns:
            The cursor value after the call

        Raises:
            InvalidInput: Negative message ID
            NotFound: Unknown match
            Forbidden: Not a participant, or the pair is blocked
        """
        if up_to_message_id is not None and up_to_message_id < 0:
            raise InvalidInput("up_to_message_id cannot be negative")

        match = await self._get_chat(user.id, match_id)
        partner_id = match.partner_of(user.id)
        await self._ensure_not_blocked(user.id, partner_id)

        latest_id = await self.message_repo.get_latest_id(match.id)
        target = latest_id if up_to_message_id is None else min(up_to_message_id, latest_id)

        cursor, advanced = await self.cursor_repo.advance(match.id, user.id, target)
        last_read = cursor.last_read_message_id

        if advanced:
            await self.hub.publish(
                MessageReadEvent(
                    payload=ReadReceiptPayload(
                        match_id=match.id,
                        user_id=user.id,
                        last_read_message_id=last_read,
                    )
                ),
                [partner_id]
            )

        await self.db.commit()
        return last_read

    async def visible_partner_ids(self, user_id: int) -> List[int]:
        """Match partners not separated from the user by a block."""
        matches = await self.match_repo.list_for_user(user_id)
        blocked = await self.block_repo.related_user_ids(user_id)
        return [
            partner_id
            for partner_id in (m.partner_of(user_id) for m in matches)
            if partner_id not in blocked
        ]

    async def chat_partner(self, user_id: int, match_id: int) -> Optional[int]:
        """
        Partner in a match when the user may currently chat there.

        Returns:
            Partner user ID, or None for unknown, foreign or blocked chats
        """
        match = await self.match_repo.get(match_id)
        if match is None or not match.has_member(user_id):
            return None
        partner_id = match.partner_of(user_id)
        if await self.block_repo.is_blocked_between(user_id, partner_id):
            return None
        return partner_id
