"""
Pydantic schemas for chat lists, messages and read receipts.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt

from app.models.message import Message
from app.schemas.user import UserCard
from app.utils.datetime_utils import ensure_utc


# ============================================================================
# Request Schemas
# ============================================================================

class MessageCreate(BaseModel):
    """
    Schema for sending a message.

    Content is stored verbatim; length (1..1000) is checked by the chat
    service so that whitespace is preserved exactly.
    """

    content: str = Field(..., description="Message text, 1 to 1000 characters")
    message_type: str = Field(default="text", description="text or image")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "content": "Hi! Loved your hiking photos.",
                "message_type": "text"
            }
        }
    )


class MarkReadRequest(BaseModel):
    """Schema for advancing the read cursor; omit the ID to mark everything read."""

    up_to_message_id: Optional[StrictInt] = Field(
        None,
        validation_alias=AliasChoices("up_to_message_id", "up_to"),
        description="Highest message ID the reader has seen"
    )


# ============================================================================
# Response Schemas
# ============================================================================

class MessageResponse(BaseModel):
    """A persisted chat message."""

    id: int
    match_id: int
    sender_id: int
    content: str
    message_type: str
    created_at: datetime

    @classmethod
    def from_message(cls, message: Message) -> "MessageResponse":
        return cls(
            id=message.id,
            match_id=message.match_id,
            sender_id=message.sender_id,
            content=message.content,
            message_type=message.message_type.value,
            created_at=ensure_utc(message.created_at),
        )


class MessageListResponse(BaseModel):
    """Page of messages, newest first."""

    messages: List[MessageResponse]
    has_more: bool


class ChatSummary(BaseModel):
    """One entry of the chat list."""

    match_id: int
    user: UserCard
    last_message: Optional[MessageResponse] = None
    unread_count: int
    is_online: bool
    matched_at: datetime


class ChatListResponse(BaseModel):
    chats: List[ChatSummary]
