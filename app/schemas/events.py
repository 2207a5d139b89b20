"""
Push event envelopes.

Every frame sent over the push channel is ``{"type": ..., "payload": ...}``
where ``type`` discriminates the variant. Typing and presence events are
non-critical: the hub may drop them under back-pressure.
"""
from datetime import datetime
from typing import Annotated, ClassVar, Literal, Union

from pydantic import BaseModel, Field

from app.schemas.chat import MessageResponse


class _Envelope(BaseModel):
    critical: ClassVar[bool] = True

    def to_frame(self) -> dict:
        """JSON-ready frame for the wire."""
        return self.model_dump(mode="json")


# ============================================================================
# Payloads
# ============================================================================

class ReadReceiptPayload(BaseModel):
    match_id: int
    user_id: int
    last_read_message_id: int


class MatchPayload(BaseModel):
    match_id: int
    user_a_id: int
    user_b_id: int
    created_at: datetime


class TypingPayload(BaseModel):
    match_id: int
    user_id: int


class PresencePayload(BaseModel):
    user_id: int


class WarningPayload(BaseModel):
    notification_id: int
    report_id: int
    title: str
    body: str


# ============================================================================
# Envelopes
# ============================================================================

class MessageCreatedEvent(_Envelope):
    type: Literal["message.created"] = "message.created"
    payload: MessageResponse


class MessageReadEvent(_Envelope):
    type: Literal["message.read"] = "message.read"
    payload: ReadReceiptPayload


class MatchCreatedEvent(_Envelope):
    type: Literal["match.created"] = "match.created"
    payload: MatchPayload


class TypingEvent(_Envelope):
    critical: ClassVar[bool] = False

    type: Literal["typing.start", "typing.stop"]
    payload: TypingPayload


class PresenceEvent(_Envelope):
    critical: ClassVar[bool] = False

    type: Literal["presence.online", "presence.offline"]
    payload: PresencePayload


class ModerationWarningEvent(_Envelope):
    type: Literal["moderation.warning"] = "moderation.warning"
    payload: WarningPayload


PushEvent = Annotated[
    Union[
        MessageCreatedEvent,
        MessageReadEvent,
        MatchCreatedEvent,
        TypingEvent,
        PresenceEvent,
        ModerationWarningEvent,
    ],
    Field(discriminator="type"),
]
