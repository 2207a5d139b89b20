"""
Message and ReadCursor models.

Message IDs are server-assigned and strictly increasing, so ordering by ID
within a match is the same as ordering by created_at.
"""
import enum
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdType, IntegerIDMixin, CreatedAtMixin, enum_column
from app.utils.datetime_utils import utc_now


class MessageType(str, enum.Enum):
    """Enum for message types."""
    TEXT = "text"
    IMAGE = "image"
    SYSTEM = "system"


class Message(Base, IntegerIDMixin, CreatedAtMixin):
    """Chat message within a match; content is stored verbatim."""

    __tablename__ = "messages"

    match_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("matches.id", ondelete="CASCADE"),
        nullable=False,
        doc="Match this message belongs to"
    )

    sender_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Member of the match who sent the message"
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    message_type: Mapped[MessageType] = mapped_column(
        enum_column(MessageType, "message_type"),
        default=MessageType.TEXT,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, match_id={self.match_id}, sender_id={self.sender_id})>"


class ReadCursor(Base):
    """
    Per-user, per-match marker of the highest message ID the user has read.

    last_read_message_id never decreases.
    """

    __tablename__ = "read_cursors"

    match_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("matches.id", ondelete="CASCADE"),
        primary_key=True
    )

    user_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )

    last_read_message_id: Mapped[int] = mapped_column(IdType, default=0, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<ReadCursor(match_id={self.match_id}, user_id={self.user_id}, "
            f"last_read_message_id={self.last_read_message_id})>"
        )


# Composite index for descending pagination within a match
Index("idx_messages_match_id", Message.match_id, Message.id)
