"""
UserBlock model for user blocking functionality.

A block in either direction suppresses discovery and chat between the pair.
"""
import enum

from sqlalchemy import CheckConstraint, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdType, IntegerIDMixin, CreatedAtMixin, enum_column


class BlockReason(str, enum.Enum):
    """Enum for block reasons."""
    INAPPROPRIATE_BEHAVIOR = "inappropriate_behavior"
    HARASSMENT = "harassment"
    SPAM = "spam"
    NOT_INTERESTED = "not_interested"
    FAKE_PROFILE = "fake_profile"
    OTHER = "other"


class UserBlock(Base, IntegerIDMixin, CreatedAtMixin):
    """
    UserBlock model - tracks which users have blocked each other.

    When a user blocks another:
    - Neither sees the other in discovery
    - Neither can send messages in a shared match
    - The shared chat disappears from both chat lists
    """

    __tablename__ = "user_blocks"

    blocker_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="User who is blocking"
    )

    blocked_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="User who is being blocked"
    )

    reason: Mapped[BlockReason] = mapped_column(
        enum_column(BlockReason, "block_reason"),
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint("blocker_id", "blocked_id", name="uq_user_blocks_pair"),
        CheckConstraint("blocker_id <> blocked_id", name="ck_user_blocks_no_self"),
    )

    def __repr__(self) -> str:
        return f"<UserBlock(blocker_id={self.blocker_id}, blocked_id={self.blocked_id})>"


# Indexes for performance
Index("idx_user_blocks_blocked", UserBlock.blocked_id)
