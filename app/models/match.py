"""
Like, Pass and Match models.

Likes and passes are directed edges written once per ordered pair.
A Match is the undirected pair stored with canonical ordering
(user_a_id < user_b_id) and exists iff both directed likes exist.
"""
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdType, IntegerIDMixin, CreatedAtMixin
from app.utils.datetime_utils import utc_now


class Like(Base):
    """Directed like edge; immutable once written."""

    __tablename__ = "likes"

    from_user_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        doc="User who liked"
    )

    to_user_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        doc="User who was liked"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("from_user_id <> to_user_id", name="ck_likes_no_self"),
    )

    def __repr__(self) -> str:
        return f"<Like({self.from_user_id} -> {self.to_user_id})>"


class Pass(Base):
    """Directed pass edge; permanently hides to_user from from_user's discovery."""

    __tablename__ = "passes"

    from_user_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )

    to_user_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("from_user_id <> to_user_id", name="ck_passes_no_self"),
    )

    def __repr__(self) -> str:
        return f"<Pass({self.from_user_id} -> {self.to_user_id})>"


class Match(Base, IntegerIDMixin, CreatedAtMixin):
    """
    Match model - symmetric relationship after a mutual like.

    Required to exchange messages.
    """

    __tablename__ = "matches"

    user_a_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="Smaller user ID of the pair"
    )

    user_b_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="Larger user ID of the pair"
    )

    __table_args__ = (
        UniqueConstraint("user_a_id", "user_b_id", name="uq_matches_pair"),
        CheckConstraint("user_a_id < user_b_id", name="ck_matches_canonical"),
    )

    def has_member(self, user_id: int) -> bool:
        return user_id in (self.user_a_id, self.user_b_id)

    def partner_of(self, user_id: int) -> int:
        """Return the other participant's ID."""
        return self.user_b_id if user_id == self.user_a_id else self.user_a_id

    def __repr__(self) -> str:
        return f"<Match(id={self.id}, user_a_id={self.user_a_id}, user_b_id={self.user_b_id})>"


# Indexes for performance
Index("idx_likes_to_user", Like.to_user_id)
Index("idx_matches_user_b", Match.user_b_id)
