"""
Notification model.

Durable notices addressed to a user, such as moderation warnings.
"""
from typing import Any, Dict

from sqlalchemy import Boolean, ForeignKey, Index, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdType, IntegerIDMixin, CreatedAtMixin


class Notification(Base, IntegerIDMixin, CreatedAtMixin):
    """Notification stored for a user."""

    __tablename__ = "notifications"

    user_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Notification kind, e.g. 'moderation.warning'"
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    body: Mapped[str] = mapped_column(Text, default="", nullable=False)

    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user_id={self.user_id}, kind={self.kind})>"


Index("idx_notifications_user_created", Notification.user_id, Notification.created_at)
