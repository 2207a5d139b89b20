"""
SQLAlchemy models for the matching and chat application.

All models must be imported here for Alembic auto-generation to work.
"""

# Import Base first
from app.models.base import Base, IntegerIDMixin, CreatedAtMixin, TimestampMixin

# Import all models (order matters for relationships)
from app.models.user import User, Photo, Interest, Gender, UserRole, user_interests
from app.models.match import Like, Pass, Match
from app.models.user_block import UserBlock, BlockReason
from app.models.report import (
    Report,
    ReportCategory,
    ReportStatus,
    Sanction,
    CATEGORY_WEIGHTS,
    UNRESOLVED_STATUSES,
)
from app.models.message import Message, MessageType, ReadCursor
from app.models.notification import Notification

# Export all models and enums
__all__ = [
    # Base classes
    "Base",
    "IntegerIDMixin",
    "CreatedAtMixin",
    "TimestampMixin",
    # Identity
    "User",
    "Photo",
    "Interest",
    "Gender",
    "UserRole",
    "user_interests",
    # Relations
    "Like",
    "Pass",
    "Match",
    "UserBlock",
    "BlockReason",
    # Moderation
    "Report",
    "ReportCategory",
    "ReportStatus",
    "Sanction",
    "CATEGORY_WEIGHTS",
    "UNRESOLVED_STATUSES",
    # Conversation
    "Message",
    "MessageType",
    "ReadCursor",
    # Notifications
    "Notification",
]
