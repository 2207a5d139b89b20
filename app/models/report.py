"""
Report model for the moderation workflow.

Lifecycle: pending -> (needs_more_info ->) approved | rejected.
A reporter may hold only one unresolved report against the same user.
"""
import enum
from datetime import datetime
from typing import List

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdType, IntegerIDMixin, TimestampMixin, enum_column


class ReportCategory(str, enum.Enum):
    """Enum for report categories."""
    INAPPROPRIATE_BEHAVIOR = "inappropriate_behavior"
    HARASSMENT = "harassment"
    SPAM = "spam"
    FAKE_PROFILE = "fake_profile"
    UNDERAGE = "underage"
    VIOLENCE_THREAT = "violence_threat"
    INAPPROPRIATE_CONTENT = "inappropriate_content"
    OTHER = "other"


class ReportStatus(str, enum.Enum):
    """Enum for report review status."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_MORE_INFO = "needs_more_info"


class Sanction(str, enum.Enum):
    """Enum for administrative sanctions."""
    NONE = "none"
    WARNING = "warning"
    TEMPORARY_BAN = "temporary_ban"
    PERMANENT_BAN = "permanent_ban"


# Review priority; higher weights are listed first for admins
CATEGORY_WEIGHTS = {
    ReportCategory.UNDERAGE: 100,
    ReportCategory.VIOLENCE_THREAT: 90,
    ReportCategory.HARASSMENT: 70,
    ReportCategory.INAPPROPRIATE_CONTENT: 60,
    ReportCategory.INAPPROPRIATE_BEHAVIOR: 50,
    ReportCategory.FAKE_PROFILE: 40,
    ReportCategory.SPAM: 20,
    ReportCategory.OTHER: 10,
}

UNRESOLVED_STATUSES = (ReportStatus.PENDING, ReportStatus.NEEDS_MORE_INFO)


class Report(Base, IntegerIDMixin, TimestampMixin):
    """Report filed by one user against another."""

    __tablename__ = "reports"

    reporter_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    reported_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    category: Mapped[ReportCategory] = mapped_column(
        enum_column(ReportCategory, "report_category"),
        nullable=False
    )

    reason: Mapped[str] = mapped_column(String(200), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    evidence: Mapped[List[str] | None] = mapped_column(
        JSON,
        nullable=True,
        doc="Optional list of URLs or notes supporting the report"
    )

    status: Mapped[ReportStatus] = mapped_column(
        enum_column(ReportStatus, "report_status"),
        default=ReportStatus.PENDING,
        nullable=False,
        index=True
    )

    # Review
    reviewer_id: Mapped[int | None] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    sanction: Mapped[Sanction | None] = mapped_column(
        enum_column(Sanction, "sanction"),
        nullable=True
    )

    __table_args__ = (
        CheckConstraint("reporter_id <> reported_id", name="ck_reports_no_self"),
    )

    @property
    def is_resolved(self) -> bool:
        return self.status not in UNRESOLVED_STATUSES

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, reporter_id={self.reporter_id}, reported_id={self.reported_id}, status={self.status})>"


Index("idx_reports_reporter_reported", Report.reporter_id, Report.reported_id)
