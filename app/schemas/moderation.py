"""
Pydantic schemas for reports, blocks and admin review.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, field_validator

from app.models.report import Report
from app.models.user_block import UserBlock
from app.utils.datetime_utils import ensure_utc


# ============================================================================
# Request Schemas
# ============================================================================

class ReportCreate(BaseModel):
    """Schema for filing a report against another user."""

    reported_id: StrictInt = Field(..., description="User being reported")
    category: str = Field(..., description="Report category")
    reason: str = Field(..., description="Short headline, 1 to 200 characters")
    description: str = Field(..., description="Details, 10 to 1000 characters")
    evidence: Optional[List[str]] = Field(None, description="Up to 10 URLs or notes")

    @field_validator("evidence", mode="before")
    @classmethod
    def wrap_single_evidence(cls, v):
        """Accept a single string as a one-item evidence list."""
        if isinstance(v, str):
            return [v]
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "reported_id": 42,
                "category": "harassment",
                "reason": "Abusive messages",
                "description": "Kept sending insulting messages after I asked them to stop.",
                "evidence": ["https://cdn.example.com/screenshots/1.png"]
            }
        }
    )


class BlockCreate(BaseModel):
    """Schema for blocking a user."""

    blocked_id: StrictInt = Field(..., description="User being blocked")
    reason: str = Field(..., description="Block reason")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "blocked_id": 42,
                "reason": "not_interested"
            }
        }
    )


class ReportReview(BaseModel):
    """Schema for an admin decision on a report."""

    action: str = Field(..., description="approved, rejected or needs_more_info")
    review_notes: Optional[str] = Field(None, max_length=1000)
    sanction: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("sanction", "punishment"),
        description="none, warning, temporary_ban or permanent_ban"
    )
    ban_days: Optional[int] = Field(None, ge=1, le=365, description="Temporary ban length")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "action": "approved",
                "review_notes": "Confirmed harassment in chat logs",
                "sanction": "temporary_ban",
                "ban_days": 7
            }
        }
    )


# ============================================================================
# Response Schemas
# ============================================================================

class ReportResponse(BaseModel):
    """A report as seen by its reporter or an admin."""

    id: int
    reporter_id: int
    reported_id: int
    category: str
    reason: str
    description: str
    evidence: List[str]
    status: str
    created_at: datetime
    reviewer_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    sanction: Optional[str] = None

    @classmethod
    def from_report(cls, report: Report) -> "ReportResponse":
        return cls(
            id=report.id,
            reporter_id=report.reporter_id,
            reported_id=report.reported_id,
            category=report.category.value,
            reason=report.reason,
            description=report.description,
            evidence=list(report.evidence or []),
            status=report.status.value,
            created_at=ensure_utc(report.created_at),
            reviewer_id=report.reviewer_id,
            reviewed_at=ensure_utc(report.reviewed_at),
            review_notes=report.review_notes,
            sanction=report.sanction.value if report.sanction else None,
        )


class ReportListResponse(BaseModel):
    reports: List[ReportResponse]


class AdminReportListResponse(BaseModel):
    """Page of the admin review queue."""

    reports: List[ReportResponse]
    total: int


class BlockResponse(BaseModel):
    """A block created by the caller."""

    id: int
    blocker_id: int
    blocked_id: int
    reason: str
    created_at: datetime

    @classmethod
    def from_block(cls, block: UserBlock) -> "BlockResponse":
        return cls(
            id=block.id,
            blocker_id=block.blocker_id,
            blocked_id=block.blocked_id,
            reason=block.reason.value,
            created_at=ensure_utc(block.created_at),
        )


class BlockListResponse(BaseModel):
    blocks: List[BlockResponse]


class ReportStats(BaseModel):
    """Outcome statistics for reports against a user."""

    total_filed: int
    total_received: int
    pending: int
    approved: int
    rejected: int
    needs_more_info: int
    sanctions: Dict[str, int]


class UserReportHistory(BaseModel):
    user_id: int
    reports_filed: List[ReportResponse]
    reports_received: List[ReportResponse]
    stats: ReportStats
