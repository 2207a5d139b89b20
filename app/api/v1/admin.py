"""
Admin moderation API routes.
All endpoints require an account with the admin role.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.dependencies import get_admin_user
from app.models.user import User
from app.schemas.moderation import (
    AdminReportListResponse,
    ReportResponse,
    ReportReview,
    UserReportHistory,
)
from app.services.moderation_service import ModerationService

router = APIRouter()


@router.get(
    "/reports",
    response_model=AdminReportListResponse,
    summary="Review queue",
    description="Reports ordered by category priority, then oldest first."
)
async def list_reports(
    status: Optional[str] = Query(None, description="pending, approved, rejected or needs_more_info"),
    limit: Optional[int] = Query(None, description="Page size (1-100, default 20)"),
    offset: int = Query(0, description="Reports to skip"),
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db)
):
    reports, total = await ModerationService(db).admin_list_reports(
        status=status,
        limit=limit,
        offset=offset,
    )
    return AdminReportListResponse(
        reports=[ReportResponse.from_report(r) for r in reports],
        total=total,
    )


@router.put(
    "/reports/{report_id}",
    response_model=ReportResponse,
    summary="Review a report",
)
async def review_report(
    report_id: int,
    data: ReportReview,
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a decision.

    - **action**: approved, rejected or needs_more_info
    - **sanction**: none, warning, temporary_ban or permanent_ban (approved only)
    - **ban_days**: Length of a temporary ban
    """
    report = await ModerationService(db).review_report(
        admin,
        report_id,
        action=data.action,
        review_notes=data.review_notes,
        sanction=data.sanction,
        ban_days=data.ban_days,
    )
    return ReportResponse.from_report(report)


@router.get(
    "/users/{user_id}/reports",
    response_model=UserReportHistory,
    summary="Report history of a user",
)
async def user_report_history(
    user_id: int,
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db)
):
    return await ModerationService(db).user_report_history(user_id)
