"""
Report API routes.
Users file reports and list the reports they filed.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.dependencies import get_current_user, limiter
from app.models.user import User
from app.schemas.moderation import ReportCreate, ReportListResponse, ReportResponse
from app.services.moderation_service import ModerationService

router = APIRouter()


@router.post(
    "",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report a user",
)
@limiter.limit("10/minute")
async def create_report(
    request: Request,
    data: ReportCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    File a report.

    - **reported_id**: User being reported
    - **category**: inappropriate_behavior, harassment, spam, fake_profile,
      underage, violence_threat, inappropriate_content or other
    - **reason**: Short headline
    - **description**: At least 10 characters
    - **evidence**: Optional URLs or notes
    """
    report = await ModerationService(db).create_report(
        current_user,
        reported_id=data.reported_id,
        category=data.category,
        reason=data.reason,
        description=data.description,
        evidence=data.evidence,
    )
    return ReportResponse.from_report(report)


@router.get(
    "",
    response_model=ReportListResponse,
    summary="List reports I filed",
)
async def list_reports(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    reports = await ModerationService(db).list_reports(current_user)
    return ReportListResponse(reports=[ReportResponse.from_report(r) for r in reports])
