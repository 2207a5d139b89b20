"""
Report repository for database operations.
Handles the duplicate guard and the admin review queue ordering.
"""
from typing import Dict, List, Optional, Tuple

from sqlalchemy import case, or_, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.report import CATEGORY_WEIGHTS, UNRESOLVED_STATUSES, Report, ReportStatus
from app.repositories.base import BaseRepository

# Category priority as a SQL expression; unlisted categories sort last
category_weight = case(
    dict(CATEGORY_WEIGHTS),
    value=Report.category,
    else_=0,
)


class ReportRepository(BaseRepository[Report]):
    """Repository for user reports."""

    def __init__(self, db: AsyncSession):
        """Initialize report repository."""
        super().__init__(Report, db)

    async def get_for_update(self, report_id: int) -> Optional[Report]:
        """Load a report with a row lock held until the transaction ends."""
        result = await self.db.execute(
            select(Report)
            .where(Report.id == report_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_unresolved(self, reporter_id: int, reported_id: int) -> Optional[Report]:
        """
        Get an unresolved report from reporter against reported.

        A report is unresolved while it is pending or needs more info.
        """
        result = await self.db.execute(
            select(Report)
            .where(
                Report.reporter_id == reporter_id,
                Report.reported_id == reported_id,
                Report.status.in_(UNRESOLVED_STATUSES),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_by_reporter(self, reporter_id: int) -> List[Report]:
        """Reports filed by a user, newest first."""
        result = await self.db.execute(
            select(Report)
            .where(Report.reporter_id == reporter_id)
            .order_by(Report.created_at.desc(), Report.id.desc())
        )
        return list(result.scalars().all())

    async def list_for_review(
        self,
        status: Optional[ReportStatus] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Report], int]:
        """
        Admin review queue.

        Ordered by category weight (highest first), then oldest first.

        Args:
            status: Optional status filter
            limit: Page size
            offset: Number of reports to skip

        Returns:
            Tuple of (page of reports, total matching the filter)
        """
        query = select(Report)
        count_query = select(func.count()).select_from(Report)
        if status is not None:
            query = query.where(Report.status == status)
            count_query = count_query.where(Report.status == status)

        query = (
            query
            .order_by(category_weight.desc(), Report.created_at.asc(), Report.id.asc())
            .limit(limit)
            .offset(offset)
        )

        result = await self.db.execute(query)
        total = await self.db.execute(count_query)
        return list(result.scalars().all()), total.scalar()

    async def list_involving(self, user_id: int) -> List[Report]:
        """All reports naming the user as reporter or reported, oldest first."""
        result = await self.db.execute(
            select(Report)
            .where(or_(Report.reporter_id == user_id, Report.reported_id == user_id))
            .order_by(Report.created_at.asc(), Report.id.asc())
        )
        return list(result.scalars().all())

    async def status_counts(self, reported_id: int) -> Dict[ReportStatus, int]:
        """Number of reports against a user per status."""
        result = await self.db.execute(
            select(Report.status, func.count())
            .where(Report.reported_id == reported_id)
            .group_by(Report.status)
        )
        return {status: count for status, count in result.all()}
