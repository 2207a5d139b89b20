"""
Moderation service containing business logic for reports, blocks and admin review.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.errors import Conflict, Forbidden, InvalidInput, NotFound
from app.models.report import Report, ReportCategory, ReportStatus, Sanction
from app.models.user import User
from app.models.user_block import BlockReason, UserBlock
from app.repositories.block_repo import BlockRepository
from app.repositories.report_repo import ReportRepository
from app.repositories.user_repo import UserRepository
from app.schemas.moderation import ReportResponse, ReportStats, UserReportHistory
from app.services.notification_service import NotificationService
from app.utils.datetime_utils import ensure_utc, utc_now
from app.utils.validators import validate_choice, validate_page_limit, validate_text_length

logger = logging.getLogger(__name__)

REASON_MAX = 200
DESCRIPTION_MIN = 10
DESCRIPTION_MAX = 1000
EVIDENCE_MAX_ITEMS = 10
EVIDENCE_ITEM_MAX = 500
ADMIN_PAGE_DEFAULT = 20
ADMIN_PAGE_MAX = 100

REPORT_CATEGORIES = [c.value for c in ReportCategory]
BLOCK_REASONS = [r.value for r in BlockReason]
REVIEW_ACTIONS = [
    ReportStatus.APPROVED.value,
    ReportStatus.REJECTED.value,
    ReportStatus.NEEDS_MORE_INFO.value,
]
SANCTIONS = [s.value for s in Sanction]


def _apply_ban(user: User, sanction: Sanction, now: datetime, ban_days: Optional[int]) -> None:
    """
    Deactivate a user for a ban sanction.

    A permanent ban is never shortened, and a temporary ban only ever
    extends an existing one.
    """
    if not user.is_active and user.banned_until is None:
        return
    if sanction == Sanction.PERMANENT_BAN:
        user.is_active = False
        user.banned_until = None
        return

    until = now + timedelta(days=ban_days or settings.temporary_ban_days)
    current = ensure_utc(user.banned_until)
    if not user.is_active and current is not None and current > until:
        until = current
    user.is_active = False
    user.banned_until = until

class ModerationService:
    """Service for the report and block workflow."""

    def __init__(self, db: AsyncSession):
        """
        Initialize moderation service.

        Args:
            db: Database session
        """
        self.db = db
        self.user_repo = UserRepository(db)
        self.report_repo = ReportRepository(db)
        self.block_repo = BlockRepository(db)
        self.notification_service = NotificationService(db)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def create_report(
        self,
        reporter: User,
        reported_id: int,
        category: str,
        reason: str,
        description: str,
        evidence: Optional[List[str]] = None
    ) -> Report:
        """
        File a report against another user.

        Args:
            reporter: User filing the report
            reported_id: User being reported
            category: One of ReportCategory
            reason: Short headline (1..200 characters)
            description: Details (10..1000 characters)
            evidence: Optional list of URLs or notes (up to 10)

        Returns:
            The new pending report

        Raises:
            InvalidInput: Self-report or invalid fields
            NotFound: Unknown reported user
            Conflict: An unresolved report against the same user exists
        """
        if reported_id == reporter.id:
            raise InvalidInput("You cannot report yourself")
        validate_choice(category, REPORT_CATEGORIES, "category")
        reason = validate_text_length(reason, "Reason", min_length=1, max_length=REASON_MAX)
        description = validate_text_length(
            description,
            "Description",
            min_length=DESCRIPTION_MIN,
            max_length=DESCRIPTION_MAX,
        )
        if evidence is not None:
            if len(evidence) > EVIDENCE_MAX_ITEMS:
                raise InvalidInput(f"At most {EVIDENCE_MAX_ITEMS} evidence items are allowed")
            for item in evidence:
                validate_text_length(item, "Evidence item", min_length=1, max_length=EVIDENCE_ITEM_MAX)

        if not await self.user_repo.exists(reported_id):
            raise NotFound("User not found")

        # Serializes concurrent reports for the same pair
        await self.user_repo.lock_pair(reporter.id, reported_id)

        if await self.report_repo.get_unresolved(reporter.id, reported_id) is not None:
            raise Conflict("You already have an open report against this user")

        report = await self.report_repo.create(
            reporter_id=reporter.id,
            reported_id=reported_id,
            category=ReportCategory(category),
            reason=reason,
            description=description,
            evidence=evidence or None,
            status=ReportStatus.PENDING,
        )
        await self.db.commit()

        logger.info(
            "Report %s filed by user %s against user %s (%s)",
            report.id, reporter.id, reported_id, category
        )
        return report

    async def list_reports(self, reporter: User) -> List[Report]:
        return await self.report_repo.list_by_reporter(reporter.id)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    async def create_block(self, blocker: User, blocked_id: int, reason: str) -> Tuple[UserBlock, bool]:
        """
        Block another user.

        Blocking is idempotent: repeating it returns the existing block.

        Returns:
            Tuple of (block, created)

        Raises:
            InvalidInput: Self-block or unknown reason
            NotFound: Unknown blocked user
        """
        if blocked_id == blocker.id:
            raise InvalidInput("You cannot block yourself")
        validate_choice(reason, BLOCK_REASONS, "reason")

        if not await self.user_repo.exists(blocked_id):
            raise NotFound("User not found")

        # Orders the block against in-flight likes and sends of the same pair
        await self.user_repo.lock_pair(blocker.id, blocked_id)

        existing = await self.block_repo.get_by_pair(blocker.id, blocked_id)
        if existing is not None:
            return existing, False

        try:
            block = await self.block_repo.create(
                blocker_id=blocker.id,
                blocked_id=blocked_id,
                reason=BlockReason(reason),
            )
        except IntegrityError:
            await self.db.rollback()
            existing = await self.block_repo.get_by_pair(blocker.id, blocked_id)
            if existing is None:
                raise
            return existing, False

        await self.db.commit()
        logger.info("User %s blocked user %s (%s)", blocker.id, blocked_id, reason)
        return block, True

    async def list_blocks(self, blocker: User) -> List[UserBlock]:
        return await self.block_repo.list_by_blocker(blocker.id)

    async def remove_block(self, user: User, block_id: int) -> None:
        """
        Remove a block owned by the user.

        Removing a block that no longer exists succeeds silently.

        Raises:
            Forbidden: If the block belongs to another user
        """
        block = await self.block_repo.get(block_id)
        if block is None:
            return
        if block.blocker_id != user.id:
            raise Forbidden("You can only remove your own blocks")

        await self.block_repo.delete(block_id)
        await self.db.commit()
        logger.info("User %s removed block %s", user.id, block_id)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def admin_list_reports(
        self,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> Tuple[List[Report], int]:
        """
        Admin review queue, highest category weight first, then oldest first.

        Args:
            status: Optional status filter
            limit: Page size (1..100, default 20)
            offset: Reports to skip

        Returns:
            Tuple of (reports, total matching the filter)
        """
        status_filter = None
        if status is not None:
            status_filter = ReportStatus(validate_choice(status, [s.value for s in ReportStatus], "status"))
        limit = validate_page_limit(limit, default=ADMIN_PAGE_DEFAULT, maximum=ADMIN_PAGE_MAX)
        if offset < 0:
            raise InvalidInput("Offset cannot be negative")

        return await self.report_repo.list_for_review(status_filter, limit=limit, offset=offset)

    async def review_report(
        self,
        admin: User,
        report_id: int,
        action: str,
        review_notes: Optional[str] = None,
        sanction: Optional[str] = None,
        ban_days: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> Report:
        """
        Record an admin decision and apply its sanction.

        The status change and the sanction are committed together.

        Args:
            admin: Reviewing admin
            report_id: Report ID
            action: approved, rejected or needs_more_info
            review_notes: Optional notes
            sanction: none, warning, temporary_ban or permanent_ban
            ban_days: Temporary ban length (defaults to settings.temporary_ban_days)
            now: Review time (defaults to now, UTC)

        Returns:
            The updated report

        Raises:
            InvalidInput: Bad action or sanction, or a sanction without approval
            NotFound: Unknown report
            Conflict: The report was already resolved

        Example:
            ```python
            await moderation_service.review_report(
                admin, report.id, "approved", sanction="temporary_ban", ban_days=3
            )
            ```
        """
        validate_choice(action, REVIEW_ACTIONS, "action")
        if sanction is not None:
            validate_choice(sanction, SANCTIONS, "sanction")

        report = await self.report_repo.get_for_update(report_id)
        if report is None:
            raise NotFound("Report not found")
        if report.is_resolved:
            raise Conflict("Report has already been resolved")

        sanction_value = Sanction(sanction) if sanction is not None else None
        if sanction_value not in (None, Sanction.NONE) and action != ReportStatus.APPROVED.value:
            raise InvalidInput("A sanction can only be applied to an approved report")

        now = now or utc_now()
        report.status = ReportStatus(action)
        report.reviewer_id = admin.id
        report.reviewed_at = now
        report.review_notes = review_notes
        report.sanction = sanction_value

        if sanction_value in (Sanction.TEMPORARY_BAN, Sanction.PERMANENT_BAN):
            for reported in await self.user_repo.lock_pair(report.reported_id, report.reported_id):
                _apply_ban(reported, sanction_value, now, ban_days)
        elif sanction_value == Sanction.WARNING:
            await self.notification_service.send_moderation_warning(report)

        await self.db.commit()

        logger.info(
            "Report %s reviewed by admin %s: %s (sanction: %s)",
            report.id, admin.id, action, sanction_value.value if sanction_value else None
        )
        return report

    async def user_report_history(self, user_id: int) -> UserReportHistory:
        """
        Every report naming the user, with outcome statistics.

        Raises:
            NotFound: Unknown user
        """
        if not await self.user_repo.exists(user_id):
            raise NotFound("User not found")

        reports = await self.report_repo.list_involving(user_id)
        filed = [r for r in reports if r.reporter_id == user_id]
        received = [r for r in reports if r.reported_id == user_id]
        by_status = await self.report_repo.status_counts(user_id)

        sanctions = {
            s.value: sum(1 for r in received if r.sanction == s)
            for s in (Sanction.WARNING, Sanction.TEMPORARY_BAN, Sanction.PERMANENT_BAN)
        }

        return UserReportHistory(
            user_id=user_id,
            reports_filed=[ReportResponse.from_report(r) for r in filed],
            reports_received=[ReportResponse.from_report(r) for r in received],
            stats=ReportStats(
                total_filed=len(filed),
                total_received=len(received),
                pending=by_status.get(ReportStatus.PENDING, 0),
                approved=by_status.get(ReportStatus.APPROVED, 0),
                rejected=by_status.get(ReportStatus.REJECTED, 0),
                needs_more_info=by_status.get(ReportStatus.NEEDS_MORE_INFO, 0),
                sanctions=sanctions,
            ),
        )

    async def reactivate_expired_bans(self, now: Optional[datetime] = None) -> int:
        """
        Lift temporary bans whose end time has passed.

        Returns:
            Number of reactivated users
        """
        users = await self.user_repo.get_expired_bans(now or utc_now())
        for user in users:
            user.is_active = True
            user.banned_until = None

        if users:
            await self.db.commit()
            logger.info("Reactivated %d user(s) after temporary ban", len(users))
        return len(users)
