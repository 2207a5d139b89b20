"""
Notification service.

Stores durable notices for a user and pushes them to live sessions.
"""
import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.websocket import presence_hub
from app.models.notification import Notification
from app.models.report import Report
from app.repositories.notification_repo import NotificationRepository
from app.schemas.events import ModerationWarningEvent, WarningPayload
from app.schemas.user import NotificationResponse
from app.utils.datetime_utils import ensure_utc

logger = logging.getLogger(__name__)

WARNING_KIND = "moderation.warning"


class NotificationService:
    """Service for user notifications."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notification_repo = NotificationRepository(db)
        self.hub = presence_hub

    async def send_moderation_warning(self, report: Report) -> Notification:
        """
        Warn the reported user of an approved report.

        Runs inside the caller's transaction; the caller commits.

        Args:
            report: Approved report carrying a warning sanction

        Returns:
            The stored notification
        """
        title = "Community guidelines warning"
        body = (
            "A report about your behaviour was reviewed and upheld "
            f"(category: {report.category.value}). Further violations may lead to a suspension."
        )
        notification = await self.notification_repo.create(
            user_id=report.reported_id,
            kind=WARNING_KIND,
            title=title,
            body=body,
            payload={"report_id": report.id, "category": report.category.value},
        )

        await self.hub.publish(
            ModerationWarningEvent(
                payload=WarningPayload(
                    notification_id=notification.id,
                    report_id=report.id,
                    title=title,
                    body=body,
                )
            ),
            [report.reported_id]
        )
        logger.info("Warning notification %s queued for user %s", notification.id, report.reported_id)
        return notification

    async def list_for_user(self, user_id: int) -> List[NotificationResponse]:
        notifications = await self.notification_repo.list_for_user(user_id)
        return [
            NotificationResponse(
                id=n.id,
                kind=n.kind,
                title=n.title,
                body=n.body,
                payload=n.payload or {},
                is_read=n.is_read,
                created_at=ensure_utc(n.created_at),
            )
            for n in notifications
        ]
