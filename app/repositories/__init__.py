"""
Repository layer exports.
Provides database access layer for the application.
"""
from app.repositories.base import BaseRepository
from app.repositories.user_repo import UserRepository, PhotoRepository
from app.repositories.match_repo import MatchRepository
from app.repositories.block_repo import BlockRepository
from app.repositories.report_repo import ReportRepository
from app.repositories.message_repo import MessageRepository, ReadCursorRepository
from app.repositories.notification_repo import NotificationRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PhotoRepository",
    "MatchRepository",
    "BlockRepository",
    "ReportRepository",
    "MessageRepository",
    "ReadCursorRepository",
    "NotificationRepository",
]
