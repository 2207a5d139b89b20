"""
Service layer exports.
Provides business logic for the application.
"""
from app.services.chat_service import ChatService
from app.services.matching_service import MatchingService
from app.services.moderation_service import ModerationService
from app.services.notification_service import NotificationService
from app.services.user_service import UserService

__all__ = [
    "ChatService",
    "MatchingService",
    "ModerationService",
    "NotificationService",
    "UserService",
]
