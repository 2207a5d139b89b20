"""
Pydantic schema exports.
Provides request/response models for API endpoints.
"""
from app.schemas.user import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    TokenResponse,
    TokenUser,
    LocationSchema,
    ProfileUpdate,
    ProfileResponse,
    PhotoResponse,
    InterestResponse,
    InterestListResponse,
    UserCard,
    NotificationResponse,
    NotificationListResponse,
)
from app.schemas.match import (
    SwipeRequest,
    LikeResponse,
    PassResponse,
    DiscoverResponse,
    MatchResponse,
    MatchListResponse,
)
from app.schemas.chat import (
    MessageCreate,
    MarkReadRequest,
    MessageResponse,
    MessageListResponse,
    ChatSummary,
    ChatListResponse,
)
from app.schemas.moderation import (
    ReportCreate,
    BlockCreate,
    ReportReview,
    ReportResponse,
    ReportListResponse,
    AdminReportListResponse,
    BlockResponse,
    BlockListResponse,
    ReportStats,
    UserReportHistory,
)
from app.schemas.events import (
    PushEvent,
    MessageCreatedEvent,
    MessageReadEvent,
    MatchCreatedEvent,
    TypingEvent,
    PresenceEvent,
    ModerationWarningEvent,
)

__all__ = [
    "RegisterRequest",
    "RegisterResponse",
    "LoginRequest",
    "LoginResponse",
    "RefreshRequest",
    "TokenResponse",
    "TokenUser",
    "LocationSchema",
    "ProfileUpdate",
    "ProfileResponse",
    "PhotoResponse",
    "InterestResponse",
    "InterestListResponse",
    "UserCard",
    "NotificationResponse",
    "NotificationListResponse",
    "SwipeRequest",
    "LikeResponse",
    "PassResponse",
    "DiscoverResponse",
    "MatchResponse",
    "MatchListResponse",
    "MessageCreate",
    "MarkReadRequest",
    "MessageResponse",
    "MessageListResponse",
    "ChatSummary",
    "ChatListResponse",
    "ReportCreate",
    "BlockCreate",
    "ReportReview",
    "ReportResponse",
    "ReportListResponse",
    "AdminReportListResponse",
    "BlockResponse",
    "BlockListResponse",
    "ReportStats",
    "UserReportHistory",
    "PushEvent",
    "MessageCreatedEvent",
    "MessageReadEvent",
    "MatchCreatedEvent",
    "TypingEvent",
    "PresenceEvent",
    "ModerationWarningEvent",
]
