"""
API v1 router exports.
Provides API endpoint routers.
"""
from app.api.v1 import admin, auth, blocks, chats, matches, reports, users

__all__ = [
    "admin",
    "auth",
    "blocks",
    "chats",
    "matches",
    "reports",
    "users",
]
