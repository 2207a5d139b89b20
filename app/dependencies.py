"""
Dependency injection for FastAPI routes.
Provides reusable dependencies for authentication, database sessions, etc.
"""
from typing import Optional

from fastapi import Depends, Header
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import get_db
from app.core.errors import Forbidden, NotFound
from app.core.security import extract_token_from_header, user_id_from_token
from app.models.user import User
from app.repositories.user_repo import UserRepository

# Shared rate limiter; routes decorate with @limiter.limit(...)
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user.

    Flow:
    1. Extract the bearer token from the Authorization header
    2. Validate it as an access token and read the user ID
    3. Load the user from the database (same session as the route)

    Suspended users are returned as well; services decide which actions
    they may still perform.

    Args:
        authorization: Authorization header containing Bearer token
        db: Database session

    Returns:
        The authenticated User

    Raises:
        Unauthenticated: 401 if the token is missing, malformed, invalid or expired
        NotFound: 404 if the user no longer exists

    Example:
        ```python
        @router.get("/profile")
        async def profile(current_user: User = Depends(get_current_user)):
            return {"id": current_user.id}
        ```
    """
    token = extract_token_from_header(authorization)
    user_id = user_id_from_token(token)

    user = await UserRepository(db).get(user_id)
    if user is None:
        raise NotFound("User not found")
    return user


async def get_admin_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Dependency to verify the current user is an admin.

    Raises:
        Forbidden: 403 if the user is not an admin
    """
    if not current_user.is_admin:
        raise Forbidden("Admin privileges required")
    return current_user
