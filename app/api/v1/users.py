"""
User API routes.
Provides endpoints for the caller's profile, photos, interests and notifications.
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.user import (
    InterestListResponse,
    InterestResponse,
    NotificationListResponse,
    PhotoResponse,
    ProfileResponse,
    ProfileUpdate,
)
from app.services.notification_service import NotificationService
from app.services.user_service import UserService

router = APIRouter()


@router.get(
    "/profile",
    response_model=ProfileResponse,
    summary="Get my profile",
)
async def get_profile(
    current_user: User = Depends(get_current_user)
):
    """Full profile of the authenticated user, including photos and interests."""
    return ProfileResponse.from_user(current_user)


@router.put(
    "/profile",
    response_model=ProfileResponse,
    summary="Update my profile",
    description="Partial update; only fields present in the body are changed."
)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update profile fields.

    - **location**: `{latitude, longitude}`, or `null` to clear it
    - **interests**: Interest catalogue IDs (replaces the current set)
    - **age_range_min / age_range_max**: 18..99, min <= max
    - **max_distance_km**: 1..100
    """
    patch = data.model_dump(exclude_unset=True)
    return await UserService(db).update_profile(current_user, patch)


@router.post(
    "/photos",
    response_model=PhotoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a profile photo",
)
async def upload_photo(
    file: UploadFile = File(..., description="JPEG, PNG, GIF or WEBP image"),
    is_primary: bool = Form(False),
    caption: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Upload a photo (multipart form).

    The content type is detected from the bytes, not the client header.
    The first photo always becomes primary.
    """
    # One byte past the ceiling is enough to reject oversized uploads
    data = await file.read(settings.max_photo_bytes + 1)
    return await UserService(db).add_photo(
        current_user,
        data,
        is_primary=is_primary,
        caption=caption,
    )


@router.delete(
    "/photos/{photo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a profile photo",
)
async def delete_photo(
    photo_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await UserService(db).delete_photo(current_user, photo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/interests",
    response_model=InterestListResponse,
    summary="List the interest catalogue",
)
async def list_interests(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    interests = await UserService(db).list_interests()
    return InterestListResponse(
        interests=[InterestResponse.model_validate(i) for i in interests]
    )


@router.get(
    "/notifications",
    response_model=NotificationListResponse,
    summary="List my notifications",
)
async def list_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Moderation notices addressed to the caller, newest first."""
    notifications = await NotificationService(db).list_for_user(current_user.id)
    return NotificationListResponse(notifications=notifications)
