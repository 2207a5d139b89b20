"""
Matching API routes.
Provides the discovery feed, likes, passes and the match list.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.dependencies import get_current_user, limiter
from app.models.user import User
from app.schemas.match import (
    DiscoverResponse,
    LikeResponse,
    MatchListResponse,
    PassResponse,
    SwipeRequest,
)
from app.services.matching_service import MatchingService

router = APIRouter()


@router.get(
    "/discover",
    response_model=DiscoverResponse,
    summary="Discover users",
    description="Eligible users ordered by shared interests, then distance, then ID."
)
async def discover(
    limit: Optional[int] = Query(None, description="Page size (1-50, default 10; larger values are clamped)"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await MatchingService(db).discover(current_user, limit=limit)


@router.post(
    "/like",
    response_model=LikeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Like a user",
)
@limiter.limit("120/minute")
async def like(
    request: Request,
    data: SwipeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Like a user.

    - **target_user_id**: User being liked

    `is_matched` is true when this like completed a mutual match.
    """
    return await MatchingService(db).like(current_user, data.target_user_id)


@router.post(
    "/pass",
    response_model=PassResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Pass on a user",
)
@limiter.limit("120/minute")
async def pass_user(
    request: Request,
    data: SwipeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Hide a user from discovery permanently."""
    return await MatchingService(db).pass_user(current_user, data.target_user_id)


@router.get(
    "",
    response_model=MatchListResponse,
    summary="List my matches",
)
async def list_matches(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    matches = await MatchingService(db).list_matches(current_user)
    return MatchListResponse(matches=matches)
