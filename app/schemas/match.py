"""
Pydantic schemas for discovery, swipes and matches.
"""
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from app.schemas.user import UserCard


class SwipeRequest(BaseModel):
    """Schema for a like or pass; ``target_user_id`` must be a JSON integer."""

    target_user_id: StrictInt = Field(..., description="User being liked or passed")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "target_user_id": 42
            }
        }
    )


class LikeResponse(BaseModel):
    """
    Result of a like.

    ``match_id`` is 0 unless this like completed a mutual match.
    """

    match_id: int
    is_matched: bool
    message: str


class PassResponse(BaseModel):
    message: str


class DiscoverResponse(BaseModel):
    """Discovery page; ``has_more`` is true when more eligible users exist."""

    users: List[UserCard]
    has_more: bool


class MatchResponse(BaseModel):
    """A current match with the counterparty's card."""

    match_id: int
    user: UserCard
    created_at: datetime


class MatchListResponse(BaseModel):
    matches: List[MatchResponse]
