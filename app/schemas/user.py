"""
User schemas for API request/response validation.
Covers registration, login, profile views and the public user card.
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.user import Photo, User
from app.utils.datetime_utils import calculate_age, ensure_utc
from app.utils.helpers import round_distance


# ============================================================================
# Request Schemas
# ============================================================================

class RegisterRequest(BaseModel):
    """Schema for account registration."""

    email: str = Field(..., description="Email address (case-insensitive)")
    password: str = Field(..., description="At least 8 characters with a letter and a digit")
    birth_date: date = Field(..., description="Birth date (YYYY-MM-DD); must be 18 or older")
    display_name: str = Field(..., description="Public name, up to 50 characters")
    gender: str = Field(..., description="male, female, non_binary or other")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "user@example.com",
                "password": "SecurePassword123",
                "birth_date": "1995-06-15",
                "display_name": "John",
                "gender": "male"
            }
        }
    )


class LoginRequest(BaseModel):
    """Schema for email/password login."""

    email: str
    password: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "user@example.com",
                "password": "SecurePassword123"
            }
        }
    )


class RefreshRequest(BaseModel):
    """Schema for exchanging a refresh token."""

    refresh_token: str


class LocationSchema(BaseModel):
    """Geographic point in decimal degrees."""

    latitude: float
    longitude: float


class ProfileUpdate(BaseModel):
    """
    Schema for partial profile updates.

    Only fields present in the request body are applied; an empty body
    is a valid no-op. ``location: null`` clears the stored location.
    """

    display_name: Optional[str] = None
    bio: Optional[str] = None
    gender: Optional[str] = None
    location: Optional[LocationSchema] = None
    show_age: Optional[bool] = None
    max_distance_km: Optional[int] = None
    age_range_min: Optional[int] = None
    age_range_max: Optional[int] = None
    interests: Optional[List[int]] = Field(None, description="Interest catalogue IDs")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "bio": "Coffee, hiking and bad puns",
                "max_distance_km": 25,
                "age_range_min": 25,
                "age_range_max": 35,
                "interests": [1, 4, 9]
            }
        }
    )


# ============================================================================
# Response Schemas
# ============================================================================

class RegisterResponse(BaseModel):
    """Response after successful registration."""

    message: str
    user_id: int


class TokenUser(BaseModel):
    """User summary embedded in the login response."""

    id: int
    email: str
    display_name: str


class TokenResponse(BaseModel):
    """Access/refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(TokenResponse):
    """Response after successful login."""

    user: TokenUser


class InterestResponse(BaseModel):
    """Interest catalogue entry."""

    id: int
    name: str
    category: str

    model_config = ConfigDict(from_attributes=True)


class InterestListResponse(BaseModel):
    interests: List[InterestResponse]


class PhotoResponse(BaseModel):
    """Profile photo."""

    id: int
    url: str
    caption: Optional[str] = None
    is_primary: bool
    mime_type: str
    width: int
    height: int
    display_order: int
    created_at: datetime

    @classmethod
    def from_photo(cls, photo: Photo) -> "PhotoResponse":
        return cls(
            id=photo.id,
            url=photo.url,
            caption=photo.caption,
            is_primary=photo.is_primary,
            mime_type=photo.mime_type,
            width=photo.width,
            height=photo.height,
            display_order=photo.display_order,
            created_at=ensure_utc(photo.created_at),
        )


class ProfileResponse(BaseModel):
    """Full profile of the authenticated user."""

    id: int
    email: str
    display_name: str
    birth_date: date
    age: int
    gender: str
    bio: str
    location: Optional[LocationSchema] = None
    show_age: bool
    max_distance_km: int
    age_range_min: int
    age_range_max: int
    interests: List[InterestResponse]
    photos: List[PhotoResponse]
    role: str
    is_active: bool
    created_at: datetime

    @classmethod
    def from_user(cls, user: User, today: Optional[date] = None) -> "ProfileResponse":
        location = None
        if user.has_location:
            location = LocationSchema(latitude=user.latitude, longitude=user.longitude)

        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            birth_date=user.birth_date,
            age=calculate_age(user.birth_date, today),
            gender=user.gender.value,
            bio=user.bio,
            location=location,
            show_age=user.show_age,
            max_distance_km=user.max_distance_km,
            age_range_min=user.age_range_min,
            age_range_max=user.age_range_max,
            interests=[InterestResponse.model_validate(i) for i in user.interests],
            photos=[PhotoResponse.from_photo(p) for p in user.photos],
            role=user.role.value,
            is_active=user.is_active,
            created_at=ensure_utc(user.created_at),
        )


class UserCard(BaseModel):
    """
    Public projection of a user shown in discovery, match and chat lists.

    ``age`` is omitted (null) when the user hides it; ``distance_km`` is
    null when either side has no location.
    """

    id: int
    display_name: str
    age: Optional[int] = None
    bio: str
    photos: List[PhotoResponse]
    interests: List[InterestResponse]
    distance_km: Optional[float] = None

    @classmethod
    def from_user(
        cls,
        user: User,
        distance_km: Optional[float] = None,
        today: Optional[date] = None
    ) -> "UserCard":
        return cls(
            id=user.id,
            display_name=user.display_name,
            age=calculate_age(user.birth_date, today) if user.show_age else None,
            bio=user.bio,
            photos=[PhotoResponse.from_photo(p) for p in user.photos],
            interests=[InterestResponse.model_validate(i) for i in user.interests],
            distance_km=round_distance(distance_km),
        )


class NotificationResponse(BaseModel):
    """Stored notification addressed to the caller."""

    id: int
    kind: str
    title: str
    body: str
    payload: dict
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]

