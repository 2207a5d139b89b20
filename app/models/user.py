"""
User, Interest and Photo models.

A user carries account data, profile attributes and discovery preferences.
Users are never hard-deleted by their own actions; moderation deactivates them.
"""
import enum
from datetime import date, datetime
from typing import List

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, IdType, IntegerIDMixin, TimestampMixin, CreatedAtMixin, enum_column


class Gender(str, enum.Enum):
    """Enum for profile gender."""
    MALE = "male"
    FEMALE = "female"
    NON_BINARY = "non_binary"
    OTHER = "other"


class UserRole(str, enum.Enum):
    """Enum for account roles."""
    USER = "user"
    ADMIN = "admin"


user_interests = Table(
    "user_interests",
    Base.metadata,
    Column("user_id", IdType, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("interest_id", Integer, ForeignKey("interests.id", ondelete="CASCADE"), primary_key=True),
)


class Interest(Base):
    """Catalogue entry users can attach to their profile."""

    __tablename__ = "interests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        doc="Interest display name"
    )

    category: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="other",
        doc="Grouping such as sports, music, travel"
    )

    def __repr__(self) -> str:
        return f"<Interest(id={self.id}, name={self.name})>"


class User(Base, IntegerIDMixin, TimestampMixin):
    """
    User model - account, profile and discovery preferences.

    Invariants:
    - email is unique and stored lowercase
    - age_range_min >= 18 and age_range_max >= age_range_min
    - is_active=False hides the user from discovery and blocks message sends
    """

    __tablename__ = "users"

    # Account
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        doc="Normalized lowercase email"
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="bcrypt password hash"
    )

    role: Mapped[UserRole] = mapped_column(
        enum_column(UserRole, "user_role"),
        default=UserRole.USER,
        nullable=False,
        doc="Account role: 'user' or 'admin'"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        index=True,
        doc="False while banned; hides the user from discovery"
    )

    banned_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Reactivation time for a temporary ban (null for none/permanent)"
    )

    # Profile
    display_name: Mapped[str] = mapped_column(String(50), nullable=False)

    birth_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    gender: Mapped[Gender] = mapped_column(
        enum_column(Gender, "gender"),
        nullable=False
    )

    bio: Mapped[str] = mapped_column(Text, default="", nullable=False)

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Preferences
    show_age: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    max_distance_km: Mapped[int] = mapped_column(Integer, default=50, nullable=False)

    age_range_min: Mapped[int] = mapped_column(Integer, default=18, nullable=False)

    age_range_max: Mapped[int] = mapped_column(Integer, default=99, nullable=False)

    # Relationships
    interests: Mapped[List["Interest"]] = relationship(
        secondary=user_interests,
        lazy="selectin",
        order_by="Interest.id",
    )

    photos: Mapped[List["Photo"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=lambda: [Photo.display_order, Photo.id],
    )

    __table_args__ = (
        CheckConstraint("age_range_min >= 18", name="ck_users_age_range_min"),
        CheckConstraint("age_range_max >= age_range_min", name="ck_users_age_range_order"),
        CheckConstraint("max_distance_km BETWEEN 1 AND 100", name="ck_users_max_distance"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def interest_ids(self) -> set:
        return {interest.id for interest in self.interests}

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"


class Photo(Base, IntegerIDMixin, CreatedAtMixin):
    """
    Profile photo.

    At most one photo per user has is_primary=True, and exactly one does
    whenever the user has any photo.
    """

    __tablename__ = "photos"

    user_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    url: Mapped[str] = mapped_column(String(500), nullable=False)

    caption: Mapped[str | None] = mapped_column(String(200), nullable=True)

    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    mime_type: Mapped[str] = mapped_column(String(64), nullable=False)

    width: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    height: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    user: Mapped["User"] = relationship(back_populates="photos")

    def __repr__(self) -> str:
        return f"<Photo(id={self.id}, user_id={self.user_id}, is_primary={self.is_primary})>"


# Indexes for discovery prefiltering
Index("idx_users_location", User.latitude, User.longitude)
