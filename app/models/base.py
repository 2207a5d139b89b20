"""
Base model classes and mixins for SQLAlchemy ORM.
Provides common functionality for all database models.
"""
import enum
from datetime import datetime
from typing import Type

from sqlalchemy import BigInteger, DateTime, Enum as SQLEnum, Integer, func
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.utils.datetime_utils import utc_now

# BIGINT primary keys on PostgreSQL; SQLite only autoincrements INTEGER rowid aliases
IdType = BigInteger().with_variant(Integer, "sqlite")


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Includes AsyncAttrs mixin for async relationship access.
    All models should inherit from this class.
    """
    pass


class IntegerIDMixin:
    """Mixin for a server-assigned, monotonically increasing integer primary key."""

    id: Mapped[int] = mapped_column(
        IdType,
        primary_key=True,
        autoincrement=True,
        doc="Integer primary key"
    )


class CreatedAtMixin:
    """Mixin for the creation timestamp."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        doc="Timestamp when the record was created"
    )


class TimestampMixin(CreatedAtMixin):
    """Mixin for created_at and updated_at timestamps."""

    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=utc_now,
        nullable=True,
        doc="Timestamp when the record was last updated"
    )


def enum_column(enum_cls: Type[enum.Enum], name: str) -> SQLEnum:
    """
    Non-native enum column that stores member values (e.g. "male"), not names.
    """
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
