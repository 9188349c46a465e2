"""SQLAlchemy declarative base, column types and common mixins."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, String, TypeDecorator
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from academy.core.constants import MOBILE_NUMBER_LENGTH


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware datetime stored as naive UTC.

    SQLite has no timezone support, so values are normalized to UTC on the
    way in and re-tagged as UTC on the way out.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value
        return value.astimezone(UTC).replace(tzinfo=None)

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps.

    Timestamps are set client-side so they are populated on the instance
    right after flush without a refresh round-trip.
    """

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class OwnerScopedMixin:
    """Mixin for records that live in an OWNER's partition.

    ``owner_identity`` is the OWNER's phone; TEACHER principals read and
    write through their linked owner. There is no foreign key, partition
    cleanup is done explicitly by the administrator cascade.
    """

    owner_identity: Mapped[str] = mapped_column(
        String(MOBILE_NUMBER_LENGTH),
        index=True,
        nullable=False,
    )
