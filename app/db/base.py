"""Shared declarative base and column helpers for the ORM models."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current time; the single clock used for stored timestamps."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class imported by all model modules to register metadata."""

    pass


class TimestampMixin:
    """`created_at` / `updated_at` columns filled from the application clock."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
