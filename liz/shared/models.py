"""Identifier and timestamp columns shared by every table."""

from datetime import datetime, timezone

import ulid
from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

ULID_LENGTH = 26


def generate_ulid() -> str:
    """New ULID string; lexical order follows creation time."""
    return ulid.new().str


def ulid_pk() -> Mapped[str]:
    return mapped_column(String(ULID_LENGTH), primary_key=True, default=generate_ulid)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # Set in Python on every UPDATE, so the flushed object already holds the new value.
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )
