"""Review ORM model."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from liz.core.database import Base
from liz.shared.enums import ParticipantRole, enum_values
from liz.shared.models import TimestampMixin, ulid_pk


def _participant_role() -> Enum:
    return Enum(
        ParticipantRole,
        values_callable=enum_values,
        validate_strings=True,
        name="participantrole",
    )


class Review(Base, TimestampMixin):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("appointment_id", "from_user_id", name="uq_review_appointment_author"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
        CheckConstraint("from_user_id <> to_user_id", name="ck_reviews_distinct_parties"),
        Index("ix_reviews_target_role", "to_user_id", "role_to"),
    )

    review_id: Mapped[str] = ulid_pk()
    appointment_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
        nullable=False,
    )
    from_user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    to_user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    role_from: Mapped[ParticipantRole] = mapped_column(_participant_role(), nullable=False)
    role_to: Mapped[ParticipantRole] = mapped_column(_participant_role(), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text)
