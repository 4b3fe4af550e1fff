"""Appointment ORM model."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from liz.core.database import Base
from liz.shared.enums import AppointmentStatus, enum_values
from liz.shared.models import TimestampMixin, ulid_pk


class Appointment(Base, TimestampMixin):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_client_scheduled", "client_id", "scheduled_date"),
        Index("ix_appointments_professional_scheduled", "professional_id", "scheduled_date"),
        CheckConstraint("client_id <> professional_id", name="ck_appointments_distinct_parties"),
        CheckConstraint("price >= 0", name="ck_appointments_price_positive"),
    )

    appointment_id: Mapped[str] = ulid_pk()
    order_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    client_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="RESTRICT"),
        nullable=False,
    )
    professional_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="RESTRICT"),
        nullable=False,
    )
    subcategory_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("subcategories.subcategory_id", ondelete="RESTRICT"),
        nullable=False,
    )
    address_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("addresses.address_id", ondelete="RESTRICT"),
        nullable=False,
    )
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(
            AppointmentStatus,
            values_callable=enum_values,
            validate_strings=True,
            name="appointmentstatus",
        ),
        default=AppointmentStatus.PENDING,
        nullable=False,
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    scheduled_time: Mapped[str] = mapped_column(String(5), nullable=False)
    # Copied from ProfessionalService.price at booking; later catalog edits do not apply.
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    estimated_duration_minutes: Mapped[int] = mapped_column(Integer, default=60, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    cancellation_reason: Mapped[str | None] = mapped_column(String(500))

    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
