"""ORM models for the users domain."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from liz.core.database import Base
from liz.shared.enums import UserType, enum_values
from liz.shared.models import TimestampMixin, ulid_pk


class User(Base, TimestampMixin):
    __tablename__ = "users"

    user_id: Mapped[str] = ulid_pk()
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(32))
    avatar_url: Mapped[str | None] = mapped_column(String(255))
    user_type: Mapped[UserType] = mapped_column(
        Enum(
            UserType,
            values_callable=enum_values,
            validate_strings=True,
            name="usertype",
        ),
        nullable=False,
        default=UserType.CLIENT,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Denormalized from reviews with role_to=client; rewritten by the rating aggregator only.
    client_rating_avg: Mapped[Decimal] = mapped_column(Numeric(3, 1), default=Decimal("0"), nullable=False)
    client_review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class ProfessionalProfile(Base, TimestampMixin):
    __tablename__ = "professional_profiles"

    profile_id: Mapped[str] = ulid_pk()
    user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    bio: Mapped[str | None] = mapped_column(String(500))
    # Denormalized from reviews with role_to=professional.
    rating_avg: Mapped[Decimal] = mapped_column(Numeric(3, 1), default=Decimal("0"), nullable=False)
    review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    services_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Address(Base, TimestampMixin):
    __tablename__ = "addresses"

    address_id: Mapped[str] = ulid_pk()
    user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str | None] = mapped_column(String(60))
    street: Mapped[str] = mapped_column(String(200), nullable=False)
    number: Mapped[str] = mapped_column(String(20), nullable=False)
    complement: Mapped[str | None] = mapped_column(String(120))
    neighborhood: Mapped[str] = mapped_column(String(120), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(2), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(10), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


# Late imports so every mapped table is registered alongside users.
from liz.modules.appointments.models import Appointment  # noqa: E402,F401
from liz.modules.catalog.models import Category, ProfessionalService, Subcategory  # noqa: E402,F401
from liz.modules.reviews.models import Review  # noqa: E402,F401
