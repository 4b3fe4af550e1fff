"""Catalog ORM models (categories, subcategories, professional pricing)."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from liz.core.database import Base
from liz.shared.models import TimestampMixin, ulid_pk


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    category_id: Mapped[str] = ulid_pk()
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    icon: Mapped[str | None] = mapped_column(String(120))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    subcategories: Mapped[list["Subcategory"]] = relationship(back_populates="category")


class Subcategory(Base, TimestampMixin):
    __tablename__ = "subcategories"
    __table_args__ = (UniqueConstraint("category_id", "name", name="uq_subcategory_name_per_category"),)

    subcategory_id: Mapped[str] = ulid_pk()
    category_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("categories.category_id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    category: Mapped["Category"] = relationship(back_populates="subcategories")


class ProfessionalService(Base, TimestampMixin):
    """A professional's current price for one subcategory."""

    __tablename__ = "professional_services"
    __table_args__ = (
        UniqueConstraint("professional_id", "subcategory_id", name="uq_professional_service"),
        CheckConstraint("price >= 0", name="ck_professional_service_price_positive"),
    )

    professional_service_id: Mapped[str] = ulid_pk()
    professional_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    subcategory_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("subcategories.subcategory_id", ondelete="CASCADE"),
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    subcategory: Mapped["Subcategory"] = relationship()
