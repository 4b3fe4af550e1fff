"""Initial schema for the liz marketplace backend.

Revision ID: 4e1c7a9b2d10
Revises:
Create Date: 2026-02-16 10:12:31.204117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4e1c7a9b2d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_type = sa.Enum("client", "professional", "admin", name="usertype")
participant_role = sa.Enum("client", "professional", name="participantrole")
appointment_status = sa.Enum(
    "pending",
    "confirmed",
    "on_way",
    "in_progress",
    "completed",
    "cancelled",
    "rejected",
    name="appointmentstatus",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(length=26), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("phone_number", sa.String(length=32)),
        sa.Column("avatar_url", sa.String(length=255)),
        sa.Column("user_type", user_type, nullable=False, server_default="client"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("client_rating_avg", sa.Numeric(3, 1), nullable=False, server_default="0"),
        sa.Column("client_review_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "professional_profiles",
        sa.Column("profile_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(length=26),
            sa.ForeignKey("users.user_id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("bio", sa.String(length=500)),
        sa.Column("rating_avg", sa.Numeric(3, 1), nullable=False, server_default="0"),
        sa.Column("review_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("services_completed", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "addresses",
        sa.Column("address_id", sa.String(length=26), primary_key=True),
        sa.Column("user_id", sa.String(length=26), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("label", sa.String(length=60)),
        sa.Column("street", sa.String(length=200), nullable=False),
        sa.Column("number", sa.String(length=20), nullable=False),
        sa.Column("complement", sa.String(length=120)),
        sa.Column("neighborhood", sa.String(length=120), nullable=False),
        sa.Column("city", sa.String(length=120), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=False),
        sa.Column("zip_code", sa.String(length=10), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_addresses_user_id", "addresses", ["user_id"])

    op.create_table(
        "categories",
        sa.Column("category_id", sa.String(length=26), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("icon", sa.String(length=120)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "subcategories",
        sa.Column("subcategory_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "category_id",
            sa.String(length=26),
            sa.ForeignKey("categories.category_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.String(length=255)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("category_id", "name", name="uq_subcategory_name_per_category"),
    )

    op.create_table(
        "professional_services",
        sa.Column("professional_service_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "professional_id",
            sa.String(length=26),
            sa.ForeignKey("users.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "subcategory_id",
            sa.String(length=26),
            sa.ForeignKey("subcategories.subcategory_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("professional_id", "subcategory_id", name="uq_professional_service"),
        sa.CheckConstraint("price >= 0", name="ck_professional_service_price_positive"),
    )

    op.create_table(
        "appointments",
        sa.Column("appointment_id", sa.String(length=26), primary_key=True),
        sa.Column("order_number", sa.String(length=32), nullable=False, unique=True),
        sa.Column("client_id", sa.String(length=26), sa.ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False),
        sa.Column(
            "professional_id",
            sa.String(length=26),
            sa.ForeignKey("users.user_id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "subcategory_id",
            sa.String(length=26),
            sa.ForeignKey("subcategories.subcategory_id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "address_id",
            sa.String(length=26),
            sa.ForeignKey("addresses.address_id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("status", appointment_status, nullable=False, server_default="pending"),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("scheduled_time", sa.String(length=5), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("estimated_duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("notes", sa.Text()),
        sa.Column("cancellation_reason", sa.String(length=500)),
        sa.Column("confirmed_at", sa.DateTime(timezone=True)),
        sa.Column("started_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.CheckConstraint("client_id <> professional_id", name="ck_appointments_distinct_parties"),
        sa.CheckConstraint("price >= 0", name="ck_appointments_price_positive"),
    )
    op.create_index("ix_appointments_client_scheduled", "appointments", ["client_id", "scheduled_date"])
    op.create_index("ix_appointments_professional_scheduled", "appointments", ["professional_id", "scheduled_date"])

    op.create_table(
        "reviews",
        sa.Column("review_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "appointment_id",
            sa.String(length=26),
            sa.ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("from_user_id", sa.String(length=26), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("to_user_id", sa.String(length=26), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("role_from", participant_role, nullable=False),
        sa.Column("role_to", participant_role, nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text()),
        *_timestamps(),
        sa.UniqueConstraint("appointment_id", "from_user_id", name="uq_review_appointment_author"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )
    op.create_index("ix_reviews_target_role", "reviews", ["to_user_id", "role_to"])


def downgrade() -> None:
    op.drop_index("ix_reviews_target_role", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("ix_appointments_professional_scheduled", table_name="appointments")
    op.drop_index("ix_appointments_client_scheduled", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("professional_services")
    op.drop_table("subcategories")
    op.drop_table("categories")
    op.drop_index("ix_addresses_user_id", table_name="addresses")
    op.drop_table("addresses")
    op.drop_table("professional_profiles")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    appointment_status.drop(bind, checkfirst=True)
    participant_role.drop(bind, checkfirst=True)
    user_type.drop(bind, checkfirst=True)
