"""Re-target legacy self-reviews and forbid them with a check constraint.

A review's subject is the other party of the reviewed appointment. Rows
written with the author as their own subject are pointed at that party;
rows whose author did not take part in the appointment cannot be recovered
and are removed. Run ``recalculate_ratings.py`` afterwards so the rating
aggregates follow the moved reviews.

Revision ID: 7b3e9d2c4f18
Revises: 4e1c7a9b2d10
Create Date: 2026-03-02 09:41:07.518223

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "7b3e9d2c4f18"
down_revision: Union[str, Sequence[str], None] = "4e1c7a9b2d10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CONSTRAINT_NAME = "ck_reviews_distinct_parties"

RETARGET_SELF_REVIEWS = (
    """
    UPDATE reviews
    SET role_from = 'client',
        role_to = 'professional',
        to_user_id = (
            SELECT appointments.professional_id FROM appointments
            WHERE appointments.appointment_id = reviews.appointment_id
        )
    WHERE from_user_id = to_user_id
      AND from_user_id = (
            SELECT appointments.client_id FROM appointments
            WHERE appointments.appointment_id = reviews.appointment_id
        )
    """,
    """
    UPDATE reviews
    SET role_from = 'professional',
        role_to = 'client',
        to_user_id = (
            SELECT appointments.client_id FROM appointments
            WHERE appointments.appointment_id = reviews.appointment_id
        )
    WHERE from_user_id = to_user_id
      AND from_user_id = (
            SELECT appointments.professional_id FROM appointments
            WHERE appointments.appointment_id = reviews.appointment_id
        )
    """,
    "DELETE FROM reviews WHERE from_user_id = to_user_id",
)


def _is_postgres(bind) -> bool:
    return bind.dialect.name == "postgresql"


def upgrade() -> None:
    bind = op.get_bind()

    for statement in RETARGET_SELF_REVIEWS:
        op.execute(sa.text(statement))

    if _is_postgres(bind):
        op.create_check_constraint(CONSTRAINT_NAME, "reviews", "from_user_id <> to_user_id")
    else:
        with op.batch_alter_table("reviews") as batch_op:
            batch_op.create_check_constraint(CONSTRAINT_NAME, "from_user_id <> to_user_id")


def downgrade() -> None:
    bind = op.get_bind()

    if _is_postgres(bind):
        op.drop_constraint(CONSTRAINT_NAME, "reviews", type_="check")
    else:
        with op.batch_alter_table("reviews") as batch_op:
            batch_op.drop_constraint(CONSTRAINT_NAME, type_="check")
