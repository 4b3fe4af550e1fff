"""Denormalized rating aggregates.

``ProfessionalProfile.rating_avg``/``review_count`` and
``User.client_rating_avg``/``client_review_count`` are caches of the reviews
table. They are always rebuilt from the reviews themselves, never adjusted
incrementally, and always inside the caller's transaction: none of the
helpers here commit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from liz.core.exceptions import NotFoundError
from liz.modules.reviews.models import Review
from liz.modules.users.models import ProfessionalProfile, User
from liz.shared.enums import ParticipantRole

logger = logging.getLogger(__name__)

RATING_QUANTUM = Decimal("0.1")
ZERO_RATING = Decimal("0.0")


@dataclass(frozen=True)
class RatingSummary:
    count: int
    average: Decimal


def round_rating(value: float | Decimal | None) -> Decimal:
    """Round an average to one decimal, halves away from zero."""
    if value is None:
        return ZERO_RATING
    return Decimal(str(value)).quantize(RATING_QUANTUM, rounding=ROUND_HALF_UP)


async def summarize(db: AsyncSession, user_id: str, role: ParticipantRole) -> RatingSummary:
    """Count and mean of the reviews ``user_id`` received in ``role``."""
    stmt = select(func.count(Review.review_id), func.avg(Review.rating)).where(
        Review.to_user_id == user_id,
        Review.role_to == role,
    )
    count, average = (await db.execute(stmt)).one()
    if not count:
        return RatingSummary(count=0, average=ZERO_RATING)
    return RatingSummary(count=count, average=round_rating(average))


async def recompute_rating_for(db: AsyncSession, user_id: str) -> tuple[RatingSummary | None, RatingSummary]:
    """Rewrite both aggregate pairs of ``user_id`` from the reviews table.

    The user row and, when present, the professional profile row are locked
    first so concurrent recomputes for the same target serialize on the
    database instead of overwriting each other with stale counts. Returns the
    professional summary (``None`` when the user has no profile) and the
    client summary.
    """
    user = (
        await db.execute(
            select(User)
            .where(User.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")

    profile = (
        await db.execute(
            select(ProfessionalProfile)
            .where(ProfessionalProfile.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()

    professional: RatingSummary | None = None
    if profile is not None:
        professional = await summarize(db, user_id, ParticipantRole.PROFESSIONAL)
        profile.rating_avg = professional.average
        profile.review_count = professional.count

    client = await summarize(db, user_id, ParticipantRole.CLIENT)
    user.client_rating_avg = client.average
    user.client_review_count = client.count

    await db.flush()
    logger.info(
        "ratings recomputed for %s: professional=%s client=%s/%s",
        user_id,
        f"{professional.average}/{professional.count}" if professional else "n/a",
        client.average,
        client.count,
    )
    return professional, client


async def recalculate_all(db: AsyncSession) -> int:
    """Recompute every user's aggregates; returns how many users were touched."""
    user_ids = list((await db.execute(select(User.user_id).order_by(User.user_id))).scalars().all())
    for user_id in user_ids:
        await recompute_rating_for(db, user_id)
    return len(user_ids)
