"""Review service layer: recording, deleting and reading ratings."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from liz.core.exceptions import (
    BusinessLogicError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    TransactionAbortedError,
)
from liz.modules.appointments.lifecycle import counterpart_id, participant_role
from liz.modules.appointments.models import Appointment
from liz.modules.reviews.aggregates import recompute_rating_for, summarize
from liz.modules.reviews.models import Review
from liz.modules.reviews.schemas import UserRatingStats
from liz.modules.users.models import User
from liz.shared.enums import AppointmentStatus, ParticipantRole, UserType

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class ReviewService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def record_review(
        self,
        appointment_id: str,
        author: User,
        rating: int,
        comment: str | None = None,
    ) -> Review:
        if not MIN_RATING <= rating <= MAX_RATING:
            raise BusinessLogicError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

        author_id = author.user_id
        appointment = await self.db.get(Appointment, appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")

        role_from = participant_role(appointment, author_id)
        if role_from is None:
            raise ForbiddenError("You can only review your own appointments")

        if appointment.status != AppointmentStatus.COMPLETED:
            raise InvalidStateError("Only completed appointments can be reviewed")

        # The subject always comes from the appointment, so an author can never target themselves.
        to_user_id = counterpart_id(appointment, role_from)

        existing = await self._find(appointment_id, author_id)
        if existing is not None:
            logger.warning("duplicate review of appointment %s by %s", appointment_id, author_id)
            raise ConflictError("You already reviewed this appointment")

        review = Review(
            appointment_id=appointment_id,
            from_user_id=author_id,
            to_user_id=to_user_id,
            role_from=role_from,
            role_to=role_from.counterpart,
            rating=rating,
            comment=comment,
        )
        self.db.add(review)
        try:
            await self.db.flush()
            await recompute_rating_for(self.db, to_user_id)
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.warning("concurrent duplicate review of appointment %s by %s", appointment_id, author_id)
            raise ConflictError("You already reviewed this appointment") from exc
        except DBAPIError as exc:
            await self.db.rollback()
            logger.error("review of appointment %s aborted: %s", appointment_id, exc)
            raise TransactionAbortedError() from exc
        except BusinessLogicError:
            await self.db.rollback()
            raise

        await self.db.refresh(review)
        logger.info(
            "review %s recorded: %s (%s) rated %s (%s) %s",
            review.review_id,
            review.from_user_id,
            review.role_from,
            review.to_user_id,
            review.role_to,
            review.rating,
        )
        return review

    async def delete_review(self, review_id: str, actor: User) -> None:
        review = await self.get_review(review_id)
        if review.from_user_id != actor.user_id and actor.user_type != UserType.ADMIN:
            raise ForbiddenError("Only the author or admin can delete reviews")

        target_user_id = review.to_user_id
        try:
            await self.db.delete(review)
            await self.db.flush()
            await recompute_rating_for(self.db, target_user_id)
            await self.db.commit()
        except DBAPIError as exc:
            await self.db.rollback()
            logger.error("deletion of review %s aborted: %s", review_id, exc)
            raise TransactionAbortedError() from exc
        except BusinessLogicError:
            await self.db.rollback()
            raise
        logger.info("review %s deleted by %s", review_id, actor.user_id)

    async def get_review(self, review_id: str) -> Review:
        review = await self.db.get(Review, review_id)
        if review is None:
            raise NotFoundError("Review not found")
        return review

    async def get_for_appointment(self, appointment_id: str, user: User) -> Review | None:
        """The review ``user`` wrote for ``appointment_id``, if any."""
        return await self._find(appointment_id, user.user_id)

    async def list_reviews(
        self,
        to_user_id: str | None = None,
        from_user_id: str | None = None,
        role_to: ParticipantRole | None = None,
        min_rating: int | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Review], int]:
        conditions = []
        if to_user_id:
            conditions.append(Review.to_user_id == to_user_id)
        if from_user_id:
            conditions.append(Review.from_user_id == from_user_id)
        if role_to:
            conditions.append(Review.role_to == role_to)
        if min_rating:
            conditions.append(Review.rating >= min_rating)

        total = (await self.db.execute(select(func.count(Review.review_id)).where(*conditions))).scalar_one()
        stmt = (
            select(Review)
            .where(*conditions)
            .order_by(Review.created_at.desc(), Review.review_id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def list_for_professional(self, professional_id: str, page: int = 1, limit: int = 10) -> tuple[list[Review], int]:
        return await self.list_reviews(
            to_user_id=professional_id,
            role_to=ParticipantRole.PROFESSIONAL,
            page=page,
            limit=limit,
        )

    async def user_stats(self, user_id: str) -> UserRatingStats:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")

        primary = ParticipantRole.PROFESSIONAL if user.user_type == UserType.PROFESSIONAL else ParticipantRole.CLIENT
        secondary = primary.counterpart
        primary_summary = await summarize(self.db, user_id, primary)
        secondary_summary = await summarize(self.db, user_id, secondary)

        distribution = {str(score): 0 for score in range(MIN_RATING, MAX_RATING + 1)}
        rows = await self.db.execute(
            select(Review.rating, func.count(Review.review_id))
            .where(Review.to_user_id == user_id, Review.role_to == primary)
            .group_by(Review.rating)
        )
        for score, count in rows.all():
            distribution[str(score)] = count

        return UserRatingStats(
            user_id=user_id,
            primary_role=primary,
            average_rating=primary_summary.average,
            total_reviews=primary_summary.count,
            rating_distribution=distribution,
            secondary_role=secondary,
            secondary_average_rating=secondary_summary.average,
            secondary_total_reviews=secondary_summary.count,
        )

    async def _find(self, appointment_id: str, from_user_id: str) -> Review | None:
        result = await self.db.execute(
            select(Review).where(
                Review.appointment_id == appointment_id,
                Review.from_user_id == from_user_id,
            )
        )
        return result.scalar_one_or_none()
