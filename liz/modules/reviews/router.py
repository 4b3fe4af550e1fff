"""Review API routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from liz.core.database import get_db
from liz.core.deps import get_current_user, require_admin
from liz.core.exceptions import TransactionAbortedError
from liz.modules.reviews.aggregates import recalculate_all
from liz.modules.reviews.schemas import (
    AppointmentReviewStatus,
    RecalculationReport,
    ReviewCreate,
    ReviewPage,
    ReviewPublic,
    UserRatingStats,
)
from liz.modules.reviews.service import ReviewService
from liz.modules.users.models import User
from liz.shared.enums import ParticipantRole
from liz.shared.schemas import PaginationMeta

router = APIRouter(prefix="/api/v1/reviews", tags=["reviews"])
admin_router = APIRouter(prefix="/api/v1/admin/reviews", tags=["admin-reviews"])


def get_service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


def _page(items, total: int, page: int, limit: int) -> ReviewPage:
    return ReviewPage(
        data=[ReviewPublic.model_validate(item) for item in items],
        meta=PaginationMeta.build(total, page, limit),
    )


@router.post("", response_model=ReviewPublic, status_code=status.HTTP_201_CREATED)
async def create_review(
    payload: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_service),
) -> ReviewPublic:
    return await service.record_review(payload.appointment_id, current_user, payload.rating, payload.comment)


@router.get("", response_model=ReviewPage)
async def list_reviews(
    user_id: str | None = Query(default=None, description="Reviews received by this user"),
    from_user_id: str | None = Query(default=None, description="Reviews written by this user"),
    role_to: ParticipantRole | None = Query(default=None),
    min_rating: int | None = Query(default=None, ge=1, le=5),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    _: User = Depends(get_current_user),
    service: ReviewService = Depends(get_service),
) -> ReviewPage:
    items, total = await service.list_reviews(user_id, from_user_id, role_to, min_rating, page, limit)
    return _page(items, total, page, limit)


@router.get("/appointment/{appointment_id}", response_model=AppointmentReviewStatus)
async def my_review_for_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_service),
) -> AppointmentReviewStatus:
    review = await service.get_for_appointment(appointment_id, current_user)
    if review is None:
        return AppointmentReviewStatus(reviewed=False)
    return AppointmentReviewStatus(reviewed=True, review=ReviewPublic.model_validate(review))


@router.get("/professional/{professional_id}", response_model=ReviewPage)
async def list_professional_reviews(
    professional_id: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    _: User = Depends(get_current_user),
    service: ReviewService = Depends(get_service),
) -> ReviewPage:
    items, total = await service.list_for_professional(professional_id, page, limit)
    return _page(items, total, page, limit)


@router.get("/user/{user_id}/stats", response_model=UserRatingStats)
async def user_rating_stats(
    user_id: str,
    _: User = Depends(get_current_user),
    service: ReviewService = Depends(get_service),
) -> UserRatingStats:
    return await service.user_stats(user_id)


@router.get("/{review_id}", response_model=ReviewPublic)
async def get_review(
    review_id: str,
    _: User = Depends(get_current_user),
    service: ReviewService = Depends(get_service),
) -> ReviewPublic:
    return await service.get_review(review_id)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(
    review_id: str,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_service),
) -> None:
    await service.delete_review(review_id, current_user)


@admin_router.post("/recalculate", response_model=RecalculationReport)
async def recalculate_ratings(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> RecalculationReport:
    try:
        users = await recalculate_all(db)
        await db.commit()
    except DBAPIError as exc:
        await db.rollback()
        raise TransactionAbortedError() from exc
    return RecalculationReport(users_recomputed=users)
