"""Review schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from liz.shared.enums import ParticipantRole
from liz.shared.schemas import PaginationMeta


class ReviewCreate(BaseModel):
    appointment_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=1000)


class ReviewPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    review_id: str = Field(serialization_alias="id")
    appointment_id: str
    from_user_id: str
    to_user_id: str
    role_from: ParticipantRole
    role_to: ParticipantRole
    rating: int
    comment: str | None = None
    created_at: datetime
    updated_at: datetime


class ReviewPage(BaseModel):
    data: list[ReviewPublic]
    meta: PaginationMeta


class AppointmentReviewStatus(BaseModel):
    reviewed: bool
    review: ReviewPublic | None = None


class UserRatingStats(BaseModel):
    user_id: str
    primary_role: ParticipantRole
    average_rating: Decimal
    total_reviews: int
    rating_distribution: dict[str, int]
    secondary_role: ParticipantRole
    secondary_average_rating: Decimal
    secondary_total_reviews: int


class RecalculationReport(BaseModel):
    users_recomputed: int
