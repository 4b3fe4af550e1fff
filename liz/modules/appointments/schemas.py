"""Appointments schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from liz.shared.enums import AppointmentAction, AppointmentStatus
from liz.shared.schemas import PaginationMeta


class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appointment_id: str = Field(serialization_alias="id")
    order_number: str
    client_id: str
    professional_id: str
    subcategory_id: str
    address_id: str
    status: AppointmentStatus
    scheduled_date: date
    scheduled_time: str
    price: Decimal
    estimated_duration_minutes: int
    notes: str | None = None
    cancellation_reason: str | None = None
    confirmed_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AppointmentDetail(AppointmentPublic):
    allowed_actions: list[AppointmentAction] = []


class AppointmentPage(BaseModel):
    data: list[AppointmentPublic]
    meta: PaginationMeta


class AppointmentCreate(BaseModel):
    professional_id: str
    subcategory_id: str
    address_id: str
    scheduled_date: date
    scheduled_time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    notes: str | None = Field(default=None, max_length=1000)


class TransitionReason(BaseModel):
    reason: str | None = Field(default=None, max_length=500)
