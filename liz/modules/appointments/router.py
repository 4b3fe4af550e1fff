"""Appointments API routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from liz.core.database import get_db
from liz.core.deps import get_current_user
from liz.modules.appointments.lifecycle import allowed_actions
from liz.modules.appointments.schemas import (
    AppointmentCreate,
    AppointmentDetail,
    AppointmentPage,
    AppointmentPublic,
    TransitionReason,
)
from liz.modules.appointments.service import AppointmentService
from liz.modules.users.models import User
from liz.shared.enums import AppointmentStatus
from liz.shared.schemas import PaginationMeta

router = APIRouter(prefix="/api/v1/appointments", tags=["appointments"])


def get_service(db: AsyncSession = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.create_booking(payload, current_user)


@router.get("", response_model=AppointmentPage)
async def list_appointments(
    status_filter: AppointmentStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPage:
    items, total = await service.list_for_user(current_user, status_filter, page, limit)
    return AppointmentPage(
        data=[AppointmentPublic.model_validate(item) for item in items],
        meta=PaginationMeta.build(total, page, limit),
    )


@router.get("/{appointment_id}", response_model=AppointmentDetail)
async def get_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> AppointmentDetail:
    appointment = await service.get_for_user(appointment_id, current_user)
    detail = AppointmentDetail.model_validate(appointment)
    detail.allowed_actions = allowed_actions(appointment, current_user.user_id)
    return detail


@router.patch("/{appointment_id}/confirm", response_model=AppointmentPublic)
async def confirm_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.confirm(appointment_id, current_user)


@router.patch("/{appointment_id}/reject", response_model=AppointmentPublic)
async def reject_appointment(
    appointment_id: str,
    payload: TransitionReason | None = None,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.reject(appointment_id, current_user, payload.reason if payload else None)


@router.patch("/{appointment_id}/on-way", response_model=AppointmentPublic)
async def mark_on_way(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.mark_on_way(appointment_id, current_user)


@router.patch("/{appointment_id}/start", response_model=AppointmentPublic)
async def start_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.start(appointment_id, current_user)


@router.patch("/{appointment_id}/complete", response_model=AppointmentPublic)
async def complete_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.complete(appointment_id, current_user)


@router.patch("/{appointment_id}/cancel", response_model=AppointmentPublic)
async def cancel_appointment(
    appointment_id: str,
    payload: TransitionReason | None = None,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.cancel(appointment_id, current_user, payload.reason if payload else None)
