"""Appointment service layer: booking and the status lifecycle."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from liz.core.config import settings
from liz.core.exceptions import (
    BusinessLogicError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    TransactionAbortedError,
)
from liz.modules.appointments.lifecycle import TRANSITIONS, Transition, participant_role
from liz.modules.appointments.models import Appointment
from liz.modules.appointments.schemas import AppointmentCreate
from liz.modules.catalog.models import ProfessionalService
from liz.modules.users.models import Address, ProfessionalProfile, User
from liz.shared.enums import AppointmentAction, AppointmentStatus, UserType

logger = logging.getLogger(__name__)

_FORBIDDEN_MESSAGES = {
    AppointmentAction.CONFIRM: "Only the professional can confirm",
    AppointmentAction.REJECT: "Only the professional can reject",
    AppointmentAction.MARK_ON_WAY: "Only the professional can update status",
    AppointmentAction.START: "Only the professional can start service",
    AppointmentAction.COMPLETE: "Only the professional can complete",
    AppointmentAction.CANCEL: "Access denied",
}


class AppointmentService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.tz = ZoneInfo(settings.default_timezone)

    def _now(self) -> datetime:
        return datetime.now(tz=self.tz)

    async def create_booking(self, payload: AppointmentCreate, client: User) -> Appointment:
        client_id = client.user_id
        if payload.professional_id == client_id:
            raise InvalidStateError("You cannot book your own services")

        professional = await self.db.get(User, payload.professional_id)
        if professional is None or professional.user_type != UserType.PROFESSIONAL:
            raise NotFoundError("Professional not found")

        offer = (
            await self.db.execute(
                select(ProfessionalService).where(
                    ProfessionalService.professional_id == professional.user_id,
                    ProfessionalService.subcategory_id == payload.subcategory_id,
                    ProfessionalService.is_active.is_(True),
                )
            )
        ).scalar_one_or_none()
        if offer is None:
            raise NotFoundError("Professional does not offer this service")

        address = (
            await self.db.execute(
                select(Address).where(
                    Address.address_id == payload.address_id,
                    Address.user_id == client_id,
                )
            )
        ).scalar_one_or_none()
        if address is None:
            raise NotFoundError("Address not found")

        appointment = Appointment(
            order_number=self._order_number(),
            client_id=client_id,
            professional_id=professional.user_id,
            subcategory_id=payload.subcategory_id,
            address_id=address.address_id,
            status=AppointmentStatus.PENDING,
            scheduled_date=payload.scheduled_date,
            scheduled_time=payload.scheduled_time,
            price=offer.price,
            estimated_duration_minutes=settings.default_service_duration_minutes,
            notes=payload.notes,
        )
        self.db.add(appointment)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError("Order number already in use, please retry") from exc
        except DBAPIError as exc:
            await self.db.rollback()
            logger.error("booking for client %s aborted: %s", client_id, exc)
            raise TransactionAbortedError() from exc
        await self.db.refresh(appointment)
        logger.info(
            "appointment %s (%s) booked by %s with %s",
            appointment.appointment_id,
            appointment.order_number,
            client_id,
            professional.user_id,
        )
        return appointment

    async def list_for_user(
        self,
        user: User,
        status: AppointmentStatus | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Appointment], int]:
        conditions = [or_(Appointment.client_id == user.user_id, Appointment.professional_id == user.user_id)]
        if status is not None:
            conditions.append(Appointment.status == status)

        total = (await self.db.execute(select(func.count(Appointment.appointment_id)).where(*conditions))).scalar_one()
        stmt = (
            select(Appointment)
            .where(*conditions)
            .order_by(Appointment.scheduled_date.desc(), Appointment.scheduled_time.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def get_for_user(self, appointment_id: str, user: User) -> Appointment:
        appointment = await self._get_by_id(appointment_id)
        if participant_role(appointment, user.user_id) is None:
            raise ForbiddenError("Access denied")
        return appointment

    async def confirm(self, appointment_id: str, actor: User) -> Appointment:
        return await self._apply(AppointmentAction.CONFIRM, appointment_id, actor)

    async def reject(self, appointment_id: str, actor: User, reason: str | None = None) -> Appointment:
        return await self._apply(AppointmentAction.REJECT, appointment_id, actor, reason)

    async def mark_on_way(self, appointment_id: str, actor: User) -> Appointment:
        return await self._apply(AppointmentAction.MARK_ON_WAY, appointment_id, actor)

    async def start(self, appointment_id: str, actor: User) -> Appointment:
        return await self._apply(AppointmentAction.START, appointment_id, actor)

    async def complete(self, appointment_id: str, actor: User) -> Appointment:
        return await self._apply(AppointmentAction.COMPLETE, appointment_id, actor)

    async def cancel(self, appointment_id: str, actor: User, reason: str | None = None) -> Appointment:
        return await self._apply(AppointmentAction.CANCEL, appointment_id, actor, reason)

    async def _apply(
        self,
        action: AppointmentAction,
        appointment_id: str,
        actor: User,
        reason: str | None = None,
    ) -> Appointment:
        transition = TRANSITIONS[action]
        actor_id = actor.user_id
        appointment = await self._get_by_id(appointment_id, for_update=True)

        try:
            role = participant_role(appointment, actor_id)
            if role is None or role not in transition.actors:
                logger.warning("%s on appointment %s refused for user %s", action, appointment_id, actor_id)
                raise ForbiddenError(_FORBIDDEN_MESSAGES[action])

            previous = appointment.status
            if previous not in transition.sources:
                logger.warning("%s on appointment %s refused in status %s", action, appointment_id, previous)
                raise InvalidStateError(f"Cannot {action.replace('_', ' ')} an appointment that is {previous}")

            if action is AppointmentAction.COMPLETE:
                await self._get_professional_profile(appointment.professional_id)
        except BusinessLogicError:
            # Release the row lock taken above.
            await self.db.rollback()
            raise

        self._stamp(appointment, transition, reason)
        try:
            if action is AppointmentAction.COMPLETE:
                await self.db.execute(
                    update(ProfessionalProfile)
                    .where(ProfessionalProfile.user_id == appointment.professional_id)
                    .values(services_completed=ProfessionalProfile.services_completed + 1)
                )
            await self.db.commit()
        except DBAPIError as exc:
            await self.db.rollback()
            logger.error("%s on appointment %s aborted: %s", action, appointment_id, exc)
            raise TransactionAbortedError() from exc

        await self.db.refresh(appointment)
        logger.info(
            "appointment %s %s -> %s by %s (%s)",
            appointment_id,
            previous,
            appointment.status,
            actor_id,
            role,
        )
        return appointment

    def _stamp(self, appointment: Appointment, transition: Transition, reason: str | None) -> None:
        appointment.status = transition.target
        if transition.stamp:
            setattr(appointment, transition.stamp, self._now())
        if transition.action is AppointmentAction.REJECT and reason:
            rejection = f"Rejected: {reason}"
            appointment.notes = f"{appointment.notes}\n{rejection}" if appointment.notes else rejection
        elif transition.action is AppointmentAction.CANCEL:
            appointment.cancellation_reason = reason

    async def _get_by_id(self, appointment_id: str, for_update: bool = False) -> Appointment:
        stmt = select(Appointment).where(Appointment.appointment_id == appointment_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        appointment = result.scalar_one_or_none()
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment

    async def _get_professional_profile(self, user_id: str) -> ProfessionalProfile:
        result = await self.db.execute(select(ProfessionalProfile).where(ProfessionalProfile.user_id == user_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            raise NotFoundError("Professional profile not found")
        return profile

    def _order_number(self) -> str:
        millis = int(self._now().timestamp() * 1000)
        return f"{settings.order_number_prefix}{millis}{secrets.randbelow(1000)}"
