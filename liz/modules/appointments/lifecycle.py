"""Appointment status transition table.

Every legal move of an appointment is one row of ``TRANSITIONS``: the
statuses it may start from, which participant may trigger it, the status it
ends in and the timestamp column it stamps. ``AppointmentService`` and
``allowed_actions`` both read it.
"""

from __future__ import annotations

from dataclasses import dataclass

from liz.modules.appointments.models import Appointment
from liz.shared.enums import AppointmentAction, AppointmentStatus, ParticipantRole

TERMINAL_STATUSES = frozenset(
    {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.REJECTED,
    }
)
ACTIVE_STATUSES = frozenset(set(AppointmentStatus) - TERMINAL_STATUSES)

_PROFESSIONAL_ONLY = frozenset({ParticipantRole.PROFESSIONAL})
_EITHER_PARTY = frozenset({ParticipantRole.CLIENT, ParticipantRole.PROFESSIONAL})


@dataclass(frozen=True)
class Transition:
    action: AppointmentAction
    sources: frozenset[AppointmentStatus]
    actors: frozenset[ParticipantRole]
    target: AppointmentStatus
    stamp: str | None = None


TRANSITIONS: dict[AppointmentAction, Transition] = {
    AppointmentAction.CONFIRM: Transition(
        action=AppointmentAction.CONFIRM,
        sources=frozenset({AppointmentStatus.PENDING}),
        actors=_PROFESSIONAL_ONLY,
        target=AppointmentStatus.CONFIRMED,
        stamp="confirmed_at",
    ),
    AppointmentAction.REJECT: Transition(
        action=AppointmentAction.REJECT,
        sources=frozenset({AppointmentStatus.PENDING}),
        actors=_PROFESSIONAL_ONLY,
        target=AppointmentStatus.REJECTED,
        stamp="cancelled_at",
    ),
    AppointmentAction.MARK_ON_WAY: Transition(
        action=AppointmentAction.MARK_ON_WAY,
        sources=frozenset({AppointmentStatus.CONFIRMED}),
        actors=_PROFESSIONAL_ONLY,
        target=AppointmentStatus.ON_WAY,
    ),
    AppointmentAction.START: Transition(
        action=AppointmentAction.START,
        sources=frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.ON_WAY}),
        actors=_PROFESSIONAL_ONLY,
        target=AppointmentStatus.IN_PROGRESS,
        stamp="started_at",
    ),
    AppointmentAction.COMPLETE: Transition(
        action=AppointmentAction.COMPLETE,
        sources=frozenset({AppointmentStatus.IN_PROGRESS}),
        actors=_PROFESSIONAL_ONLY,
        target=AppointmentStatus.COMPLETED,
        stamp="completed_at",
    ),
    AppointmentAction.CANCEL: Transition(
        action=AppointmentAction.CANCEL,
        sources=ACTIVE_STATUSES,
        actors=_EITHER_PARTY,
        target=AppointmentStatus.CANCELLED,
        stamp="cancelled_at",
    ),
}


def participant_role(appointment: Appointment, user_id: str) -> ParticipantRole | None:
    """Return the capacity ``user_id`` holds in ``appointment``, if any."""
    if user_id == appointment.client_id:
        return ParticipantRole.CLIENT
    if user_id == appointment.professional_id:
        return ParticipantRole.PROFESSIONAL
    return None


def counterpart_id(appointment: Appointment, role: ParticipantRole) -> str:
    """Id of the party on the other side of ``role``."""
    if role is ParticipantRole.CLIENT:
        return appointment.professional_id
    return appointment.client_id


def allowed_actions(appointment: Appointment, user_id: str) -> list[AppointmentAction]:
    role = participant_role(appointment, user_id)
    if role is None:
        return []
    return [
        transition.action
        for transition in TRANSITIONS.values()
        if role in transition.actors and appointment.status in transition.sources
    ]
