"""Shared enumerations used across modules."""

from __future__ import annotations

from enum import StrEnum
from typing import Iterable, TypeVar

EnumType = TypeVar("EnumType", bound=StrEnum)


def enum_values(enum_cls: Iterable[EnumType]) -> list[str]:
    """Return the .value for each enum member (used by SQLAlchemy)."""
    return [member.value for member in enum_cls]


class UserType(StrEnum):
    CLIENT = "client"
    PROFESSIONAL = "professional"
    ADMIN = "admin"


class ParticipantRole(StrEnum):
    """Capacity a user held in one specific appointment."""

    CLIENT = "client"
    PROFESSIONAL = "professional"

    @property
    def counterpart(self) -> "ParticipantRole":
        if self is ParticipantRole.CLIENT:
            return ParticipantRole.PROFESSIONAL
        return ParticipantRole.CLIENT


class AppointmentStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ON_WAY = "on_way"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class AppointmentAction(StrEnum):
    CONFIRM = "confirm"
    REJECT = "reject"
    MARK_ON_WAY = "mark_on_way"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
