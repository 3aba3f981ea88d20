"""Interface contract for registration and reservation persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class RegistrationFields:
    """Values collected by the registration flow."""

    telegram_id: int
    username: str | None
    full_name: str
    phone_number: str
    year_of_study: str
    department: str


@dataclass(frozen=True, slots=True)
class StudentIdentity:
    id: int
    telegram_id: int


@dataclass(frozen=True, slots=True)
class ActiveEvent:
    id: int
    name: str
    date: date


@dataclass(frozen=True, slots=True)
class ReservationRecord:
    id: int
    student_id: int
    event_id: int
    attendance_status: str
    feedback: str | None


class RegistrationStore(ABC):
    """Persistence operations used by the conversation flows."""

    @abstractmethod
    async def persist_registration(self, fields: RegistrationFields) -> int:
        """Upsert a student by telegram id and return the student id."""
        raise NotImplementedError

    @abstractmethod
    async def persist_reservation(
        self,
        student_id: int,
        event_id: int,
        attendance_status: str,
        feedback: str,
    ) -> ReservationRecord:
        """Create a reservation. Raises DuplicateConflictError for an existing pair."""
        raise NotImplementedError

    @abstractmethod
    async def find_existing_registration(self, telegram_id: int) -> StudentIdentity | None:
        """Return the registered student for a telegram user, if any."""
        raise NotImplementedError

    @abstractmethod
    async def get_active_event(self) -> ActiveEvent | None:
        """Return the event currently open for reservation."""
        raise NotImplementedError

    @abstractmethod
    async def has_existing_reservation(self, student_id: int, event_id: int) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def list_broadcast_recipients(self) -> list[int]:
        """Return telegram ids of every registered student."""
        raise NotImplementedError
