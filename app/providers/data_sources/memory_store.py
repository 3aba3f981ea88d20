"""In-memory registration store for local runs and tests."""

from __future__ import annotations

from datetime import date
from typing import Any

from app.core.exceptions import DuplicateConflictError
from app.interfaces.registration_store import (
    ActiveEvent,
    RegistrationFields,
    RegistrationStore,
    ReservationRecord,
    StudentIdentity,
)


class InMemoryRegistrationStore(RegistrationStore):
    """Dictionary-backed store with the same upsert and uniqueness rules as the SQL store."""

    def __init__(self, active_event: ActiveEvent | None = None) -> None:
        self.active_event = active_event
        self._students: dict[int, dict[str, Any]] = {}
        self._reservations: dict[tuple[int, int], ReservationRecord] = {}
        self._student_sequence = 0
        self._reservation_sequence = 0

    @classmethod
    def with_sample_event(cls) -> InMemoryRegistrationStore:
        return cls(active_event=ActiveEvent(id=1, name="Welcome Session", date=date.today()))

    async def persist_registration(self, fields: RegistrationFields) -> int:
        student = self._students.get(fields.telegram_id)
        if student is None:
            self._student_sequence += 1
            student = {"id": self._student_sequence, "telegram_id": fields.telegram_id, "username": fields.username}
            self._students[fields.telegram_id] = student
        student.update(
            full_name=fields.full_name,
            phone_number=fields.phone_number,
            year_of_study=fields.year_of_study,
            department=fields.department,
        )
        return student["id"]

    async def persist_reservation(
        self,
        student_id: int,
        event_id: int,
        attendance_status: str,
        feedback: str,
    ) -> ReservationRecord:
        key = (student_id, event_id)
        if key in self._reservations:
            raise DuplicateConflictError(f"Student {student_id} already reserved event {event_id}.")
        self._reservation_sequence += 1
        record = ReservationRecord(
            id=self._reservation_sequence,
            student_id=student_id,
            event_id=event_id,
            attendance_status=attendance_status,
            feedback=feedback,
        )
        self._reservations[key] = record
        return record

    async def find_existing_registration(self, telegram_id: int) -> StudentIdentity | None:
        student = self._students.get(telegram_id)
        if student is None:
            return None
        return StudentIdentity(id=student["id"], telegram_id=telegram_id)

    async def get_active_event(self) -> ActiveEvent | None:
        return self.active_event

    async def has_existing_reservation(self, student_id: int, event_id: int) -> bool:
        return (student_id, event_id) in self._reservations

    async def list_broadcast_recipients(self) -> list[int]:
        return [student["telegram_id"] for student in sorted(self._students.values(), key=lambda s: s["id"])]

    def get_student(self, telegram_id: int) -> dict[str, Any] | None:
        """Helper for tests/debugging; not part of RegistrationStore contract."""
        return self._students.get(telegram_id)

    def get_reservations(self) -> list[ReservationRecord]:
        """Helper for tests/debugging; not part of RegistrationStore contract."""
        return list(self._reservations.values())
