"""SQLAlchemy-backed registration store."""

from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateConflictError, PersistenceError
from app.interfaces.registration_store import (
    ActiveEvent,
    RegistrationFields,
    RegistrationStore,
    ReservationRecord,
    StudentIdentity,
)
from app.models.event import Event
from app.models.reservation import Reservation
from app.models.student import Student

logger = logging.getLogger(__name__)


class SqlRegistrationStore(RegistrationStore):
    """Persists students and reservations through short-lived sessions."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory

    async def persist_registration(self, fields: RegistrationFields) -> int:
        try:
            with self.session_factory() as db:
                try:
                    student = self._upsert_student(db=db, fields=fields)
                except IntegrityError:
                    # A concurrent insert for the same telegram id won; update that row instead.
                    db.rollback()
                    student = self._upsert_student(db=db, fields=fields)
                return student.id
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save registration for telegram id {fields.telegram_id}.") from exc

    async def persist_reservation(
        self,
        student_id: int,
        event_id: int,
        attendance_status: str,
        feedback: str,
    ) -> ReservationRecord:
        reservation = Reservation(
            student_id=student_id,
            event_id=event_id,
            attendance_status=attendance_status,
            feedback=feedback,
            attended=False,
        )
        try:
            with self.session_factory() as db:
                db.add(reservation)
                try:
                    db.commit()
                except IntegrityError as exc:
                    db.rollback()
                    raise DuplicateConflictError(
                        f"Student {student_id} already reserved event {event_id}."
                    ) from exc
                db.refresh(reservation)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save reservation for student {student_id}.") from exc

        return ReservationRecord(
            id=reservation.id,
            student_id=reservation.student_id,
            event_id=reservation.event_id,
            attendance_status=reservation.attendance_status,
            feedback=reservation.feedback,
        )

    async def find_existing_registration(self, telegram_id: int) -> StudentIdentity | None:
        query = select(Student.id, Student.telegram_id).where(Student.telegram_id == telegram_id)
        row = self._first(query=query, action="look up student")
        if row is None:
            return None
        return StudentIdentity(id=row.id, telegram_id=row.telegram_id)

    async def get_active_event(self) -> ActiveEvent | None:
        query = (
            select(Event.id, Event.event_name, Event.event_date)
            .where(Event.is_active.is_(True))
            .order_by(Event.created_at.desc(), Event.id.desc())
            .limit(1)
        )
        row = self._first(query=query, action="load active event")
        if row is None:
            return None
        return ActiveEvent(id=row.id, name=row.event_name, date=row.event_date)

    async def has_existing_reservation(self, student_id: int, event_id: int) -> bool:
        query = select(func.count(Reservation.id)).where(
            Reservation.student_id == student_id,
            Reservation.event_id == event_id,
        )
        try:
            with self.session_factory() as db:
                return db.execute(query).scalar_one() > 0
        except SQLAlchemyError as exc:
            raise PersistenceError("Could not check existing reservation.") from exc

    async def list_broadcast_recipients(self) -> list[int]:
        query = select(Student.telegram_id).order_by(Student.id.asc())
        try:
            with self.session_factory() as db:
                return list(db.execute(query).scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError("Could not list broadcast recipients.") from exc

    def _upsert_student(self, *, db: Session, fields: RegistrationFields) -> Student:
        student = db.execute(
            select(Student).where(Student.telegram_id == fields.telegram_id)
        ).scalar_one_or_none()
        if student is None:
            student = Student(telegram_id=fields.telegram_id, username=fields.username)
            db.add(student)

        student.full_name = fields.full_name
        student.phone_number = fields.phone_number
        student.year_of_study = fields.year_of_study
        student.department = fields.department
        db.commit()
        db.refresh(student)
        logger.debug("Upserted student %s for telegram id %s", student.id, fields.telegram_id)
        return student

    def _first(self, *, query, action: str):
        try:
            with self.session_factory() as db:
                return db.execute(query).first()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not {action}.") from exc
