"""Database-backed admin and organizer operations."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateConflictError, NoActiveEventError
from app.core.security import hash_password, verify_password
from app.models.event import Event
from app.models.reservation import Reservation
from app.models.staff import Admin, Organizer
from app.models.student import Student

logger = logging.getLogger(__name__)

WINNER_LIMIT = 5


@dataclass(frozen=True, slots=True)
class DashboardStats:
    todays_registrations: int
    upcoming_event_reservations: int
    total_registered_users: int
    all_users: list[dict[str, Any]]


class EventAdminService:
    """Event, reservation and staff-account operations used by the admin API."""

    def __init__(self, db: Session, rng: random.Random | None = None) -> None:
        self.db = db
        self.rng = rng or random.Random()

    def authenticate_admin(self, username: str, password: str) -> Admin | None:
        admin = self.db.execute(select(Admin).where(Admin.username == username)).scalar_one_or_none()
        if admin is None or not verify_password(password, admin.password_hash):
            return None
        return admin

    def authenticate_organizer(self, username: str, password: str) -> Organizer | None:
        organizer = self.db.execute(select(Organizer).where(Organizer.username == username)).scalar_one_or_none()
        if organizer is None or not verify_password(password, organizer.password_hash):
            return None
        return organizer

    def ensure_default_admin(self, username: str, password: str) -> bool:
        """Create the configured admin if it does not exist yet. Returns True when created."""
        exists = self.db.execute(select(func.count(Admin.id)).where(Admin.username == username)).scalar_one()
        if exists:
            return False
        self.db.add(Admin(username=username, password_hash=hash_password(password)))
        self._commit()
        logger.info("Default admin '%s' created", username)
        return True

    def create_event(self, event_name: str, event_date: date) -> Event:
        """Deactivate every event and open a new active one."""
        self.db.execute(update(Event).values(is_active=False).execution_options(synchronize_session=False))
        event = Event(event_name=event_name, event_date=event_date, is_active=True)
        self.db.add(event)
        self._commit()
        self.db.refresh(event)
        logger.info("Event %s '%s' on %s is now active", event.id, event_name, event_date)
        return event

    def get_active_event(self) -> Event | None:
        query = (
            select(Event)
            .where(Event.is_active.is_(True))
            .order_by(Event.created_at.desc(), Event.id.desc())
            .limit(1)
        )
        return self.db.execute(query).scalars().first()

    def list_active_reservations(self) -> list[dict[str, Any]]:
        query = (
            select(
                Student.full_name,
                Student.phone_number,
                Student.year_of_study,
                Student.department,
                Reservation.attendance_status,
                Reservation.feedback,
                Reservation.attended,
                Reservation.attended_at,
                Event.event_name,
                Event.event_date,
            )
            .join(Student, Reservation.student_id == Student.id)
            .join(Event, Reservation.event_id == Event.id)
            .where(Event.is_active.is_(True))
            .order_by(Reservation.id.asc())
        )
        return [dict(row._mapping) for row in self.db.execute(query)]

    def create_organizer(self, username: str, password: str, admin_id: int) -> Organizer:
        organizer = Organizer(username=username, password_hash=hash_password(password), created_by=admin_id)
        self.db.add(organizer)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateConflictError(f"Username '{username}' already exists.") from exc
        self.db.refresh(organizer)
        logger.info("Organizer '%s' created by admin %s", username, admin_id)
        return organizer

    def list_attendees(self, event_id: int) -> list[dict[str, Any]]:
        query = (
            select(Student.id, Student.full_name, Student.phone_number, Student.department)
            .join(Reservation, Reservation.student_id == Student.id)
            .where(Reservation.event_id == event_id, Reservation.attended.is_(True))
            .order_by(Student.full_name.asc())
        )
        return [dict(row._mapping) for row in self.db.execute(query)]

    def dashboard_stats(self) -> DashboardStats:
        todays_registrations = self.db.execute(
            select(func.count(Student.id)).where(Student.registered_at >= func.current_date())
        ).scalar_one()

        active_event = self.get_active_event()
        upcoming_event_reservations = 0
        if active_event is not None:
            upcoming_event_reservations = self.db.execute(
                select(func.count(Reservation.id)).where(Reservation.event_id == active_event.id)
            ).scalar_one()

        all_users = [
            dict(row._mapping)
            for row in self.db.execute(
                select(Student.full_name, Student.department, Student.telegram_id).order_by(Student.id.asc())
            )
        ]
        return DashboardStats(
            todays_registrations=todays_registrations,
            upcoming_event_reservations=upcoming_event_reservations,
            total_registered_users=len(all_users),
            all_users=all_users,
        )

    def mark_attendance(self, student_id: int) -> Student | None:
        """Mark a reserved student as attended for the active event.

        Raises NoActiveEventError when no event is active. Returns None when the
        student has no reservation for the event or was already marked.
        """
        active_event = self.get_active_event()
        if active_event is None:
            raise NoActiveEventError("No active event found to mark attendance for.")

        result = self.db.execute(
            update(Reservation)
            .where(
                Reservation.student_id == student_id,
                Reservation.event_id == active_event.id,
                Reservation.attended.is_(False),
            )
            .values(attended=True, attended_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            return None
        self._commit()
        logger.info("Attendance marked for student %s on event %s", student_id, active_event.id)
        return self.db.get(Student, student_id)

    def pick_random_winners(self, limit: int = WINNER_LIMIT) -> list[dict[str, Any]]:
        """Draw up to `limit` distinct attendees of the active event."""
        active_event = self.get_active_event()
        if active_event is None:
            return []
        attendees = self.list_attendees(active_event.id)
        return self.rng.sample(attendees, k=min(limit, len(attendees)))

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
