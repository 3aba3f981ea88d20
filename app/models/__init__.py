"""Domain models package."""

from app.models.event import Event
from app.models.reservation import Reservation
from app.models.staff import Admin, Organizer
from app.models.student import Student

__all__ = [
    "Admin",
    "Organizer",
    "Student",
    "Event",
    "Reservation",
]
