"""Reservation model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.models.event import Event
    from app.models.student import Student


class Reservation(Base):
    """A student's answer for an event, later marked when they check in."""

    __tablename__ = "reservations"
    __table_args__ = (
        UniqueConstraint("student_id", "event_id", name="uq_reservations_student_event"),
        Index("ix_reservations_event_id", "event_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    event_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    attendance_status: Mapped[str] = mapped_column(String(16), nullable=False)
    feedback: Mapped[str | None] = mapped_column(String(16), nullable=True)
    attended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attended_at: Mapped[Any | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    student: Mapped["Student"] = relationship("Student", back_populates="reservations")
    event: Mapped["Event"] = relationship("Event", back_populates="reservations")
