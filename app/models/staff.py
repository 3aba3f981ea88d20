"""Admin and organizer account models."""

from __future__ import annotations

from typing import Any

from sqlalchemy import ForeignKey, Integer, String, TIMESTAMP, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Admin(Base):
    """Main administrator allowed to manage organizers and view statistics."""

    __tablename__ = "admins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    organizers: Mapped[list["Organizer"]] = relationship("Organizer", back_populates="creator")


class Organizer(Base):
    """Event organizer who scans attendee codes at the door."""

    __tablename__ = "organizers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("admins.id"), nullable=True)
    created_at: Mapped[Any] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    creator: Mapped["Admin | None"] = relationship("Admin", back_populates="organizers")
