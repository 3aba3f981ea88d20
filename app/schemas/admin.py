"""Schemas for admin and organizer endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Accepts and emits the camelCase names the admin panel and scanner use."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(CamelModel):
    access_token: str = Field(..., alias="accessToken")


class MessageResponse(BaseModel):
    message: str


class EventCreateRequest(CamelModel):
    event_name: str = Field(..., alias="eventName", min_length=1, max_length=200)
    event_date: date = Field(..., alias="eventDate")


class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_name: str
    event_date: date
    is_active: bool
    created_at: datetime | None = None


class EventCreatedResponse(BaseModel):
    message: str
    event: EventOut


class ReservationRow(BaseModel):
    full_name: str
    phone_number: str
    year_of_study: str
    department: str
    attendance_status: str
    feedback: str | None = None
    attended: bool
    attended_at: datetime | None = None
    event_name: str
    event_date: date


class OrganizerCreateRequest(LoginRequest):
    username: str = Field(..., min_length=1, max_length=64)


class OrganizerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str


class OrganizerCreatedResponse(BaseModel):
    message: str
    organizer: OrganizerOut


class AttendeeRow(BaseModel):
    id: int
    full_name: str
    phone_number: str
    department: str


class UserRow(BaseModel):
    full_name: str
    department: str
    telegram_id: int


class DashboardStatsResponse(CamelModel):
    todays_registrations: int = Field(..., alias="todaysRegistrations")
    upcoming_event_reservations: int = Field(..., alias="upcomingEventReservations")
    total_registered_users: int = Field(..., alias="totalRegisteredUsers")
    all_users: list[UserRow] = Field(..., alias="allUsers")


class MarkAttendanceRequest(CamelModel):
    student_id: int = Field(..., alias="studentId")


class AttendanceResponse(BaseModel):
    success: bool
    message: str


class WinnersResponse(BaseModel):
    winners: list[AttendeeRow]
