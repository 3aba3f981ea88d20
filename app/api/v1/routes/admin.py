"""Admin endpoints for events, reservations, organizers and statistics."""

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_event_admin_service
from app.core.exceptions import DuplicateConflictError
from app.core.security import Principal, get_current_principal, require_admin
from app.schemas.admin import (
    AttendeeRow,
    DashboardStatsResponse,
    EventCreatedResponse,
    EventCreateRequest,
    EventOut,
    OrganizerCreatedResponse,
    OrganizerCreateRequest,
    OrganizerOut,
    ReservationRow,
)
from app.services.event_admin_service import EventAdminService

router = APIRouter(prefix="/admin", dependencies=[Depends(get_current_principal)])


@router.post("/events", response_model=EventCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreateRequest,
    service: EventAdminService = Depends(get_event_admin_service),
) -> EventCreatedResponse:
    """Create a new active event; older events are deactivated."""
    event = service.create_event(payload.event_name, payload.event_date)
    return EventCreatedResponse(message="Event created successfully.", event=EventOut.model_validate(event))


@router.get("/reservations", response_model=list[ReservationRow])
def list_reservations(service: EventAdminService = Depends(get_event_admin_service)) -> list[ReservationRow]:
    """List every reservation for the currently active event."""
    return [ReservationRow(**row) for row in service.list_active_reservations()]


@router.post(
    "/create-organizer",
    response_model=OrganizerCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_organizer(
    payload: OrganizerCreateRequest,
    admin: Principal = Depends(require_admin),
    service: EventAdminService = Depends(get_event_admin_service),
) -> OrganizerCreatedResponse:
    try:
        organizer = service.create_organizer(payload.username, payload.password, admin.id)
    except DuplicateConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists.") from exc
    return OrganizerCreatedResponse(
        message="Organizer created successfully",
        organizer=OrganizerOut.model_validate(organizer),
    )


@router.get(
    "/events/{event_id}/attendees",
    response_model=list[AttendeeRow],
    dependencies=[Depends(require_admin)],
)
def list_event_attendees(
    event_id: int,
    service: EventAdminService = Depends(get_event_admin_service),
) -> list[AttendeeRow]:
    """List students who checked in to a given event."""
    return [AttendeeRow(**row) for row in service.list_attendees(event_id)]


@router.get("/dashboard-stats", response_model=DashboardStatsResponse, dependencies=[Depends(require_admin)])
def dashboard_stats(service: EventAdminService = Depends(get_event_admin_service)) -> DashboardStatsResponse:
    stats = service.dashboard_stats()
    return DashboardStatsResponse(
        todays_registrations=stats.todays_registrations,
        upcoming_event_reservations=stats.upcoming_event_reservations,
        total_registered_users=stats.total_registered_users,
        all_users=stats.all_users,
    )
