"""Organizer endpoints used by the QR check-in client."""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from app.api.deps import get_event_admin_service
from app.core.exceptions import NoActiveEventError
from app.core.security import get_current_principal
from app.schemas.admin import AttendanceResponse, AttendeeRow, MarkAttendanceRequest, WinnersResponse
from app.services.event_admin_service import EventAdminService

router = APIRouter(prefix="/organizer", dependencies=[Depends(get_current_principal)])


@router.post("/mark-attendance", response_model=AttendanceResponse)
def mark_attendance(
    payload: MarkAttendanceRequest,
    service: EventAdminService = Depends(get_event_admin_service),
) -> AttendanceResponse | JSONResponse:
    """Mark a scanned student as attended for the active event."""
    try:
        student = service.mark_attendance(payload.student_id)
    except NoActiveEventError as exc:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=AttendanceResponse(success=False, message=str(exc)).model_dump(),
        )
    if student is None:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=AttendanceResponse(
                success=False,
                message="Attendance already marked, or invalid ID for this event.",
            ).model_dump(),
        )
    return AttendanceResponse(success=True, message=f"Attendance marked for {student.full_name}.")


@router.get("/random-winners", response_model=WinnersResponse)
def random_winners(service: EventAdminService = Depends(get_event_admin_service)) -> WinnersResponse:
    """Draw up to five winners among the active event's attendees."""
    winners = service.pick_random_winners()
    if not winners:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No attended people for now.")
    return WinnersResponse(winners=[AttendeeRow(**winner) for winner in winners])
