"""Public login endpoints for admins and organizers."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_event_admin_service
from app.core.security import Principal, create_access_token
from app.core.settings import settings
from app.schemas.admin import LoginRequest, TokenResponse
from app.services.event_admin_service import EventAdminService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/admin/login", response_model=TokenResponse)
def admin_login(payload: LoginRequest, service: EventAdminService = Depends(get_event_admin_service)) -> TokenResponse:
    """Log in a main admin and issue a token carrying the isAdmin flag."""
    admin = service.authenticate_admin(payload.username, payload.password)
    if admin is None:
        logger.info("Failed admin login for '%s'", payload.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials.")
    token = create_access_token(
        Principal(id=admin.id, username=admin.username, is_admin=True),
        expires_minutes=settings.admin_token_ttl_minutes,
    )
    return TokenResponse(access_token=token)


@router.post("/organizer/login", response_model=TokenResponse)
def organizer_login(
    payload: LoginRequest,
    service: EventAdminService = Depends(get_event_admin_service),
) -> TokenResponse:
    """Log in an event organizer and issue a standard token."""
    organizer = service.authenticate_organizer(payload.username, payload.password)
    if organizer is None:
        logger.info("Failed organizer login for '%s'", payload.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials.")
    token = create_access_token(
        Principal(id=organizer.id, username=organizer.username),
        expires_minutes=settings.organizer_token_ttl_minutes,
    )
    return TokenResponse(access_token=token)
