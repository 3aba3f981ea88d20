"""Shared FastAPI dependencies."""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.services.event_admin_service import EventAdminService


def get_event_admin_service(db: Session = Depends(get_db)) -> EventAdminService:
    """Build a request-scoped admin service bound to the request's session."""
    return EventAdminService(db=db)
