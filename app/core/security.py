"""Password hashing, access tokens and role-checking dependencies."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from app.core.settings import settings

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True, slots=True)
class Principal:
    """Identity carried by a verified access token."""

    id: int
    username: str
    is_admin: bool = False


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(
    principal: Principal,
    *,
    expires_minutes: int,
    secret: str | None = None,
) -> str:
    """Sign a token; admin tokens carry the isAdmin flag."""
    payload: dict[str, Any] = {
        "id": principal.id,
        "username": principal.username,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
    }
    if principal.is_admin:
        payload["isAdmin"] = True
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm=ALGORITHM)


def decode_access_token(token: str, *, secret: str | None = None) -> Principal:
    """Verify a token. Raises jwt.InvalidTokenError when it is invalid or expired."""
    payload = jwt.decode(token, secret or settings.jwt_secret, algorithms=[ALGORITHM])
    try:
        return Principal(
            id=int(payload["id"]),
            username=str(payload["username"]),
            is_admin=bool(payload.get("isAdmin", False)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise jwt.InvalidTokenError("Token is missing identity claims.") from exc


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    """Require any valid organizer or admin token."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Bearer token required in Authorization header.",
        )
    try:
        return decode_access_token(credentials.credentials)
    except jwt.InvalidTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: Invalid or expired token.",
        ) from exc


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Require a token issued to a main admin."""
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: Admin privileges required.")
    return principal
