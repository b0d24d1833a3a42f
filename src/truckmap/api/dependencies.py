"""Request-scoped access to objects built once in ``create_app``."""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings
from ..errors import AuthenticationFailed, InvalidIdentity
from ..services.identity import SessionManager

bearer_scheme = HTTPBearer(auto_error=False)


def get_session_manager(request: Request) -> SessionManager:
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sign-in is unavailable: Supabase is not configured.",
        )
    return manager


def require_trusted_caller(x_truckmap_key: Optional[str] = Header(default=None)) -> None:
    """Only callers holding the configured shared secret may assert identities."""
    expected = settings.session_api_key
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Identity assertions are disabled: no session API key is configured.",
        )
    if not x_truckmap_key or not secrets.compare_digest(x_truckmap_key, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing X-TruckMap-Key.")


def get_current_subject(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    manager: SessionManager = Depends(get_session_manager),
) -> str:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Bearer token required.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return manager.resolve_subject(credentials.credentials)
    except (AuthenticationFailed, InvalidIdentity) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def require_profile_owner(profile_id: str, subject: str = Depends(get_current_subject)) -> str:
    if subject != profile_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only access your own profile.")
    return subject
