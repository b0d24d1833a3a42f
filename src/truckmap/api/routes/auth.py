"""Sign-in endpoints for both identity providers."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, status

from ...errors import (
    AuthenticationFailed,
    IdentityWriteConflict,
    InvalidIdentity,
    RateLimitExceeded,
)
from ...models.domain import FirebaseIdentity, IdentityAssertion, SupabaseIdentity
from ...schemas.auth import (
    FirebaseSignInRequest,
    IdentityAssertionRequest,
    PasswordSignInRequest,
    ProfileModel,
    SessionResponse,
    SignUpRequest,
)
from ...services.identity import Session, SessionManager
from ..dependencies import get_session_manager, require_trusted_caller

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)

SIGN_IN_FAILED = "Sign-in failed, please retry."


def _session_response(session: Session) -> SessionResponse:
    return SessionResponse(
        profile=ProfileModel(**asdict(session.profile)),
        provider=session.provider,
        state=session.state.value,
        changed_fields=list(session.changed_fields),
        access_token=session.access_token,
    )


def _establish(action: Callable[[], Session]) -> SessionResponse:
    try:
        return _session_response(action())
    except RateLimitExceeded as exc:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc)) from exc
    except InvalidIdentity as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except AuthenticationFailed as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except IdentityWriteConflict as exc:
        logger.error(f"Session not established: {exc}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=SIGN_IN_FAILED) from exc


@router.post("/sign-in", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def sign_in(
    payload: PasswordSignInRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    return _establish(lambda: manager.sign_in_with_password(payload.email, payload.password))


@router.post("/sign-up", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def sign_up(
    payload: SignUpRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    return _establish(
        lambda: manager.sign_up(payload.email, payload.password, payload.full_name, payload.role)
    )


@router.post("/firebase", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def sign_in_with_firebase(
    payload: FirebaseSignInRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    return _establish(lambda: manager.sign_in_with_firebase(payload.id_token))


@router.post(
    "/session",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_trusted_caller)],
)
def reconcile_session(
    payload: IdentityAssertionRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    """Reconcile an identity that a trusted caller has already verified.

    Callers authenticate with the shared ``X-TruckMap-Key`` secret.
    """
    assertion: IdentityAssertion
    if payload.provider == "supabase":
        assertion = SupabaseIdentity(
            user_id=payload.external_id,
            email=payload.email,
            full_name=payload.display_name,
            avatar_url=payload.avatar_url,
            email_verified=payload.email_verified,
        )
    else:
        assertion = FirebaseIdentity(
            uid=payload.external_id,
            email=payload.email,
            display_name=payload.display_name,
            photo_url=payload.avatar_url,
            email_verified=payload.email_verified,
        )
    return _establish(lambda: manager.reconcile(assertion))
