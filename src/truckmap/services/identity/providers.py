"""Identity provider boundary: turn SDK payloads into one internal shape."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials

from ...config import settings
from ...errors import AuthenticationFailed, InvalidIdentity
from ...models.domain import (
    ExternalIdentity,
    FirebaseIdentity,
    IdentityAssertion,
    SupabaseIdentity,
)

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "truckmap"


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _clean_email(value: Any) -> Optional[str]:
    email = _clean(value)
    return email.lower() if email else None


def normalize_identity(assertion: IdentityAssertion) -> ExternalIdentity:
    """Collapse either provider variant into an ExternalIdentity."""
    if isinstance(assertion, SupabaseIdentity):
        external_id = _clean(assertion.user_id)
        display_name = assertion.full_name
        avatar_url = assertion.avatar_url
    elif isinstance(assertion, FirebaseIdentity):
        external_id = _clean(assertion.uid)
        display_name = assertion.display_name
        avatar_url = assertion.photo_url
    else:
        raise InvalidIdentity(f"Unsupported identity assertion: {type(assertion).__name__}")

    if not external_id:
        raise InvalidIdentity(f"{assertion.kind} identity is missing its user id")

    return ExternalIdentity(
        external_id=external_id,
        email=_clean_email(assertion.email),
        display_name=_clean(display_name),
        avatar_url=_clean(avatar_url),
        provider=assertion.kind,
        email_verified=bool(assertion.email_verified),
    )


def identity_from_supabase_user(user: Any) -> SupabaseIdentity:
    """Build an assertion from a Supabase Auth ``User`` object or dict."""
    if isinstance(user, Mapping):
        user_id, email = user.get("id"), user.get("email")
        metadata = user.get("user_metadata") or {}
        confirmed_at = user.get("email_confirmed_at") or user.get("confirmed_at")
    else:
        user_id, email = getattr(user, "id", None), getattr(user, "email", None)
        metadata = getattr(user, "user_metadata", None) or {}
        confirmed_at = getattr(user, "email_confirmed_at", None) or getattr(user, "confirmed_at", None)
    return SupabaseIdentity(
        user_id=str(user_id) if user_id is not None else "",
        email=email,
        full_name=metadata.get("full_name") or metadata.get("name"),
        avatar_url=metadata.get("avatar_url") or metadata.get("picture"),
        email_verified=confirmed_at is not None,
    )


def identity_from_firebase_token(decoded: Mapping[str, Any]) -> FirebaseIdentity:
    """Build an assertion from a verified Firebase ID token payload."""
    return FirebaseIdentity(
        uid=str(decoded.get("uid") or decoded.get("sub") or ""),
        email=decoded.get("email"),
        display_name=decoded.get("name"),
        photo_url=decoded.get("picture"),
        email_verified=decoded.get("email_verified") is True,
    )


def _firebase_app() -> firebase_admin.App:
    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass

    options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
    credential = (
        credentials.Certificate(str(settings.firebase_credentials_file))
        if settings.firebase_credentials_file
        else credentials.ApplicationDefault()
    )
    logger.info("Initialising Firebase Admin app for ID token verification")
    return firebase_admin.initialize_app(credential, options, name=FIREBASE_APP_NAME)


def verify_firebase_token(id_token: str) -> FirebaseIdentity:
    """Verify a Firebase ID token and return the asserted identity."""
    if not id_token:
        raise AuthenticationFailed("Firebase ID token is required")
    try:
        decoded = firebase_auth.verify_id_token(id_token, app=_firebase_app())
    except (firebase_auth.InvalidIdTokenError, firebase_auth.UserDisabledError) as exc:
        raise AuthenticationFailed(f"Firebase token rejected: {exc}") from exc
    except (firebase_auth.CertificateFetchError, ValueError) as exc:
        raise AuthenticationFailed(f"Firebase token could not be verified: {exc}") from exc
    return identity_from_firebase_token(decoded)
