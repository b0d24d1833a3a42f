"""Session establishment: sign-in flows that end in a reconciled profile."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import httpx

from ...config import settings
from ...data.profiles_repository import ProfileRepository, profile_to_row
from ...errors import (
    AuthenticationFailed,
    IdentityWriteConflict,
    InvalidIdentity,
    RateLimitExceeded,
)
from ...models.domain import ExternalIdentity, IdentityAssertion, Profile, Role
from .. import security
from .providers import identity_from_supabase_user, normalize_identity, verify_firebase_token
from .reconciliation import apply_changes, build_new_profile, merge_identity

LOGIN_ACTION = "login"
SIGNUP_ROLES: tuple[str, ...] = ("customer", "food_truck_owner")
TRANSIENT_ERRORS = (httpx.TransportError, ConnectionError, TimeoutError)

logger = logging.getLogger(__name__)


class ProfileState(str, Enum):
    NO_PROFILE = "no_profile"
    PROFILE_CREATED = "profile_created"
    PROFILE_UPDATED = "profile_updated"


@dataclass(slots=True)
class Session:
    profile: Profile
    provider: str
    state: ProfileState
    changed_fields: tuple[str, ...] = ()
    access_token: Optional[str] = None


class SessionManager:
    """Turns provider sign-ins into one canonical profile per person.

    Build one instance at startup and hand it to whoever needs it. Identity
    lookups go by provider user id first and then by email, so a person who
    signs in through both providers with the same verified address keeps
    one profile.
    """

    def __init__(
        self,
        repository: ProfileRepository,
        auth_client: Any = None,
        firebase_verifier: Callable[[str], IdentityAssertion] = verify_firebase_token,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.repository = repository
        self.auth_client = auth_client
        self.firebase_verifier = firebase_verifier
        self.max_retries = max_retries if max_retries is not None else settings.identity_upsert_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.identity_upsert_backoff_seconds
        )
        self._sleep = sleep

    def _with_retry(self, description: str, operation: Callable[[], Any]) -> Any:
        attempt = 0
        while True:
            try:
                return operation()
            except TRANSIENT_ERRORS as e:
                attempt += 1
                if attempt > self.max_retries:
                    logger.warning(f"{description} failed after {self.max_retries} retries: {e}")
                    raise IdentityWriteConflict(f"{description} failed: {e}") from e
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(f"{description} transient error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                self._sleep(wait_time)
            except Exception as e:
                logger.error(f"{description} failed: {e}")
                raise IdentityWriteConflict(f"{description} failed: {e}") from e

    def _find_profile(self, identity: ExternalIdentity) -> Optional[Profile]:
        profile = self._with_retry("Profile lookup", lambda: self.repository.get_by_id(identity.external_id))
        # an unverified address must never link to someone else's profile
        if profile is None and identity.email and identity.email_verified:
            profile = self._with_retry("Profile lookup", lambda: self.repository.get_by_email(identity.email))
        return profile

    def reconcile(self, assertion: IdentityAssertion, role: Role = "customer") -> Session:
        """Create or fill in the canonical profile for an identity assertion.

        Raises IdentityWriteConflict when the profile cannot be written; the
        caller must not treat the user as signed in in that case.
        """
        identity = normalize_identity(assertion)
        stored = self._find_profile(identity)

        if stored is None:
            profile = build_new_profile(identity, role=role)
            saved = self._with_retry(
                "Profile upsert", lambda: self.repository.upsert_row(profile_to_row(profile))
            ) or profile
            logger.info(f"Created profile {saved.id} from {identity.provider} sign-in")
            return Session(
                profile=saved,
                provider=identity.provider,
                state=ProfileState.PROFILE_CREATED,
            )

        changes = merge_identity(stored, identity)
        if not changes:
            return Session(profile=stored, provider=identity.provider, state=ProfileState.PROFILE_UPDATED)

        saved = self._with_retry(
            "Profile upsert",
            lambda: self.repository.upsert_row({"id": stored.id, **changes}),
        ) or apply_changes(stored, changes)
        logger.info(f"Filled {sorted(changes)} on profile {stored.id} from {identity.provider} sign-in")
        return Session(
            profile=saved,
            provider=identity.provider,
            state=ProfileState.PROFILE_UPDATED,
            changed_fields=tuple(changes),
        )

    def _require_auth_client(self) -> Any:
        if self.auth_client is None:
            raise AuthenticationFailed("Password sign-in is unavailable: Supabase is not configured")
        return self.auth_client

    def sign_in_with_password(self, email: str, password: str) -> Session:
        email = (email or "").strip().lower()
        if not security.validate_email(email):
            raise InvalidIdentity("Invalid email format")

        status = security.check_rate_limit(email, LOGIN_ACTION)
        if not status.allowed:
            security.log_security_event(
                None,
                LOGIN_ACTION,
                "blocked",
                {
                    "email": email,
                    "reason": "rate_limit_exceeded",
                    "blocked_until": status.blocked_until.isoformat() if status.blocked_until else None,
                },
            )
            raise RateLimitExceeded(status.blocked_until, status.minutes_remaining())

        client = self._require_auth_client()
        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            security.log_security_event(None, LOGIN_ACTION, "failed", {"email": email, "error": str(e)})
            raise AuthenticationFailed(str(e)) from e

        user = getattr(response, "user", None)
        if user is None:
            security.log_security_event(None, LOGIN_ACTION, "failed", {"email": email, "error": "no user returned"})
            raise AuthenticationFailed("Invalid login credentials")

        security.reset_rate_limit(email, LOGIN_ACTION)
        session = self.reconcile(identity_from_supabase_user(user))
        security.log_security_event(session.profile.id, LOGIN_ACTION, "success", {"email": email})
        auth_session = getattr(response, "session", None)
        session.access_token = getattr(auth_session, "access_token", None)
        return session

    def sign_up(self, email: str, password: str, full_name: str, role: Role = "customer") -> Session:
        email = (email or "").strip().lower()
        if not security.validate_email(email):
            raise InvalidIdentity("Invalid email format")
        if role not in SIGNUP_ROLES:
            raise InvalidIdentity(f"Role '{role}' cannot be chosen at sign-up")
        check = security.is_strong_password(password)
        if not check.is_strong:
            raise InvalidIdentity("; ".join(check.errors))

        client = self._require_auth_client()
        try:
            response = client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": {"full_name": full_name, "role": role}},
                }
            )
        except Exception as e:
            raise AuthenticationFailed(str(e)) from e

        user = getattr(response, "user", None)
        if user is None:
            raise AuthenticationFailed("Sign-up did not return a user")
        return self.reconcile(identity_from_supabase_user(user), role=role)

    def sign_in_with_firebase(self, id_token: str) -> Session:
        assertion = self.firebase_verifier(id_token)
        return self.reconcile(assertion)

    def resolve_subject(self, access_token: str) -> str:
        """Return the user id an access token was issued to.

        Supabase session tokens are tried first, then Firebase ID tokens.
        Raises AuthenticationFailed when neither provider accepts the token.
        """
        if not access_token:
            raise AuthenticationFailed("Access token is required")
        if self.auth_client is not None:
            try:
                response = self.auth_client.auth.get_user(access_token)
            except Exception as e:
                logger.debug(f"Supabase rejected access token, trying Firebase: {e}")
            else:
                user = getattr(response, "user", None)
                if user is not None and getattr(user, "id", None):
                    return str(user.id)
        return normalize_identity(self.firebase_verifier(access_token)).external_id
