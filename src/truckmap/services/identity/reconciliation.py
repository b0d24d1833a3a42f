"""Pure merge rules between an external identity and the canonical profile."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional

from ...models.domain import ExternalIdentity, Profile, Role

PLACEHOLDER_FULL_NAME = "Food Truck Fan"

# profile column -> ExternalIdentity attribute
PROVIDER_OWNED_FIELDS: tuple[tuple[str, str], ...] = (
    ("email", "email"),
    ("full_name", "display_name"),
    ("profile_image_url", "avatar_url"),
)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def default_full_name(identity: ExternalIdentity) -> str:
    """Display name, else the email local part, else a placeholder."""
    if not _is_empty(identity.display_name):
        return identity.display_name.strip()
    if identity.email and "@" in identity.email:
        local_part = identity.email.split("@", 1)[0].strip()
        if local_part:
            return local_part
    return PLACEHOLDER_FULL_NAME


def build_new_profile(
    identity: ExternalIdentity,
    role: Role = "customer",
    created_at: Optional[str] = None,
) -> Profile:
    return Profile(
        id=identity.external_id,
        email=identity.email or "",
        full_name=default_full_name(identity),
        profile_image_url=identity.avatar_url or "",
        role=role,
        created_at=created_at or datetime.now(timezone.utc).isoformat(),
    )


def merge_identity(stored: Profile, identity: ExternalIdentity) -> dict[str, str]:
    """Fields to write: empty on the stored row and non-empty on the assertion.

    A value the user already has, whether provider supplied or hand edited,
    is never replaced.
    """
    changes: dict[str, str] = {}
    for column, attribute in PROVIDER_OWNED_FIELDS:
        incoming = getattr(identity, attribute)
        if _is_empty(getattr(stored, column)) and not _is_empty(incoming):
            changes[column] = incoming.strip()
    return changes


def apply_changes(stored: Profile, changes: dict[str, Any]) -> Profile:
    return replace(stored, **changes)
