"""Profile table access used by identity reconciliation."""

from __future__ import annotations

import logging
from dataclasses import asdict, fields
from typing import Any, Optional

from ..models.domain import Profile

PROFILES_TABLE = "profiles"

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = {f.name for f in fields(Profile)}


def profile_from_row(row: dict[str, Any]) -> Profile:
    """Map a stored row onto Profile, turning NULL columns into empty defaults."""
    values: dict[str, Any] = {}
    for name in _PROFILE_FIELDS:
        if name in row and row[name] is not None:
            values[name] = row[name]
    values.setdefault("email", "")
    values.setdefault("full_name", "")
    return Profile(**values)


def profile_to_row(profile: Profile) -> dict[str, Any]:
    row = asdict(profile)
    if row.get("created_at") is None:
        row.pop("created_at")
    return row


class ProfileRepository:
    """Reads and upserts rows in the ``profiles`` table."""

    def __init__(self, client) -> None:
        self.client = client

    def _first(self, response) -> Optional[dict[str, Any]]:
        rows = (response.data or []) if response is not None else []
        return rows[0] if rows else None

    def get_by_id(self, profile_id: str) -> Optional[Profile]:
        response = self.client.table(PROFILES_TABLE).select("*").eq("id", profile_id).limit(1).execute()
        row = self._first(response)
        return profile_from_row(row) if row else None

    def get_by_email(self, email: str) -> Optional[Profile]:
        response = (
            self.client.table(PROFILES_TABLE)
            .select("*")
            .eq("email", email.strip().lower())
            .limit(1)
            .execute()
        )
        row = self._first(response)
        return profile_from_row(row) if row else None

    def upsert_row(self, row: dict[str, Any]) -> Optional[Profile]:
        """Insert or merge ``row`` keyed on ``id``; columns not in ``row`` are left alone."""
        response = self.client.table(PROFILES_TABLE).upsert(row, on_conflict="id").execute()
        stored = self._first(response)
        return profile_from_row(stored) if stored else None

    def update_fields(self, profile_id: str, changes: dict[str, Any]) -> Optional[Profile]:
        response = self.client.table(PROFILES_TABLE).update(changes).eq("id", profile_id).execute()
        row = self._first(response)
        return profile_from_row(row) if row else None
