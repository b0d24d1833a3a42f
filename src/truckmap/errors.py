"""Exception types raised by TruckMap services."""

from __future__ import annotations

from datetime import datetime


class TruckMapError(Exception):
    """Base class for service-level failures."""


class LocationUnavailable(TruckMapError):
    """No reference point could be obtained; distance filtering cannot run."""


class MalformedCoordinate(TruckMapError):
    """A stored latitude/longitude is not a usable number."""

    def __init__(self, latitude: object, longitude: object, reason: str = "non-numeric") -> None:
        super().__init__(f"Malformed coordinate ({latitude!r}, {longitude!r}): {reason}")
        self.latitude = latitude
        self.longitude = longitude
        self.reason = reason


class IdentityWriteConflict(TruckMapError):
    """The canonical profile upsert failed, so no session was established."""


class InvalidIdentity(TruckMapError):
    """An identity assertion is missing the fields needed to reconcile it."""


class AuthenticationFailed(TruckMapError):
    """Credentials or provider tokens were rejected."""


class RateLimitExceeded(TruckMapError):
    """Too many attempts for an identifier within the tracking window."""

    def __init__(self, blocked_until: datetime | None, minutes_remaining: int) -> None:
        super().__init__(
            f"Too many login attempts. Please try again in {minutes_remaining} minutes."
        )
        self.blocked_until = blocked_until
        self.minutes_remaining = minutes_remaining
