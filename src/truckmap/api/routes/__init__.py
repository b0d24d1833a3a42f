"""Route group exports."""

from . import admin, auth, health, profiles, trucks

__all__ = ["admin", "auth", "health", "profiles", "trucks"]
