"""Truck discovery helpers."""

from .filters import (
    DiscoveryFilters,
    DiscoveryResult,
    discover_trucks,
    nearby_trucks_for_owner,
)

__all__ = [
    "DiscoveryFilters",
    "DiscoveryResult",
    "discover_trucks",
    "nearby_trucks_for_owner",
]
