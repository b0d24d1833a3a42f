"""Food truck discovery: attribute filters combined with the radius filter."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence

from ...config import settings
from ...errors import LocationUnavailable
from ...models.domain import LocationPoint, TruckCandidate
from ..geospatial import candidate_distance, candidate_point, sort_by_distance, within_radius

SortOrder = Literal["none", "distance", "rating", "reviews"]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DiscoveryFilters:
    search: str = ""
    cuisines: Sequence[str] = ()
    dietary: Sequence[str] = ()
    zip_code: Optional[str] = None
    online_only: bool = False
    favorites_only: bool = False
    favorites: frozenset[str] = frozenset()
    radius_miles: Optional[float] = None
    sort: SortOrder = "none"


@dataclass(slots=True)
class DiscoveryResult:
    trucks: list[TruckCandidate]
    distances: dict[str, Optional[float]] = field(default_factory=dict)
    location_available: bool = True
    radius_miles: Optional[float] = None
    total_candidates: int = 0


def _matches_search(candidate: TruckCandidate, query: str) -> bool:
    needle = query.lower()
    if needle in candidate.name.lower():
        return True
    if any(needle in cuisine.lower() for cuisine in candidate.cuisine_types):
        return True
    location = candidate.location
    if location is None:
        return False
    if location.address and needle in location.address.lower():
        return True
    return bool(location.zip_code and query in location.zip_code)


def _matches_attributes(candidate: TruckCandidate, filters: DiscoveryFilters) -> bool:
    # trucks with no current location are never listed
    if candidate.location is None:
        return False
    if filters.online_only and not candidate.is_active:
        return False
    if filters.favorites_only and candidate.id not in filters.favorites:
        return False
    if filters.dietary and not any(diet in candidate.dietary_options for diet in filters.dietary):
        return False
    if filters.search and not _matches_search(candidate, filters.search):
        return False
    if filters.cuisines and not any(cuisine in candidate.cuisine_types for cuisine in filters.cuisines):
        return False
    if filters.zip_code and candidate.location.zip_code != filters.zip_code:
        return False
    return True


def discover_trucks(
    candidates: Sequence[TruckCandidate],
    reference: Optional[LocationPoint],
    filters: DiscoveryFilters,
) -> DiscoveryResult:
    """Filter candidates for the customer map.

    Without a reference point the radius filter is skipped and the result is
    flagged ``location_available=False``; no stand-in coordinate is used.
    """

    matching = [candidate for candidate in candidates if _matches_attributes(candidate, filters)]
    radius: Optional[float] = filters.radius_miles if filters.radius_miles is not None else settings.default_radius_miles

    location_available = True
    try:
        matching = within_radius(reference, matching, radius)
    except LocationUnavailable as exc:
        logger.info(f"Discovery without proximity filtering: {exc}")
        location_available = False
        radius = None

    if filters.sort == "distance" and reference is not None:
        matching = sort_by_distance(reference, matching)
    elif filters.sort == "rating":
        matching.sort(key=lambda truck: truck.average_rating, reverse=True)
    elif filters.sort == "reviews":
        matching.sort(key=lambda truck: truck.total_reviews, reverse=True)

    distances: dict[str, Optional[float]] = {}
    if reference is not None:
        distances = {truck.id: candidate_distance(reference, truck) for truck in matching}

    return DiscoveryResult(
        trucks=matching,
        distances=distances,
        location_available=location_available,
        radius_miles=radius,
        total_candidates=len(candidates),
    )


def nearby_trucks_for_owner(
    owner_truck: TruckCandidate,
    candidates: Sequence[TruckCandidate],
    radius_miles: Optional[float] = None,
) -> tuple[LocationPoint, list[TruckCandidate]]:
    """Active competitors around the owner's truck, nearest first."""

    reference = candidate_point(owner_truck)
    radius = radius_miles if radius_miles is not None else settings.owner_nearby_radius_miles
    others = [
        candidate
        for candidate in candidates
        if candidate.id != owner_truck.id and candidate.is_active
    ]
    return reference, sort_by_distance(reference, within_radius(reference, others, radius))
