"""Geospatial helper functions."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Optional

from ..config import settings
from ..errors import LocationUnavailable, MalformedCoordinate
from ..models.domain import LocationPoint, TruckCandidate

EARTH_RADIUS_MILES = 3959.0

logger = logging.getLogger(__name__)


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # rounding can push a just outside [0, 1] near antipodes
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def distance_miles(a: LocationPoint, b: LocationPoint) -> float:
    return haversine_miles(a.latitude, a.longitude, b.latitude, b.longitude)


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        raise TypeError(f"not a coordinate: {value!r}")
    if isinstance(value, str):
        value = value.strip()
    return float(value)


def coerce_point(latitude: Any, longitude: Any) -> LocationPoint:
    """Build a LocationPoint from stored values, rejecting anything unusable."""

    try:
        lat = _as_float(latitude)
        lng = _as_float(longitude)
    except (TypeError, ValueError) as exc:
        raise MalformedCoordinate(latitude, longitude) from exc

    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise MalformedCoordinate(latitude, longitude, "not finite")
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lng <= 180.0:
        raise MalformedCoordinate(latitude, longitude, "out of range")
    return LocationPoint(latitude=lat, longitude=lng)


def clamp_radius(radius_miles: Optional[float]) -> float:
    """Bound a caller supplied radius to the configured slider range."""

    if radius_miles is None:
        return settings.default_radius_miles
    return min(max(radius_miles, settings.min_radius_miles), settings.max_radius_miles)


def candidate_point(candidate: TruckCandidate) -> LocationPoint:
    """Return the candidate's validated position.

    Raises LocationUnavailable when the truck has no current location and
    MalformedCoordinate when the stored values are unusable.
    """

    if candidate.location is None:
        raise LocationUnavailable(f"Truck {candidate.id} has no current location")
    return coerce_point(candidate.location.latitude, candidate.location.longitude)


def candidate_distance(reference: LocationPoint, candidate: TruckCandidate) -> Optional[float]:
    """Distance for display, recomputed on every call."""

    try:
        point = candidate_point(candidate)
    except (LocationUnavailable, MalformedCoordinate):
        return None
    return distance_miles(reference, point)


def within_radius(
    reference: Optional[LocationPoint],
    candidates: Iterable[TruckCandidate],
    radius_miles: float,
) -> list[TruckCandidate]:
    """Keep candidates whose distance from ``reference`` is at most ``radius_miles``.

    Input order is preserved. Candidates without a location are always
    excluded, whatever the radius. A candidate with malformed coordinates is
    skipped with a warning and never aborts the pass.
    """

    if reference is None:
        raise LocationUnavailable("Reference location is unavailable; radius filtering skipped")

    retained: list[TruckCandidate] = []
    for candidate in candidates:
        if candidate.location is None:
            continue
        try:
            point = candidate_point(candidate)
        except MalformedCoordinate as exc:
            logger.warning(f"Excluding truck {candidate.id} from proximity filter: {exc}")
            continue
        if distance_miles(reference, point) <= radius_miles:
            retained.append(candidate)
    return retained


def sort_by_distance(
    reference: LocationPoint,
    candidates: Iterable[TruckCandidate],
) -> list[TruckCandidate]:
    """Order candidates nearest first; unlocatable ones go last."""

    def _key(candidate: TruckCandidate) -> float:
        distance = candidate_distance(reference, candidate)
        return math.inf if distance is None else distance

    return sorted(candidates, key=_key)
