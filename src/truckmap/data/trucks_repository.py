"""Food truck and truck location access backed by Supabase."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from ..db.supabase import get_supabase_client
from ..models.domain import LocationPoint, TruckCandidate, TruckLocation

TRUCKS_TABLE = "food_trucks"
LOCATIONS_TABLE = "food_truck_locations"

logger = logging.getLogger(__name__)


def _require_client():
    supabase = get_supabase_client()
    if not supabase:
        raise ConnectionError(
            "Supabase not configured. Set TRUCKMAP_SUPABASE_URL and TRUCKMAP_SUPABASE_KEY environment variables."
        )
    return supabase


def _location_from_row(row: dict[str, Any]) -> TruckLocation:
    return TruckLocation(
        latitude=row.get("latitude"),
        longitude=row.get("longitude"),
        address=row.get("address"),
        zip_code=row.get("zip_code"),
        id=row.get("id"),
        is_current=bool(row.get("is_current", True)),
        updated_at=row.get("updated_at"),
    )


def _current_location(embedded: Any) -> Optional[TruckLocation]:
    # PostgREST returns an embedded one-to-many relation as a list
    rows = embedded if isinstance(embedded, list) else [embedded] if embedded else []
    for row in rows:
        if row and row.get("is_current"):
            return _location_from_row(row)
    return None


def truck_from_row(row: dict[str, Any]) -> TruckCandidate:
    return TruckCandidate(
        id=str(row["id"]),
        name=(row.get("truck_name") or "").strip(),
        location=_current_location(row.get(LOCATIONS_TABLE)),
        is_active=bool(row.get("is_active")),
        cuisine_types=list(row.get("cuisine_types") or []),
        dietary_options=list(row.get("dietary_options") or []),
        average_rating=float(row.get("average_rating") or 0.0),
        total_reviews=int(row.get("total_reviews") or 0),
        owner_id=row.get("owner_id"),
        raw={key: value for key, value in row.items() if key != LOCATIONS_TABLE},
    )


def load_truck_candidates(active_only: bool = False) -> list[TruckCandidate]:
    """Load every truck together with its current location, if any."""
    supabase = _require_client()
    query = supabase.table(TRUCKS_TABLE).select(f"*, {LOCATIONS_TABLE}(*)")
    if active_only:
        query = query.eq("is_active", True)
    response = query.execute()

    trucks: list[TruckCandidate] = []
    for row in response.data or []:
        try:
            trucks.append(truck_from_row(row))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Skipping invalid food truck row: {e}")
            continue
    return trucks


def get_truck(truck_id: str) -> Optional[TruckCandidate]:
    supabase = _require_client()
    response = (
        supabase.table(TRUCKS_TABLE)
        .select(f"*, {LOCATIONS_TABLE}(*)")
        .eq("id", truck_id)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    return truck_from_row(rows[0]) if rows else None


def get_current_location(truck_id: str) -> Optional[TruckLocation]:
    supabase = _require_client()
    response = (
        supabase.table(LOCATIONS_TABLE)
        .select("*")
        .eq("food_truck_id", truck_id)
        .eq("is_current", True)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    return _location_from_row(rows[0]) if rows else None


def update_truck_location(
    truck_id: str,
    point: LocationPoint,
    address: Optional[str] = None,
    zip_code: Optional[str] = None,
) -> TruckLocation:
    """Move the truck's current location, inserting the first row if needed."""
    supabase = _require_client()
    existing = get_current_location(truck_id)
    payload = {
        "latitude": point.latitude,
        "longitude": point.longitude,
        "address": address,
        "zip_code": zip_code,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }

    if existing and existing.id:
        response = supabase.table(LOCATIONS_TABLE).update(payload).eq("id", existing.id).execute()
    else:
        payload.update({"food_truck_id": truck_id, "is_current": True})
        response = supabase.table(LOCATIONS_TABLE).insert(payload).execute()

    rows = response.data or []
    logger.info(f"Updated location for truck {truck_id}")
    return _location_from_row(rows[0] if rows else payload)
