"""Customer interaction events for truck owners' analytics."""

from __future__ import annotations

import logging
from typing import Any, Literal, Optional

from ..db.supabase import get_supabase_client

ANALYTICS_TABLE = "analytics_events"

EventType = Literal["truck_profile_view", "map_marker_click", "phone_click", "direction_click"]

logger = logging.getLogger(__name__)


def track_event(
    event_type: str,
    user_id: Optional[str] = None,
    food_truck_id: Optional[str] = None,
    event_data: Optional[dict[str, Any]] = None,
) -> bool:
    """Record one event. Failures are logged, never raised; returns whether it was stored."""
    supabase = get_supabase_client()
    if not supabase:
        logger.info(f"Analytics event (not persisted): {event_type}")
        return False
    try:
        supabase.table(ANALYTICS_TABLE).insert(
            {
                "user_id": user_id or None,
                "food_truck_id": food_truck_id or None,
                "event_type": event_type,
                "event_data": event_data or None,
            }
        ).execute()
    except Exception as e:
        logger.error(f"Error tracking analytics event {event_type}: {e}")
        return False
    return True


def track_truck_view(user_id: Optional[str], food_truck_id: str) -> bool:
    return track_event("truck_profile_view", user_id=user_id, food_truck_id=food_truck_id)


def track_map_click(user_id: Optional[str], food_truck_id: str) -> bool:
    return track_event("map_marker_click", user_id=user_id, food_truck_id=food_truck_id)


def track_phone_click(user_id: Optional[str], food_truck_id: str) -> bool:
    return track_event("phone_click", user_id=user_id, food_truck_id=food_truck_id)


def track_direction_click(user_id: Optional[str], food_truck_id: str) -> bool:
    return track_event("direction_click", user_id=user_id, food_truck_id=food_truck_id)
