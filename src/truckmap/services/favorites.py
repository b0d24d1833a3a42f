"""Customer favorite trucks."""

from __future__ import annotations

import logging

from ..db.supabase import get_supabase_client

FAVORITES_TABLE = "customer_favorites"

logger = logging.getLogger(__name__)


def _require_client():
    supabase = get_supabase_client()
    if not supabase:
        raise ConnectionError("Supabase not configured; favorites are unavailable.")
    return supabase


def _find_favorite_id(supabase, user_id: str, truck_id: str):
    response = (
        supabase.table(FAVORITES_TABLE)
        .select("id")
        .eq("user_id", user_id)
        .eq("food_truck_id", truck_id)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    return rows[0]["id"] if rows else None


def toggle_favorite(user_id: str, truck_id: str) -> bool:
    """Flip the favorite flag; returns True when the truck is now a favorite."""
    supabase = _require_client()
    existing_id = _find_favorite_id(supabase, user_id, truck_id)
    if existing_id is not None:
        supabase.table(FAVORITES_TABLE).delete().eq("id", existing_id).execute()
        return False

    supabase.table(FAVORITES_TABLE).insert(
        {
            "user_id": user_id,
            "food_truck_id": truck_id,
            "notify_when_online": True,
            "notify_when_nearby": True,
        }
    ).execute()
    return True


def get_favorites(user_id: str) -> set[str]:
    """Favorite truck ids for a user; an empty set if they cannot be read."""
    try:
        supabase = _require_client()
        response = supabase.table(FAVORITES_TABLE).select("food_truck_id").eq("user_id", user_id).execute()
    except Exception as e:
        logger.error(f"Error fetching favorites for {user_id}: {e}")
        return set()
    return {str(row["food_truck_id"]) for row in response.data or []}


def is_favorite(user_id: str, truck_id: str) -> bool:
    try:
        return _find_favorite_id(_require_client(), user_id, truck_id) is not None
    except Exception as e:
        logger.error(f"Error checking favorite {truck_id} for {user_id}: {e}")
        return False
