"""Supabase client for the TruckMap backend."""

import logging
from functools import lru_cache
from supabase import create_client, Client
from ..config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logger.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        return None


# Tables are addressed by name throughout the data layer:
#
# result = client.table('food_trucks') \
#     .select('*, food_truck_locations!inner(*)') \
#     .eq('food_truck_locations.is_current', True) \
#     .execute()
#
# result = client.table('profiles').upsert(row, on_conflict='id').execute()
