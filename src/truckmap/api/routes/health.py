"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...db.supabase import get_supabase_client

router = APIRouter(tags=["health"])

CHECKED_TABLES = ("profiles", "food_trucks", "food_truck_locations")


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and that the tables we read exist."""
    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set TRUCKMAP_SUPABASE_URL and TRUCKMAP_SUPABASE_KEY environment variables.",
        }

    tables: dict[str, bool] = {}
    errors: list[str] = []
    for table in CHECKED_TABLES:
        try:
            supabase.table(table).select("id", count="exact").limit(1).execute()
            tables[table] = True
        except Exception as exc:
            tables[table] = False
            errors.append(str(exc))

    if errors and not any(tables.values()):
        return {
            "configured": True,
            "connected": False,
            "error": errors[0],
            "message": f"Database connection error: {errors[0]}",
        }

    missing = [name for name, present in tables.items() if not present]
    return {
        "configured": True,
        "connected": True,
        "tables": tables,
        "message": "Database connected." if not missing else f"Database connected but tables may be missing: {', '.join(missing)}",
    }
