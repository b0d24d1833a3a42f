"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TRUCKMAP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "TruckMap API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logging level.")
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    # Firebase configuration
    firebase_project_id: Optional[str] = Field(
        default=None,
        description="Firebase project whose ID tokens are accepted.",
    )
    firebase_credentials_file: Optional[Path] = Field(
        default=None,
        description="Service account JSON used to initialise firebase_admin.",
    )

    # Discovery
    default_radius_miles: float = Field(default=25.0, gt=0.0)
    min_radius_miles: float = Field(default=1.0, gt=0.0)
    max_radius_miles: float = Field(default=50.0, gt=0.0)
    owner_nearby_radius_miles: float = Field(default=3.0, gt=0.0)

    # Login protection
    login_max_attempts: int = Field(default=5, ge=1)
    login_lockout_minutes: int = Field(default=15, ge=1)
    rate_limit_window_seconds: int = Field(default=60, ge=1)

    # Profile writes
    identity_upsert_max_retries: int = Field(default=2, ge=0)
    identity_upsert_backoff_seconds: float = Field(default=0.5, ge=0.0)
    session_api_key: Optional[str] = Field(
        default=None,
        description="Shared secret trusted callers send in X-TruckMap-Key to reconcile pre-verified identities.",
    )

    admin_notification_url: Optional[str] = Field(
        default=None,
        description="Edge function receiving changelog notifications.",
    )
    admin_notification_timeout_seconds: float = Field(default=10.0, gt=0.0)

    @field_validator("firebase_credentials_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Optional[Path]:
        if value is None or value == "":
            return None
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @property
    def resolved_admin_notification_url(self) -> Optional[str]:
        if self.admin_notification_url:
            return self.admin_notification_url
        if self.supabase_url:
            return f"{self.supabase_url.rstrip('/')}/functions/v1/send-admin-notification"
        return None


settings = Settings()
