#!/usr/bin/env python3
"""Check the TruckMap .env file and write a template when it is missing."""

import os
import sys
from pathlib import Path

SECRET_KEYS = ("TRUCKMAP_SUPABASE_KEY", "TRUCKMAP_SESSION_API_KEY")
REQUIRED_KEYS = ("TRUCKMAP_SUPABASE_URL", "TRUCKMAP_SUPABASE_KEY")

TEMPLATE = """# Supabase (required for trucks, profiles and password sign-in)
TRUCKMAP_SUPABASE_URL=https://your-project-id.supabase.co
TRUCKMAP_SUPABASE_KEY=your-service-role-key-here

# Firebase (optional, enables /api/auth/firebase)
# TRUCKMAP_FIREBASE_PROJECT_ID=your-firebase-project
# TRUCKMAP_FIREBASE_CREDENTIALS_FILE=./firebase-service-account.json

# Trusted callers of /api/auth/session (endpoint answers 503 while unset)
# TRUCKMAP_SESSION_API_KEY=shared-secret-for-trusted-identity-callers

# API
TRUCKMAP_API_PREFIX=/api
# TRUCKMAP_FRONTEND_ALLOWED_ORIGINS=http://localhost:5173,http://127.0.0.1:5173

# Discovery radius in miles
# TRUCKMAP_DEFAULT_RADIUS_MILES=25
# TRUCKMAP_OWNER_NEARBY_RADIUS_MILES=3
"""


def _mask(line: str) -> str:
    name, _, value = line.partition("=")
    value = value.strip()
    if name.strip() in SECRET_KEYS and len(value) > 20:
        return f"{name}={value[:20]}...{value[-10:]}"
    return line


def main() -> int:
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    if not env_file.exists():
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"Created template .env at {env_file}; add your Supabase credentials and rerun.")
        return 1

    print(f"Found .env at {env_file}:")
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(f"  {_mask(line)}")
    print()

    for key in REQUIRED_KEYS:
        print(f"{key} in environment: {'yes' if os.getenv(key) else 'no'}")

    sys.path.insert(0, str(project_root / "src"))
    from truckmap.config import settings

    configured = bool(settings.supabase_url and settings.supabase_key)
    print(f"Supabase configured via settings: {'yes' if configured else 'no'}")
    print(f"Firebase sign-in: {'enabled' if settings.firebase_project_id or settings.firebase_credentials_file else 'default credentials'}")
    return 0 if configured else 1


if __name__ == "__main__":
    sys.exit(main())
