"""FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import admin, auth, health, profiles, trucks
from .config import settings
from .data.profiles_repository import ProfileRepository
from .db.supabase import get_supabase_client
from .services.identity import SessionManager

logger = logging.getLogger(__name__)


def build_session_manager() -> SessionManager | None:
    client = get_supabase_client()
    if client is None:
        logger.warning("Session manager disabled: Supabase client unavailable")
        return None
    return SessionManager(ProfileRepository(client), auth_client=client)


def create_app(session_manager: SessionManager | None = None) -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title=settings.app_name, root_path="")
    app.state.session_manager = session_manager or build_session_manager()

    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(trucks.router, prefix=settings.api_prefix)
    app.include_router(auth.router, prefix=settings.api_prefix)
    app.include_router(profiles.router, prefix=settings.api_prefix)
    app.include_router(admin.router, prefix=settings.api_prefix)
    return app


app = create_app()
