"""Admin dashboard backend: FastAPI application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from supabase import Client

from saasdash.config import DashboardSettings
from saasdash.dashboard import routes

logger = logging.getLogger(__name__)


def create_app(client: Client | None = None, settings: DashboardSettings | None = None) -> FastAPI:
    """Build the admin API around an anonymous-key Supabase client."""
    settings = settings or DashboardSettings()
    if client is None:
        from saasdash.clients import get_anon_client

        client = get_anon_client(settings)

    app = FastAPI(
        title="saasdash admin",
        description="Users, applications and assignments",
        version="0.1.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.supabase = client
    app.include_router(routes.router)
    return app
