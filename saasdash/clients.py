"""Supabase client factories.

The tool server talks to the database with the service-role key; the admin
API only ever gets the anonymous key.
"""

from __future__ import annotations

import logging

from supabase import Client, ClientOptions, create_client

from saasdash.config import DashboardSettings, ToolServerSettings

logger = logging.getLogger(__name__)


def _create(url: str, key: str) -> Client:
    options = ClientOptions(auto_refresh_token=False, persist_session=False)
    return create_client(url, key, options=options)


def get_service_client(settings: ToolServerSettings | None = None) -> Client:
    url, key = (settings or ToolServerSettings()).require()
    logger.info("Connecting to Supabase (service role): %s", url)
    return _create(url, key)


def get_anon_client(settings: DashboardSettings | None = None) -> Client:
    url, key = (settings or DashboardSettings()).require()
    logger.info("Connecting to Supabase (anon): %s", url)
    return _create(url, key)
