"""MCP stdio tool server for the SaaS inventory.

Exposes 6 tools:
- health: liveness ping
- list_users / list_apps: filtered listings
- assign_user_to_app: upsert a user→app assignment
- list_user_assignments: a user's apps, newest first
- create_user: insert a user (email lower-cased)

stdout carries JSON-RPC; all logging goes to stderr.

Runs as: python -m saasdash.mcp.server
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Annotated, Callable, Literal

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP
from pydantic import Field
from supabase import Client

from saasdash import store
from saasdash.config import READY_MARKER
from saasdash.errors import ConfigError
from saasdash.forms import DATE_PATTERN, EMAIL_PATTERN
from saasdash.mcp import tools

logger = logging.getLogger("saasdash.mcp")

SERVER_NAME = "saasdash"

Limit = Annotated[int, Field(ge=1, le=store.MAX_LIMIT, description="Max rows (1-100)")]
Email = Annotated[str, Field(pattern=EMAIL_PATTERN, description="User email")]
Name = Annotated[str, Field(min_length=1, description="name is required")]
DateStr = Annotated[str, Field(pattern=DATE_PATTERN, description="YYYY-MM-DD")]


def build_server(get_client: Callable[[], Client]) -> FastMCP:
    """Create the FastMCP server with every tool registered against ``get_client``."""
    server = FastMCP(SERVER_NAME)

    @server.tool(description="Simple status ping")
    def health() -> str:
        return tools.health()

    @server.tool(description="Return users (optionally filtered by name)")
    def list_users(search: str | None = None, limit: Limit = store.DEFAULT_LIMIT) -> str:
        return tools.list_users(get_client(), search=search, limit=limit)

    @server.tool(description="Return apps (optionally by category)")
    def list_apps(category: str | None = None, limit: Limit = store.DEFAULT_LIMIT) -> str:
        return tools.list_apps(get_client(), category=category, limit=limit)

    @server.tool(description="Creates or updates a user→app assignment")
    def assign_user_to_app(
        user_email: Email,
        app_name: str,
        role_in_app: str = "Member",
        license_type: str = "Seat",
        access_level: str = "Default",
        status: Literal["active", "revoked"] = "active",
    ) -> str:
        return tools.assign_user_to_app(
            get_client(),
            user_email=user_email,
            app_name=app_name,
            role_in_app=role_in_app,
            license_type=license_type,
            access_level=access_level,
            status=status,
        )

    @server.tool(description="Apps assigned to a user")
    def list_user_assignments(user_email: Email) -> str:
        return tools.list_user_assignments(get_client(), user_email=user_email)

    @server.tool(description="Create a new user in the 'users' table")
    def create_user(
        name: Name,
        email: Email,
        job_role: str | None = None,
        start_date: DateStr | None = None,
        group: str | None = None,
        team: str | None = None,
    ) -> str:
        return tools.create_user(
            get_client(),
            name=name,
            email=email,
            job_role=job_role,
            start_date=start_date,
            group=group,
            team=team,
        )

    return server


def main() -> int:
    load_dotenv()
    logging.basicConfig(
        stream=sys.stderr,
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="[saasdash-mcp] %(asctime)s %(name)s %(levelname)s %(message)s",
    )

    from saasdash.clients import get_service_client

    try:
        client = get_service_client()
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1
    server = build_server(lambda: client)

    logger.info("%s (stdio).", READY_MARKER)
    server.run(transport="stdio")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
