"""Tool implementations backing the MCP server.

Each function takes a Supabase client plus the already-validated tool
arguments and returns the text payload for a single text content block.
Failures are raised; the MCP SDK reports them to the caller as error results.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from supabase import Client

from saasdash import store
from saasdash.errors import DuplicateError, NotFoundError

DUPLICATE_EMAIL_MESSAGE = "A user with that email already exists."

ASSIGNMENT_COLUMNS = (
    "app_name,role_in_app,license_type,access_level,status,assigned_on,user_email,user_team,user_group"
)


def text(data: Any) -> str:
    """Serialize a tool result: strings pass through, everything else is JSON."""
    if isinstance(data, str):
        return data
    return json.dumps(data, indent=2, default=str)


def health() -> str:
    return text({"ok": True, "time": datetime.now(timezone.utc).isoformat()})


def list_users(client: Client, search: str | None = None, limit: int = store.DEFAULT_LIMIT) -> str:
    return text(store.list_users(client, search=search, limit=limit))


def list_apps(client: Client, category: str | None = None, limit: int = store.DEFAULT_LIMIT) -> str:
    return text(store.list_apps(client, category=category, limit=limit))


def assign_user_to_app(
    client: Client,
    user_email: str,
    app_name: str,
    role_in_app: str = "Member",
    license_type: str = "Seat",
    access_level: str = "Default",
    status: str = "active",
) -> str:
    try:
        user = store.get_user_by_email(client, user_email)
    except NotFoundError:
        raise NotFoundError(f"User not found: {user_email}") from None
    try:
        app = store.get_app_by_name(client, app_name)
    except NotFoundError:
        raise NotFoundError(f"App not found: {app_name}") from None

    row = store.upsert_assignment(
        client,
        {
            "user_id": user["id"],
            "app_id": app["id"],
            "role_in_app": role_in_app,
            "license_type": license_type,
            "access_level": access_level,
            "status": status,
        },
    )
    return text(row)


def list_user_assignments(client: Client, user_email: str) -> str:
    return text(store.list_assignments_by_email(client, user_email, columns=ASSIGNMENT_COLUMNS))


def create_user(
    client: Client,
    name: str,
    email: str,
    job_role: str | None = None,
    start_date: str | None = None,
    group: str | None = None,
    team: str | None = None,
) -> str:
    payload = {
        "name": name,
        "email": email.lower(),
        "job_role": job_role,
        "start_date": start_date,
        "group": group,
        "team": team,
    }
    try:
        row = store.create_user(client, payload)
    except DuplicateError as exc:
        raise DuplicateError(DUPLICATE_EMAIL_MESSAGE, exc.code) from None
    return text(row)
