"""Supabase data access for users, apps and user→app assignments."""

from __future__ import annotations

import logging
import re
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client

from saasdash.errors import DataAccessError, DuplicateError, NotFoundError

logger = logging.getLogger(__name__)

USERS = "users"
APPS = "apps"
ASSIGNMENTS = "user_app_assignments"
ASSIGNMENTS_VIEW = "assignments_expanded"

DEFAULT_LIMIT = 25
MAX_LIMIT = 100

_UNIQUE_VIOLATION = "23505"
# PostgREST: ".single()" matched zero or several rows
_NO_SINGLE_ROW = "PGRST116"
_DUPLICATE_RE = re.compile(r"duplicate key|already exists", re.IGNORECASE)


def clamp_limit(limit: int | None) -> int:
    """Clamp a requested row count to 1..MAX_LIMIT (default DEFAULT_LIMIT)."""
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(MAX_LIMIT, int(limit)))


def _translate(exc: APIError) -> DataAccessError:
    message = exc.message or str(exc)
    code = str(exc.code) if exc.code is not None else None
    if code == _UNIQUE_VIOLATION or _DUPLICATE_RE.search(message):
        return DuplicateError(message, code)
    return DataAccessError(message, code)


def _execute(query: Any) -> Any:
    try:
        return query.execute()
    except APIError as exc:
        logger.debug("Supabase query failed: code=%s message=%s", exc.code, exc.message)
        raise _translate(exc) from exc


def _rows(query: Any) -> list[dict[str, Any]]:
    return list(_execute(query).data or [])


def _one(query: Any, what: str) -> dict[str, Any]:
    """Run a ``.single()`` query; zero or several matching rows is NotFoundError."""
    try:
        data = query.execute().data
    except APIError as exc:
        err = _translate(exc)
        if err.code == _NO_SINGLE_ROW:
            raise NotFoundError(f"{what} not found", err.code) from exc
        raise err from exc
    if not data:
        raise NotFoundError(f"{what} not found")
    return data


def _first_written(query: Any, what: str) -> dict[str, Any]:
    rows = _rows(query)
    if not rows:
        raise NotFoundError(f"{what} not found")
    return rows[0]


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

USER_COLUMNS = "id,name,email,job_role,team,group,start_date,created_at"


def list_users(client: Client, search: str | None = None, limit: int | None = DEFAULT_LIMIT) -> list[dict[str, Any]]:
    q = client.table(USERS).select(USER_COLUMNS)
    if search:
        q = q.ilike("name", f"%{search}%")
    return _rows(q.order("name").limit(clamp_limit(limit)))


def _flatten_count(row: dict[str, Any]) -> dict[str, Any]:
    embedded = row.pop(ASSIGNMENTS, None) or []
    row["assignment_count"] = embedded[0].get("count", 0) if embedded else 0
    return row


def list_users_with_counts(client: Client) -> list[dict[str, Any]]:
    q = client.table(USERS).select(f"*, {ASSIGNMENTS}(count)").order("name")
    return [_flatten_count(r) for r in _rows(q)]


def get_user(client: Client, user_id: str) -> dict[str, Any]:
    return _one(client.table(USERS).select("*").eq("id", user_id).single(), f"User {user_id}")


def get_user_by_email(client: Client, email: str) -> dict[str, Any]:
    q = client.table(USERS).select("*").eq("email", email.strip().lower()).single()
    return _one(q, f"User {email}")


def create_user(client: Client, payload: dict[str, Any]) -> dict[str, Any]:
    data = dict(payload)
    data["email"] = str(data["email"]).strip().lower()
    row = _first_written(client.table(USERS).insert(data), "Created user")
    logger.info("Created user %s (%s)", row.get("id"), row.get("email"))
    return row


def update_user(client: Client, user_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    data = dict(updates)
    if data.get("email"):
        data["email"] = str(data["email"]).strip().lower()
    return _first_written(client.table(USERS).update(data).eq("id", user_id), f"User {user_id}")


def delete_user(client: Client, user_id: str) -> None:
    _execute(client.table(USERS).delete().eq("id", user_id))
    logger.info("Deleted user %s", user_id)


# ---------------------------------------------------------------------------
# Apps
# ---------------------------------------------------------------------------

APP_COLUMNS = "id,name,category,vendor,tier,owner_team,sso_required,status"


def list_apps(
    client: Client,
    search: str | None = None,
    category: str | None = None,
    limit: int | None = DEFAULT_LIMIT,
) -> list[dict[str, Any]]:
    q = client.table(APPS).select(APP_COLUMNS)
    if search:
        q = q.ilike("name", f"%{search}%")
    if category:
        q = q.eq("category", category)
    return _rows(q.order("name").limit(clamp_limit(limit)))


def list_apps_with_counts(client: Client) -> list[dict[str, Any]]:
    q = client.table(APPS).select(f"*, {ASSIGNMENTS}(count)").order("name")
    return [_flatten_count(r) for r in _rows(q)]


def get_app(client: Client, app_id: str) -> dict[str, Any]:
    return _one(client.table(APPS).select("*").eq("id", app_id).single(), f"App {app_id}")


def get_app_by_name(client: Client, name: str) -> dict[str, Any]:
    return _one(client.table(APPS).select("*").eq("name", name).single(), f"App {name}")


def create_app(client: Client, payload: dict[str, Any]) -> dict[str, Any]:
    row = _first_written(client.table(APPS).insert(dict(payload)), "Created app")
    logger.info("Created app %s (%s)", row.get("id"), row.get("name"))
    return row


def update_app(client: Client, app_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    return _first_written(client.table(APPS).update(dict(updates)).eq("id", app_id), f"App {app_id}")


def delete_app(client: Client, app_id: str) -> None:
    _execute(client.table(APPS).delete().eq("id", app_id))
    logger.info("Deleted app %s", app_id)


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------


def list_user_assignments(client: Client, user_id: str) -> list[dict[str, Any]]:
    q = client.table(ASSIGNMENTS_VIEW).select("*").eq("user_id", user_id)
    return _rows(q.order("assigned_on", desc=True))


def list_app_assignments(client: Client, app_id: str) -> list[dict[str, Any]]:
    q = client.table(ASSIGNMENTS_VIEW).select("*").eq("app_id", app_id)
    return _rows(q.order("assigned_on", desc=True))


def list_assignments_by_email(client: Client, email: str, columns: str = "*") -> list[dict[str, Any]]:
    q = client.table(ASSIGNMENTS_VIEW).select(columns).eq("user_email", email.strip().lower())
    return _rows(q.order("assigned_on", desc=True))


def upsert_assignment(client: Client, payload: dict[str, Any]) -> dict[str, Any]:
    """Create or update the single assignment row for (user_id, app_id)."""
    q = client.table(ASSIGNMENTS).upsert(dict(payload), on_conflict="user_id,app_id")
    row = _first_written(q, "Assignment")
    logger.info(
        "Upserted assignment user=%s app=%s status=%s",
        row.get("user_id"),
        row.get("app_id"),
        row.get("status"),
    )
    return row


def update_assignment(client: Client, assignment_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    q = client.table(ASSIGNMENTS).update(dict(updates)).eq("id", assignment_id)
    return _first_written(q, f"Assignment {assignment_id}")


def toggle_assignment_status(client: Client, assignment_id: str, current_status: str) -> dict[str, Any]:
    new_status = "revoked" if current_status == "active" else "active"
    return update_assignment(client, assignment_id, {"status": new_status})


def delete_assignment(client: Client, assignment_id: str) -> None:
    _execute(client.table(ASSIGNMENTS).delete().eq("id", assignment_id))


# ---------------------------------------------------------------------------
# Anti-joins
# ---------------------------------------------------------------------------


def _linked_ids(client: Client, key: str, column: str, value: str) -> list[str]:
    rows = _rows(client.table(ASSIGNMENTS).select(column).eq(key, value))
    return sorted({str(r[column]) for r in rows if r.get(column) is not None})


def get_unassigned_apps(client: Client, user_id: str) -> list[dict[str, Any]]:
    """Apps with no assignment row for ``user_id``."""
    assigned = _linked_ids(client, "user_id", "app_id", user_id)
    q = client.table(APPS).select("*")
    if assigned:
        q = q.not_.in_("id", assigned)
    return _rows(q.order("name"))


def get_unassigned_users(client: Client, app_id: str) -> list[dict[str, Any]]:
    """Users with no assignment row for ``app_id``."""
    assigned = _linked_ids(client, "app_id", "user_id", app_id)
    q = client.table(USERS).select("*")
    if assigned:
        q = q.not_.in_("id", assigned)
    return _rows(q.order("name"))
