"""FastAPI routes for the admin dashboard: users, apps and assignments."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from supabase import Client

from saasdash import store
from saasdash.errors import DataAccessError, DuplicateError, NotFoundError
from saasdash.forms import (
    AppCreate,
    AppPatch,
    AssignmentCreate,
    AssignmentPatch,
    UserCreate,
    UserPatch,
)
from saasdash.tables import filter_rows, sort_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["dashboard"])

USER_SEARCH_COLUMNS = ("name", "email", "job_role", "team", "group")
APP_SEARCH_COLUMNS = ("name", "category", "vendor", "tier", "owner_team", "status")

Direction = Literal["asc", "desc"]


def _client(request: Request) -> Client:
    return request.app.state.supabase


def _error(exc: DataAccessError) -> JSONResponse:
    if isinstance(exc, NotFoundError):
        status = 404
    elif isinstance(exc, DuplicateError):
        status = 409
    else:
        status = 400
    return JSONResponse({"error": exc.message}, status_code=status)


def _with_assignments(fetch_one, fetch_many, key: str, entity_id: str) -> dict:
    with ThreadPoolExecutor(max_workers=2) as pool:
        one = pool.submit(fetch_one, entity_id)
        many = pool.submit(fetch_many, entity_id)
        return {key: one.result(), "assignments": many.result()}


@router.get("/health")
def dashboard_health():
    return {"ok": True}


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users")
def list_users(
    request: Request,
    search: str | None = None,
    sort: str | None = None,
    direction: Direction | None = None,
):
    try:
        rows = store.list_users_with_counts(_client(request))
    except DataAccessError as exc:
        return _error(exc)
    shown = sort_rows(filter_rows(rows, search, USER_SEARCH_COLUMNS), sort, direction)
    return {"users": shown, "count": len(shown), "total": len(rows)}


@router.get("/users/{user_id}")
def get_user(request: Request, user_id: str):
    client = _client(request)
    try:
        return _with_assignments(
            lambda i: store.get_user(client, i),
            lambda i: store.list_user_assignments(client, i),
            "user",
            user_id,
        )
    except DataAccessError as exc:
        return _error(exc)


@router.get("/users/{user_id}/unassigned-apps")
def unassigned_apps(request: Request, user_id: str):
    try:
        apps = store.get_unassigned_apps(_client(request), user_id)
        return {"apps": apps, "count": len(apps)}
    except DataAccessError as exc:
        return _error(exc)


@router.post("/users", status_code=201)
def create_user(request: Request, body: UserCreate):
    try:
        return {"user": store.create_user(_client(request), body.model_dump())}
    except DataAccessError as exc:
        return _error(exc)


@router.put("/users/{user_id}")
def update_user(request: Request, user_id: str, body: UserPatch):
    try:
        return {"user": store.update_user(_client(request), user_id, body.model_dump(exclude_unset=True))}
    except DataAccessError as exc:
        return _error(exc)


@router.delete("/users/{user_id}")
def delete_user(request: Request, user_id: str):
    try:
        store.delete_user(_client(request), user_id)
        return {"status": "deleted", "user_id": user_id}
    except DataAccessError as exc:
        return _error(exc)


# ---------------------------------------------------------------------------
# Apps
# ---------------------------------------------------------------------------


@router.get("/apps")
def list_apps(
    request: Request,
    search: str | None = None,
    sort: str | None = None,
    direction: Direction | None = None,
):
    try:
        rows = store.list_apps_with_counts(_client(request))
    except DataAccessError as exc:
        return _error(exc)
    shown = sort_rows(filter_rows(rows, search, APP_SEARCH_COLUMNS), sort, direction)
    return {"apps": shown, "count": len(shown), "total": len(rows)}


@router.get("/apps/{app_id}")
def get_app(request: Request, app_id: str):
    client = _client(request)
    try:
        return _with_assignments(
            lambda i: store.get_app(client, i),
            lambda i: store.list_app_assignments(client, i),
            "app",
            app_id,
        )
    except DataAccessError as exc:
        return _error(exc)


@router.get("/apps/{app_id}/unassigned-users")
def unassigned_users(request: Request, app_id: str):
    try:
        users = store.get_unassigned_users(_client(request), app_id)
        return {"users": users, "count": len(users)}
    except DataAccessError as exc:
        return _error(exc)


@router.post("/apps", status_code=201)
def create_app(request: Request, body: AppCreate):
    try:
        return {"app": store.create_app(_client(request), body.model_dump())}
    except DataAccessError as exc:
        return _error(exc)


@router.put("/apps/{app_id}")
def update_app(request: Request, app_id: str, body: AppPatch):
    try:
        return {"app": store.update_app(_client(request), app_id, body.model_dump(exclude_unset=True))}
    except DataAccessError as exc:
        return _error(exc)


@router.delete("/apps/{app_id}")
def delete_app(request: Request, app_id: str):
    try:
        store.delete_app(_client(request), app_id)
        return {"status": "deleted", "app_id": app_id}
    except DataAccessError as exc:
        return _error(exc)


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------


@router.post("/assignments", status_code=201)
def create_assignment(request: Request, body: AssignmentCreate):
    try:
        return {"assignment": store.upsert_assignment(_client(request), body.to_row())}
    except DataAccessError as exc:
        return _error(exc)


@router.patch("/assignments/{assignment_id}")
def update_assignment(request: Request, assignment_id: str, body: AssignmentPatch):
    updates = body.model_dump(exclude_unset=True)
    try:
        return {"assignment": store.update_assignment(_client(request), assignment_id, updates)}
    except DataAccessError as exc:
        return _error(exc)


@router.post("/assignments/{assignment_id}/toggle")
def toggle_assignment(request: Request, assignment_id: str, current_status: Literal["active", "revoked"]):
    try:
        row = store.toggle_assignment_status(_client(request), assignment_id, current_status)
    except DataAccessError as exc:
        return _error(exc)
    verb = "restored" if row.get("status") == "active" else "revoked"
    return {"assignment": row, "message": f"Assignment {verb}"}


@router.delete("/assignments/{assignment_id}")
def delete_assignment(request: Request, assignment_id: str):
    try:
        store.delete_assignment(_client(request), assignment_id)
        return {"status": "deleted", "assignment_id": assignment_id}
    except DataAccessError as exc:
        return _error(exc)
