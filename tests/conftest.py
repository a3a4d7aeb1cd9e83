"""Shared test fixtures for saasdash."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from fake_supabase import FakeSupabase

ECHO_SERVER = Path(__file__).resolve().parent / "mcp_echo_server.py"


@pytest.fixture(autouse=True)
def set_test_env(monkeypatch):
    """Point every settings class at fake credentials; never read a real .env."""
    monkeypatch.setenv("SUPABASE_URL", "https://test-project.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE", "service-role-test-fake")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-test-fake")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")


@pytest.fixture
def db() -> FakeSupabase:
    """An empty in-memory database."""
    return FakeSupabase()


@pytest.fixture
def seeded(db) -> FakeSupabase:
    """The sample rows shipped in schema.sql."""
    users = {
        "alice": db.add("users", name="Alice Johnson", email="alice@company.com", job_role="Product Manager",
                        start_date="2023-01-15", group="Product", team="Growth"),
        "bob": db.add("users", name="Bob Chen", email="bob@company.com", job_role="Senior Engineer",
                      start_date="2022-03-10", group="Engineering", team="Platform"),
        "carol": db.add("users", name="Carol Rodriguez", email="carol@company.com", job_role="UX Designer",
                        start_date="2023-06-01", group="Design", team="Experience"),
    }
    apps = {
        "slack": db.add("apps", name="Slack", category="Communication", vendor="Slack Technologies",
                        tier="Pro", owner_team="IT", sso_required=True),
        "figma": db.add("apps", name="Figma", category="Design", vendor="Figma Inc",
                        tier="Professional", owner_team="Design", sso_required=True),
        "github": db.add("apps", name="GitHub", category="DevTools", vendor="GitHub Inc",
                         tier="Enterprise", owner_team="Engineering", sso_required=True),
        "notion": db.add("apps", name="Notion", category="Productivity", vendor="Notion Labs",
                         tier="Team", owner_team="Product"),
    }
    db.add("user_app_assignments", user_id=users["alice"]["id"], app_id=apps["notion"]["id"],
           role_in_app="Admin", access_level="Full", license_type="Full License", assigned_on="2023-07-01")
    db.add("user_app_assignments", user_id=users["alice"]["id"], app_id=apps["slack"]["id"],
           role_in_app="Member", access_level="Standard", license_type="Seat", assigned_on="2024-02-01")
    db.add("user_app_assignments", user_id=users["bob"]["id"], app_id=apps["github"]["id"],
           role_in_app="Member", access_level="Standard", license_type="Seat License", assigned_on="2023-07-01")
    db.users = users
    db.apps = apps
    return db


@pytest.fixture
def echo_command() -> list[str]:
    """Command line for the scripted stdio MCP child."""
    return [sys.executable, str(ECHO_SERVER)]
