"""Tests for MCP tool registration and SDK-side argument validation."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from saasdash.mcp import server as mcp_server

EXPECTED_TOOLS = {
    "health",
    "list_users",
    "list_apps",
    "assign_user_to_app",
    "list_user_assignments",
    "create_user",
}


def _first_text(result) -> str:
    # call_tool returns either the content blocks or (content, structured)
    if isinstance(result, tuple):
        result = result[0]
    return result[0].text


@pytest.fixture
def get_client(seeded):
    return MagicMock(return_value=seeded)


@pytest.fixture
def server(get_client):
    return mcp_server.build_server(get_client)


@pytest.mark.asyncio
async def test_registers_every_tool(server):
    tools = await server.list_tools()
    assert {t.name for t in tools} == EXPECTED_TOOLS


@pytest.mark.asyncio
async def test_create_user_schema_requires_name_and_email(server):
    tools = {t.name: t for t in await server.list_tools()}
    schema = tools["create_user"].inputSchema
    assert set(schema["required"]) == {"name", "email"}


@pytest.mark.asyncio
async def test_list_users_through_sdk(server):
    rows = json.loads(_first_text(await server.call_tool("list_users", {"search": "bob"})))
    assert [r["email"] for r in rows] == ["bob@company.com"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "tool,arguments",
    [
        ("list_users", {"limit": 0}),
        ("list_apps", {"limit": 101}),
        ("create_user", {"name": "No Email"}),
        ("create_user", {"name": "Bad Email", "email": "not-an-email"}),
        ("create_user", {"name": "Bad Date", "email": "d@example.com", "start_date": "01/02/2024"}),
        ("create_user", {"name": "", "email": "d@example.com"}),
        ("assign_user_to_app", {"user_email": "alice@company.com", "app_name": "Notion", "status": "paused"}),
        ("list_user_assignments", {}),
    ],
)
async def test_invalid_arguments_rejected_before_provider_call(server, get_client, tool, arguments):
    with pytest.raises(ToolError):
        await server.call_tool(tool, arguments)
    get_client.assert_not_called()


@pytest.mark.asyncio
async def test_not_found_surfaces_as_tool_error(server):
    with pytest.raises(ToolError, match="App not found: Nonexistent"):
        await server.call_tool("assign_user_to_app", {"user_email": "alice@company.com", "app_name": "Nonexistent"})


@pytest.mark.asyncio
async def test_duplicate_email_surfaces_as_tool_error(server):
    with pytest.raises(ToolError, match="A user with that email already exists."):
        await server.call_tool("create_user", {"name": "Alice", "email": "alice@company.com"})


def test_main_exits_when_credentials_missing(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    with patch.object(mcp_server, "load_dotenv"), patch("saasdash.clients.ToolServerSettings") as settings_cls:
        from saasdash.config import ToolServerSettings

        settings_cls.return_value = ToolServerSettings(_env_file=None)
        assert mcp_server.main() == 1


def test_main_logs_marker_then_serves(caplog):
    fake_server = MagicMock()
    with (
        patch.object(mcp_server, "load_dotenv"),
        patch("saasdash.clients.get_service_client", return_value=MagicMock()),
        patch.object(mcp_server, "build_server", return_value=fake_server),
        caplog.at_level("INFO", logger="saasdash.mcp"),
    ):
        assert mcp_server.main() == 0

    assert "MCP server started (stdio)." in caplog.text
    fake_server.run.assert_called_once_with(transport="stdio")
