"""Environment-driven settings for the tool server, shim and admin API."""

from __future__ import annotations

import sys

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

from saasdash.errors import ConfigError

READY_MARKER = "MCP server started"


class ToolServerSettings(BaseSettings):
    """Privileged credentials used by the MCP tool server."""

    supabase_url: str = Field(default="", validation_alias=AliasChoices("SUPABASE_URL"))
    supabase_service_role: str = Field(
        default="",
        validation_alias=AliasChoices("SUPABASE_SERVICE_ROLE", "SUPABASE_SERVICE_ROLE_KEY"),
    )

    model_config = {"env_file": ".env", "extra": "ignore"}

    def require(self) -> tuple[str, str]:
        if not self.supabase_url or not self.supabase_service_role:
            raise ConfigError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE env vars.")
        return self.supabase_url, self.supabase_service_role


class DashboardSettings(BaseSettings):
    """Restricted (anonymous key) credentials used by the admin API."""

    supabase_url: str = Field(
        default="",
        validation_alias=AliasChoices("SUPABASE_URL", "VITE_SUPABASE_URL"),
    )
    supabase_anon_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "SUPABASE_PUBLISHABLE_KEY", "VITE_SUPABASE_ANON_KEY", "SUPABASE_ANON_KEY"
        ),
    )
    host: str = Field(default="0.0.0.0", validation_alias=AliasChoices("DASHBOARD_HOST"))
    port: int = Field(default=8080, validation_alias=AliasChoices("DASHBOARD_PORT"))
    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://localhost:8080"],
        validation_alias=AliasChoices("DASHBOARD_CORS_ORIGINS"),
    )

    model_config = {"env_file": ".env", "extra": "ignore"}

    def require(self) -> tuple[str, str]:
        if not self.supabase_url or not self.supabase_anon_key:
            raise ConfigError("Missing Supabase environment variables")
        return self.supabase_url, self.supabase_anon_key


class ShimSettings(BaseSettings):
    """HTTP shim settings. ``mcp_command`` is a JSON list in the environment."""

    host: str = "0.0.0.0"
    port: int = 3001
    mcp_command: list[str] = Field(default_factory=list)
    mcp_cwd: str | None = None
    ready_marker: str = READY_MARKER
    call_timeout_s: float = 30.0
    env_allow: list[str] = Field(
        default_factory=lambda: [
            "SUPABASE_URL",
            "SUPABASE_SERVICE_ROLE",
            "SUPABASE_SERVICE_ROLE_KEY",
            "LOG_LEVEL",
        ]
    )

    model_config = {"env_prefix": "SHIM_", "env_file": ".env", "extra": "ignore"}

    def command(self) -> list[str]:
        if self.mcp_command:
            return list(self.mcp_command)
        return [sys.executable, "-m", "saasdash.mcp.server"]
