"""HTTP shim: one HTTP endpoint per MCP tool, backed by a stdio child process."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Body, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from saasdash.config import ShimSettings
from saasdash.mcp.stdio_client import (
    McpProcessExited,
    McpRequestTimeout,
    McpRpcError,
    McpStdioClient,
    StdioServerSpec,
    build_stdio_env,
    content_text,
)

logger = logging.getLogger(__name__)


def build_client(settings: ShimSettings) -> McpStdioClient:
    cmd = settings.command()
    spec = StdioServerSpec(
        command=cmd[0],
        args=cmd[1:],
        cwd=settings.mcp_cwd,
        env=build_stdio_env(settings.env_allow),
    )
    return McpStdioClient(spec, timeout_s=settings.call_timeout_s, ready_marker=settings.ready_marker)


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return text


def create_app(settings: ShimSettings | None = None, client: McpStdioClient | None = None) -> FastAPI:
    """Build the shim app. The MCP child starts with the app and stops with it."""
    settings = settings or ShimSettings()
    mcp = client or build_client(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        mcp.start()
        logger.info("HTTP wrapper starting; waiting for MCP server to start...")
        yield
        mcp.close()
        logger.info("HTTP wrapper stopped")

    app = FastAPI(
        title="saasdash MCP shim",
        description="HTTP wrapper around the saasdash MCP stdio server",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.mcp = mcp

    @app.get("/health")
    def health():
        return {
            "ok": True,
            "mcpReady": mcp.ready,
            "time": datetime.now(timezone.utc).isoformat(),
        }

    @app.post("/tools/{tool_name}")
    def call_tool(tool_name: str, parameters: dict[str, Any] | None = Body(default=None)):
        if not mcp.ready:
            return JSONResponse({"error": "MCP server not ready"}, status_code=503)

        parameters = parameters or {}
        base = {"tool": tool_name, "parameters": parameters}
        try:
            result = mcp.call_tool(tool_name, parameters)
        except McpProcessExited as exc:
            logger.warning("Tool %s failed, MCP server gone: %s", tool_name, exc)
            return JSONResponse({"error": "MCP server exited", "details": str(exc)}, status_code=503)
        except McpRequestTimeout as exc:
            logger.warning("Tool %s timed out", tool_name)
            return JSONResponse({"success": False, **base, "error": str(exc)}, status_code=504)
        except McpRpcError as exc:
            logger.warning("Tool %s rejected: %s", tool_name, exc)
            return JSONResponse({"success": False, **base, "error": str(exc)}, status_code=502)

        text = content_text(result)
        if result.get("isError"):
            logger.info("Tool %s reported an error: %s", tool_name, text)
            return JSONResponse({"success": False, **base, "error": text}, status_code=400)

        return {
            "success": True,
            **base,
            "message": f"Tool {tool_name} executed successfully",
            "result": _decode(text),
        }

    return app
