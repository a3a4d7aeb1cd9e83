"""Long-lived MCP stdio client (newline-delimited JSON-RPC).

The client spawns the tool server once and keeps it running. Every request
gets a unique integer id and a pending future; the stdout reader resolves the
future whose id matches each reply, so concurrent callers each receive their
own response. Readiness is signalled by a marker line on the child's stderr.

Supports only what the HTTP shim needs:
- initialize + notifications/initialized
- tools/list
- tools/call
- ping
"""

from __future__ import annotations

import enum
import itertools
import json
import logging
import os
import subprocess
import threading
from collections import deque
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Any

from saasdash.config import READY_MARKER

logger = logging.getLogger(__name__)

LATEST_PROTOCOL_VERSION = "2025-06-18"


class McpError(RuntimeError):
    """Base class for stdio client failures."""


class McpProcessExited(McpError):
    """The child process is not running (never started, or exited)."""


class McpRequestTimeout(McpError, TimeoutError):
    """No reply arrived for a request within its timeout."""


class McpRpcError(McpError):
    """The child answered with a JSON-RPC error object."""

    def __init__(self, req_id: int, error: Any) -> None:
        self.req_id = req_id
        self.error = error
        message = error.get("message") if isinstance(error, dict) else str(error)
        super().__init__(f"MCP error for {req_id}: {message}")


class Lifecycle(str, enum.Enum):
    STARTING = "starting"
    READY = "ready"


@dataclass
class StdioServerSpec:
    command: str
    args: list[str]
    cwd: str | None = None
    env: dict[str, str] | None = None


_ESSENTIAL_ENV_KEYS = {
    "PATH",
    "PYTHONPATH",
    "VIRTUAL_ENV",
    "HOME",
    "LANG",
    "LC_ALL",
    # Windows essentials for subprocesses
    "SystemRoot",
    "ComSpec",
    "PATHEXT",
    "Path",
    "TEMP",
    "TMP",
    "USERPROFILE",
    "APPDATA",
    "LOCALAPPDATA",
}


def build_stdio_env(env_allow: list[str] | None, env_overrides: dict[str, Any] | None = None) -> dict[str, str]:
    """Environment for the child: OS essentials plus allowlisted variables only."""
    # NOTE: read os.environ directly rather than a copy; on Windows lookups on
    # the real mapping are case-insensitive (SYSTEMROOT vs SystemRoot).
    full_env = os.environ
    base: dict[str, str] = {}
    for k in _ESSENTIAL_ENV_KEYS:
        v = full_env.get(k)
        if v is not None:
            base[k] = v
    for k in env_allow or []:
        v = full_env.get(k)
        if v is not None:
            base[str(k)] = v
    for k, v in (env_overrides or {}).items():
        if v is None:
            continue
        base[str(k)] = str(v)
    return base


def content_text(result: dict[str, Any]) -> str:
    """Join the text blocks of a tools/call result."""
    content = result.get("content") or []
    texts: list[str] = []
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                texts.append(str(block.get("text", "")))
    if texts:
        return "\n".join(t for t in texts if t)
    return json.dumps(result, default=str)


class McpStdioClient:
    def __init__(
        self,
        spec: StdioServerSpec,
        *,
        timeout_s: float = 30.0,
        ready_marker: str = READY_MARKER,
    ) -> None:
        self._spec = spec
        self._timeout_s = float(timeout_s)
        self._ready_marker = ready_marker
        self._proc: subprocess.Popen[str] | None = None
        self._stdout_thread: threading.Thread | None = None
        self._stderr_thread: threading.Thread | None = None
        self._stderr_tail: deque[str] = deque(maxlen=50)
        self._ids = itertools.count(1)
        self._pending: dict[int, Future] = {}
        self._pending_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._init_lock = threading.Lock()
        self._initialized = False
        self._exited = False
        self._lifecycle = Lifecycle.STARTING
        self._ready = threading.Event()

    def __enter__(self) -> "McpStdioClient":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def lifecycle(self) -> Lifecycle:
        return self._lifecycle

    @property
    def ready(self) -> bool:
        return self._lifecycle is Lifecycle.READY

    @property
    def running(self) -> bool:
        return self._proc is not None and not self._exited

    @property
    def stderr_tail(self) -> list[str]:
        return list(self._stderr_tail)

    def wait_ready(self, timeout_s: float | None = None) -> bool:
        return self._ready.wait(timeout_s)

    def start(self) -> None:
        if self._proc is not None:
            return

        cmd = [self._spec.command, *list(self._spec.args or [])]
        logger.info("Starting MCP stdio server: %s", cmd)
        self._proc = subprocess.Popen(
            cmd,
            cwd=self._spec.cwd,
            env=self._spec.env,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,  # line buffered
        )

        assert self._proc.stdout is not None
        assert self._proc.stderr is not None

        self._stdout_thread = threading.Thread(target=self._read_stdout, name="mcp-stdout", daemon=True)
        self._stderr_thread = threading.Thread(target=self._read_stderr, name="mcp-stderr", daemon=True)
        self._stdout_thread.start()
        self._stderr_thread.start()

    def close(self) -> None:
        proc = self._proc
        if proc is None:
            return

        if proc.poll() is None:
            try:
                if proc.stdin is not None:
                    proc.stdin.close()
            except OSError:
                pass
            proc.terminate()
            try:
                proc.wait(timeout=3.0)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait(timeout=3.0)

        for thread in (self._stdout_thread, self._stderr_thread):
            if thread is not None:
                thread.join(timeout=3.0)
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
        self._fail_pending(McpProcessExited("MCP server process closed"))

    # ------------------------------------------------------------------
    # Reader threads
    # ------------------------------------------------------------------

    def _read_stdout(self) -> None:
        proc = self._proc
        assert proc is not None and proc.stdout is not None
        for line in proc.stdout:
            line = line.strip()
            if not line:
                continue
            try:
                msg = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("Failed to parse MCP stdout line: %r", line)
                continue
            if isinstance(msg, dict):
                self._dispatch(msg)

        self._exited = True
        code = proc.wait()
        logger.warning("MCP server process exited with code %s", code)
        self._fail_pending(McpProcessExited(f"MCP server process exited with code {code}"))

    def _read_stderr(self) -> None:
        proc = self._proc
        assert proc is not None and proc.stderr is not None
        for line in proc.stderr:
            txt = line.rstrip("\r\n")
            if not txt:
                continue
            self._stderr_tail.append(txt)
            logger.info("mcp(stderr): %s", txt)
            if self._lifecycle is Lifecycle.STARTING and self._ready_marker in txt:
                self._lifecycle = Lifecycle.READY
                self._ready.set()
                logger.info("MCP server ready")

    def _dispatch(self, msg: dict[str, Any]) -> None:
        req_id = msg.get("id")
        # Notifications and server->client requests carry no matching id
        if req_id is None or "method" in msg:
            logger.debug("Ignoring MCP message without pending id: %s", msg.get("method"))
            return

        with self._pending_lock:
            fut = self._pending.pop(req_id, None)
        if fut is None:
            logger.debug("Dropping MCP reply for unknown id %r", req_id)
            return

        if msg.get("error"):
            fut.set_exception(McpRpcError(req_id, msg["error"]))
        else:
            fut.set_result(msg.get("result") or {})

    def _fail_pending(self, exc: McpError) -> None:
        with self._pending_lock:
            pending = list(self._pending.values())
            self._pending.clear()
        for fut in pending:
            if not fut.done():
                fut.set_exception(exc)

    # ------------------------------------------------------------------
    # JSON-RPC
    # ------------------------------------------------------------------

    def _send(self, message: dict[str, Any]) -> None:
        proc = self._proc
        if proc is None or proc.stdin is None or self._exited:
            raise McpProcessExited("MCP process not running")
        payload = json.dumps(message, default=str) + "\n"
        try:
            with self._write_lock:
                proc.stdin.write(payload)
                proc.stdin.flush()
        except (BrokenPipeError, OSError, ValueError) as exc:
            raise McpProcessExited(f"MCP process stdin closed: {exc}") from exc

    def request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        timeout_s: float | None = None,
    ) -> dict[str, Any]:
        req_id = next(self._ids)
        msg: dict[str, Any] = {"jsonrpc": "2.0", "id": req_id, "method": method}
        if params is not None:
            msg["params"] = params

        fut: Future = Future()
        with self._pending_lock:
            self._pending[req_id] = fut
        try:
            self._send(msg)
            return fut.result(timeout=timeout_s if timeout_s is not None else self._timeout_s)
        except FutureTimeout:
            stderr = "\n".join(self.stderr_tail[-10:])
            raise McpRequestTimeout(f"MCP request {req_id} ({method}) timed out. stderr_tail:\n{stderr}") from None
        finally:
            with self._pending_lock:
                self._pending.pop(req_id, None)

    def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        msg: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            msg["params"] = params
        self._send(msg)

    # ------------------------------------------------------------------
    # MCP primitives
    # ------------------------------------------------------------------

    def initialize(self, *, client_name: str = "saasdash-shim", client_version: str = "0.1.0") -> dict[str, Any]:
        result = self.request(
            "initialize",
            {
                "protocolVersion": LATEST_PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": client_name, "version": client_version},
            },
        )
        self.notify("notifications/initialized")
        return result

    def ensure_initialized(self) -> None:
        if self._initialized:
            return
        with self._init_lock:
            if not self._initialized:
                self.initialize()
                self._initialized = True

    def ping(self) -> dict[str, Any]:
        return self.request("ping", None)

    def list_tools(self) -> dict[str, Any]:
        self.ensure_initialized()
        return self.request("tools/list", None)

    def call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        *,
        timeout_s: float | None = None,
    ) -> dict[str, Any]:
        self.ensure_initialized()
        return self.request("tools/call", {"name": name, "arguments": arguments or {}}, timeout_s=timeout_s)
