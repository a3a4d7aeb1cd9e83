"""saasdash: SaaS license inventory back end.

This package provides:
- A Supabase-backed data-access layer for users, apps and assignments
- An MCP stdio tool server exposing the same operations to agents
- An HTTP shim that spawns the tool server and relays tool calls
- The admin JSON API consumed by the dashboard
"""

__version__ = "0.1.0"
