"""Model Context Protocol (MCP) integration.

This package provides:
- The stdio MCP tool server (server.py) and its tool implementations
- A stdio MCP client that correlates JSON-RPC replies by request id
"""
