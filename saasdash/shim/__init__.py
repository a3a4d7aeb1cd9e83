"""HTTP wrapper that spawns the MCP tool server and relays tool calls."""
