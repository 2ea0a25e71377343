"""Notes MCP server: a crash-safe JSON note store exposed over MCP."""

__version__ = "1.0.0"
