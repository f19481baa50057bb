"""MCP servers exposed over stdio."""
