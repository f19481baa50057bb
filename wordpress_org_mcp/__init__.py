"""
WordPress.org MCP Server

MCP tools for searching, downloading, extracting and inspecting WordPress.org
plugins, and for comparing a local plugin directory with its published release.
"""

__version__ = "1.0.0"
