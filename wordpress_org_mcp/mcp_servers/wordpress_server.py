#!/usr/bin/env python3
"""
WordPress.org MCP Server

Lets an agent search, download, extract and inspect WordPress.org plugins,
and compare a local plugin directory against the published package.

Tools:
- search_plugins: Search WordPress.org plugins by keyword
- get_plugin_info: Metadata for one plugin
- download_plugin: Download a plugin ZIP into the cache
- extract_plugin: Extract a downloaded plugin ZIP
- list_plugin_files: List files of an extracted plugin
- read_plugin_file: Read one file of an extracted plugin
- get_plugin_structure: Nested directory structure of an extracted plugin
- compare_plugins: Compare a local plugin with its WordPress.org release
- get_file_diff: Unified diff of one file between local and WordPress.org
- server_health: Configuration and tool call statistics

Transport: stdio
"""

import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from mcp.types import ErrorData, TextContent, Tool

from wordpress_org_mcp import __version__
from wordpress_org_mcp.architecture.plugin_comparator import PluginComparator
from wordpress_org_mcp.architecture.plugin_extractor import PluginExtractor
from wordpress_org_mcp.architecture.report_formatter import format_comparison_summary
from wordpress_org_mcp.architecture.tool_logger import get_tool_logger
from wordpress_org_mcp.architecture.wordpress_api import WordPressOrgAPI
from wordpress_org_mcp.config.config import ConfigManager
from wordpress_org_mcp.core.exceptions import (
    AppException,
    ExtractionError,
    InvalidArgumentError,
    MissingArgumentError,
    PluginDownloadError,
    PluginFileNotFoundError,
    PluginNotFoundError,
    ToolNotFoundError,
    get_exception_details,
)

SERVER_NAME = "wordpress-org-mcp-server"

logger = logging.getLogger("wordpress-org-server")


def setup_logging(config: ConfigManager) -> None:
    """Log to stderr (stdout carries the MCP protocol) and to a rotating file."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, config.log_level, logging.INFO))
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter("[WP-MCP] %(levelname)s %(message)s"))
    root.addHandler(console_handler)

    try:
        logs_dir = Path(config.log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            logs_dir / "wordpress_org_server.log", maxBytes=5*1024*1024, backupCount=5, encoding="utf-8"
        )
    except OSError as e:
        logger.warning(f"File logging disabled ({config.log_dir}): {e}")
    else:
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        root.addHandler(file_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)


# ============================================================================
# SERVER CONTEXT
# ============================================================================

@dataclass
class ServerContext:
    config: ConfigManager
    api: WordPressOrgAPI
    extractor: PluginExtractor
    comparator: PluginComparator

    @classmethod
    def from_config(cls, config: ConfigManager) -> "ServerContext":
        return cls(
            config=config,
            api=WordPressOrgAPI(
                cache_dir=config.cache_dir,
                timeout=config.http_timeout,
                max_retries=config.max_retries,
            ),
            extractor=PluginExtractor(config.extract_dir),
            comparator=PluginComparator(max_concurrency=config.max_concurrency),
        )


# Global context (lazy initialization)
_context: Optional[ServerContext] = None


def get_context() -> ServerContext:
    """Get or create the server context."""
    global _context
    if _context is None:
        _context = ServerContext.from_config(ConfigManager())
        logger.info(f"Cache dir: {_context.api.cache_dir} | Extract dir: {_context.extractor.extract_dir}")
    return _context


def set_context(context: Optional[ServerContext]) -> None:
    global _context
    _context = context


# ============================================================================
# ARGUMENT HELPERS
# ============================================================================

def _require_str(arguments: Dict[str, Any], name: str) -> str:
    value = arguments.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingArgumentError(f"{name} is required", details={"argument": name})
    if not isinstance(value, str):
        raise InvalidArgumentError(f"{name} must be a string", details={"argument": name})
    return value


def _optional_str(arguments: Dict[str, Any], name: str, default: Optional[str] = None) -> Optional[str]:
    value = arguments.get(name)
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        raise InvalidArgumentError(f"{name} must be a string", details={"argument": name})
    return value


def _optional_int(arguments: Dict[str, Any], name: str, default: int) -> int:
    value = arguments.get(name)
    if value is None:
        return default
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{name} must be a number", details={"argument": name})
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"{name} must be a number", details={"argument": name})
    if number < 1:
        raise InvalidArgumentError(f"{name} must be at least 1", details={"argument": name})
    return number


# ============================================================================
# TOOL DEFINITIONS
# ============================================================================

server = Server(SERVER_NAME, version=__version__)


@server.list_tools()
async def list_tools() -> List[Tool]:
    """List available WordPress.org tools."""
    return [
        Tool(
            name="search_plugins",
            description="Search for WordPress.org plugins by keyword",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Search query for plugins"
                    },
                    "limit": {
                        "type": "number",
                        "description": "Maximum number of results (default: 10)",
                        "default": 10
                    }
                },
                "required": ["query"]
            }
        ),
        Tool(
            name="get_plugin_info",
            description="Get detailed information about a specific plugin",
            inputSchema={
                "type": "object",
                "properties": {
                    "slug": {
                        "type": "string",
                        "description": 'Plugin slug (e.g., "jwt-authentication-for-wp-rest-api")'
                    }
                },
                "required": ["slug"]
            }
        ),
        Tool(
            name="download_plugin",
            description="Download a plugin from WordPress.org",
            inputSchema={
                "type": "object",
                "properties": {
                    "slug": {
                        "type": "string",
                        "description": "Plugin slug to download"
                    },
                    "version": {
                        "type": "string",
                        "description": 'Plugin version (default: "latest")',
                        "default": "latest"
                    }
                },
                "required": ["slug"]
            }
        ),
        Tool(
            name="extract_plugin",
            description="Extract a downloaded plugin ZIP file",
            inputSchema={
                "type": "object",
                "properties": {
                    "slug": {
                        "type": "string",
                        "description": "Plugin slug to extract"
                    },
                    "zip_path": {
                        "type": "string",
                        "description": "Path to the plugin ZIP file (optional if already downloaded)"
                    }
                },
                "required": ["slug"]
            }
        ),
        Tool(
            name="list_plugin_files",
            description="List files in an extracted plugin",
            inputSchema={
                "type": "object",
                "properties": {
                    "slug": {
                        "type": "string",
                        "description": "Plugin slug"
                    },
                    "extension": {
                        "type": "string",
                        "description": 'Filter by file extension (e.g., ".php", ".js")'
                    }
                },
                "required": ["slug"]
            }
        ),
        Tool(
            name="read_plugin_file",
            description="Read the contents of a specific file from an extracted plugin",
            inputSchema={
                "type": "object",
                "properties": {
                    "slug": {
                        "type": "string",
                        "description": "Plugin slug"
                    },
                    "file_path": {
                        "type": "string",
                        "description": "Relative path to the file within the plugin"
                    }
                },
                "required": ["slug", "file_path"]
            }
        ),
        Tool(
            name="get_plugin_structure",
            description="Get the nested directory structure of an extracted plugin with file sizes and dates",
            inputSchema={
                "type": "object",
                "properties": {
                    "slug": {
                        "type": "string",
                        "description": "Plugin slug"
                    }
                },
                "required": ["slug"]
            }
        ),
        Tool(
            name="compare_plugins",
            description="Compare a local plugin with a WordPress.org plugin",
            inputSchema={
                "type": "object",
                "properties": {
                    "local_path": {
                        "type": "string",
                        "description": "Path to local plugin directory"
                    },
                    "wp_org_slug": {
                        "type": "string",
                        "description": "WordPress.org plugin slug to compare against"
                    },
                    "format": {
                        "type": "string",
                        "enum": ["summary", "detailed"],
                        "description": 'Output format (default: "summary")',
                        "default": "summary"
                    }
                },
                "required": ["local_path", "wp_org_slug"]
            }
        ),
        Tool(
            name="get_file_diff",
            description="Get detailed diff for a specific file between local and WordPress.org plugin",
            inputSchema={
                "type": "object",
                "properties": {
                    "local_path": {
                        "type": "string",
                        "description": "Path to local plugin directory"
                    },
                    "wp_org_slug": {
                        "type": "string",
                        "description": "WordPress.org plugin slug"
                    },
                    "file_path": {
                        "type": "string",
                        "description": "Relative path to the file to diff"
                    }
                },
                "required": ["local_path", "wp_org_slug", "file_path"]
            }
        ),
        Tool(
            name="server_health",
            description="Report server configuration, directories and tool call statistics",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
    """Dispatch a tool call and map failures to MCP errors."""
    arguments = arguments or {}
    handler = TOOL_HANDLERS.get(name)

    with get_tool_logger().tool_call(name, arguments) as log:
        try:
            if handler is None:
                raise ToolNotFoundError(f"Unknown tool: {name}", details={"tool": name})
            text, log.result_type = await handler(arguments)
        except AppException as e:
            details = get_exception_details(e)
            logger.warning(f"{details['type']} in tool {name}: {details['message']}")
            raise McpError(ErrorData(code=details["code"], message=details["message"], data=details["details"] or None))
        except Exception as e:
            logger.exception(f"Error in tool {name}")
            details = get_exception_details(e)
            raise McpError(ErrorData(code=details["code"], message=f"Tool execution failed: {e}"))
        log.success = True

    return [TextContent(type="text", text=text)]


# ============================================================================
# TOOL HANDLERS
# ============================================================================
# Each handler returns (text, result_type).

async def handle_search_plugins(arguments: Dict[str, Any]):
    query = _require_str(arguments, "query")
    limit = _optional_int(arguments, "limit", 10)

    plugins = await get_context().api.search_plugins(query, limit)
    return json.dumps([p.to_dict() for p in plugins], indent=2), "json"


async def handle_get_plugin_info(arguments: Dict[str, Any]):
    slug = _require_str(arguments, "slug")

    info = await get_context().api.get_plugin_info(slug)
    if info is None:
        raise PluginNotFoundError(f"Plugin not found: {slug}", details={"slug": slug})
    return json.dumps(info.to_dict(), indent=2), "json"


async def _download(slug: str, version: str = "latest") -> str:
    zip_path = await get_context().api.download_plugin(slug, version)
    if not zip_path:
        raise PluginDownloadError(f"Failed to download plugin: {slug}", details={"slug": slug, "version": version})
    return zip_path


async def handle_download_plugin(arguments: Dict[str, Any]):
    slug = _require_str(arguments, "slug")
    version = _optional_str(arguments, "version", "latest")

    file_path = await _download(slug, version)
    return f"Plugin downloaded to: {file_path}", "text"


async def handle_extract_plugin(arguments: Dict[str, Any]):
    slug = _require_str(arguments, "slug")
    zip_path = _optional_str(arguments, "zip_path")

    if not zip_path:
        zip_path = await _download(slug)

    extracted = await get_context().extractor.extract_plugin(zip_path, slug)
    return f"Plugin extracted to: {extracted.extract_path}\nFiles: {len(extracted.files)}", "text"


async def handle_list_plugin_files(arguments: Dict[str, Any]):
    slug = _require_str(arguments, "slug")
    extension = _optional_str(arguments, "extension")

    extractor = get_context().extractor
    files = await extractor.get_plugin_files(extractor.for_slug(slug), extension)
    return "\n".join(files), "text"


async def handle_read_plugin_file(arguments: Dict[str, Any]):
    slug = _require_str(arguments, "slug")
    file_path = _require_str(arguments, "file_path")

    extractor = get_context().extractor
    content = await extractor.read_plugin_file(extractor.for_slug(slug), file_path)
    if content is None:
        raise PluginFileNotFoundError(f"File not found: {file_path}", details={"slug": slug, "file_path": file_path})
    return content, "text"


async def handle_get_plugin_structure(arguments: Dict[str, Any]):
    slug = _require_str(arguments, "slug")

    extractor = get_context().extractor
    structure = await extractor.get_plugin_structure(extractor.for_slug(slug))
    return json.dumps(structure, indent=2), "json"


async def _fetch_reference(slug: str) -> str:
    """Download (cache-aware) and extract the published plugin, returning its root directory."""
    zip_path = await _download(slug)
    extractor = get_context().extractor
    try:
        extracted = await extractor.extract_plugin(zip_path, slug)
    except ExtractionError as e:
        raise ExtractionError(f"Failed to extract plugin: {slug}", details=e.details)
    return extractor.plugin_root(extracted)


async def handle_compare_plugins(arguments: Dict[str, Any]):
    local_path = _require_str(arguments, "local_path")
    slug = _require_str(arguments, "wp_org_slug")
    output_format = _optional_str(arguments, "format", "summary")
    if output_format not in ("summary", "detailed"):
        raise InvalidArgumentError(
            f"format must be 'summary' or 'detailed', got {output_format!r}",
            details={"argument": "format"},
        )

    remote_root = await _fetch_reference(slug)
    comparator = get_context().comparator
    comparison = await comparator.compare_plugins(local_path, remote_root)
    logger.info(f"Compared {local_path} with {slug}: {comparison.summary.to_dict()}")

    if output_format == "summary":
        return format_comparison_summary(comparison), "summary"
    return json.dumps(comparison.to_dict(), indent=2), "json"


async def handle_get_file_diff(arguments: Dict[str, Any]):
    local_path = _require_str(arguments, "local_path")
    slug = _require_str(arguments, "wp_org_slug")
    file_path = _require_str(arguments, "file_path")

    remote_root = await _fetch_reference(slug)
    comparison = await get_context().comparator.compare_plugins(local_path, remote_root)
    file_comparison = comparison.get_file(file_path)
    if file_comparison is None:
        raise PluginFileNotFoundError(
            f"File not found in comparison: {file_path}",
            details={"file_path": file_path},
        )

    if file_comparison.diff:
        return file_comparison.diff, "diff"
    return f"File {file_path} is {file_comparison.status.value}", "text"


async def handle_server_health(arguments: Dict[str, Any]):
    context = get_context()
    status = {
        "server": SERVER_NAME,
        "version": __version__,
        "status": "healthy",
        "config": context.config.as_dict(),
        "tool_calls": get_tool_logger().get_call_stats(),
    }
    return json.dumps(status, indent=2), "json"


TOOL_HANDLERS = {
    "search_plugins": handle_search_plugins,
    "get_plugin_info": handle_get_plugin_info,
    "download_plugin": handle_download_plugin,
    "extract_plugin": handle_extract_plugin,
    "list_plugin_files": handle_list_plugin_files,
    "read_plugin_file": handle_read_plugin_file,
    "get_plugin_structure": handle_get_plugin_structure,
    "compare_plugins": handle_compare_plugins,
    "get_file_diff": handle_get_file_diff,
    "server_health": handle_server_health,
}


async def main():
    """Main entry point for the MCP server."""
    config = ConfigManager()
    setup_logging(config)
    set_context(ServerContext.from_config(config))

    logger.info("Starting WordPress.org MCP Server...")

    async with stdio_server() as (read_stream, write_stream):
        logger.info("WordPress.org MCP server running on stdio")
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options()
        )


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")


if __name__ == "__main__":
    run()
