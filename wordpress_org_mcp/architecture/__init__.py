"""
Architecture Module - Plugin retrieval and comparison components

- WordPress.org client: metadata, search and cached ZIP downloads
- Plugin extractor: archive extraction and extracted-tree inspection
- Plugin comparator: directory enumeration, classification and diffs
- Report formatter: text summaries of comparisons
- Tool logger: structured logging for tool calls
"""

from .plugin_comparator import (
    ComparisonSummary,
    FileComparison,
    FileStatus,
    PluginComparator,
    PluginComparison,
    list_plugin_files,
)
from .plugin_extractor import ExtractedPlugin, PluginExtractor
from .report_formatter import format_comparison_summary
from .tool_logger import ToolCallLog, ToolLogger, get_tool_logger
from .wordpress_api import PluginInfo, WordPressOrgAPI

__all__ = [
    # Comparison
    "ComparisonSummary",
    "FileComparison",
    "FileStatus",
    "PluginComparator",
    "PluginComparison",
    "list_plugin_files",
    "format_comparison_summary",

    # Retrieval
    "PluginInfo",
    "WordPressOrgAPI",
    "ExtractedPlugin",
    "PluginExtractor",

    # Logging
    "ToolCallLog",
    "ToolLogger",
    "get_tool_logger",
]
