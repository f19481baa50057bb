"""
Tool Logger - Structured logging for MCP tool calls.

Every call through the server is timed and written to the log as a
TOOL_START / TOOL_CALL pair. A bounded history feeds the statistics that
`server_health` reports: per-tool call counts, failures and latency, and
which WordPress.org plugins the calls touched.

Usage:
    from wordpress_org_mcp.architecture.tool_logger import get_tool_logger

    with get_tool_logger().tool_call("compare_plugins", arguments) as log:
        text, log.result_type = await handle_compare_plugins(arguments)
        log.success = True
"""

import json
import logging
import time
from collections import Counter, deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

# Argument names that carry a plugin slug
SLUG_ARGUMENTS = ("slug", "wp_org_slug")
MAX_PARAM_LENGTH = 200


@dataclass
class ToolCallLog:
    tool_name: str
    params: Dict[str, Any]
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: float = 0.0
    success: bool = False
    error: Optional[str] = None
    result_type: Optional[str] = None  # "json", "text", "summary" or "diff"

    @property
    def plugin_slug(self) -> Optional[str]:
        for name in SLUG_ARGUMENTS:
            value = self.params.get(name)
            if isinstance(value, str) and value:
                return value
        return None


def _summarize_params(params: Dict[str, Any]) -> str:
    if not params:
        return "{}"
    try:
        text = json.dumps(params, default=str, sort_keys=True)
    except (TypeError, ValueError):
        text = repr(params)
    if len(text) <= MAX_PARAM_LENGTH:
        return text
    return text[:MAX_PARAM_LENGTH] + "..."


class ToolLogger:
    """Times tool calls, logs them and keeps the last ``max_history`` in memory."""

    def __init__(self, max_history: int = 1000):
        self.history: Deque[ToolCallLog] = deque(maxlen=max_history)

    @contextmanager
    def tool_call(self, tool_name: str, params: Optional[Dict[str, Any]] = None) -> Iterator[ToolCallLog]:
        """
        Record one tool call around the block.

        The block sets ``success`` and ``result_type`` on the yielded log. An
        exception marks the call as failed and propagates unchanged.
        """
        log = ToolCallLog(tool_name=tool_name, params=params or {})
        logger.info(f"TOOL_START | tool={tool_name} | params={_summarize_params(log.params)}")
        start = time.perf_counter()

        try:
            yield log
        except Exception as e:
            log.success = False
            log.error = f"{type(e).__name__}: {e}"
            raise
        finally:
            log.duration_ms = (time.perf_counter() - start) * 1000
            self.history.append(log)

            level = logging.INFO if log.success else logging.WARNING
            logger.log(
                level,
                f"TOOL_CALL | tool={tool_name} | plugin={log.plugin_slug} | success={log.success} | "
                f"duration_ms={log.duration_ms:.1f} | result_type={log.result_type} | error={log.error}",
            )

    def get_recent_calls(self, count: int = 10) -> List[ToolCallLog]:
        """Most recent calls, oldest first."""
        if count <= 0:
            return []
        return list(self.history)[-count:]

    def get_call_stats(self) -> Dict[str, Any]:
        """Aggregate counts over the recorded history."""
        calls = list(self.history)
        if not calls:
            return {"total_calls": 0}

        by_tool: Dict[str, Dict[str, Any]] = {}
        for call in calls:
            entry = by_tool.setdefault(call.tool_name, {"calls": 0, "failures": 0, "total_ms": 0.0})
            entry["calls"] += 1
            entry["total_ms"] += call.duration_ms
            if not call.success:
                entry["failures"] += 1
        for entry in by_tool.values():
            entry["avg_duration_ms"] = round(entry.pop("total_ms") / entry["calls"], 2)

        successes = sum(1 for call in calls if call.success)
        plugins = Counter(call.plugin_slug for call in calls if call.plugin_slug)

        return {
            "total_calls": len(calls),
            "success_rate": round(successes / len(calls) * 100, 2),
            "by_tool": by_tool,
            "plugins": dict(plugins.most_common()),
        }


_tool_logger: Optional[ToolLogger] = None


def get_tool_logger() -> ToolLogger:
    global _tool_logger
    if _tool_logger is None:
        _tool_logger = ToolLogger()
    return _tool_logger
