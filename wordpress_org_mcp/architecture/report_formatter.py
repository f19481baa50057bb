"""Text rendering of a PluginComparison."""

from typing import List

from wordpress_org_mcp.architecture.plugin_comparator import FileStatus, PluginComparison

COUNT_WIDTH = 3

# (status, section header), in output order
_SECTIONS = (
    (FileStatus.DIFFERENT, "Different Files:"),
    (FileStatus.LOCAL_ONLY, "Local Only Files:"),
    (FileStatus.REMOTE_ONLY, "Remote Only Files:"),
)


def _count_line(label: str, count: int) -> str:
    return f"- {label:<13}{count:>{COUNT_WIDTH}} files\n"


def format_comparison_summary(comparison: PluginComparison) -> str:
    """
    Render the comparison as a stable, human-readable report.

    Sections listing different, local-only and remote-only files are only
    emitted when they have at least one entry.
    """
    summary = comparison.summary
    lines: List[str] = [
        "Plugin Comparison Summary\n",
        "=========================\n",
        "\n",
        f"Local:  {comparison.local_path}\n",
        f"Remote: {comparison.remote_path}\n",
        "\n",
        "Files Analysis:\n",
        _count_line("Identical:", summary.identical),
        _count_line("Different:", summary.different),
        _count_line("Local only:", summary.local_only),
        _count_line("Remote only:", summary.remote_only),
        _count_line("Total:", summary.total),
        "\n",
    ]

    counts = {
        FileStatus.DIFFERENT: summary.different,
        FileStatus.LOCAL_ONLY: summary.local_only,
        FileStatus.REMOTE_ONLY: summary.remote_only,
    }
    for status, header in _SECTIONS:
        if counts[status] <= 0:
            continue
        lines.append(f"{header}\n")
        lines.extend(f"- {entry.file}\n" for entry in comparison.files if entry.status == status)
        lines.append("\n")

    return "".join(lines)
