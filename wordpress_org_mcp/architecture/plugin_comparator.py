"""
Plugin Comparator - Compare a local plugin directory with a reference copy.

Walks both trees, classifies every relative path in their union and builds a
unified diff for text files whose contents differ:

- identical:   present on both sides with the same content
- different:   present on both sides with different content
- local_only:  present only in the local plugin
- remote_only: present only in the WordPress.org package

Filesystem problems never abort a comparison. An unreadable directory
contributes no files, an unreadable or binary file falls back to a size
comparison, and a failed stat leaves the size unset.
"""

import asyncio
import difflib
import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

REMOTE_LABEL = "WordPress.org"
LOCAL_LABEL = "Local"
NO_NEWLINE_MARKER = "\\ No newline at end of file\n"
DEFAULT_MAX_CONCURRENCY = 32
_LINE_END = re.compile(r"(?<=\n)")


class FileStatus(str, Enum):
    """Relationship of a relative path between the two trees."""
    IDENTICAL = "identical"
    DIFFERENT = "different"
    LOCAL_ONLY = "local_only"
    REMOTE_ONLY = "remote_only"


@dataclass(frozen=True)
class FileComparison:
    """Comparison of one relative path."""
    file: str
    status: FileStatus
    diff: Optional[str] = None
    local_size: Optional[int] = None
    remote_size: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"file": self.file, "status": self.status.value}
        if self.diff is not None:
            data["diff"] = self.diff
        if self.local_size is not None:
            data["localSize"] = self.local_size
        if self.remote_size is not None:
            data["remoteSize"] = self.remote_size
        return data


@dataclass(frozen=True)
class ComparisonSummary:
    identical: int = 0
    different: int = 0
    local_only: int = 0
    remote_only: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "identical": self.identical,
            "different": self.different,
            "localOnly": self.local_only,
            "remoteOnly": self.remote_only,
            "total": self.total,
        }


@dataclass(frozen=True)
class PluginComparison:
    """Result of comparing two plugin trees. Files are sorted by path."""
    local_path: str
    remote_path: str
    files: Tuple[FileComparison, ...] = ()
    summary: ComparisonSummary = field(default_factory=ComparisonSummary)

    def get_file(self, file: str) -> Optional[FileComparison]:
        for entry in self.files:
            if entry.file == file:
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "localPath": self.local_path,
            "remotePath": self.remote_path,
            "files": [entry.to_dict() for entry in self.files],
            "summary": self.summary.to_dict(),
        }


def path_sort_key(path: str) -> Tuple[str, str]:
    """
    Case-insensitive order with lowercase first on ties, so "admin.php" sorts
    before "README.txt" and "readme.txt" before "README.txt". Independent of
    the process locale.
    """
    return path.casefold(), path.swapcase()


# ============================================================================
# DIRECTORY ENUMERATOR
# ============================================================================

def _scan_directory(directory: str) -> Tuple[List[str], List[str]]:
    """Return (subdirectories, files) of one directory, or nothing if unreadable."""
    subdirs: List[str] = []
    files: List[str] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(entry.path)
                else:
                    files.append(entry.path)
    except OSError as e:
        logger.debug(f"Skipping unreadable directory {directory}: {e}")
        return [], []
    return subdirs, files


async def list_plugin_files(root: str) -> List[str]:
    """
    Recursively list every file under root as a forward-slash relative path.

    A root or subdirectory that cannot be read contributes no files.
    """
    root_path = str(root)
    relative_paths: List[str] = []
    pending = [root_path]

    while pending:
        directory = pending.pop()
        subdirs, files = await asyncio.to_thread(_scan_directory, directory)
        pending.extend(subdirs)
        for file_path in files:
            relative_paths.append(PurePath(os.path.relpath(file_path, root_path)).as_posix())

    return relative_paths


# ============================================================================
# FILE I/O HELPERS
# ============================================================================

def _stat_size(file_path: str) -> Optional[int]:
    try:
        return os.stat(file_path).st_size
    except OSError:
        return None


def _read_text(file_path: str) -> Optional[str]:
    try:
        with open(file_path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError):
        return None


async def get_file_size(file_path: str) -> Optional[int]:
    """Size in bytes, or None when the file cannot be statted."""
    return await asyncio.to_thread(_stat_size, file_path)


async def read_text_file(file_path: str) -> Optional[str]:
    """UTF-8 content, or None for binary or unreadable files."""
    return await asyncio.to_thread(_read_text, file_path)


def _split_lines(text: str) -> List[str]:
    return [line for line in _LINE_END.split(text) if line]


def create_patch(file_name: str, old_content: str, new_content: str,
                 old_label: str = REMOTE_LABEL, new_label: str = LOCAL_LABEL) -> str:
    """
    Unified diff of two text versions of file_name, old side first.

    Lines break on LF only; CR, U+2028 and the other separators that
    str.splitlines() also breaks on stay inside their line.
    """
    lines = [
        f"Index: {file_name}\n",
        "=" * 67 + "\n",
    ]
    diff = difflib.unified_diff(
        _split_lines(old_content),
        _split_lines(new_content),
        fromfile=file_name,
        tofile=file_name,
        fromfiledate=old_label,
        tofiledate=new_label,
    )
    for line in diff:
        if line.endswith("\n"):
            lines.append(line)
        else:
            lines.append(line + "\n")
            lines.append(NO_NEWLINE_MARKER)
    return "".join(lines)


# ============================================================================
# TREE COMPARATOR
# ============================================================================

class PluginComparator:
    """
    Compares a local plugin directory with an extracted WordPress.org package.

    Usage:
        comparator = PluginComparator()
        comparison = await comparator.compare_plugins("/srv/wp/plugins/foo", extracted_path)
        print(format_comparison_summary(comparison))
    """

    def __init__(self, max_concurrency: int = DEFAULT_MAX_CONCURRENCY):
        self.max_concurrency = max_concurrency

    async def compare_plugins(self, local_plugin_path: str, remote_plugin_path: str) -> PluginComparison:
        local_root = str(local_plugin_path)
        remote_root = str(remote_plugin_path)

        local_files, remote_files = await asyncio.gather(
            list_plugin_files(local_root),
            list_plugin_files(remote_root),
        )
        local_set = set(local_files)
        remote_set = set(remote_files)
        all_files = local_set | remote_set

        logger.info(
            f"Comparing {len(local_set)} local and {len(remote_set)} remote files "
            f"({len(all_files)} distinct paths)"
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def classify(file: str) -> FileComparison:
            local_file_path = os.path.join(local_root, file)
            remote_file_path = os.path.join(remote_root, file)
            async with semaphore:
                if file not in local_set:
                    return FileComparison(
                        file=file,
                        status=FileStatus.REMOTE_ONLY,
                        remote_size=await get_file_size(remote_file_path),
                    )
                if file not in remote_set:
                    return FileComparison(
                        file=file,
                        status=FileStatus.LOCAL_ONLY,
                        local_size=await get_file_size(local_file_path),
                    )
                return await self.compare_files(local_file_path, remote_file_path, file)

        comparisons = await asyncio.gather(*(classify(file) for file in all_files))

        counts = {status: 0 for status in FileStatus}
        for comparison in comparisons:
            counts[comparison.status] += 1

        summary = ComparisonSummary(
            identical=counts[FileStatus.IDENTICAL],
            different=counts[FileStatus.DIFFERENT],
            local_only=counts[FileStatus.LOCAL_ONLY],
            remote_only=counts[FileStatus.REMOTE_ONLY],
            total=len(all_files),
        )

        return PluginComparison(
            local_path=local_root,
            remote_path=remote_root,
            files=tuple(sorted(comparisons, key=lambda c: path_sort_key(c.file))),
            summary=summary,
        )

    async def compare_files(self, local_path: str, remote_path: str, file_name: str) -> FileComparison:
        """Compare one path present on both sides."""
        (local_content, remote_content), (local_size, remote_size) = await asyncio.gather(
            asyncio.gather(read_text_file(local_path), read_text_file(remote_path)),
            asyncio.gather(get_file_size(local_path), get_file_size(remote_path)),
        )

        if local_content is None or remote_content is None:
            # Binary or unreadable: sizes decide
            return FileComparison(
                file=file_name,
                status=FileStatus.IDENTICAL if local_size == remote_size else FileStatus.DIFFERENT,
                local_size=local_size,
                remote_size=remote_size,
            )

        if local_content == remote_content:
            return FileComparison(
                file=file_name,
                status=FileStatus.IDENTICAL,
                local_size=local_size,
                remote_size=remote_size,
            )

        return FileComparison(
            file=file_name,
            status=FileStatus.DIFFERENT,
            diff=create_patch(file_name, remote_content, local_content),
            local_size=local_size,
            remote_size=remote_size,
        )
