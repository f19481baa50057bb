"""
Plugin Extractor - Unpack WordPress.org plugin archives and inspect them.

Extracted plugins live under ``<extract_dir>/<slug>``. A fresh extraction
always replaces the previous one for the same slug.
"""

import asyncio
import logging
import os
import shutil
import zipfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from wordpress_org_mcp.architecture import system_paths
from wordpress_org_mcp.architecture.plugin_comparator import list_plugin_files
from wordpress_org_mcp.core.exceptions import ExtractionError, PluginNotExtractedError

logger = logging.getLogger(__name__)


@dataclass
class ExtractedPlugin:
    """A plugin that has been extracted from a ZIP file."""
    slug: str
    extract_path: str
    files: List[str] = field(default_factory=list)


class PluginExtractor:
    """Extracts plugin ZIP files and reads the extracted trees."""

    def __init__(self, extract_dir: Optional[str] = None):
        self.extract_dir = extract_dir or system_paths.get_temp_dir()

    def plugin_path(self, slug: str) -> str:
        return os.path.join(self.extract_dir, slug)

    def for_slug(self, slug: str) -> ExtractedPlugin:
        """Handle to a previous extraction of slug (files are not listed)."""
        return ExtractedPlugin(slug=slug, extract_path=self.plugin_path(slug))

    async def ensure_extract_dir(self) -> None:
        await asyncio.to_thread(os.makedirs, self.extract_dir, exist_ok=True)

    async def extract_plugin(self, zip_path: str, slug: str) -> ExtractedPlugin:
        await self.ensure_extract_dir()
        extract_path = self.plugin_path(slug)
        files = await asyncio.to_thread(self._extract, zip_path, extract_path)
        logger.info(f"Extracted {len(files)} files from {zip_path} to {extract_path}")
        return ExtractedPlugin(slug=slug, extract_path=extract_path, files=files)

    def _extract(self, zip_path: str, extract_path: str) -> List[str]:
        shutil.rmtree(extract_path, ignore_errors=True)
        os.makedirs(extract_path, exist_ok=True)

        files: List[str] = []
        try:
            with zipfile.ZipFile(zip_path) as archive:
                for member in archive.infolist():
                    archive.extract(member, extract_path)
                    if not member.is_dir():
                        files.append(member.filename)
        except (OSError, zipfile.BadZipFile) as e:
            raise ExtractionError(
                f"Failed to extract {zip_path}: {e}",
                details={"zip_path": zip_path, "extract_path": extract_path},
            )
        return files

    def _require_extracted(self, extracted: ExtractedPlugin) -> None:
        if not os.path.isdir(extracted.extract_path):
            raise PluginNotExtractedError(
                f"Plugin not extracted: {extracted.slug}",
                details={"extract_path": extracted.extract_path},
            )

    def plugin_root(self, extracted: ExtractedPlugin) -> str:
        """
        Directory matching a local wp-content/plugins/<slug> checkout.

        WordPress.org archives wrap everything in a top-level <slug>/ folder;
        archives without one are rooted at the extraction directory itself.
        """
        wrapped = os.path.join(extracted.extract_path, extracted.slug)
        if os.path.isdir(wrapped):
            return wrapped
        return extracted.extract_path

    async def get_plugin_files(self, extracted: ExtractedPlugin, extension: Optional[str] = None) -> List[str]:
        """Sorted relative paths of an extracted plugin, optionally filtered by suffix (e.g. '.php')."""
        self._require_extracted(extracted)
        files = await list_plugin_files(extracted.extract_path)
        if extension:
            files = [f for f in files if Path(f).suffix == extension]
        return sorted(files)

    async def read_plugin_file(self, extracted: ExtractedPlugin, file_path: str) -> Optional[str]:
        full_path = os.path.join(extracted.extract_path, file_path)
        try:
            return await asyncio.to_thread(Path(full_path).read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading file {file_path}: {e}")
            return None

    async def get_plugin_structure(self, extracted: ExtractedPlugin) -> Dict[str, Any]:
        """Nested mapping of the extracted tree with per-file size, mtime and extension."""
        self._require_extracted(extracted)
        return await asyncio.to_thread(self._build_structure, Path(extracted.extract_path))

    def _build_structure(self, directory: Path) -> Dict[str, Any]:
        structure: Dict[str, Any] = {}
        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            if entry.is_dir() and not entry.is_symlink():
                structure[entry.name] = self._build_structure(entry)
            else:
                # A link's own metadata; its target may be missing
                stats = entry.lstat() if entry.is_symlink() else entry.stat()
                structure[entry.name] = {
                    "size": stats.st_size,
                    "modified": datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc).isoformat(),
                    "extension": entry.suffix,
                }
        return structure
