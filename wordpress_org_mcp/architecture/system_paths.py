"""Platform-specific directories used for the ZIP cache, extractions and logs."""

import os
import sys
import tempfile
from pathlib import Path

APP_DIR_NAME = "wordpress-org-mcp"


def _home() -> Path:
    return Path.home()


def get_cache_dir() -> str:
    """Get the appropriate cache directory for the current platform."""
    if sys.platform == "darwin":
        return str(_home() / "Library" / "Caches" / APP_DIR_NAME)
    if sys.platform == "win32":
        return str(_home() / "AppData" / "Local" / APP_DIR_NAME / "Cache")

    xdg_cache_home = os.getenv("XDG_CACHE_HOME")
    if xdg_cache_home:
        return str(Path(xdg_cache_home) / APP_DIR_NAME)
    return str(_home() / ".cache" / APP_DIR_NAME)


def get_temp_dir() -> str:
    """Get the directory plugin archives are extracted into."""
    return str(Path(tempfile.gettempdir()) / f"{APP_DIR_NAME}-extractions")


def get_data_dir() -> str:
    """Get the appropriate data directory for persistent storage."""
    if sys.platform == "darwin":
        return str(_home() / "Library" / "Application Support" / APP_DIR_NAME)
    if sys.platform == "win32":
        return str(_home() / "AppData" / "Roaming" / APP_DIR_NAME)

    xdg_data_home = os.getenv("XDG_DATA_HOME")
    if xdg_data_home:
        return str(Path(xdg_data_home) / APP_DIR_NAME)
    return str(_home() / ".local" / "share" / APP_DIR_NAME)
