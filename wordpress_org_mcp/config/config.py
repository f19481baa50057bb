import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from wordpress_org_mcp.architecture import system_paths
from wordpress_org_mcp.core.exceptions import InvalidConfigurationError


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        raise InvalidConfigurationError(
            f"{name} must be a number, got {raw!r}",
            details={"variable": name, "value": raw},
        )
    if value <= 0:
        raise InvalidConfigurationError(
            f"{name} must be greater than zero, got {raw!r}",
            details={"variable": name, "value": raw},
        )
    return value


class ConfigManager:
    def __init__(self, env_file: Optional[str] = None):
        load_dotenv(env_file)

        # Directories
        self.cache_dir = os.getenv("WP_MCP_CACHE_DIR") or system_paths.get_cache_dir()
        self.extract_dir = os.getenv("WP_MCP_EXTRACT_DIR") or system_paths.get_temp_dir()
        self.log_dir = os.getenv("WP_MCP_LOG_DIR") or str(Path(system_paths.get_data_dir()) / "logs")

        # Network
        self.http_timeout = _env_number("WP_MCP_HTTP_TIMEOUT", 30.0, float)
        self.max_retries = _env_number("WP_MCP_MAX_RETRIES", 3, int)

        # Comparison
        self.max_concurrency = _env_number("WP_MCP_MAX_CONCURRENCY", 32, int)

        # Logging
        self.log_level = os.getenv("WP_MCP_LOG_LEVEL", "INFO").upper()

    def as_dict(self) -> dict:
        return {
            "cache_dir": self.cache_dir,
            "extract_dir": self.extract_dir,
            "log_dir": self.log_dir,
            "http_timeout": self.http_timeout,
            "max_retries": self.max_retries,
            "max_concurrency": self.max_concurrency,
            "log_level": self.log_level,
        }
