"""
WordPress.org API Client

Thin async client for the public WordPress.org plugin directory:
- Plugin metadata lookups
- Plugin search
- Cached ZIP downloads

Transport errors, timeouts and 5xx responses are retried with exponential
backoff. Lookups that still fail are logged and reported as None / [].
"""

import asyncio
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from wordpress_org_mcp.architecture import system_paths

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.wordpress.org/plugins/info/1.0/"
SEARCH_URL = "https://api.wordpress.org/plugins/info/1.2/"
DOWNLOAD_BASE_URL = "https://downloads.wordpress.org/plugin/"
USER_AGENT = "wordpress-org-mcp-server/1.0.0"


@dataclass
class PluginInfo:
    """Plugin metadata as reported by WordPress.org."""
    name: Optional[str]
    slug: Optional[str]
    version: Optional[str]
    download_link: Optional[str]
    short_description: Optional[str]
    author: Optional[str]
    homepage: Optional[str]
    requires: Optional[str]
    tested: Optional[str]
    requires_php: Optional[str]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PluginInfo":
        return cls(
            name=data.get("name"),
            slug=data.get("slug"),
            version=data.get("version"),
            download_link=data.get("download_link"),
            short_description=data.get("short_description"),
            author=data.get("author"),
            homepage=data.get("homepage"),
            requires=data.get("requires"),
            tested=data.get("tested"),
            requires_php=data.get("requires_php"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def zip_file_name(slug: str, version: str = "latest") -> str:
    return f"{slug}.zip" if version == "latest" else f"{slug}.{version}.zip"


class WordPressOrgAPI:
    """
    Client for api.wordpress.org and downloads.wordpress.org.

    Usage:
        api = WordPressOrgAPI()
        plugins = await api.search_plugins("jwt", limit=5)
        zip_path = await api.download_plugin("jwt-authentication-for-wp-rest-api")
    """

    def __init__(
        self,
        cache_dir: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_base: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cache_dir = cache_dir or system_paths.get_cache_dir()
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    async def ensure_cache_dir(self) -> None:
        await asyncio.to_thread(os.makedirs, self.cache_dir, exist_ok=True)

    def cached_zip_path(self, slug: str, version: str = "latest") -> str:
        return os.path.join(self.cache_dir, zip_file_name(slug, version))

    def is_cached(self, slug: str, version: str = "latest") -> bool:
        return os.path.isfile(self.cached_zip_path(slug, version))

    async def _request(self, client: httpx.AsyncClient, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a request, retrying transport errors and 5xx responses."""
        attempt = 0
        while True:
            try:
                response = await client.request(method, url, **kwargs)
                if response.status_code < 500 or attempt >= self._max_retries:
                    return response
                logger.warning(f"{method} {url} returned {response.status_code}, retrying")
            except httpx.TransportError as e:
                if attempt >= self._max_retries:
                    raise
                logger.warning(f"{method} {url} failed ({e.__class__.__name__}: {e}), retrying")

            await asyncio.sleep(self._backoff_base * (2 ** attempt))
            attempt += 1

    async def get_plugin_info(self, slug: str) -> Optional[PluginInfo]:
        url = f"{API_BASE_URL}{slug}.json"
        try:
            async with self._client() as client:
                response = await self._request(client, "GET", url)
                if not response.is_success:
                    logger.info(f"Plugin info for '{slug}' unavailable (HTTP {response.status_code})")
                    return None
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching plugin info for {slug}: {e}")
            return None

        # Unknown slugs come back as null or an error object
        if not isinstance(data, dict) or "error" in data or not data.get("slug"):
            return None
        return PluginInfo.from_api(data)

    async def search_plugins(self, query: str, limit: int = 10) -> List[PluginInfo]:
        params = {
            "action": "query_plugins",
            "request[search]": query,
            "request[per_page]": str(limit),
        }
        try:
            async with self._client() as client:
                response = await self._request(client, "GET", SEARCH_URL, params=params)
                if not response.is_success:
                    logger.warning(f"Plugin search for '{query}' failed (HTTP {response.status_code})")
                    return []
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f'Error searching plugins for "{query}": {e}')
            return []

        plugins = data.get("plugins") if isinstance(data, dict) else None
        if not isinstance(plugins, list):
            return []
        return [PluginInfo.from_api(plugin) for plugin in plugins if isinstance(plugin, dict)]

    async def download_plugin(self, slug: str, version: str = "latest") -> Optional[str]:
        """Download a plugin ZIP into the cache and return its path."""
        await self.ensure_cache_dir()

        file_path = self.cached_zip_path(slug, version)
        if os.path.isfile(file_path):
            logger.info(f"Using cached download for {slug}: {file_path}")
            return file_path

        url = f"{DOWNLOAD_BASE_URL}{zip_file_name(slug, version)}"
        partial_path = f"{file_path}.part"
        try:
            async with self._client() as client:
                response = await self._request(client, "GET", url)
                if not response.is_success:
                    logger.warning(f"Download of {slug} ({version}) failed (HTTP {response.status_code})")
                    return None
                await asyncio.to_thread(Path(partial_path).write_bytes, response.content)
            await asyncio.to_thread(os.replace, partial_path, file_path)
        except (httpx.HTTPError, OSError) as e:
            logger.error(f"Error downloading plugin {slug}: {e}")
            if os.path.exists(partial_path):
                os.remove(partial_path)
            return None

        logger.info(f"Downloaded {slug} ({version}) to {file_path}")
        return file_path
