"""Client for the official CurseForge Core API (api.curseforge.com)."""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

import aiohttp

from curseforge_mcp.api.http import ApiClient
from curseforge_mcp.config import Settings
from curseforge_mcp.errors import ConfigurationError, DownloadRestrictedError, NetworkError, TransportError
from curseforge_mcp.utils.formatting import USER_AGENT

logger = logging.getLogger(__name__)

CORE_API_BASE = "https://api.curseforge.com/v1"

# Friendly names for ModsSearchSortField
SORT_FIELD_MAP = {
    "featured": 1,
    "popularity": 2,
    "lastupdated": 3,
    "name": 4,
    "author": 5,
    "totaldownloads": 6,
    "category": 7,
    "gameversion": 8,
    "earlyaccess": 9,
    "featuredreleased": 10,
    "releaseddate": 11,
    "rating": 12,
}

DOWNLOAD_CHUNK_SIZE = 8192


def safe_file_name(name: Optional[str], fallback: str) -> str:
    """Reduce a server-supplied file name to its final component."""
    base = Path((name or "").replace("\\", "/")).name
    if base.strip(".") == "":
        return fallback
    return base


def resolve_sort_field(sort_field: Union[str, int, None]) -> Optional[int]:
    """Accept either the numeric enum value or its name (case-insensitive)."""
    if sort_field is None:
        return None
    if isinstance(sort_field, int):
        return sort_field
    if sort_field.isdigit():
        return int(sort_field)
    return SORT_FIELD_MAP.get(sort_field.lower())


class CoreApiClient(ApiClient):
    """Catalog access with an API key."""

    def __init__(self, settings: Settings):
        if not settings.curseforge_api_key:
            raise ConfigurationError("CURSEFORGE_API_KEY is required for Core API access")
        super().__init__(
            settings,
            CORE_API_BASE,
            headers={
                "x-api-key": settings.curseforge_api_key,
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            },
        )

    async def _data(self, path: str, params: Optional[dict] = None):
        payload = await self.get(path, params)
        return payload["data"]

    async def search_mods(
        self,
        game_id: int,
        search_filter: Optional[str] = None,
        slug: Optional[str] = None,
        category_id: Optional[int] = None,
        class_id: Optional[int] = None,
        game_version: Optional[str] = None,
        mod_loader_type: Optional[int] = None,
        sort_field: Union[str, int, None] = None,
        sort_order: Optional[str] = None,
        index: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> dict:
        """Search mods. Returns the full payload ({data, pagination})."""
        return await self.get("/mods/search", {
            "gameId": game_id,
            "searchFilter": search_filter,
            "slug": slug,
            "categoryId": category_id,
            "classId": class_id,
            "gameVersion": game_version,
            "modLoaderType": mod_loader_type,
            "sortField": resolve_sort_field(sort_field),
            "sortOrder": sort_order,
            "index": index,
            "pageSize": page_size,
        })

    async def get_mod(self, mod_id: int) -> dict:
        return await self._data(f"/mods/{mod_id}")

    async def get_mods(self, mod_ids: list[int]) -> list[dict]:
        payload = await self.post("/mods", {"modIds": list(mod_ids)})
        return payload["data"]

    async def get_mod_files(
        self,
        mod_id: int,
        game_version: Optional[str] = None,
        mod_loader_type: Optional[int] = None,
        index: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> dict:
        """List a mod's files. Returns the full payload ({data, pagination})."""
        return await self.get(f"/mods/{mod_id}/files", {
            "gameVersion": game_version,
            "modLoaderType": mod_loader_type,
            "index": index,
            "pageSize": page_size,
        })

    async def get_mod_file(self, mod_id: int, file_id: int) -> dict:
        return await self._data(f"/mods/{mod_id}/files/{file_id}")

    async def get_mod_description(self, mod_id: int, raw: Optional[bool] = None) -> str:
        return await self._data(f"/mods/{mod_id}/description", {"raw": raw})

    async def get_mod_file_changelog(self, mod_id: int, file_id: int) -> str:
        return await self._data(f"/mods/{mod_id}/files/{file_id}/changelog")

    async def get_mod_file_download_url(self, mod_id: int, file_id: int) -> str:
        return await self._data(f"/mods/{mod_id}/files/{file_id}/download-url")

    async def get_featured_mods(self, game_id: int) -> dict:
        payload = await self.post("/mods/featured", {
            "gameId": game_id,
            "excludedModIds": [],
            "gameVersionTypeId": None,
        })
        return payload["data"]

    async def get_categories(self, game_id: int, class_id: Optional[int] = None) -> list[dict]:
        return await self._data("/categories", {"gameId": game_id, "classId": class_id})

    async def get_games(self) -> dict:
        """All games. Returns the full payload ({data, pagination})."""
        return await self.get("/games")

    async def get_game(self, game_id: int) -> dict:
        return await self._data(f"/games/{game_id}")

    async def download_file(self, mod_id: int, file_id: int, destination: Path) -> tuple[Path, int]:
        """
        Stream a mod file into a directory.

        Args:
            mod_id: Project ID.
            file_id: File ID.
            destination: Directory to save into (created if missing).

        Returns:
            (saved file path, size in bytes)

        Raises:
            DownloadRestrictedError: The file has no public download URL.
        """
        file = await self.get_mod_file(mod_id, file_id)
        download_url = file.get("downloadUrl")
        file_name = safe_file_name(file.get("fileName"), f"{mod_id}-{file_id}.jar")
        if not download_url:
            raise DownloadRestrictedError(
                "This file does not allow direct downloads (mod author has restricted "
                "distribution). Use the CurseForge app instead."
            )

        destination = Path(destination).expanduser()
        destination.mkdir(parents=True, exist_ok=True)
        file_path = destination / file_name

        # The CDN gets no API key; large files may exceed the request timeout
        timeout = aiohttp.ClientTimeout(total=None, sock_read=self.settings.request_timeout)
        size = 0
        try:
            async with aiohttp.ClientSession(headers={"User-Agent": USER_AGENT}, timeout=timeout) as session:
                async with session.get(download_url) as resp:
                    if resp.status >= 400:
                        raise TransportError(resp.status, download_url, await resp.text())
                    with open(file_path, "wb") as f:
                        async for chunk in resp.content.iter_chunked(DOWNLOAD_CHUNK_SIZE):
                            f.write(chunk)
                            size += len(chunk)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError("GET", download_url, e) from e

        logger.info(f"Downloaded {file_name} ({size} bytes) to {destination}")
        return file_path, size
