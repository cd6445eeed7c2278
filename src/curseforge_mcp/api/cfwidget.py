"""Client for CFWidget, the public CurseForge mirror (no credentials)."""

from typing import Any
from urllib.parse import quote

from curseforge_mcp.api.http import ApiClient
from curseforge_mcp.config import Settings
from curseforge_mcp.utils.formatting import USER_AGENT

CFWIDGET_BASE = "https://api.cfwidget.com"


class CfWidgetClient(ApiClient):
    error_limit = 300
    error_prefix = "CFWidget"

    def __init__(self, settings: Settings, base_url: str = CFWIDGET_BASE):
        super().__init__(
            settings,
            base_url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        )

    async def get_project(self, id_or_path: str) -> Any:
        """Project by numeric ID or by path, e.g. "minecraft/mc-mods/jei"."""
        path = id_or_path if id_or_path.startswith("/") else f"/{id_or_path}"
        return await self.get(path)

    async def search_author(self, username: str) -> Any:
        """Author info and project list for a username."""
        return await self.get(f"/author/search/{quote(username, safe='')}")

    async def get_author(self, author_id: int) -> Any:
        return await self.get(f"/author/{author_id}")
