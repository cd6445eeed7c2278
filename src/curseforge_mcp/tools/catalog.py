"""Core API tools (require CURSEFORGE_API_KEY)."""

import logging
from pathlib import Path
from typing import Annotated, Literal, Optional

from pydantic import Field

from curseforge_mcp.api.core import CoreApiClient
from curseforge_mcp.tools.common import READ_ONLY, WRITE_IDEMPOTENT, tool_errors
from curseforge_mcp.utils.formatting import (
    compact,
    format_category,
    format_file,
    format_game,
    format_mod,
    format_mod_detailed,
    strip_html,
    truncate,
)

logger = logging.getLogger(__name__)

SortField = Literal[
    "featured", "popularity", "lastUpdated", "name", "author", "totalDownloads",
    "category", "gameVersion", "earlyAccess", "featuredReleased", "releasedDate", "rating",
]
TextFormat = Literal["html", "text"]


def register_catalog_tools(mcp, client: CoreApiClient, default_game_id: int = 432):
    """Register the CATALOG group against a Core API client."""

    @mcp.tool(
        name="search_mods",
        description="Search mods by name, category, game version, or mod loader. Requires API key.",
        annotations=READ_ONLY,
    )
    @tool_errors
    async def search_mods(
        game_id: Annotated[int, Field(description="Game ID (432=Minecraft)")] = default_game_id,
        search_filter: Annotated[Optional[str], Field(description="Search query")] = None,
        slug: Annotated[Optional[str], Field(description="Exact mod slug")] = None,
        category_id: Optional[int] = None,
        class_id: Annotated[Optional[int], Field(description="6=Mods, 4471=Modpacks")] = None,
        game_version: Annotated[Optional[str], Field(description="e.g. '1.20.1'")] = None,
        mod_loader_type: Annotated[
            Optional[int], Field(description="0=Any,1=Forge,4=Fabric,5=Quilt,6=NeoForge")
        ] = None,
        sort_field: Annotated[Optional[SortField], Field(description="Sort field")] = None,
        sort_order: Optional[Literal["asc", "desc"]] = None,
        page_index: int = 0,
        page_size: Annotated[int, Field(description="Max 50")] = 10,
    ) -> str:
        results = await client.search_mods(
            game_id,
            search_filter=search_filter,
            slug=slug,
            category_id=category_id,
            class_id=class_id,
            game_version=game_version,
            mod_loader_type=mod_loader_type,
            sort_field=sort_field,
            sort_order=sort_order,
            index=page_index,
            page_size=page_size,
        )
        mods = results.get("data") or []
        total = (results.get("pagination") or {}).get("totalCount", len(mods))
        lines = [format_mod(m) for m in mods]
        return f"{total} results (showing {len(mods)}):\n\n" + "\n\n".join(lines)

    @mcp.tool(name="get_mod", description="Get full details of a CurseForge mod by ID.", annotations=READ_ONLY)
    @tool_errors
    async def get_mod(
        mod_id: Annotated[int, Field(description="CurseForge mod/project ID")],
    ) -> str:
        return format_mod_detailed(await client.get_mod(mod_id))

    @mcp.tool(name="get_mod_files", description="List files for a mod with optional filtering.", annotations=READ_ONLY)
    @tool_errors
    async def get_mod_files(
        mod_id: Annotated[int, Field(description="CurseForge mod/project ID")],
        game_version: Optional[str] = None,
        mod_loader_type: Annotated[Optional[int], Field(description="0=Any,1=Forge,4=Fabric")] = None,
        page_index: int = 0,
        page_size: int = 10,
    ) -> str:
        result = await client.get_mod_files(
            mod_id,
            game_version=game_version,
            mod_loader_type=mod_loader_type,
            index=page_index,
            page_size=page_size,
        )
        files = result.get("data") or []
        total = (result.get("pagination") or {}).get("totalCount", len(files))
        lines = [format_file(f) for f in files]
        return f"{total} files (showing {len(files)}):\n\n" + "\n\n".join(lines)

    @mcp.tool(name="get_mod_file", description="Get details of a specific mod file by file ID.", annotations=READ_ONLY)
    @tool_errors
    async def get_mod_file(
        mod_id: Annotated[int, Field(description="CurseForge mod/project ID")],
        file_id: Annotated[int, Field(description="File ID")],
    ) -> str:
        return format_file(await client.get_mod_file(mod_id, file_id))

    @mcp.tool(name="get_mod_description", description="Get mod description as HTML or plain text.", annotations=READ_ONLY)
    @tool_errors
    async def get_mod_description(
        mod_id: Annotated[int, Field(description="CurseForge mod/project ID")],
        format: TextFormat = "text",
    ) -> str:
        html = await client.get_mod_description(mod_id)
        return truncate(html if format == "html" else strip_html(html))

    @mcp.tool(
        name="get_mod_changelog",
        description="Get changelog for a specific mod file release.",
        annotations=READ_ONLY,
    )
    @tool_errors
    async def get_mod_changelog(mod_id: int, file_id: int, format: TextFormat = "text") -> str:
        html = await client.get_mod_file_changelog(mod_id, file_id)
        return truncate(html if format == "html" else strip_html(html))

    @mcp.tool(name="get_download_url", description="Get direct download URL for a mod file.", annotations=READ_ONLY)
    @tool_errors
    async def get_download_url(mod_id: int, file_id: int) -> str:
        return await client.get_mod_file_download_url(mod_id, file_id)

    @mcp.tool(
        name="download_mod",
        description=(
            "Download a mod file to a local directory. Works with any CurseForge game "
            "(Minecraft, Hytale, WoW, etc.). Streams large files efficiently."
        ),
        annotations=WRITE_IDEMPOTENT,
    )
    @tool_errors
    async def download_mod(
        mod_id: Annotated[int, Field(description="CurseForge mod/project ID")],
        file_id: Annotated[int, Field(description="File ID to download")],
        destination: Annotated[str, Field(description="Absolute path to directory where the file will be saved")],
    ) -> str:
        path, size = await client.download_file(mod_id, file_id, Path(destination))
        return f"Downloaded: {path.name}\nPath: {path}\nSize: {size / 1024 / 1024:.1f} MB"

    @mcp.tool(
        name="get_featured_mods",
        description="Get popular, recently updated, and featured mods for a game.",
        annotations=READ_ONLY,
    )
    @tool_errors
    async def get_featured_mods(
        game_id: Annotated[int, Field(description="Game ID")] = default_game_id,
    ) -> str:
        result = await client.get_featured_mods(game_id)
        sections = []
        for key, title in (("featured", "Featured"), ("popular", "Popular"), ("recentlyUpdated", "Recently Updated")):
            mods = result.get(key) or []
            if mods:
                sections.append(f"{title}:\n" + "\n\n".join(format_mod(m) for m in mods))
        return "\n\n---\n\n".join(sections) or "No featured mods found."

    @mcp.tool(
        name="get_mods_batch",
        description="Fetch multiple mods by ID in one request. More efficient than multiple get_mod calls.",
        annotations=READ_ONLY,
    )
    @tool_errors
    async def get_mods_batch(
        mod_ids: Annotated[list[int], Field(description="Array of mod IDs")],
    ) -> str:
        mods = await client.get_mods(mod_ids)
        return f"{len(mods)} mods:\n\n" + "\n\n".join(format_mod(m) for m in mods)

    @mcp.tool(name="get_categories", description="Get available mod categories for a game.", annotations=READ_ONLY)
    @tool_errors
    async def get_categories(game_id: int = default_game_id, class_id: Optional[int] = None) -> str:
        categories = await client.get_categories(game_id, class_id)
        return f"{len(categories)} categories:\n" + "\n".join(format_category(c) for c in categories)

    @mcp.tool(
        name="get_game_versions",
        description="List all CurseForge games, or get details of a specific game.",
        annotations=READ_ONLY,
    )
    @tool_errors
    async def get_game_versions(
        game_id: Annotated[Optional[int], Field(description="Specific game ID, or omit for all games")] = None,
    ) -> str:
        if game_id is not None:
            return compact(await client.get_game(game_id))
        games = (await client.get_games()).get("data") or []
        return f"{len(games)} games:\n" + "\n".join(format_game(g) for g in games)

    logger.debug("Registered catalog tools")
