"""Upload API tools (require CURSEFORGE_AUTHOR_TOKEN)."""

import logging
from pathlib import Path
from typing import Annotated, Literal, Optional

from pydantic import Field

from curseforge_mcp.api.upload import UploadApiClient
from curseforge_mcp.models import UploadMetadata, UploadRelation, UploadRelations
from curseforge_mcp.tools.common import READ_ONLY, WRITE, tool_errors

logger = logging.getLogger(__name__)

GameSlug = Annotated[
    Optional[str],
    Field(description='Game slug (e.g. "hytale", "minecraft"). Versions are global, so this is informational.'),
]


def register_upload_tools(mcp, client: UploadApiClient):
    """Register the UPLOAD group against an author-token client."""

    @mcp.tool(
        name="upload_file",
        description="Upload a mod file to a CurseForge project. Requires CURSEFORGE_AUTHOR_TOKEN.",
        annotations=WRITE,
    )
    @tool_errors
    async def upload_file(
        project_id: Annotated[int, Field(description="CurseForge project ID")],
        file_path: Annotated[str, Field(description="Absolute path to the file to upload")],
        changelog: Annotated[Optional[str], Field(description="Changelog text")] = None,
        changelog_type: Literal["text", "html", "markdown"] = "markdown",
        display_name: Annotated[Optional[str], Field(description="Display name for the file")] = None,
        game_version_ids: Annotated[
            Optional[list[int]],
            Field(description="Game version IDs (from get_upload_game_versions). Optional for some games."),
        ] = None,
        release_type: Literal["alpha", "beta", "release"] = "release",
        relations: Annotated[
            Optional[list[UploadRelation]], Field(description="Project dependencies/relations")
        ] = None,
        parent_file_id: Annotated[Optional[int], Field(description="Attach as an additional file of this file ID")] = None,
    ) -> str:
        metadata = UploadMetadata(
            changelog=changelog,
            changelog_type=changelog_type,
            display_name=display_name,
            parent_file_id=parent_file_id,
            game_versions=game_version_ids or [],
            release_type=release_type,
            relations=UploadRelations(projects=relations) if relations else None,
        )
        result = await client.upload_file(project_id, Path(file_path), metadata)
        file_id = result.get("id") if isinstance(result, dict) else result
        return f"File uploaded. File ID: {file_id}"

    @mcp.tool(
        name="get_upload_game_versions",
        description="Get available game versions for the upload form. Returns version IDs needed for upload_file.",
        annotations=READ_ONLY,
    )
    @tool_errors
    async def get_upload_game_versions(game_slug: GameSlug = None) -> str:
        versions = await client.get_game_versions()
        lines = [f"[{v.get('id')}] {v.get('name')} (type: {v.get('gameVersionTypeID')})" for v in versions]
        return f"{len(versions)} game versions:\n" + "\n".join(lines)

    @mcp.tool(
        name="get_upload_game_version_types",
        description="Get game version type categories for the upload form.",
        annotations=READ_ONLY,
    )
    @tool_errors
    async def get_upload_game_version_types(game_slug: GameSlug = None) -> str:
        types = await client.get_game_version_types()
        lines = [f"[{t.get('id')}] {t.get('name')} ({t.get('slug')})" for t in types]
        return f"{len(types)} version types:\n" + "\n".join(lines)

    @mcp.tool(
        name="get_upload_dependencies",
        description="Get available dependency options for the upload form.",
        annotations=READ_ONLY,
    )
    @tool_errors
    async def get_upload_dependencies(game_slug: GameSlug = None) -> str:
        deps = await client.get_game_dependencies()
        lines = [f"[{d.get('id')}] {d.get('name')} ({d.get('slug')})" for d in deps]
        return f"{len(deps)} dependencies:\n" + "\n".join(lines)

    logger.debug("Registered upload tools")
