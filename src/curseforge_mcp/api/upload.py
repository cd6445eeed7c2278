"""Client for the CurseForge author Upload API (token-authenticated)."""

import logging
from pathlib import Path
from typing import Any

import aiohttp

from curseforge_mcp.api.http import ApiClient
from curseforge_mcp.config import Settings
from curseforge_mcp.errors import ConfigurationError
from curseforge_mcp.models import UploadMetadata
from curseforge_mcp.utils.formatting import USER_AGENT

logger = logging.getLogger(__name__)

UPLOAD_API_BASE = "https://www.curseforge.com"


class UploadApiClient(ApiClient):
    """Publishes files and reads the upload form's reference data."""

    def __init__(self, settings: Settings, base_url: str = UPLOAD_API_BASE):
        if not settings.curseforge_author_token:
            raise ConfigurationError("CURSEFORGE_AUTHOR_TOKEN is required for Upload API")
        super().__init__(
            settings,
            base_url,
            headers={
                "X-Api-Token": settings.curseforge_author_token,
                "User-Agent": USER_AGENT,
            },
        )

    async def get_game_versions(self) -> list[dict]:
        """Version entries: id, gameVersionTypeID, name, slug."""
        return await self.get("/api/game/versions")

    async def get_game_version_types(self) -> list[dict]:
        return await self.get("/api/game/version-types")

    async def get_game_dependencies(self) -> list[dict]:
        return await self.get("/api/game/dependencies")

    async def upload_file(self, project_id: int, file_path: Path, metadata: UploadMetadata) -> Any:
        """
        Publish a file to a project.

        Sent once as multipart form data (a `metadata` JSON part and a
        `file` part); a failed upload is not retried.

        Returns:
            The created file record, e.g. {"id": 1234567}.
        """
        file_path = Path(file_path).expanduser()
        content = file_path.read_bytes()

        form = aiohttp.FormData()
        form.add_field("metadata", metadata.to_json(), content_type="application/json")
        form.add_field(
            "file",
            content,
            filename=file_path.name,
            content_type="application/octet-stream",
        )

        logger.info(f"Uploading {file_path.name} ({len(content)} bytes) to project {project_id}")
        return await self.request("POST", f"/api/projects/{project_id}/upload-file", data=form)
