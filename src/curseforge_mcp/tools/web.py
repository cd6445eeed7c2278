"""Web API tools: comments and project settings, authenticated by session cookies."""

import json
import logging
from typing import Annotated, Literal, Optional

from pydantic import Field

from curseforge_mcp.api.web import AUTHORS_API, CF_BASE, WebClient
from curseforge_mcp.tools.common import DESTRUCTIVE, READ_ONLY, WRITE, WRITE_IDEMPOTENT, require_session, tool_errors
from curseforge_mcp.utils.formatting import compact, format_comment_thread, truncate

logger = logging.getLogger(__name__)


def register_web_tools(mcp, client: WebClient):
    """Register the WEB group. Every handler re-checks the session at call time."""

    @mcp.tool(
        name="get_comments",
        description=(
            "Read comments on a CurseForge project. Returns threaded comments with replies nested "
            "under parent comments. Comments without replies are marked [NO REPLIES]."
        ),
        annotations=READ_ONLY,
    )
    @tool_errors
    async def get_comments(
        mod_id: Annotated[int, Field(description="CurseForge mod/project ID")],
        page: Annotated[int, Field(ge=1)] = 1,
        page_size: Annotated[int, Field(ge=1)] = 20,
    ) -> str:
        require_session(client)
        index = (page - 1) * page_size
        data = await client.get(f"{CF_BASE}/api/v1/mods/{mod_id}/comments?index={index}&pageSize={page_size}")
        comments = data.get("data") or []
        threads = [format_comment_thread(c) for c in comments]
        unanswered = sum(1 for c in comments if not c.get("replies"))
        total = (data.get("pagination") or {}).get("totalCount") or "?"
        return f"{total} comments (page {page}), {unanswered} unanswered:\n\n" + "\n\n".join(threads)

    @mcp.tool(
        name="post_comment",
        description="Post a comment or reply on a CurseForge project.",
        annotations=WRITE,
    )
    @tool_errors
    async def post_comment(
        mod_id: Annotated[int, Field(description="CurseForge mod/project ID")],
        comment_text: Annotated[str, Field(description="Comment text")],
        reply_to_id: Annotated[Optional[int], Field(description="Comment ID to reply to")] = None,
    ) -> str:
        require_session(client)
        body = {"entityId": mod_id, "body": comment_text, "bodyType": "RawHtml"}
        if reply_to_id is not None:
            body["parentCommentId"] = reply_to_id
        await client.post(f"{CF_BASE}/api/v1/comments", body)
        return "Comment posted."

    @mcp.tool(
        name="delete_comment",
        description="Delete a comment on a CurseForge project.",
        annotations=DESTRUCTIVE,
    )
    @tool_errors
    async def delete_comment(mod_id: int, comment_id: int) -> str:
        require_session(client)
        await client.delete(f"{CF_BASE}/api/v1/comments/{comment_id}")
        return f"Comment {comment_id} deleted."

    @mcp.tool(
        name="get_project_settings",
        description=(
            "Get settings/metadata for a CurseForge project via Authors API. "
            "Returns project config, permissions, status, and more."
        ),
        annotations=READ_ONLY,
    )
    @tool_errors
    async def get_project_settings(
        project_id: Annotated[int, Field(description="CurseForge project ID")],
    ) -> str:
        require_session(client)
        data = await client.get(f"{AUTHORS_API}/projects/{project_id}")
        return truncate(compact(data))

    @mcp.tool(
        name="update_project_description",
        description=(
            "Update the description of a CurseForge project (HTML supported). "
            "Requires session cookies (browser auth)."
        ),
        annotations=WRITE_IDEMPOTENT,
    )
    @tool_errors
    async def update_project_description(
        project_id: Annotated[int, Field(description="CurseForge project ID")],
        description: Annotated[str, Field(description="New description (HTML supported)")],
    ) -> str:
        require_session(client)
        await client.put(
            f"{AUTHORS_API}/projects/description/{project_id}",
            {"description": description, "descriptionType": 1, "id": project_id},
        )
        return "Description updated."

    @mcp.tool(
        name="cf_fetch_page",
        description=(
            "Make a request to any CurseForge internal API endpoint. "
            "For endpoints not covered by other tools."
        ),
        annotations=WRITE,
    )
    @tool_errors
    async def cf_fetch_page(
        url: Annotated[str, Field(description="Full URL or path (e.g. '/api/v1/mods/12345/members')")],
        method: Literal["GET", "POST", "PUT", "DELETE"] = "GET",
        body: Annotated[Optional[str], Field(description="JSON body for POST/PUT")] = None,
    ) -> str:
        require_session(client)
        full_url = url if url.startswith("http") else f"{CF_BASE}{url}"
        payload = json.loads(body) if body else None
        if method == "POST":
            data = await client.post(full_url, payload)
        elif method == "PUT":
            data = await client.put(full_url, payload)
        elif method == "DELETE":
            data = await client.delete(full_url)
        else:
            data = await client.get(full_url)
        text = data if isinstance(data, str) else compact(data)
        return truncate(text)

    logger.debug("Registered web tools")
