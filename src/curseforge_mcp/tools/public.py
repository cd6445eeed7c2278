"""Tools available without any credential: CFWidget lookups and session setup."""

import logging
from typing import Annotated, Awaitable, Callable, Optional

from pydantic import Field

from curseforge_mcp.api.cfwidget import CfWidgetClient
from curseforge_mcp.api.web import WebClient
from curseforge_mcp.tools.common import LOCAL_STATE, READ_ONLY, tool_errors
from curseforge_mcp.utils.formatting import format_project

logger = logging.getLogger(__name__)

SessionCallback = Callable[[], Awaitable[None]]


def register_public_tools(
    mcp,
    cfwidget: CfWidgetClient,
    web_client: WebClient,
    on_session: Optional[SessionCallback] = None,
    game_slug: str = "",
):
    """
    Register the PUBLIC group.

    Args:
        mcp: FastMCP server (anything with a compatible .tool()).
        cfwidget: CFWidget client.
        web_client: Web client whose cookie store the session tools manage.
        on_session: Awaited after a session tool leaves a session in place.
        game_slug: Configured default game, reported by cf_session_status.
    """

    async def session_changed():
        if on_session is not None and web_client.has_session():
            await on_session()

    @mcp.tool(
        name="get_project",
        description=(
            'Get CurseForge project info by numeric ID or path (e.g. "238222" or '
            '"minecraft/mc-mods/jei"). Works without API key via CFWidget.'
        ),
        annotations=READ_ONLY,
    )
    @tool_errors
    async def get_project(
        project: Annotated[str, Field(description='Project ID or path, e.g. "238222" or "minecraft/mc-mods/jei"')],
    ) -> str:
        data = await cfwidget.get_project(project)
        return format_project(data)

    @mcp.tool(
        name="search_author",
        description=(
            "Find a CurseForge author by username and list their projects. "
            "Works without API key via CFWidget."
        ),
        annotations=READ_ONLY,
    )
    @tool_errors
    async def search_author(
        username: Annotated[str, Field(description="Author username to search")],
    ) -> str:
        data = await cfwidget.search_author(username)
        projects = data.get("projects") or []
        lines = [f"[{p.get('id')}] {p.get('name')}" for p in projects]
        return (
            f"Author: {data.get('username')} (ID: {data.get('id')})\n"
            f"Projects ({len(projects)}):\n" + "\n".join(lines)
        )

    @mcp.tool(
        name="cf_set_cookies",
        description='Set session cookies manually. Pass as "name1=value1; name2=value2" string.',
        annotations=LOCAL_STATE,
    )
    @tool_errors
    async def cf_set_cookies(
        cookies: Annotated[str, Field(description="Cookie string from browser")],
    ) -> str:
        web_client.store.set_cookies_from_string(cookies)
        await session_changed()
        return f"Cookies saved. Session active: {str(web_client.has_session()).lower()}"

    @mcp.tool(
        name="cf_auto_extract_cookies",
        description=(
            "Automatically extract curseforge.com session cookies from installed browsers. "
            "No user input needed."
        ),
        annotations=LOCAL_STATE,
    )
    @tool_errors
    async def cf_auto_extract_cookies() -> str:
        outcome = await web_client.store.auto_extract()
        await session_changed()
        return f"{outcome}\nSession active: {str(web_client.has_session()).lower()}"

    @mcp.tool(
        name="cf_session_status",
        description="Show whether session cookies are held and where they are stored.",
        annotations={**READ_ONLY, "openWorldHint": False},
    )
    @tool_errors
    async def cf_session_status() -> str:
        store = web_client.store
        names = ", ".join(c.name for c in store.cookies) or "none"
        lines = [
            f"Session active: {str(store.has_session()).lower()}",
            f"Cookies ({len(store.cookies)}): {names}",
            f"XSRF token: {'present' if store.xsrf_token() else 'missing'}",
            f"Stored at: {store.path}",
            f"Transport: {web_client.settings.web_transport}",
        ]
        if game_slug:
            lines.append(f"Default game: {game_slug}")
        return "\n".join(lines)

    logger.debug("Registered public tools")
