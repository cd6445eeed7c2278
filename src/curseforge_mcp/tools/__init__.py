"""
MCP tool groups.

Each group is registered only when its capability is enabled:
- public: CFWidget lookups, session management
- catalog: Core API
- upload: author Upload API
- web: cookie-authenticated web API
"""

import logging
from typing import Optional

from curseforge_mcp.capabilities import CapabilityGroup, CapabilityTable
from curseforge_mcp.config import Settings
from curseforge_mcp.tools.catalog import register_catalog_tools
from curseforge_mcp.tools.public import SessionCallback, register_public_tools
from curseforge_mcp.tools.upload import register_upload_tools
from curseforge_mcp.tools.web import register_web_tools

logger = logging.getLogger(__name__)


def register_tools(
    mcp,
    table: CapabilityTable,
    settings: Settings,
    web_client,
    on_session: Optional[SessionCallback] = None,
) -> list[CapabilityGroup]:
    """
    Register the tools of every enabled group.

    Returns:
        The groups whose tools were registered.
    """
    registered = []

    if table.is_enabled(CapabilityGroup.PUBLIC):
        register_public_tools(
            mcp,
            table.client(CapabilityGroup.PUBLIC),
            web_client,
            on_session=on_session,
            game_slug=settings.curseforge_game_slug,
        )
        registered.append(CapabilityGroup.PUBLIC)

    if table.is_enabled(CapabilityGroup.CATALOG):
        register_catalog_tools(mcp, table.client(CapabilityGroup.CATALOG), settings.default_game_id)
        registered.append(CapabilityGroup.CATALOG)

    if table.is_enabled(CapabilityGroup.UPLOAD):
        register_upload_tools(mcp, table.client(CapabilityGroup.UPLOAD))
        registered.append(CapabilityGroup.UPLOAD)

    if table.is_enabled(CapabilityGroup.WEB):
        register_web_tools(mcp, table.client(CapabilityGroup.WEB))
        registered.append(CapabilityGroup.WEB)

    for group, reason in table.reasons().items():
        logger.info(f"{group.value} tools not registered: {reason}")

    return registered


__all__ = [
    "register_tools",
    "register_public_tools",
    "register_catalog_tools",
    "register_upload_tools",
    "register_web_tools",
]
