"""
MCP server assembly and the stdio entry point.

Startup order: settings, web client (persisted or auto-extracted session),
capability table, then one tool group per enabled capability.
"""

import asyncio
import logging
import signal
from dataclasses import dataclass
from typing import Mapping, Optional

from fastmcp import FastMCP

from curseforge_mcp import __version__
from curseforge_mcp.api.web import WebClient
from curseforge_mcp.capabilities import (
    CapabilityGroup,
    CapabilityTable,
    ClientFactory,
    resolve_capabilities,
)
from curseforge_mcp.config import Settings, load_settings
from curseforge_mcp.tools import register_tools, register_web_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "curseforge-mcp"


@dataclass
class ServerContext:
    """A built server with the clients it owns."""
    mcp: FastMCP
    capabilities: CapabilityTable
    web_client: WebClient
    settings: Settings
    web_tools_registered: bool = False

    async def enable_web_tools(self):
        """Register the web group once a session appears after startup."""
        if self.web_tools_registered:
            return
        register_web_tools(self.mcp, self.web_client)
        self.web_tools_registered = True
        logger.info("Session established, web tools registered")

    async def close(self):
        """Close every client and the browser session."""
        for capability in self.capabilities:
            client = capability.client
            if capability.group is CapabilityGroup.WEB or client is None:
                continue
            try:
                await client.close()
            except Exception as e:
                logger.warning(f"Error closing {capability.group.value} client: {e}")
        await self.web_client.close()


async def create_server(
    settings: Optional[Settings] = None,
    web_client: Optional[WebClient] = None,
    factories: Optional[Mapping[CapabilityGroup, ClientFactory]] = None,
) -> ServerContext:
    settings = settings or load_settings()

    web_client = web_client or WebClient(settings)
    await web_client.init()

    table = resolve_capabilities(
        settings,
        has_session=web_client.has_session(),
        web_client=web_client,
        factories=factories,
    )

    mcp = FastMCP(SERVER_NAME, version=__version__)
    ctx = ServerContext(mcp=mcp, capabilities=table, web_client=web_client, settings=settings)

    registered = register_tools(mcp, table, settings, web_client, on_session=ctx.enable_web_tools)
    ctx.web_tools_registered = CapabilityGroup.WEB in registered
    logger.info(f"Server ready with tool groups: {', '.join(g.value for g in registered)}")
    return ctx


async def serve_stdio(settings: Optional[Settings] = None):
    ctx = await create_server(settings)

    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    try:
        loop.add_signal_handler(signal.SIGTERM, task.cancel)
    except (NotImplementedError, RuntimeError):
        # Windows event loops do not support signal handlers
        pass

    logger.info("Server running on stdio")
    try:
        await ctx.mcp.run_async(transport="stdio", show_banner=False)
    except asyncio.CancelledError:
        logger.info("Shutting down...")
    finally:
        await ctx.close()


def run_stdio(settings: Optional[Settings] = None):
    """Run the server until stdin closes or SIGINT/SIGTERM arrives."""
    try:
        asyncio.run(serve_stdio(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")
