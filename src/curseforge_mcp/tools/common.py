"""Shared pieces of the tool layer: error boundary and hint presets."""

import functools
import logging

from fastmcp.exceptions import ToolError

from curseforge_mcp.errors import CurseForgeError

logger = logging.getLogger(__name__)

NO_SESSION_MESSAGE = "Error: No session cookies. Use cf_auto_extract_cookies first."

READ_ONLY = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": True,
}
WRITE = {
    "readOnlyHint": False,
    "destructiveHint": False,
    "idempotentHint": False,
    "openWorldHint": True,
}
WRITE_IDEMPOTENT = {**WRITE, "idempotentHint": True}
DESTRUCTIVE = {**WRITE, "destructiveHint": True, "idempotentHint": True}
LOCAL_STATE = {
    "readOnlyHint": False,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": False,
}


def describe(error: BaseException) -> str:
    """Exception text, or its type name when the text is empty (e.g. timeouts)."""
    return str(error) or type(error).__name__


def tool_errors(fn):
    """
    Error boundary for a tool handler.

    Any exception becomes a ToolError prefixed with the tool name, which
    the MCP host receives as an error result. Nothing escapes the handler.
    """
    name = fn.__name__

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except ToolError:
            raise
        except CurseForgeError as e:
            logger.warning(f"{name}: {describe(e)}")
            raise ToolError(f"Error: {name}: {describe(e)}") from e
        except Exception as e:
            logger.exception(f"{name} failed")
            raise ToolError(f"Error: {name}: {describe(e)}") from e

    return wrapper


def require_session(web_client):
    """Raise the standard no-session failure unless cookies are held."""
    if web_client is None or not web_client.has_session():
        raise ToolError(NO_SESSION_MESSAGE)
