"""
Clients for the four CurseForge surfaces.

- CfWidgetClient: public mirror, no credentials
- CoreApiClient: catalog, API key
- UploadApiClient: file publishing, author token
- WebClient: comments and project settings, session cookies
"""

from curseforge_mcp.api.cfwidget import CfWidgetClient
from curseforge_mcp.api.core import CoreApiClient
from curseforge_mcp.api.http import HttpTransport, Transport, parse_response
from curseforge_mcp.api.browser import BrowserTransport, wait_for_challenge
from curseforge_mcp.api.upload import UploadApiClient
from curseforge_mcp.api.web import WebClient, create_transport

__all__ = [
    "CfWidgetClient",
    "CoreApiClient",
    "UploadApiClient",
    "WebClient",
    "Transport",
    "HttpTransport",
    "BrowserTransport",
    "create_transport",
    "parse_response",
    "wait_for_challenge",
]
