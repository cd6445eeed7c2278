"""Authenticated request dispatcher for the cookie-protected web API."""

import json
import logging
from typing import Any, Optional
from urllib.parse import urlsplit

from curseforge_mcp.api.browser import BrowserTransport
from curseforge_mcp.api.http import HttpTransport, Transport
from curseforge_mcp.auth.storage import CookieStore
from curseforge_mcp.config import Settings
from curseforge_mcp.utils.formatting import USER_AGENT

logger = logging.getLogger(__name__)

CF_BASE = "https://www.curseforge.com"
AUTHORS_API = "https://authors.curseforge.com/_api"


def create_transport(settings: Settings, store: CookieStore) -> Transport:
    """Pick the transport variant named by settings.web_transport."""
    if settings.web_transport == "browser":
        return BrowserTransport(settings, store)
    return HttpTransport(settings, store)


def origin_of(url: str) -> str:
    parts = urlsplit(url)
    if parts.scheme and parts.netloc:
        return f"{parts.scheme}://{parts.netloc}"
    return CF_BASE


class WebClient:
    """
    Sends requests on behalf of the logged-in CurseForge user.

    Headers are assembled per call so a cookie change made between two
    requests (new session, rotated XSRF token) is always picked up.
    """

    def __init__(
        self,
        settings: Settings,
        store: Optional[CookieStore] = None,
        transport: Optional[Transport] = None,
    ):
        self.settings = settings
        if store is None:
            store = CookieStore(settings.cookies_path)
            store.load()
        self.store = store
        self.transport = transport or create_transport(settings, self.store)

    async def init(self):
        """Fall back to browser extraction when no session was persisted."""
        if self.store.has_session():
            logger.info(f"Using {len(self.store.cookies)} persisted session cookies")
            return
        outcome = await self.store.auto_extract()
        logger.info(f"Session cookies: {outcome}")

    def has_session(self) -> bool:
        return self.store.has_session()

    def build_headers(self, url: str, has_body: bool = False, extra_headers: Optional[dict] = None) -> dict:
        origin = origin_of(url)
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
            "Origin": origin,
            "Referer": f"{origin}/",
        }
        if has_body:
            headers["Content-Type"] = "application/json"
        if extra_headers:
            headers.update(extra_headers)
        xsrf = self.store.xsrf_token()
        if xsrf:
            headers["X-XSRF-TOKEN"] = xsrf
        return headers

    async def request(
        self,
        url: str,
        method: str = "GET",
        body: Any = None,
        extra_headers: Optional[dict] = None,
    ) -> Any:
        headers = self.build_headers(url, body is not None, extra_headers)
        payload = json.dumps(body) if body is not None else None
        return await self.transport.send(method, url, headers, payload)

    async def get(self, url: str, extra_headers: Optional[dict] = None) -> Any:
        return await self.request(url, "GET", None, extra_headers)

    async def post(self, url: str, body: Any = None, extra_headers: Optional[dict] = None) -> Any:
        return await self.request(url, "POST", body, extra_headers)

    async def put(self, url: str, body: Any = None, extra_headers: Optional[dict] = None) -> Any:
        return await self.request(url, "PUT", body, extra_headers)

    async def delete(self, url: str, extra_headers: Optional[dict] = None) -> Any:
        return await self.request(url, "DELETE", None, extra_headers)

    async def close(self):
        await self.transport.close()
