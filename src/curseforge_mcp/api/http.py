"""
Shared aiohttp plumbing for the CurseForge clients.

Every upstream surface answers with JSON on success and with an HTML or
text page on failure, so response handling lives here once.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from curseforge_mcp.auth.storage import CookieStore
from curseforge_mcp.config import Settings
from curseforge_mcp.errors import ERROR_BODY_LIMIT, NetworkError, TransportError

logger = logging.getLogger(__name__)


def parse_response(
    status: int,
    content_type: str,
    body: str,
    url: str,
    limit: int = ERROR_BODY_LIMIT,
    prefix: str = "HTTP",
) -> Any:
    """
    Turn a raw response into a value or a TransportError.

    Args:
        status: HTTP status code.
        content_type: Value of the Content-Type header ("" if absent).
        body: Response body as text.
        url: Requested URL, reported in the error.
        limit: Characters of the body kept in the error message.
        prefix: Leading word of the error message.

    Returns:
        Decoded JSON for JSON responses (None for an empty body),
        the raw text otherwise.
    """
    if not 200 <= status < 300:
        raise TransportError(status, url, body, limit=limit, prefix=prefix)
    if "application/json" in (content_type or "").lower():
        if not body.strip():
            return None
        return json.loads(body)
    return body


def clean_params(params: Optional[dict]) -> Optional[dict]:
    """Drop None values and stringify the rest for the query string."""
    if not params:
        return None
    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = str(value)
    return cleaned


class ApiClient:
    """Base for the token-authenticated JSON clients (core, upload, cfwidget)."""

    error_limit = ERROR_BODY_LIMIT
    error_prefix = "HTTP"

    def __init__(self, settings: Settings, base_url: str, headers: Optional[dict] = None):
        self.settings = settings
        self.base_url = base_url.rstrip("/")
        self.headers = dict(headers or {})
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        # Created on first use so it binds to the running event loop
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.settings.request_timeout),
            )
        return self._session

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}{path}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json_body: Any = None,
        data: Any = None,
        headers: Optional[dict] = None,
    ) -> Any:
        url = self.url(path)
        session = self._get_session()
        logger.debug(f"{method} {url}")
        try:
            async with session.request(
                method,
                url,
                params=clean_params(params),
                json=json_body,
                data=data,
                headers=headers,
            ) as resp:
                body = await resp.text()
                status = resp.status
                content_type = resp.headers.get("Content-Type", "")
                final_url = str(resp.url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(method, url, e) from e
        return parse_response(
            status,
            content_type,
            body,
            final_url,
            limit=self.error_limit,
            prefix=self.error_prefix,
        )

    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, body: Any = None) -> Any:
        return await self.request("POST", path, json_body=body)

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


class Transport(ABC):
    """Carries one authenticated web request; the caller builds the headers."""

    def __init__(self, settings: Settings, store: CookieStore):
        self.settings = settings
        self.store = store

    @abstractmethod
    async def send(self, method: str, url: str, headers: dict, body: Optional[str] = None) -> Any:
        """Send the request and return the parsed response."""
        pass

    @abstractmethod
    async def close(self):
        pass


class HttpTransport(Transport):
    """Direct HTTP: the session cookies travel as a Cookie header."""

    def __init__(self, settings: Settings, store: CookieStore):
        super().__init__(settings, store)
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            # Cookies come only from the store, never from a jar
            self._session = aiohttp.ClientSession(
                cookie_jar=aiohttp.DummyCookieJar(),
                timeout=aiohttp.ClientTimeout(total=self.settings.request_timeout),
            )
        return self._session

    async def send(self, method: str, url: str, headers: dict, body: Optional[str] = None) -> Any:
        headers = dict(headers)
        cookie_header = self.store.cookie_header()
        if cookie_header:
            headers["Cookie"] = cookie_header

        session = self._get_session()
        logger.debug(f"{method} {url}")
        try:
            async with session.request(method, url, headers=headers, data=body) as resp:
                text = await resp.text()
                status = resp.status
                content_type = resp.headers.get("Content-Type", "")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(method, url, e) from e
        return parse_response(status, content_type, text, url)

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
