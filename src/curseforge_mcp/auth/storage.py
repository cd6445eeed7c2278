"""
Session cookie storage for the CurseForge web surface.

The cookie set lives in memory and is mirrored to a JSON file so that a
later process start picks up the same session.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

from pydantic import ValidationError

from curseforge_mcp.auth.cookies import CookieExtractor, extract_cookies_from_browsers
from curseforge_mcp.models import COOKIE_DOMAIN, CookieEntry

logger = logging.getLogger(__name__)

XSRF_COOKIE_NAMES = ("XSRF-TOKEN", "X-XSRF-TOKEN")


def parse_cookie_string(raw: str, domain: str = COOKIE_DOMAIN, path: str = "/") -> list[CookieEntry]:
    """Parse a "name1=value1; name2=value2" header string, dropping malformed parts."""
    entries = []
    for segment in raw.split(";"):
        segment = segment.strip()
        if not segment or "=" not in segment:
            continue
        name, value = segment.split("=", 1)
        entries.append(CookieEntry(name=name.strip(), value=value.strip(), domain=domain, path=path))
    return entries


class CookieStore:
    """Owner of the current session cookie set."""

    def __init__(self, path: Path, extractors: Optional[Sequence[CookieExtractor]] = None):
        """
        Initialize the cookie store.

        Args:
            path: JSON file the cookie set is persisted to.
            extractors: Browser extractors for auto_extract(), in priority
                        order. None uses every supported browser.
        """
        self.path = Path(path)
        self._extractors = extractors
        self._cookies: list[CookieEntry] = []
        self._version = 0

    @property
    def cookies(self) -> list[CookieEntry]:
        return list(self._cookies)

    @property
    def version(self) -> int:
        """Incremented on every mutation of the cookie set."""
        return self._version

    def load(self) -> list[CookieEntry]:
        """
        Load the persisted cookie set.

        A missing, unreadable or malformed file leaves the store empty.
        """
        self._cookies = []
        if self.path.exists():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
                self._cookies = [CookieEntry.model_validate(item) for item in data]
                logger.debug(f"Loaded {len(self._cookies)} cookies from {self.path}")
            except (OSError, ValueError, TypeError, ValidationError) as e:
                logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
                self._cookies = []
        self._version += 1
        return self.cookies

    def set_cookies(self, entries: Iterable[CookieEntry]) -> None:
        """Persist a new cookie set, then make it current.

        If the file cannot be written the previous set stays in effect.
        """
        entries = list(entries)
        self._save(entries)
        self._cookies = entries
        self._version += 1

    def set_cookies_from_string(self, raw: str) -> list[CookieEntry]:
        """Replace the cookie set from a browser cookie header string."""
        entries = parse_cookie_string(raw)
        self.set_cookies(entries)
        return entries

    async def auto_extract(self) -> str:
        """
        Pull curseforge.com cookies from the installed browsers.

        Returns:
            Human-readable outcome; never raises.
        """
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, extract_cookies_from_browsers, self._extractors)
        except Exception as e:
            logger.error(f"Auto-extract failed: {e}")
            return f"Auto-extraction failed: {e}"

        if not result.ok:
            return result.error or "No cookies found"

        try:
            self.set_cookies(result.cookies)
        except OSError as e:
            logger.error(f"Failed to save extracted cookies: {e}")
            return f"Auto-extraction failed: {e}"
        return f"Extracted {len(result.cookies)} cookies from {result.browser}"

    def has_session(self) -> bool:
        return len(self._cookies) > 0

    def xsrf_token(self) -> Optional[str]:
        """Anti-forgery token: the first XSRF cookie by case-insensitive name."""
        for cookie in self._cookies:
            if cookie.name.upper() in XSRF_COOKIE_NAMES:
                return cookie.value
        return None

    def cookie_header(self) -> str:
        return "; ".join(f"{c.name}={c.value}" for c in self._cookies)

    def _save(self, entries: list[CookieEntry]) -> None:
        """Overwrite the session file with the given cookie set."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = [cookie.model_dump() for cookie in entries]
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

        # Set restrictive permissions on Unix
        try:
            self.path.chmod(0o600)
        except OSError:
            pass
        logger.info(f"Saved {len(entries)} cookies to {self.path}")
