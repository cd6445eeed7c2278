"""
Authentication module for curseforge-mcp.

Provides:
- Browser cookie extraction (Chromium family, Firefox family)
- Persistent session cookie storage
"""

from curseforge_mcp.auth.cookies import (
    CookieExtractor,
    FirefoxCookieExtractor,
    ChromeCookieExtractor,
    get_all_extractors,
    first_successful,
    extract_cookies_from_browsers,
)
from curseforge_mcp.auth.storage import (
    CookieStore,
    parse_cookie_string,
)

__all__ = [
    # Cookie extraction
    "CookieExtractor",
    "FirefoxCookieExtractor",
    "ChromeCookieExtractor",
    "get_all_extractors",
    "first_successful",
    "extract_cookies_from_browsers",
    # Storage
    "CookieStore",
    "parse_cookie_string",
]
