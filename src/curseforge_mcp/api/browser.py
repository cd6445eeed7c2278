"""
Browser-mediated web transport.

CurseForge fronts its web API with a bot challenge that plain HTTP clients
cannot pass. This transport keeps a real Chrome session (driven by
Playwright) resident, lets it clear the challenge once per site, and then
runs every request as a fetch() inside the page so the browser's own
cookies and fingerprint go along.

Lifecycle:
    uninitialized -> launching -> navigating-challenge -> ready
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import urlsplit

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from curseforge_mcp.api.http import Transport, parse_response
from curseforge_mcp.auth.storage import CookieStore
from curseforge_mcp.config import Settings
from curseforge_mcp.errors import BrowserUnavailableError
from curseforge_mcp.utils.browsers import detect_chrome_executable
from curseforge_mcp.utils.formatting import USER_AGENT

logger = logging.getLogger(__name__)

MAIN_SITE_URL = "https://www.curseforge.com/"
AUTHORS_SITE_URL = "https://authors.curseforge.com/"
AUTHORS_HOST = "authors.curseforge.com"

# The interstitial's title reads "Just a moment..." (localized in Russian)
CHALLENGE_MARKERS = ("moment", "момент")

NAVIGATION_TIMEOUT_MS = 30000

# The browser sets these itself; fetch() refuses to override them
BROWSER_MANAGED_HEADERS = {"user-agent", "cookie", "origin", "referer"}

FETCH_SCRIPT = """
async ({url, method, headers, body}) => {
    const r = await fetch(url, {method, headers, body: body ?? undefined, credentials: "include"});
    return {
        status: r.status,
        contentType: r.headers.get("content-type") || "",
        body: await r.text(),
    };
}
"""


def is_challenge_title(title: str) -> bool:
    return any(marker in (title or "") for marker in CHALLENGE_MARKERS)


async def wait_for_challenge(page, url: str, timeout: float = 30.0, interval: float = 1.0) -> bool:
    """
    Poll the page title until the bot challenge is gone.

    Returns:
        True if the challenge cleared, False if the timeout expired. Expiry
        is logged as a warning and is not an error: the caller proceeds.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    host = urlsplit(url).hostname or url

    while loop.time() < deadline:
        await asyncio.sleep(interval)
        try:
            title = await page.title()
        except PlaywrightError as e:
            # Title is unavailable while the challenge redirects
            logger.debug(f"Page not ready on {host}: {e}")
            continue
        if not is_challenge_title(title):
            logger.info(f"Challenge passed for {host}")
            return True

    logger.warning(f"Challenge did not resolve for {url} after {timeout:.0f}s, continuing anyway")
    return False


@dataclass
class BrowserSession:
    """A running browser with one context shared by the site pages."""
    context: Any
    browser: Any = None
    playwright: Any = None
    main_page: Any = None
    authors_page: Any = None

    def page_for(self, url: str):
        host = urlsplit(url).hostname or ""
        return self.authors_page if host == AUTHORS_HOST else self.main_page

    async def close(self):
        for resource in (self.context, self.browser):
            if resource is None:
                continue
            try:
                await resource.close()
            except PlaywrightError as e:
                logger.debug(f"Browser close: {e}")
        if self.playwright is not None:
            await self.playwright.stop()


Launcher = Callable[[Settings], Awaitable[BrowserSession]]


async def launch_chrome(settings: Settings) -> BrowserSession:
    """Start Chrome/Chromium with Playwright and open a fresh context."""
    executable = settings.chrome_path or detect_chrome_executable()
    if executable is None:
        logger.info("No system Chrome found, using Playwright's bundled Chromium")
    else:
        logger.info(f"Launching Chrome: {executable}")

    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(
            executable_path=str(executable) if executable else None,
            headless=settings.browser_headless,
            args=["--no-sandbox", "--window-size=800,600", "--lang=en-US"],
        )
        context = await browser.new_context(user_agent=USER_AGENT, locale="en-US")
    except PlaywrightError as e:
        await playwright.stop()
        raise BrowserUnavailableError(
            f"Could not start Chrome or Chromium: {e}\n"
            "Install Chrome (or run `playwright install chromium`) or set CHROME_PATH."
        ) from e

    return BrowserSession(context=context, browser=browser, playwright=playwright)


class BrowserTransport(Transport):
    """Runs web requests inside a resident, challenge-cleared browser session."""

    def __init__(
        self,
        settings: Settings,
        store: CookieStore,
        launcher: Optional[Launcher] = None,
        challenge_interval: float = 1.0,
    ):
        """
        Args:
            settings: Application settings (executable, headless, timeouts).
            store: Cookie store seeded into the browser context.
            launcher: Coroutine function producing a BrowserSession.
                      Defaults to launching Chrome with Playwright.
            challenge_interval: Seconds between challenge title checks.
        """
        super().__init__(settings, store)
        self._launcher = launcher or launch_chrome
        self.challenge_interval = challenge_interval
        self.state = "uninitialized"
        self.launch_count = 0
        self._session: Optional[BrowserSession] = None
        self._launch_task: Optional[asyncio.Task] = None
        self._seeded_version: Optional[int] = None

    async def _ensure_ready(self) -> BrowserSession:
        if self._session is not None:
            return self._session
        # Every concurrent first caller awaits the same launch
        if self._launch_task is None:
            self._launch_task = asyncio.ensure_future(self._start())
        task = self._launch_task
        try:
            return await asyncio.shield(task)
        except Exception:
            if self._launch_task is task:
                self._launch_task = None
            raise

    async def _start(self) -> BrowserSession:
        self.state = "launching"
        self.launch_count += 1
        try:
            session = await self._launcher(self.settings)
        except Exception:
            self.state = "uninitialized"
            raise

        try:
            await self._seed_cookies(session)
            self.state = "navigating-challenge"
            session.main_page = await self._open_site(session, MAIN_SITE_URL)
            session.authors_page = await self._open_site(session, AUTHORS_SITE_URL)
        except Exception:
            self.state = "uninitialized"
            await session.close()
            raise

        if self._launch_task is not asyncio.current_task():
            # close() ran mid-launch
            self.state = "uninitialized"
            await session.close()
            raise BrowserUnavailableError("Browser transport was closed during launch")

        self._session = session
        self.state = "ready"
        logger.info("Browser session ready")
        return session

    async def _open_site(self, session: BrowserSession, url: str):
        page = await session.context.new_page()
        await page.goto(url, wait_until="domcontentloaded", timeout=NAVIGATION_TIMEOUT_MS)
        await wait_for_challenge(page, url, self.settings.challenge_timeout, self.challenge_interval)
        return page

    async def _seed_cookies(self, session: BrowserSession):
        version = self.store.version
        cookies = [cookie.to_playwright() for cookie in self.store.cookies]
        if cookies:
            await session.context.add_cookies(cookies)
            logger.debug(f"Seeded {len(cookies)} cookies into the browser")
        self._seeded_version = version

    async def send(self, method: str, url: str, headers: dict, body: Optional[str] = None) -> Any:
        session = await self._ensure_ready()
        if self._seeded_version != self.store.version:
            await self._seed_cookies(session)

        page_headers = {k: v for k, v in headers.items() if k.lower() not in BROWSER_MANAGED_HEADERS}
        page = session.page_for(url)
        logger.debug(f"{method} {url} (browser)")
        result = await page.evaluate(
            FETCH_SCRIPT,
            {"url": url, "method": method, "headers": page_headers, "body": body},
        )
        return parse_response(result["status"], result["contentType"], result["body"], url)

    async def close(self):
        session = self._session
        self._session = None
        self._launch_task = None
        self.state = "uninitialized"
        if session is not None:
            await session.close()
            logger.info("Browser session closed")
