"""
Renderer lease - one running headless Chromium process.

Workers never touch the browser directly. They borrow a page through
RendererSlot.page(), which opens a fresh browser context (own cookies, own
history) and closes it again when the item is done. Only the orchestrator
replaces the lease, via RendererSlot.rotate().

USAGE:
    slot = RendererSlot(launch_renderer)
    await slot.open()
    try:
        async with slot.page() as page:
            await page.goto(url)
    finally:
        await slot.close()
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
)

from ..common.errors import LaunchFailure, NavigationError
from ..common.http_client import USER_AGENT_BROWSER
from ..config.settings import settings

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-gpu',
    '--disable-blink-features=AutomationControlled',
]

# Hide the most obvious automation markers
STEALTH_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
    Object.defineProperty(navigator, 'plugins', {get: () => [1, 2, 3, 4, 5]});
"""


class RendererLease:
    """
    A launched browser process.

    Pages are never reused: every page() call gets a new browser context that
    is closed on exit, so cookies and history don't leak between sites.
    """

    def __init__(
        self,
        playwright: Optional[Playwright],
        browser: Browser,
        user_agent: str = USER_AGENT_BROWSER,
        navigation_timeout: Optional[float] = None,
    ):
        self._playwright = playwright
        self._browser = browser
        self.user_agent = user_agent
        self.navigation_timeout = navigation_timeout or settings.navigation_timeout
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """
        Open an isolated page for one item.

        Raises:
            NavigationError: If the browser can't open a context or page
        """
        context: Optional[BrowserContext] = None
        try:
            context = await self._browser.new_context(
                viewport={'width': 1280, 'height': 720},
                user_agent=self.user_agent,
                java_script_enabled=True,
            )
            await context.add_init_script(STEALTH_SCRIPT)
            page = await context.new_page()
        except PlaywrightError as e:
            if context is not None:
                await _close_quietly(context, "context")
            raise NavigationError(f"Could not open browser page: {e}") from e

        page.set_default_navigation_timeout(self.navigation_timeout * 1000)
        page.set_default_timeout(self.navigation_timeout * 1000)
        try:
            yield page
        finally:
            await _close_quietly(page, "page")
            await _close_quietly(context, "context")

    async def close(self):
        """Close the browser and stop Playwright. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        await _close_quietly(self._browser, "browser")
        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")


async def _close_quietly(resource, name: str):
    # Page/context/browser may already be gone after a crash
    try:
        await resource.close()
    except Exception as e:
        logger.debug(f"Ignoring error closing {name}: {e}")


async def launch_renderer(headless: Optional[bool] = None) -> RendererLease:
    """
    Start Playwright and launch headless Chromium.

    Raises:
        LaunchFailure: If the browser process can't be started
    """
    playwright = None
    try:
        playwright = await async_playwright().start()
        browser = await playwright.chromium.launch(
            headless=settings.headless if headless is None else headless,
            args=CHROMIUM_ARGS,
        )
    except Exception as e:
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as stop_err:
                logger.debug(f"Ignoring error stopping Playwright after failed launch: {stop_err}")
        raise LaunchFailure(f"Could not launch browser: {e}") from e

    logger.info("Launched headless Chromium")
    return RendererLease(playwright, browser)


LeaseFactory = Callable[[], Awaitable[RendererLease]]


class RendererSlot:
    """
    Holds the current lease for a run and swaps it on rotation.

    Borrowing and rotating are coordinated: rotate() stops new borrows, waits
    until every borrowed page is released, then closes and relaunches.
    """

    def __init__(self, factory: LeaseFactory = launch_renderer):
        self._factory = factory
        self._lease: Optional[RendererLease] = None
        self._in_use = 0
        self._rotating = False
        self._cond = asyncio.Condition()
        self.launches = 0

    @property
    def lease(self) -> Optional[RendererLease]:
        return self._lease

    async def open(self):
        """Launch the first lease. LaunchFailure propagates."""
        self._lease = await self._factory()
        self.launches += 1

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Borrow an isolated page from the current lease."""
        async with self._cond:
            await self._cond.wait_for(lambda: not self._rotating)
            if self._lease is None:
                raise LaunchFailure("Renderer is not running")
            self._in_use += 1
            lease = self._lease

        try:
            async with lease.page() as page:
                yield page
        finally:
            async with self._cond:
                self._in_use -= 1
                self._cond.notify_all()

    async def rotate(self):
        """
        Close the current browser and launch a fresh one.

        Must not be called while the caller itself holds a borrowed page.
        A rotation requested while another is running waits for it and then
        rotates again, so every request gets its own fresh browser.

        Raises:
            LaunchFailure: If the new browser can't be started
        """
        async with self._cond:
            await self._cond.wait_for(lambda: not self._rotating)
            self._rotating = True
            await self._cond.wait_for(lambda: self._in_use == 0)

        try:
            old = self._lease
            self._lease = None
            if old is not None:
                await old.close()
            self._lease = await self._factory()
            self.launches += 1
            logger.info(f"Renderer rotated (launch #{self.launches})")
        finally:
            async with self._cond:
                self._rotating = False
                self._cond.notify_all()

    async def close(self):
        lease, self._lease = self._lease, None
        if lease is not None:
            await lease.close()
