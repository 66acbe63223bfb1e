"""Browser sessions for carrier automation.

A session is a scoped resource: gateways acquire it through
``browser_session`` which closes it on every exit path. A failure while
closing is logged and never replaces an error already propagating.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

logger = structlog.get_logger(__name__)


class BrowserSession(ABC):
    @abstractmethod
    async def new_page(self) -> Page: ...

    @abstractmethod
    async def close(self) -> None: ...


class BrowserFactory(ABC):
    @abstractmethod
    async def launch(self) -> BrowserSession: ...


class PlaywrightBrowserSession(BrowserSession):
    def __init__(self, playwright: Playwright, browser: Browser, context: BrowserContext):
        self._playwright = playwright
        self._browser = browser
        self._context = context

    async def new_page(self) -> Page:
        return await self._context.new_page()

    async def close(self) -> None:
        try:
            await self._context.close()
        finally:
            try:
                await self._browser.close()
            finally:
                await self._playwright.stop()


class ChromiumBrowserFactory(BrowserFactory):
    """Launches a fresh Chromium per session with downloads enabled."""

    def __init__(
        self,
        headless: bool = True,
        timeout_ms: float | None = None,
        ignore_https_errors: bool = False,
    ):
        self.headless = headless
        self.timeout_ms = timeout_ms
        self.ignore_https_errors = ignore_https_errors

    async def launch(self) -> BrowserSession:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(headless=self.headless, timeout=self.timeout_ms)
            context = await browser.new_context(
                accept_downloads=True,
                ignore_https_errors=self.ignore_https_errors,
            )
        except Exception:
            await playwright.stop()
            raise
        logger.debug("Chromium launched", headless=self.headless)
        return PlaywrightBrowserSession(playwright, browser, context)


@asynccontextmanager
async def browser_session(factory: BrowserFactory, carrier: str) -> AsyncIterator[BrowserSession]:
    """Acquire a session from ``factory`` and release it exactly once."""
    session = await factory.launch()
    try:
        yield session
    finally:
        try:
            await session.close()
        except Exception as exc:
            logger.warning("Failed to close browser session", carrier=carrier, error=str(exc))
