"""Chromium lifecycle for recording sessions.

The CLI records one page at a time: it launches Chromium, opens a page in a
fresh context, attaches the capture engine and closes everything afterwards.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT = {'width': 1280, 'height': 800}


class BrowserFactory:
    """Owns a Chromium instance and opens isolated pages on it."""

    def __init__(self, headless: bool = True, viewport: Optional[Dict[str, int]] = None):
        """Initialize browser factory.

        Args:
            headless: Launch without a visible window
            viewport: Page viewport; 1280x800 when omitted
        """
        self.headless = headless
        self.viewport = viewport or dict(DEFAULT_VIEWPORT)
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None

    @property
    def is_running(self) -> bool:
        return self.browser is not None and self.browser.is_connected()

    async def start(self) -> None:
        """Launch Chromium. Partially started resources are released on failure."""
        if self.playwright is not None:
            return

        self.playwright = await async_playwright().start()
        try:
            self.browser = await self.playwright.chromium.launch(headless=self.headless)
        except Exception as e:
            logger.error(f"Failed to launch Chromium: {e}")
            await self.stop()
            raise
        logger.info(f"Chromium launched (headless={self.headless})")

    async def stop(self) -> None:
        """Close the browser and the Playwright driver."""
        browser, self.browser = self.browser, None
        playwright, self.playwright = self.playwright, None
        try:
            if browser:
                await browser.close()
        finally:
            if playwright:
                await playwright.stop()

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Open a page in its own context, closing the context on exit.

        Raises:
            RuntimeError: If start() has not been called
        """
        if self.browser is None:
            raise RuntimeError("Browser is not running; call start() first")

        context = await self.browser.new_context(viewport=self.viewport)
        try:
            yield await context.new_page()
        finally:
            await context.close()

    async def __aenter__(self) -> "BrowserFactory":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def __repr__(self) -> str:
        return f"BrowserFactory(headless={self.headless}, running={self.is_running})"
