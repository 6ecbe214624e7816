"""Shared Chromium process management."""
import asyncio
import logging
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from ..core.config import BrowserConfig

logger = logging.getLogger(__name__)


class BrowserHandle:
    """Lazily launched browser shared by every session of the server."""

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        """Initialize browser handle settings.

        Args:
            config: Launch options, viewport and identity string.
        """
        self.config = config or BrowserConfig()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._launch_lock = asyncio.Lock()

    async def ensure_browser(self) -> Browser:
        """Launch Chromium on first use and return the shared instance.

        Launch failures propagate: nothing can be served without a browser.
        Concurrent first calls wait for a single launch.
        """
        if self._browser is not None:
            return self._browser
        async with self._launch_lock:
            if self._browser is not None:
                return self._browser
            if self.config.executable_path:
                logger.info(f"Using custom Chromium path: {self.config.executable_path}")
            else:
                logger.info("Using Playwright bundled Chromium")
            self._playwright = await async_playwright().start()
            try:
                self._browser = await self._playwright.chromium.launch(
                    headless=self.config.headless,
                    args=self.config.launch_args,
                    executable_path=self.config.executable_path or None,
                )
            except Exception:
                await self._cleanup()
                raise
            logger.info("Browser launched")
        return self._browser

    async def new_context(self) -> BrowserContext:
        """Create an isolated context with its own cookies and storage."""
        browser = await self.ensure_browser()
        return await browser.new_context(
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            user_agent=self.config.user_agent,
        )

    async def _cleanup(self) -> None:
        """Clean up playwright resources."""
        if self._browser:
            try:
                await self._browser.close()
            except Exception as e:
                logger.debug(f"Browser close failed: {e}")
        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug(f"Playwright stop failed: {e}")
        self._playwright = None
        self._browser = None

    async def close(self) -> None:
        """Shut the browser down."""
        if self._browser or self._playwright:
            logger.info("Closing browser")
        await self._cleanup()
