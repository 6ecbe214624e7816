"""Page wrapper with readiness and navigation utilities."""
import logging
from typing import Optional

from playwright.async_api import Page as PlaywrightPage

from ..core.config import TimeoutConfig

logger = logging.getLogger(__name__)

LINK_TEXT_LIMIT = 100

_EXTRACT_LINKS_JS = """
(limit) => {
    const links = [];
    document.querySelectorAll('a[href]').forEach(a => {
        const href = a.href;
        const text = (a.textContent || '').trim().slice(0, limit);
        if (href && href.startsWith('http')) {
            links.push({ url: href, text });
        }
    });
    return links;
}
"""


class Page:
    """Wrapper around a Playwright page owned by one tab."""

    def __init__(self, page: PlaywrightPage, timeouts: Optional[TimeoutConfig] = None) -> None:
        """Initialize page wrapper.

        Args:
            page: Playwright Page instance.
            timeouts: Driver timeouts in milliseconds.
        """
        self._page = page
        self.timeouts = timeouts or TimeoutConfig()

    @property
    def url(self) -> str:
        """Get current page URL."""
        return self._page.url

    @property
    def raw(self) -> PlaywrightPage:
        """Access underlying Playwright page for locator operations."""
        return self._page

    def is_closed(self) -> bool:
        """Check whether the tab's page has been closed."""
        return self._page.is_closed()

    async def title(self) -> str:
        """Get the document title."""
        return await self._page.title()

    async def goto(self, url: str) -> None:
        """Navigate to URL, raising on driver failure or timeout."""
        logger.debug(f"Navigating to: {url}")
        await self._page.goto(
            url, wait_until="domcontentloaded", timeout=self.timeouts.navigation
        )

    async def go_back(self) -> None:
        """Go back in history. Misses and timeouts are tolerated."""
        try:
            await self._page.go_back(timeout=self.timeouts.history)
        except Exception as e:
            logger.debug(f"Back navigation ignored: {e}")

    async def go_forward(self) -> None:
        """Go forward in history. Misses and timeouts are tolerated."""
        try:
            await self._page.go_forward(timeout=self.timeouts.history)
        except Exception as e:
            logger.debug(f"Forward navigation ignored: {e}")

    async def reload(self) -> None:
        """Reload the page, raising on driver failure or timeout."""
        await self._page.reload(
            wait_until="domcontentloaded", timeout=self.timeouts.navigation
        )

    async def wait(self, ms: int) -> None:
        """Wait for specified milliseconds.

        Args:
            ms: Milliseconds to wait.
        """
        await self._page.wait_for_timeout(ms)

    async def wait_until_ready(
        self,
        timeout: Optional[int] = None,
        wait_for_network: bool = True,
    ) -> bool:
        """Wait for the page to be ready for an accessibility snapshot.

        The DOM must be parsed within ``timeout``. Network idle is best
        effort and bounded separately, busy pages never reach it. A short
        settle delay follows for client-side rendering.

        Returns:
            True if the page became ready, False if the wait failed.
        """
        timeout = timeout if timeout is not None else self.timeouts.ready
        try:
            await self._page.wait_for_load_state("domcontentloaded", timeout=timeout)
            if wait_for_network:
                try:
                    await self._page.wait_for_load_state(
                        "networkidle", timeout=self.timeouts.network_idle
                    )
                except Exception:
                    logger.debug("networkidle timeout (continuing anyway)")
            await self._page.wait_for_timeout(self.timeouts.settle)
            return True
        except Exception as e:
            logger.info(f"Page not ready: {e}")
            return False

    async def wait_for_load(self) -> None:
        """Best-effort wait for a navigation an action may have triggered."""
        try:
            await self._page.wait_for_load_state(
                "domcontentloaded", timeout=self.timeouts.action
            )
        except Exception as e:
            logger.debug(f"Load wait after action ignored: {e}")

    async def aria_snapshot(self) -> Optional[str]:
        """Return the aria snapshot of the page body, or None when unavailable."""
        if self.is_closed():
            return None
        await self.wait_until_ready(wait_for_network=False)
        return await self._page.locator("body").aria_snapshot()

    async def click(self, selector: str) -> None:
        """Click the first element matching a CSS selector."""
        await self._page.click(selector, timeout=self.timeouts.action)

    async def fill(self, selector: str, text: str) -> None:
        """Replace the value of the element matching a CSS selector."""
        await self._page.fill(selector, text, timeout=self.timeouts.action)

    async def press(self, key: str) -> None:
        """Press a key on the focused element, e.g. ``Enter``."""
        await self._page.keyboard.press(key)

    async def scroll(self, direction: str = "down", amount: int = 500) -> None:
        """Scroll the viewport and let lazy content load.

        Args:
            direction: "up" or "down".
            amount: Distance in pixels.
        """
        delta = -amount if direction == "up" else amount
        await self._page.mouse.wheel(0, delta)
        await self._page.wait_for_timeout(self.timeouts.scroll_settle)

    async def links(self) -> list[dict]:
        """Extract every absolute http(s) link on the page, in document order."""
        return await self._page.evaluate(_EXTRACT_LINKS_JS, LINK_TEXT_LIMIT)

    async def screenshot(self, full_page: bool = False) -> bytes:
        """Capture a PNG screenshot.

        Args:
            full_page: Capture the full scrollable page instead of the viewport.
        """
        return await self._page.screenshot(type="png", full_page=full_page)

    async def close(self) -> None:
        """Close the underlying page."""
        await self._page.close()
