"""Rendering page fetcher using Playwright.

Documentation sites built as single-page apps ship an empty shell and
render navigation client-side. BrowserFetcher loads such pages in a
headless Chromium and returns the rendered HTML.

Usage:
    async with BrowserFetcher() as fetcher:
        page = await fetcher("https://docs.example.com")

Note: Playwright browsers must be installed separately:
    playwright install chromium
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from docmap.core.config import Settings, settings as default_settings
from docmap.services.extraction.base import FetchResult
from docmap.services.extraction.exceptions import FetchError
from docmap.services.extraction.utils import validate_url

if TYPE_CHECKING:
    from playwright.async_api import Browser, Playwright

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1920, "height": 1080}


class BrowserFetcher:
    """Fetch pages by rendering them in a headless browser.

    The browser is launched on the first fetch and reused for every later
    page, so a deep crawl pays the launch cost once.
    """

    def __init__(self, config: Settings | None = None) -> None:
        self.config = config or default_settings
        self._browser: Browser | None = None
        self._playwright: Playwright | None = None

    async def _ensure_browser(self) -> Browser:
        """Launch the browser on first use.

        Raises:
            FetchError: If the browser fails to launch.
        """
        if self._browser is None:
            try:
                # Import here to avoid loading Playwright until needed
                from playwright.async_api import async_playwright

                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.config.browser_headless,
                )
                logger.debug(
                    "Playwright browser launched (headless=%s)",
                    self.config.browser_headless,
                )
            except Exception as e:
                logger.error("Failed to launch Playwright browser: %s", e)
                raise FetchError(f"Browser launch failed: {e}", "") from e

        return self._browser

    async def __call__(self, url: str) -> FetchResult:
        return await self.fetch(url)

    async def fetch(self, url: str) -> FetchResult:
        """Render a page and return its HTML.

        Raises:
            InvalidUrlError: If the URL is rejected
            FetchError: If navigation fails or the page returns an error status
        """
        validate_url(url)
        browser = await self._ensure_browser()
        page = None

        try:
            page = await browser.new_page(
                viewport=VIEWPORT, user_agent=self.config.user_agent
            )
            page.set_default_timeout(self.config.browser_timeout_seconds * 1000)

            logger.debug("Rendering URL with Playwright: %s", url)
            response = await page.goto(url, wait_until="domcontentloaded")

            if response is None or response.status >= 400:
                status = response.status if response else None
                raise FetchError(
                    f"Failed to load {url}: HTTP {status or 'unknown'}", url, status_code=status
                )

            # Let client-side rendering finish
            await asyncio.sleep(self.config.browser_settle_ms / 1000)

            html = await page.content()
            final_url = page.url or url
            logger.debug("Playwright rendered %d chars from %s", len(html), final_url)
            return FetchResult(url=final_url, html=html, status_code=response.status)

        except FetchError:
            raise
        except Exception as e:
            logger.warning("Playwright rendering failed for %s: %s", url, e)
            raise FetchError(f"Browser rendering failed for {url}: {e}", url) from e

        finally:
            if page:
                await page.close()

    async def close(self) -> None:
        """Close browser and cleanup resources.

        Safe to call multiple times.
        """
        if self._browser:
            try:
                await self._browser.close()
                logger.debug("Playwright browser closed")
            except Exception as e:
                logger.warning("Error closing browser: %s", e)
            self._browser = None

        if self._playwright:
            try:
                await self._playwright.stop()
                logger.debug("Playwright stopped")
            except Exception as e:
                logger.warning("Error stopping Playwright: %s", e)
            self._playwright = None

    async def __aenter__(self) -> BrowserFetcher:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - ensures cleanup."""
        await self.close()
