"""Tests for the Playwright-based page fetcher.

These tests mock Playwright to avoid requiring actual browser binaries in CI.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from docmap.core.config import Settings
from docmap.services.extraction.exceptions import FetchError, InvalidUrlError
from docmap.services.fetchers.browser_fetcher import BrowserFetcher


SAMPLE_RENDERED_HTML = """
<!DOCTYPE html>
<html>
<head><title>Acme Docs</title></head>
<body>
<div id="root">
<nav><a href="/docs/api">API Reference</a><a href="/docs/guides">Guides</a></nav>
</div>
</body>
</html>
"""

# No settle delay so tests run instantly
FAST_SETTINGS = Settings(browser_settle_ms=0)


def _mock_playwright(status: int = 200, final_url: str = "https://acme.dev/docs/"):
    """Build mocks for async_playwright() -> playwright -> browser -> page."""
    mock_page = AsyncMock()
    mock_page.content.return_value = SAMPLE_RENDERED_HTML
    mock_page.url = final_url
    mock_page.set_default_timeout = MagicMock()
    mock_response = MagicMock()
    mock_response.status = status
    mock_page.goto.return_value = mock_response

    mock_browser = AsyncMock()
    mock_browser.new_page.return_value = mock_page

    mock_playwright = AsyncMock()
    mock_playwright.chromium.launch.return_value = mock_browser

    # async_playwright() returns a context manager with async start()
    mock_context_manager = AsyncMock()
    mock_context_manager.start.return_value = mock_playwright

    return mock_context_manager, mock_playwright, mock_browser, mock_page


class TestBrowserFetcherInstantiation:
    """Test suite for BrowserFetcher instantiation."""

    def test_browser_not_started_on_init(self) -> None:
        fetcher = BrowserFetcher()

        assert fetcher._browser is None
        assert fetcher._playwright is None
        assert fetcher.config.browser_headless is True
        assert fetcher.config.browser_timeout_seconds == 45


class TestBrowserFetcherFetch:
    """Test suite for rendering pages."""

    @pytest.mark.asyncio
    async def test_fetch_returns_rendered_html(self) -> None:
        cm, playwright, browser, page = _mock_playwright()
        fetcher = BrowserFetcher(FAST_SETTINGS)

        with patch("playwright.async_api.async_playwright", return_value=cm):
            result = await fetcher("https://acme.dev/docs")

        assert result.html == SAMPLE_RENDERED_HTML
        assert result.url == "https://acme.dev/docs/"
        assert result.status_code == 200
        page.goto.assert_awaited_once_with("https://acme.dev/docs", wait_until="domcontentloaded")
        page.set_default_timeout.assert_called_once_with(45000)
        page.close.assert_awaited_once()
        playwright.chromium.launch.assert_called_once_with(headless=True)

    @pytest.mark.asyncio
    async def test_browser_reused_on_subsequent_fetches(self) -> None:
        cm, playwright, browser, _ = _mock_playwright()
        fetcher = BrowserFetcher(FAST_SETTINGS)

        with patch("playwright.async_api.async_playwright", return_value=cm):
            await fetcher.fetch("https://acme.dev/docs/api")
            await fetcher.fetch("https://acme.dev/docs/guides")

        playwright.chromium.launch.assert_called_once()
        assert browser.new_page.call_count == 2

    @pytest.mark.asyncio
    async def test_user_agent_applied(self) -> None:
        cm, _, browser, _ = _mock_playwright()
        fetcher = BrowserFetcher(FAST_SETTINGS)

        with patch("playwright.async_api.async_playwright", return_value=cm):
            await fetcher.fetch("https://acme.dev/docs")

        kwargs = browser.new_page.call_args.kwargs
        assert kwargs["user_agent"] == "DocMaps-Bot/1.0 (Documentation Parser)"

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        cm, _, _, page = _mock_playwright(status=404)
        fetcher = BrowserFetcher(FAST_SETTINGS)

        with patch("playwright.async_api.async_playwright", return_value=cm):
            with pytest.raises(FetchError) as exc_info:
                await fetcher.fetch("https://acme.dev/missing")

        assert exc_info.value.status_code == 404
        page.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigation_failure_wrapped(self) -> None:
        cm, _, _, page = _mock_playwright()
        page.goto.side_effect = Exception("net::ERR_NAME_NOT_RESOLVED")
        fetcher = BrowserFetcher(FAST_SETTINGS)

        with patch("playwright.async_api.async_playwright", return_value=cm):
            with pytest.raises(FetchError) as exc_info:
                await fetcher.fetch("https://acme.dev/docs")

        assert "ERR_NAME_NOT_RESOLVED" in str(exc_info.value)
        assert exc_info.value.url == "https://acme.dev/docs"

    @pytest.mark.asyncio
    async def test_launch_failure_wrapped(self) -> None:
        cm = AsyncMock()
        cm.start.side_effect = Exception("Executable doesn't exist")
        fetcher = BrowserFetcher(FAST_SETTINGS)

        with patch("playwright.async_api.async_playwright", return_value=cm):
            with pytest.raises(FetchError) as exc_info:
                await fetcher.fetch("https://acme.dev/docs")

        assert "Browser launch failed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_url_rejected_without_launch(self) -> None:
        cm, playwright, _, _ = _mock_playwright()
        fetcher = BrowserFetcher(FAST_SETTINGS)

        with patch("playwright.async_api.async_playwright", return_value=cm):
            with pytest.raises(InvalidUrlError):
                await fetcher.fetch("https://192.168.1.1/docs")

        playwright.chromium.launch.assert_not_called()


class TestBrowserFetcherCleanup:
    """Test suite for resource cleanup."""

    @pytest.mark.asyncio
    async def test_close_releases_browser(self) -> None:
        cm, playwright, browser, _ = _mock_playwright()
        fetcher = BrowserFetcher(FAST_SETTINGS)

        with patch("playwright.async_api.async_playwright", return_value=cm):
            await fetcher.fetch("https://acme.dev/docs")
        await fetcher.close()

        browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()
        assert fetcher._browser is None
        assert fetcher._playwright is None

    @pytest.mark.asyncio
    async def test_close_safe_when_not_started(self) -> None:
        fetcher = BrowserFetcher()
        await fetcher.close()
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_context_manager_cleanup(self) -> None:
        cm, _, browser, _ = _mock_playwright()

        with patch("playwright.async_api.async_playwright", return_value=cm):
            async with BrowserFetcher(FAST_SETTINGS) as fetcher:
                await fetcher.fetch("https://acme.dev/docs")

        browser.close.assert_awaited_once()
