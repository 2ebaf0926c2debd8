"""Plain HTTP page fetcher built on httpx."""

from __future__ import annotations

import logging
from urllib.parse import urljoin

import httpx

from docmap.core.config import Settings, settings as default_settings
from docmap.services.extraction.base import FetchResult
from docmap.services.extraction.exceptions import (
    ContentTooLargeError,
    ContentTypeError,
    FetchError,
    InvalidUrlError,
    RateLimitError,
)
from docmap.services.extraction.utils import validate_url

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


def is_html_content_type(content_type: str) -> bool:
    """Check if a Content-Type header value is HTML."""
    ct_lower = content_type.lower()
    return "text/html" in ct_lower or "application/xhtml" in ct_lower


class HttpFetcher:
    """Fetch documentation pages over HTTPS.

    Redirects are followed by hand so that every hop is validated against
    the same rules as the original URL. The underlying client is created on
    first use and reused for every page of a crawl.

    Usage:
        async with HttpFetcher() as fetcher:
            page = await fetcher("https://docs.example.com")
            print(page.url, len(page.html))
    """

    def __init__(self, config: Settings | None = None) -> None:
        self.config = config or default_settings
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.fetch_timeout_seconds),
                follow_redirects=False,
                headers={
                    "User-Agent": self.config.user_agent,
                    "Accept": ACCEPT_HEADER,
                },
            )
        return self._client

    async def __call__(self, url: str) -> FetchResult:
        return await self.fetch(url)

    async def fetch(self, url: str) -> FetchResult:
        """Fetch a page and return its HTML.

        Args:
            url: HTTPS URL to fetch

        Returns:
            FetchResult with the final URL after redirects

        Raises:
            InvalidUrlError: If the URL or a redirect target is rejected
            RateLimitError: If HTTP 429 is received
            ContentTooLargeError: If the body exceeds fetch_max_bytes
            ContentTypeError: If the response is not HTML
            FetchError: On timeouts, network errors and other error statuses
        """
        validate_url(url)

        current_url = url
        max_redirects = self.config.fetch_max_redirects
        for _ in range(max_redirects + 1):
            response = await self._get(current_url)
            if response.status_code not in REDIRECT_STATUSES:
                return self._to_result(response, current_url)

            location = response.headers.get("location")
            if not location:
                raise FetchError(
                    "Redirect response missing Location header",
                    current_url,
                    status_code=response.status_code,
                )

            next_url = urljoin(current_url, location)
            try:
                validate_url(next_url)
            except InvalidUrlError as e:
                raise InvalidUrlError(f"Redirect URL invalid: {e}", next_url) from e

            logger.debug("Following redirect %s -> %s", current_url, next_url)
            current_url = next_url

        raise FetchError(f"Too many redirects (max {max_redirects})", url)

    async def _get(self, url: str) -> httpx.Response:
        try:
            return await self.client.get(url)
        except httpx.TimeoutException as e:
            raise FetchError(
                f"Timeout fetching {url} after {self.config.fetch_timeout_seconds}s", url
            ) from e
        except httpx.RequestError as e:
            raise FetchError(f"Network error fetching {url}: {e}", url) from e

    def _to_result(self, response: httpx.Response, url: str) -> FetchResult:
        status = response.status_code
        if status == 429:
            raise RateLimitError(f"Rate limited by {url}", url, status_code=status)
        if status == 404:
            raise FetchError("Documentation not found (404)", url, status_code=status)
        if status == 403:
            raise FetchError("Access forbidden (403)", url, status_code=status)
        if status >= 400:
            raise FetchError(f"HTTP error {status} from {url}", url, status_code=status)

        content_length = len(response.content)
        if content_length > self.config.fetch_max_bytes:
            raise ContentTooLargeError(
                f"Content size {content_length} exceeds maximum {self.config.fetch_max_bytes}",
                url,
                status_code=status,
            )

        content_type = response.headers.get("content-type") or "text/html"
        if not is_html_content_type(content_type):
            raise ContentTypeError(
                f"Unsupported content type: {content_type}", url, status_code=status
            )

        logger.debug("Fetched %d bytes from %s", content_length, url)
        return FetchResult(
            url=url,
            html=response.text,
            status_code=status,
            content_type=content_type,
        )

    async def close(self) -> None:
        """Close the HTTP client. Safe to call multiple times."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpFetcher:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - ensures cleanup."""
        await self.close()
