"""Page fetchers implementing the extraction FetchFn contract.

HttpFetcher performs plain HTTPS requests; BrowserFetcher renders
JavaScript-heavy sites with Playwright. Both are async callables
``(url) -> FetchResult`` and async context managers.
"""

from __future__ import annotations

from docmap.core.config import Settings, settings as default_settings
from docmap.services.fetchers.browser_fetcher import BrowserFetcher
from docmap.services.fetchers.http_fetcher import HttpFetcher


def create_fetcher(config: Settings | None = None) -> HttpFetcher | BrowserFetcher:
    """Return the fetcher selected by ``fetch_with_browser``."""
    config = config or default_settings
    if config.fetch_with_browser:
        return BrowserFetcher(config)
    return HttpFetcher(config)


__all__ = ["BrowserFetcher", "HttpFetcher", "create_fetcher"]
