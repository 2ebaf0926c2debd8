"""Exception hierarchy for documentation extraction."""

from __future__ import annotations


class ExtractionError(Exception):
    """Base exception for all extraction errors."""

    pass


class InvalidUrlError(ExtractionError):
    """Raised when a URL is rejected before any request is made."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class FetchError(ExtractionError):
    """Raised when a page cannot be retrieved (network failure or non-200 status)."""

    def __init__(self, message: str, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class RateLimitError(FetchError):
    """Raised when HTTP 429 is received."""

    pass


class ContentTooLargeError(FetchError):
    """Raised when a response body exceeds the size limit."""

    pass


class ContentTypeError(FetchError):
    """Raised when a response is not HTML."""

    pass
