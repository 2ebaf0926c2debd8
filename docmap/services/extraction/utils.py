"""Text, identifier and URL helpers shared by every strategy."""

from __future__ import annotations

import hashlib
import html
import ipaddress
import re
from urllib.parse import urljoin, urlparse

from docmap.services.extraction.base import NodeType
from docmap.services.extraction.exceptions import InvalidUrlError

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_ZERO_WIDTH_CHARS = re.compile(r"[\u200b-\u200f\u2060\ufeff]")
_WHITESPACE = re.compile(r"\s+")
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_REPEATED_HYPHENS = re.compile(r"-+")

BLOCKED_HOSTNAMES = frozenset({"localhost", "localhost.localdomain", "0.0.0.0"})


def sanitize_text(text: str | None) -> str:
    """Decode HTML entities, strip control and zero-width characters, collapse whitespace."""
    if not text or not isinstance(text, str):
        return ""

    cleaned = html.unescape(text)
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    cleaned = _ZERO_WIDTH_CHARS.sub("", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def generate_node_id(label: str, node_type: NodeType | str) -> str:
    """Build a deterministic node id from a label and node type.

    The id is ``{type}-{slug}`` where the slug is the lowercased label with
    punctuation removed and whitespace turned into hyphens. Labels with no
    ASCII letters or digits fall back to a short SHA-1 digest of the label so
    that distinct non-Latin labels never collapse onto the same id.

    Args:
        label: Node label text
        node_type: Node type, embedded in the id as a discriminator

    Returns:
        Stable node id string

    Raises:
        ValueError: If label or type is empty
    """
    if not label or not isinstance(label, str):
        raise ValueError("Label must be a non-empty string")

    type_value = node_type.value if isinstance(node_type, NodeType) else node_type
    if not type_value or not isinstance(type_value, str):
        raise ValueError("Type must be a non-empty string")

    normalized = sanitize_text(label).lower()
    if not normalized:
        raise ValueError("Label must contain visible text")

    slug = _NON_SLUG_CHARS.sub("", normalized)
    slug = _WHITESPACE.sub("-", slug)
    slug = _REPEATED_HYPHENS.sub("-", slug).strip("-")

    if not slug:
        slug = hashlib.sha1(normalized.encode("utf-8")).hexdigest()[:10]

    return f"{type_value}-{slug}"


def truncate_description(text: str | None, max_length: int = 200) -> str:
    """Sanitize and truncate text, breaking at a word boundary when possible."""
    if max_length <= 0:
        raise ValueError("max_length must be greater than 0")

    sanitized = sanitize_text(text)
    if len(sanitized) <= max_length:
        return sanitized

    truncated = sanitized[:max_length]
    last_space = truncated.rfind(" ")

    # Only break at the space if it keeps most of the text
    if last_space > max_length * 0.8:
        return truncated[:last_space] + "..."

    return truncated + "..."


def resolve_url(href: str, base_url: str) -> str:
    """Resolve a possibly relative href against the page URL."""
    return urljoin(base_url, href.strip())


def is_http_url(url: str) -> bool:
    """Return True for absolute http(s) URLs."""
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _is_private_host(hostname: str) -> bool:
    if hostname in BLOCKED_HOSTNAMES:
        return True

    try:
        address = ipaddress.ip_address(hostname.strip("[]"))
    except ValueError:
        return False

    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
        or address.is_reserved
    )


def validate_url(url: str) -> None:
    """Check that a URL is safe to fetch.

    Requires HTTPS and a public hostname (no localhost, loopback or
    private network addresses).

    Raises:
        InvalidUrlError: If the URL is rejected
    """
    if not url or not isinstance(url, str):
        raise InvalidUrlError("URL must be a non-empty string", str(url))

    try:
        parsed = urlparse(url)
        hostname = (parsed.hostname or "").lower()
    except ValueError as e:
        raise InvalidUrlError(f"Failed to parse URL: {e}", url) from e

    if parsed.scheme != "https":
        raise InvalidUrlError("Invalid URL. Must be a valid HTTPS URL.", url)

    if not hostname:
        raise InvalidUrlError("URL has no hostname", url)

    if _is_private_host(hostname):
        raise InvalidUrlError(
            "URL points to a blocked domain (localhost, loopback or private network).",
            url,
        )


def is_valid_url(url: str | None) -> bool:
    """Return True if ``validate_url`` accepts the URL."""
    try:
        validate_url(url or "")
    except InvalidUrlError:
        return False
    return True

