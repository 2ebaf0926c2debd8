"""Graph assembly helpers shared by the single-page and deep-crawl strategies."""

from __future__ import annotations

import re
from typing import Iterable
from urllib.parse import urlparse

from docmap.services.extraction.base import (
    NODE_LEVELS,
    EdgeType,
    ExtractedEdge,
    ExtractedNode,
    InferenceMethod,
    NodeType,
)
from docmap.services.extraction.dom import QueryableDocument
from docmap.services.extraction.utils import generate_node_id, sanitize_text, truncate_description

# Headings that describe page furniture rather than product features
META_HEADING_PHRASES: tuple[str, ...] = (
    "table of contents",
    "on this page",
    "related",
    "see also",
    "next steps",
)
META_HEADING_PREFIXES: tuple[str, ...] = ("step ",)
_NUMBERED_HEADING = re.compile(r"^\d+[.)]")

# Trailing "| Site" and " - Site" segments in page titles
_TITLE_PIPE_SUFFIX = re.compile(r"\s*\|\s*.*$")
_TITLE_DASH_SUFFIX = re.compile(r"\s+[-–—]\s+.*$")
_TITLE_GENERIC_SUFFIX = re.compile(r"\s*\b(?:GitHub|Documentation|Docs)\s*$", re.IGNORECASE)


def is_meta_heading(
    lower_label: str,
    extra_phrases: Iterable[str] = (),
    extra_prefixes: Iterable[str] = (),
) -> bool:
    """Return True for navigation/meta headings such as "On this page" or "Step 2"."""
    phrases = (*META_HEADING_PHRASES, *extra_phrases)
    prefixes = (*META_HEADING_PREFIXES, *extra_prefixes)

    if any(phrase in lower_label for phrase in phrases):
        return True
    if lower_label.startswith(prefixes):
        return True
    return bool(_NUMBERED_HEADING.match(lower_label))


def clean_site_title(title: str) -> str:
    """Strip "| site", "- site" and generic documentation suffixes from a title."""
    cleaned = _TITLE_PIPE_SUFFIX.sub("", title)
    cleaned = _TITLE_DASH_SUFFIX.sub("", cleaned)
    # "Acme Docs Documentation" and similar stacked suffixes
    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = _TITLE_GENERIC_SUFFIX.sub("", cleaned)
    return cleaned.strip()


def _first_text(doc: QueryableDocument, selector: str) -> str:
    matches = doc.select(selector)
    return sanitize_text(doc.text(matches[0])) if matches else ""


def _first_attr(doc: QueryableDocument, selector: str, name: str) -> str:
    matches = doc.select(selector)
    return sanitize_text(doc.attr(matches[0], name)) if matches else ""


def derive_site_title(doc: QueryableDocument, url: str) -> str:
    """Pick the root product label for a page.

    Tries ``<title>``, ``og:title`` and the first ``<h1>`` in that order and
    returns the first one that is still non-empty after suffix cleanup.
    Falls back to the URL hostname.
    """
    candidates = (
        _first_text(doc, "title"),
        _first_attr(doc, 'meta[property="og:title"]', "content"),
        _first_text(doc, "h1"),
    )
    for candidate in candidates:
        cleaned = clean_site_title(candidate)
        if cleaned:
            return cleaned

    return urlparse(url).hostname or url or "Documentation"


def derive_site_description(doc: QueryableDocument, max_length: int = 200) -> str:
    """Return the page meta description, truncated."""
    return truncate_description(_first_attr(doc, 'meta[name="description"]', "content"), max_length)


def ladder_confidence(
    node_count: int, ladder: Iterable[tuple[int, float]], default: float
) -> float:
    """Map a node count onto the first matching (minimum, confidence) rung."""
    for minimum, confidence in ladder:
        if node_count >= minimum:
            return confidence
    return default


class GraphBuilder:
    """Accumulates nodes and hierarchy edges for a single extraction run.

    Labels are deduplicated case-insensitively and ids are kept unique, so
    two labels that only differ in punctuation never produce colliding ids.
    A fresh builder is created for every call; nothing is shared between runs.
    """

    def __init__(self) -> None:
        self.nodes: list[ExtractedNode] = []
        self.edges: list[ExtractedEdge] = []
        self._seen_labels: set[str] = set()
        self._seen_ids: set[str] = set()

    def __len__(self) -> int:
        return len(self.nodes)

    def has_label(self, label: str) -> bool:
        return sanitize_text(label).lower() in self._seen_labels

    def add_node(
        self,
        label: str,
        node_type: NodeType,
        *,
        description: str = "",
        doc_url: str | None = None,
        source_selector: str | None = None,
    ) -> ExtractedNode | None:
        """Add a node unless its label or id was already used.

        Returns:
            The new node, or None when it was a duplicate or had no text.
        """
        clean_label = sanitize_text(label)
        if not clean_label:
            return None

        key = clean_label.lower()
        if key in self._seen_labels:
            return None

        node_id = generate_node_id(clean_label, node_type)
        if node_id in self._seen_ids:
            return None

        node = ExtractedNode(
            id=node_id,
            type=node_type,
            label=clean_label,
            description=description,
            doc_url=doc_url,
            level=NODE_LEVELS[node_type],
            source_selector=source_selector,
        )
        self._seen_labels.add(key)
        self._seen_ids.add(node_id)
        self.nodes.append(node)
        return node

    def add_root(self, label: str, **kwargs) -> ExtractedNode:
        """Add the product root, which must be the first node of the run.

        An empty label falls back to "Documentation".

        Raises:
            ValueError: If nodes were already added
        """
        if self.nodes:
            raise ValueError("The root must be the first node added")
        node = self.add_node(sanitize_text(label) or "Documentation", NodeType.PRODUCT, **kwargs)
        if node is None:
            raise ValueError(f"Could not add root node {label!r}")
        return node

    def link(
        self,
        parent: ExtractedNode,
        child: ExtractedNode,
        *,
        confidence: float | None = None,
        inference_method: InferenceMethod | None = "hierarchy",
    ) -> ExtractedEdge:
        edge = ExtractedEdge(
            id=f"edge-{parent.id}-{child.id}",
            source=parent.id,
            target=child.id,
            type=EdgeType.HIERARCHY,
            confidence=confidence,
            inference_method=inference_method,
        )
        self.edges.append(edge)
        return edge

    def add_child(
        self,
        parent: ExtractedNode,
        label: str,
        node_type: NodeType,
        **kwargs,
    ) -> ExtractedNode | None:
        """Add a node and link it under ``parent`` in one step."""
        node = self.add_node(label, node_type, **kwargs)
        if node is not None:
            self.link(parent, node)
        return node
