"""Structure-aware strategy combining title, headings, lists and navigation.

Passes run from most to least specific and each one only runs when the
previous passes found too little:

1. Root product node from the page title
2. h2-h4 headings inside the main content region
3. List items and emphasised text (fewer than 3 nodes so far)
4. Links from the largest navigation container (fewer than 5 nodes so far)

Every node hangs directly off the root, so the result is always a tree.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any
from urllib.parse import urlparse

from docmap.services.extraction.base import (
    ExtractedNode,
    GenerationMetadata,
    GenerationStats,
    NodeType,
    ParseResult,
)
from docmap.services.extraction.config import HybridConfig
from docmap.services.extraction.dom import DocumentLoader, QueryableDocument, load_document
from docmap.services.extraction.graph import (
    GraphBuilder,
    derive_site_description,
    derive_site_title,
    is_meta_heading,
    ladder_confidence,
)
from docmap.services.extraction.utils import is_http_url, resolve_url, sanitize_text

logger = logging.getLogger(__name__)

_SENTENCE_END = re.compile(r"[.!?]")


def _word_pattern(words: tuple[str, ...]) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(re.escape(w) for w in words) + r")\b", re.IGNORECASE)


class HybridStrategy:
    """Extract a product/feature tree from a single documentation page."""

    name = "hybrid"

    def __init__(
        self,
        config: HybridConfig | None = None,
        loader: DocumentLoader = load_document,
    ) -> None:
        self.config = config or HybridConfig()
        self._load = loader
        self._call_to_action = _word_pattern(self.config.call_to_action_words)
        self._meta_link = _word_pattern(self.config.meta_link_words)

    def can_handle(self, html: str, url: str) -> bool:
        return bool(html and html.strip())

    def confidence(self) -> float:
        return self.config.prior_confidence

    async def parse(self, html: str, url: str) -> ParseResult:
        start_time = time.perf_counter()
        doc = self._load(html)
        builder = GraphBuilder()
        warnings: list[str] = []

        root = builder.add_root(
            derive_site_title(doc, url),
            description=derive_site_description(doc),
            source_selector="title",
        )

        main = self._find_main_content(doc)
        self._collect_headings(doc, main, builder, root)

        if len(builder) < self.config.list_pass_below:
            self._collect_list_items(doc, main, builder, root)

        if len(builder) < self.config.navigation_pass_below:
            self._collect_navigation(doc, url, builder, root)

        if len(builder) == 1:
            warnings.append("No features found beyond the page title")

        confidence = ladder_confidence(
            len(builder), self.config.confidence_ladder, self.config.default_confidence
        )

        logger.debug("Hybrid extracted %d nodes from %s", len(builder), url)

        return ParseResult(
            nodes=builder.nodes,
            edges=builder.edges,
            metadata=GenerationMetadata(
                source_url=url,
                strategy=self.name,
                confidence=confidence,
                warnings=warnings,
                stats=GenerationStats(
                    nodes_extracted=len(builder.nodes),
                    nodes_final=len(builder.nodes),
                    edges_extracted=len(builder.edges),
                    duration_ms=(time.perf_counter() - start_time) * 1000,
                ),
            ),
        )

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def _find_main_content(self, doc: QueryableDocument) -> Any | None:
        """Return the first element matching the main-content selectors, by priority."""
        for selector in self.config.main_content_selectors:
            matches = doc.select(selector)
            if matches:
                return matches[0]
        return None

    def _collect_headings(
        self,
        doc: QueryableDocument,
        main: Any | None,
        builder: GraphBuilder,
        root: ExtractedNode,
    ) -> None:
        cfg = self.config
        for heading in doc.select(cfg.heading_selector, scope=main):
            label = sanitize_text(doc.text(heading))
            if not (cfg.min_heading_length <= len(label) <= cfg.max_heading_length):
                continue

            lower = label.lower()
            if builder.has_label(label) or is_meta_heading(lower):
                continue

            node_type = (
                NodeType.COMPONENT
                if any(keyword in lower for keyword in cfg.component_keywords)
                else NodeType.FEATURE
            )
            builder.add_child(root, label, node_type, source_selector=doc.tag_name(heading))

    def _collect_list_items(
        self,
        doc: QueryableDocument,
        main: Any | None,
        builder: GraphBuilder,
        root: ExtractedNode,
    ) -> None:
        cfg = self.config
        candidates = []
        for element in doc.select(cfg.list_selector, scope=main):
            text = sanitize_text(doc.text(element))
            if cfg.min_list_length <= len(text) <= cfg.max_list_length:
                candidates.append((element, text))

        for element, text in candidates[: cfg.list_candidate_limit]:
            # First sentence or phrase only
            label = _SENTENCE_END.split(text, maxsplit=1)[0].strip()
            if not (cfg.min_list_length <= len(label) <= cfg.max_list_length):
                continue
            if builder.has_label(label) or self._call_to_action.search(label):
                continue

            builder.add_child(root, label, NodeType.FEATURE, source_selector=doc.tag_name(element))

    def _collect_navigation(
        self,
        doc: QueryableDocument,
        url: str,
        builder: GraphBuilder,
        root: ExtractedNode,
    ) -> None:
        cfg = self.config
        nav = self._find_navigation(doc)
        if nav is None:
            return

        links = []
        for link in doc.select("a", scope=nav):
            href = (doc.attr(link, "href") or "").strip()
            label = sanitize_text(doc.text(link))
            if href and cfg.min_link_length <= len(label) <= cfg.max_link_length:
                links.append((href, label))

        for href, label in links[: cfg.navigation_link_limit]:
            lower = label.lower()
            if builder.has_label(label):
                continue
            if lower in cfg.meta_link_labels or self._meta_link.search(lower):
                continue

            doc_url = resolve_url(href, url)
            if not is_http_url(doc_url):
                continue

            is_api = "api" in lower or "/api" in urlparse(doc_url).path.lower()
            builder.add_child(
                root,
                label,
                NodeType.COMPONENT if is_api else NodeType.FEATURE,
                doc_url=doc_url,
                source_selector="navigation",
            )

    def _find_navigation(self, doc: QueryableDocument) -> Any | None:
        """Return the navigation-like container holding the most links."""
        best = None
        max_links = 0
        for selector in self.config.navigation_selectors:
            for candidate in doc.select(selector):
                count = len(doc.select("a", scope=candidate))
                if count > max_links:
                    best, max_links = candidate, count
        return best
