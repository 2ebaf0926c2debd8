"""Template strategy for documentation platforms with a known navigation layout.

The page URL selects a platform template (AWS, Stripe, GitHub). Items of
the platform's sidebar list become features under the page title, and the
items of each nested list become components of the enclosing feature.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any

from docmap.services.extraction.base import (
    ExtractedNode,
    GenerationMetadata,
    GenerationStats,
    NodeType,
    ParseResult,
)
from docmap.services.extraction.config import PlatformTemplate, TemplateConfig
from docmap.services.extraction.dom import DocumentLoader, QueryableDocument, load_document
from docmap.services.extraction.graph import (
    GraphBuilder,
    derive_site_description,
    derive_site_title,
)
from docmap.services.extraction.utils import is_http_url, resolve_url, sanitize_text

logger = logging.getLogger(__name__)


class TemplateStrategy:
    """Read the sidebar of a recognised documentation platform."""

    name = "template"

    def __init__(
        self,
        config: TemplateConfig | None = None,
        loader: DocumentLoader = load_document,
    ) -> None:
        self.config = config or TemplateConfig()
        self._load = loader
        self._patterns = [
            (re.compile(platform.url_pattern, re.IGNORECASE), platform)
            for platform in self.config.platforms
        ]

    def match_platform(self, url: str) -> PlatformTemplate | None:
        for pattern, platform in self._patterns:
            if pattern.search(url or ""):
                return platform
        return None

    def can_handle(self, html: str, url: str) -> bool:
        return bool(html and html.strip()) and self.match_platform(url) is not None

    def confidence(self) -> float:
        return self.config.prior_confidence

    async def parse(self, html: str, url: str) -> ParseResult:
        start_time = time.perf_counter()
        platform = self.match_platform(url)
        if platform is None:
            raise ValueError(f"No platform template matches {url}")

        doc = self._load(html)
        builder = GraphBuilder()
        warnings: list[str] = []

        root = builder.add_root(
            derive_site_title(doc, url),
            description=derive_site_description(doc),
            source_selector="title",
        )

        selector = ", ".join(platform.navigation_selectors)
        for container in doc.select(selector):
            for item in doc.select(self.config.section_selector, scope=container):
                feature = self._add_item(doc, item, url, builder, root, NodeType.FEATURE)
                for sub_item in doc.select(self.config.section_selector, scope=item):
                    self._add_item(
                        doc, sub_item, url, builder, feature or root, NodeType.COMPONENT
                    )

        if len(builder) == 1:
            warnings.append(
                f"No navigation items found using {platform.name} template selectors"
            )
            confidence = self.config.empty_confidence
        else:
            confidence = self.config.prior_confidence

        logger.debug(
            "Template %s extracted %d nodes from %s", platform.name, len(builder), url
        )

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

    def _add_item(
        self,
        doc: QueryableDocument,
        item: Any,
        url: str,
        builder: GraphBuilder,
        parent: ExtractedNode,
        node_type: NodeType,
    ) -> ExtractedNode | None:
        """Add the first link of a list item under ``parent``."""
        links = doc.select("a", scope=item)
        if not links:
            return None

        link = links[0]
        label = sanitize_text(doc.text(link))
        if len(label) < self.config.min_label_length:
            return None

        href = doc.attr(link, "href")
        doc_url = resolve_url(href, url) if href else None
        if doc_url and not is_http_url(doc_url):
            doc_url = None

        node = builder.add_node(
            label, node_type, doc_url=doc_url, source_selector=self.config.section_selector
        )
        if node is not None:
            builder.link(
                parent, node, confidence=self.config.edge_confidence, inference_method="explicit"
            )
        return node
