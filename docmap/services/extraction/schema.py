"""Schema strategy for pages that describe their own structure.

Two sources are understood:

1. An OpenAPI / Swagger document embedded as ``application/json`` script.
   The API title is the product, tags are features and operations are
   components of their first tag.
2. A page advertising a sitemap via ``<link rel="sitemap">``. Same-site
   links become features at the shallowest path depth and components
   below the feature whose path they extend.
"""

from __future__ import annotations

import html as html_lib
import json
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
from docmap.services.extraction.config import SchemaConfig
from docmap.services.extraction.dom import DocumentLoader, QueryableDocument, load_document
from docmap.services.extraction.graph import (
    GraphBuilder,
    derive_site_description,
    derive_site_title,
)
from docmap.services.extraction.utils import (
    is_http_url,
    resolve_url,
    sanitize_text,
    truncate_description,
)

logger = logging.getLogger(__name__)

_OPENAPI_MARKER = re.compile(r'(?:"|&quot;)(?:openapi|swagger)(?:"|&quot;)\s*:', re.IGNORECASE)
_SITEMAP_LINK = re.compile(r"<link\b[^>]*\brel\s*=\s*[\"']?sitemap\b", re.IGNORECASE)


class SchemaStrategy:
    """Build the map from an embedded OpenAPI document or a sitemap link."""

    name = "schema"

    def __init__(
        self,
        config: SchemaConfig | None = None,
        loader: DocumentLoader = load_document,
    ) -> None:
        self.config = config or SchemaConfig()
        self._load = loader

    def can_handle(self, html: str, url: str) -> bool:
        if not html:
            return False
        return bool(_OPENAPI_MARKER.search(html) or _SITEMAP_LINK.search(html))

    def confidence(self) -> float:
        return self.config.prior_confidence

    async def parse(self, html: str, url: str) -> ParseResult:
        start_time = time.perf_counter()
        doc = self._load(html)
        builder = GraphBuilder()
        warnings: list[str] = []

        api_document = self.find_openapi_document(doc)
        if api_document is not None:
            self._parse_openapi(doc, api_document, url, builder)
            if len(builder) == 1:
                warnings.append("OpenAPI document has no tags or operations")
        elif doc.select('link[rel="sitemap"]'):
            self._parse_sitemap(doc, url, builder)
            if len(builder) == 1:
                warnings.append("No same-site documentation links found for the sitemap")
        else:
            warnings.append("No parseable OpenAPI document or sitemap link found")

        confidence = self._calculate_confidence(builder)
        logger.debug("Schema extracted %d nodes from %s", len(builder), url)

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
    # OpenAPI
    # ------------------------------------------------------------------

    def find_openapi_document(self, doc: QueryableDocument) -> dict[str, Any] | None:
        """Return the first embedded JSON object with an openapi/swagger key."""
        for script in doc.select(self.config.script_selector):
            text = doc.text(script).strip()
            if not text:
                continue
            try:
                data = json.loads(text)
            except json.JSONDecodeError:
                # Some generators entity-encode the payload
                try:
                    data = json.loads(html_lib.unescape(text))
                except json.JSONDecodeError as e:
                    logger.debug("Skipping invalid JSON script block: %s", e)
                    continue
            if isinstance(data, dict) and ("openapi" in data or "swagger" in data):
                return data
        return None

    def _parse_openapi(
        self,
        doc: QueryableDocument,
        api_document: dict[str, Any],
        url: str,
        builder: GraphBuilder,
    ) -> None:
        info = api_document.get("info")
        info = info if isinstance(info, dict) else {}
        title = info.get("title") if isinstance(info.get("title"), str) else ""
        description = info.get("description") if isinstance(info.get("description"), str) else ""

        root = builder.add_root(
            title or derive_site_title(doc, url),
            description=truncate_description(description) or derive_site_description(doc),
            doc_url=url if is_http_url(url) else None,
            source_selector=self.config.script_selector,
        )

        features: dict[str, ExtractedNode] = {}

        def feature_for(tag_name: str, tag_description: str = "") -> ExtractedNode | None:
            key = sanitize_text(tag_name).lower()
            if key in features:
                return features[key]
            if not self._label_in_range(tag_name):
                return None
            node = builder.add_node(
                tag_name,
                NodeType.FEATURE,
                description=truncate_description(tag_description),
                source_selector="tags",
            )
            if node is not None:
                builder.link(
                    root,
                    node,
                    confidence=self.config.tagged_edge_confidence,
                    inference_method="explicit",
                )
                features[key] = node
            return node

        tags = api_document.get("tags")
        for tag in tags if isinstance(tags, list) else []:
            if isinstance(tag, dict) and isinstance(tag.get("name"), str):
                tag_description = tag.get("description")
                feature_for(
                    tag["name"], tag_description if isinstance(tag_description, str) else ""
                )

        paths = api_document.get("paths")
        for path, operations in (paths if isinstance(paths, dict) else {}).items():
            if not isinstance(operations, dict):
                continue
            method = next(
                (
                    key
                    for key, value in operations.items()
                    if key.lower() in self.config.http_methods and isinstance(value, dict)
                ),
                None,
            )
            if method is None:
                continue

            operation = operations[method]
            label = next(
                (
                    value
                    for value in (operation.get("summary"), operation.get("operationId"), path)
                    if isinstance(value, str) and value.strip()
                ),
                path,
            )
            if not self._label_in_range(label):
                continue

            op_description = operation.get("description")
            if not isinstance(op_description, str) or not op_description.strip():
                op_description = f"{method.upper()} {path}"

            op_tags = operation.get("tags")
            parent = None
            if isinstance(op_tags, list) and op_tags and isinstance(op_tags[0], str):
                parent = feature_for(op_tags[0])

            node = builder.add_node(
                label,
                NodeType.COMPONENT,
                description=truncate_description(op_description),
                source_selector=f"paths.{path}",
            )
            if node is None:
                continue
            if parent is not None:
                builder.link(
                    parent,
                    node,
                    confidence=self.config.tagged_edge_confidence,
                    inference_method="explicit",
                )
            else:
                builder.link(root, node, confidence=self.config.component_edge_confidence)

    # ------------------------------------------------------------------
    # Sitemap
    # ------------------------------------------------------------------

    def _parse_sitemap(self, doc: QueryableDocument, url: str, builder: GraphBuilder) -> None:
        root = builder.add_root(
            derive_site_title(doc, url),
            description=derive_site_description(doc),
            source_selector="title",
        )
        site = urlparse(url).netloc.lower()

        candidates: list[tuple[tuple[str, ...], str, str]] = []
        seen_paths: set[tuple[str, ...]] = set()
        for link in doc.select("a[href]"):
            label = sanitize_text(doc.text(link))
            if not self._label_in_range(label):
                continue

            absolute = resolve_url(doc.attr(link, "href") or "", url)
            parsed = urlparse(absolute)
            if not is_http_url(absolute) or parsed.netloc.lower() != site:
                continue

            segments = tuple(s for s in parsed.path.split("/") if s)
            if not segments or segments in seen_paths:
                continue
            seen_paths.add(segments)
            candidates.append((segments, label, absolute))

        if not candidates:
            return

        feature_depth = min(len(segments) for segments, _, _ in candidates)
        features: list[tuple[tuple[str, ...], ExtractedNode]] = []

        for segments, label, absolute in candidates:
            if len(segments) != feature_depth:
                continue
            node = builder.add_node(
                label, NodeType.FEATURE, doc_url=absolute, source_selector="a[href]"
            )
            if node is not None:
                builder.link(root, node, confidence=self.config.feature_edge_confidence)
                features.append((segments, node))

        for segments, label, absolute in candidates:
            if len(segments) == feature_depth:
                continue
            parent = next(
                (node for prefix, node in features if segments[: len(prefix)] == prefix),
                root,
            )
            node = builder.add_node(
                label, NodeType.COMPONENT, doc_url=absolute, source_selector="a[href]"
            )
            if node is not None:
                builder.link(parent, node, confidence=self.config.component_edge_confidence)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _label_in_range(self, label: str) -> bool:
        length = len(sanitize_text(label))
        return self.config.min_label_length <= length <= self.config.max_label_length

    def _calculate_confidence(self, builder: GraphBuilder) -> float:
        cfg = self.config
        if len(builder) <= 1:
            return cfg.empty_confidence

        types = {node.type for node in builder.nodes}
        confidence = cfg.base_confidence
        if builder.edges:
            confidence += cfg.edges_bonus
        if NodeType.PRODUCT in types and NodeType.FEATURE in types:
            confidence += cfg.product_feature_bonus
        if NodeType.COMPONENT in types:
            confidence += cfg.component_bonus
        return round(min(confidence, cfg.max_confidence), 6)
