"""Generic fallback strategy that scores arbitrary elements.

Every heading, link and button on the page gets a score built from five
components (position, styling, text length, link density, tag type).
The best-scoring elements are ranked into products, features and
components and wired together with low-confidence inferred edges.

This strategy never claims high confidence: its result confidence is
capped at 0.5, and its edges are not guaranteed to form a strict tree.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from docmap.services.extraction.base import (
    NODE_LEVELS,
    EdgeType,
    ExtractedEdge,
    ExtractedNode,
    GenerationMetadata,
    GenerationStats,
    NodeType,
    ParseResult,
)
from docmap.services.extraction.config import HeuristicConfig
from docmap.services.extraction.dom import DocumentLoader, QueryableDocument, load_document
from docmap.services.extraction.utils import generate_node_id, is_http_url, resolve_url, sanitize_text

logger = logging.getLogger(__name__)


@dataclass
class ScoredElement:
    """Candidate element with its combined score."""

    label: str
    tag: str
    score: float
    href: str | None = None


class HeuristicStrategy:
    """Score-based extraction that works on any non-empty HTML."""

    name = "heuristic"

    def __init__(
        self,
        config: HeuristicConfig | None = None,
        loader: DocumentLoader = load_document,
    ) -> None:
        self.config = config or HeuristicConfig()
        self._load = loader

    def can_handle(self, html: str, url: str) -> bool:
        return bool(html)

    def confidence(self) -> float:
        return self.config.prior_confidence

    async def parse(self, html: str, url: str) -> ParseResult:
        start_time = time.perf_counter()
        warnings: list[str] = []

        doc = self._load(html)
        scored = self.score_elements(doc, url)

        top_elements = sorted(
            (element for element in scored if element.score > self.config.score_threshold),
            key=lambda element: element.score,
            reverse=True,
        )[: self.config.max_nodes]

        if not top_elements:
            warnings.append("No elements scored above threshold")

        nodes = self._elements_to_nodes(top_elements)
        edges = self._infer_edges(nodes)
        confidence = self._calculate_confidence(nodes, edges)

        logger.debug(
            "Heuristic scored %d elements, kept %d nodes and %d edges",
            len(scored),
            len(nodes),
            len(edges),
        )

        return ParseResult(
            nodes=nodes,
            edges=edges,
            metadata=GenerationMetadata(
                source_url=url,
                strategy=self.name,
                confidence=confidence,
                warnings=warnings,
                stats=GenerationStats(
                    nodes_extracted=len(nodes),
                    nodes_final=len(nodes),
                    edges_extracted=len(edges),
                    duration_ms=(time.perf_counter() - start_time) * 1000,
                ),
            ),
        )

    # ------------------------------------------------------------------
    # Element scoring
    # ------------------------------------------------------------------

    def score_elements(self, doc: QueryableDocument, url: str) -> list[ScoredElement]:
        """Score every candidate element in document order."""
        cfg = self.config
        scored: list[ScoredElement] = []

        for element in doc.select(cfg.candidate_selector):
            label = sanitize_text(doc.text(element))
            if not (cfg.min_label_length <= len(label) <= cfg.max_label_length):
                continue

            tag = doc.tag_name(element)
            # Rounded so that sums landing on the threshold compare exactly
            score = round(
                self._score_position(doc, element)
                + self._score_styling(doc, element, tag)
                + self._score_text_length(label)
                + self._score_link_density(doc, element, tag)
                + cfg.tag_scores.get(tag, cfg.default_tag_score),
                6,
            )

            href = doc.attr(element, "href")
            doc_url = None
            if href and not href.startswith("#"):
                resolved = resolve_url(href, url)
                doc_url = resolved if is_http_url(resolved) else None

            scored.append(ScoredElement(label=label, tag=tag, score=score, href=doc_url))

        return scored

    def _score_position(self, doc: QueryableDocument, element: Any) -> float:
        cfg = self.config
        if doc.closest(element, cfg.navigation_regions) is not None:
            return cfg.position_navigation
        if doc.closest(element, cfg.main_regions) is not None:
            return cfg.position_main
        if doc.closest(element, cfg.footer_regions) is not None:
            return cfg.position_footer
        return cfg.position_default

    def _score_styling(self, doc: QueryableDocument, element: Any, tag: str) -> float:
        score = 0.0
        if doc.closest(element, ("strong", "b")) is not None:
            score += self.config.bold_bonus
        return score + self.config.heading_bonus.get(tag, 0.0)

    def _score_text_length(self, label: str) -> float:
        cfg = self.config
        length = len(label)
        low, high = cfg.optimal_length
        if low <= length <= high:
            return cfg.length_optimal_score
        low, high = cfg.acceptable_length
        if low <= length <= high:
            return cfg.length_acceptable_score
        return cfg.length_default_score

    def _score_link_density(self, doc: QueryableDocument, element: Any, tag: str) -> float:
        cfg = self.config
        if tag == "a":
            return cfg.self_link_score

        links = len(doc.select("a", scope=element))
        if links > 0:
            return min(cfg.max_link_score, links * cfg.per_link_score)
        return 0.0

    # ------------------------------------------------------------------
    # Nodes and edges
    # ------------------------------------------------------------------

    def _elements_to_nodes(self, elements: list[ScoredElement]) -> list[ExtractedNode]:
        nodes: dict[str, ExtractedNode] = {}
        total = len(elements)

        for index, element in enumerate(elements):
            if index < total * self.config.product_share:
                node_type = NodeType.PRODUCT
            elif index < total * self.config.feature_share:
                node_type = NodeType.FEATURE
            else:
                node_type = NodeType.COMPONENT

            node_id = generate_node_id(element.label, node_type)
            if node_id in nodes:
                continue

            nodes[node_id] = ExtractedNode(
                id=node_id,
                type=node_type,
                label=element.label,
                doc_url=element.href,
                level=NODE_LEVELS[node_type],
                source_selector=element.tag,
            )

        return list(nodes.values())

    def _infer_edges(self, nodes: list[ExtractedNode]) -> list[ExtractedEdge]:
        products = [n for n in nodes if n.type is NodeType.PRODUCT]
        features = [n for n in nodes if n.type is NodeType.FEATURE]
        components = [n for n in nodes if n.type is NodeType.COMPONENT]

        if not products:
            return []

        edges: list[ExtractedEdge] = []
        root = products[0]
        for feature in features:
            edges.append(self._edge(root, feature, self.config.feature_edge_confidence))

        component_parent = features[0] if features else root
        for component in components:
            edges.append(
                self._edge(component_parent, component, self.config.component_edge_confidence)
            )

        return edges

    @staticmethod
    def _edge(source: ExtractedNode, target: ExtractedNode, confidence: float) -> ExtractedEdge:
        return ExtractedEdge(
            id=f"{source.id}-{target.id}",
            source=source.id,
            target=target.id,
            type=EdgeType.HIERARCHY,
            confidence=confidence,
            inference_method="hierarchy",
        )

    def _calculate_confidence(
        self, nodes: list[ExtractedNode], edges: list[ExtractedEdge]
    ) -> float:
        cfg = self.config
        if not nodes:
            return cfg.empty_confidence

        types = {node.type for node in nodes}
        confidence = cfg.base_confidence
        if edges:
            confidence += cfg.edges_bonus
        if NodeType.PRODUCT in types and NodeType.FEATURE in types:
            confidence += cfg.product_feature_bonus
        if NodeType.COMPONENT in types:
            confidence += cfg.component_bonus

        return min(confidence, cfg.max_confidence)
