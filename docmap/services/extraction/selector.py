"""Strategy selection and the parse_documentation entry point.

Strategies are tried from most to least specific:

1. DeepCrawlStrategy (only when deep crawling was requested)
2. TemplateStrategy (known documentation platforms)
3. SchemaStrategy (embedded OpenAPI document or sitemap link)
4. HybridStrategy
5. HeuristicStrategy (handles any non-empty HTML)

The first result with enough nodes wins. If none reaches that bar, the
richest result is returned with a warning instead of failing outright.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace

from docmap.services.extraction.base import (
    FetchFn,
    GenerationMetadata,
    GenerationStats,
    ParseResult,
    ParsingStrategy,
)
from docmap.services.extraction.config import ExtractionConfig
from docmap.services.extraction.deep_crawl import DeepCrawlStrategy
from docmap.services.extraction.exceptions import FetchError
from docmap.services.extraction.heuristic import HeuristicStrategy
from docmap.services.extraction.hybrid import HybridStrategy
from docmap.services.extraction.schema import SchemaStrategy
from docmap.services.extraction.template import TemplateStrategy
from docmap.services.extraction.validators import (
    deduplicate_nodes,
    filter_nodes,
    prune_edges,
    sanitize_nodes,
    update_edge_references,
)

logger = logging.getLogger(__name__)


def build_strategies(
    *,
    deep_crawl: bool = False,
    fetch: FetchFn | None = None,
    max_pages: int | None = None,
    config: ExtractionConfig | None = None,
) -> list[ParsingStrategy]:
    """Return fresh strategy instances in priority order.

    Raises:
        ValueError: If deep crawling is requested without a fetch capability
    """
    cfg = config or ExtractionConfig()
    strategies: list[ParsingStrategy] = []

    if deep_crawl:
        if fetch is None:
            raise ValueError("deep_crawl requires a fetch function")
        strategies.append(DeepCrawlStrategy(fetch, max_pages=max_pages, config=cfg.deep_crawl))

    strategies.append(TemplateStrategy(cfg.template))
    strategies.append(SchemaStrategy(cfg.schema))
    strategies.append(HybridStrategy(cfg.hybrid))
    strategies.append(HeuristicStrategy(cfg.heuristic))
    return strategies


def get_available_strategies() -> list[str]:
    return [
        DeepCrawlStrategy.name,
        TemplateStrategy.name,
        SchemaStrategy.name,
        HybridStrategy.name,
        HeuristicStrategy.name,
    ]


def detect_strategy(html: str, url: str) -> str | None:
    """Name of the single-page strategy that would handle this page first."""
    for strategy in build_strategies():
        if strategy.can_handle(html, url):
            return strategy.name
    return None


def _empty_result(url: str, warning: str) -> ParseResult:
    return ParseResult(
        nodes=[],
        edges=[],
        metadata=GenerationMetadata(
            source_url=url, strategy="none", confidence=0.0, warnings=[warning]
        ),
    )


async def _run_strategies(
    strategies: list[ParsingStrategy],
    html: str,
    url: str,
    min_viable_nodes: int,
) -> tuple[ParseResult | None, list[str]]:
    """Try each eligible strategy in order.

    Returns:
        Tuple of (chosen result or None, warnings collected along the way)
    """
    warnings: list[str] = []
    best: ParseResult | None = None

    for strategy in strategies:
        if not strategy.can_handle(html, url):
            logger.debug("Strategy %s cannot handle %s", strategy.name, url)
            continue

        try:
            result = await strategy.parse(html, url)
        except FetchError as e:
            logger.warning("Strategy %s failed for %s: %s", strategy.name, url, e)
            warnings.append(f"{strategy.name} strategy failed: {e}")
            continue

        logger.info(
            "Strategy %s extracted %d nodes from %s", strategy.name, len(result.nodes), url
        )
        if len(result.nodes) >= min_viable_nodes:
            return result, warnings

        if best is None or len(result.nodes) > len(best.nodes):
            best = result

    if best is not None:
        warnings.append(
            f"No strategy produced at least {min_viable_nodes} nodes; "
            f"using best result from {best.metadata.strategy}"
        )
    return best, warnings


async def parse_documentation(
    html: str,
    url: str,
    *,
    deep_crawl: bool = False,
    fetch: FetchFn | None = None,
    max_pages: int | None = None,
    config: ExtractionConfig | None = None,
) -> ParseResult:
    """Extract a documentation map from a page.

    Args:
        html: Start page HTML (may be empty when deep crawling with a fetcher)
        url: Source URL of the page
        deep_crawl: Try the multi-page strategy first
        fetch: Page-retrieval capability, required for deep crawling
        max_pages: Deep-crawl page budget including the start page
        config: Extraction tuning; defaults are the production values

    Returns:
        ParseResult with validated nodes, edges and generation stats

    Raises:
        ValueError: If deep_crawl is set without a fetch function
    """
    start_time = time.perf_counter()
    cfg = config or ExtractionConfig()
    strategies = build_strategies(
        deep_crawl=deep_crawl, fetch=fetch, max_pages=max_pages, config=cfg
    )

    result, warnings = await _run_strategies(strategies, html, url, cfg.min_viable_nodes)
    if result is None:
        logger.warning("No strategy could handle %s", url)
        empty = _empty_result(url, "No content extracted: no strategy could handle the page")
        empty.metadata.warnings.extend(warnings)
        empty.metadata.stats.duration_ms = (time.perf_counter() - start_time) * 1000
        return empty

    nodes_extracted = len(result.nodes)
    edges_extracted = len(result.edges)

    nodes, id_mapping = deduplicate_nodes(result.nodes, cfg.similarity_threshold)
    edges = update_edge_references(result.edges, id_mapping)
    nodes_deduplicated = nodes_extracted - len(nodes)

    before_filter = len(nodes)
    nodes, edges = filter_nodes(
        nodes,
        edges,
        max_nodes=cfg.max_nodes,
        min_label_length=cfg.min_label_length,
        max_label_length=cfg.max_label_length,
        excluded_labels=cfg.excluded_labels,
    )
    nodes_filtered = before_filter - len(nodes)

    edges = prune_edges(nodes, edges)
    nodes = sanitize_nodes(nodes, cfg.description_max_length)

    all_warnings = [*warnings, *result.metadata.warnings]
    if not nodes:
        all_warnings.append("No content extracted")

    logger.info(
        "Parsed %s with %s: %d nodes, %d edges (confidence %.2f)",
        url,
        result.metadata.strategy,
        len(nodes),
        len(edges),
        result.metadata.confidence,
    )

    metadata = replace(
        result.metadata,
        warnings=all_warnings,
        stats=GenerationStats(
            nodes_extracted=nodes_extracted,
            nodes_final=len(nodes),
            edges_extracted=edges_extracted,
            nodes_deduplicated=nodes_deduplicated,
            nodes_filtered=nodes_filtered,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        ),
    )
    return ParseResult(nodes=nodes, edges=edges, metadata=metadata)
