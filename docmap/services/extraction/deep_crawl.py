"""Multi-page strategy that follows the most promising section links.

The start page supplies the root product and a ranked list of same-site
section links. Up to ``max_pages - 1`` of those pages are fetched one at a
time, with a politeness delay between requests. Each section becomes a
feature under the root, and the section's own h2-h4 headings become
components under it. A failing section page is logged and skipped; only a
failing start page aborts the crawl.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable
from urllib.parse import urlparse

from docmap.services.extraction.base import (
    ExtractedNode,
    FetchFn,
    FetchResult,
    GenerationMetadata,
    GenerationStats,
    NodeType,
    ParseResult,
)
from docmap.services.extraction.config import DeepCrawlConfig
from docmap.services.extraction.dom import DocumentLoader, QueryableDocument, load_document
from docmap.services.extraction.exceptions import ExtractionError, FetchError
from docmap.services.extraction.graph import (
    GraphBuilder,
    derive_site_description,
    derive_site_title,
    is_meta_heading,
)
from docmap.services.extraction.utils import is_http_url, resolve_url, sanitize_text

logger = logging.getLogger(__name__)

# Decorative tails on link labels: "API →", "Webhooks (beta)", "Payments Learn more"
_LABEL_TAILS = (
    re.compile(r"\s*(?:→|->|»|›).*$"),
    re.compile(r"\s*\(.*?\).*$"),
    re.compile(r"\s*Learn more.*$", re.IGNORECASE),
    re.compile(r"\s*Explore more.*$", re.IGNORECASE),
    re.compile(r"\s*Manage your.*$", re.IGNORECASE),
    re.compile(r"\s*Quickly build.*$", re.IGNORECASE),
)


@dataclass
class SectionLink:
    """Candidate section page found on the start page."""

    label: str
    url: str
    score: int


def clean_link_label(label: str) -> str:
    """Remove arrows, parentheticals and call-to-action tails from a link label."""
    cleaned = label
    for pattern in _LABEL_TAILS:
        cleaned = pattern.sub("", cleaned)
    return cleaned.strip()


def score_section_label(label: str, config: DeepCrawlConfig | None = None) -> int:
    """Score how likely a link label names a major documentation section."""
    cfg = config or DeepCrawlConfig()
    lower = label.lower()
    score = 0

    for keyword, weight in cfg.keyword_scores:
        if keyword in lower:
            score += weight

    for generic, penalty in cfg.generic_label_penalties:
        if lower == generic:
            score += penalty
    if "home page" in lower:
        score += cfg.home_page_penalty

    word_count = len(label.split())
    low, high = cfg.short_phrase_words
    if low <= word_count <= high:
        score += cfg.short_phrase_bonus
    if word_count == 1:
        score += cfg.single_word_penalty
    if word_count > cfg.long_phrase_words:
        score += cfg.long_phrase_penalty

    return score


class DeepCrawlStrategy:
    """Crawl a bounded set of section pages through an injected fetch capability.

    Usage:
        strategy = DeepCrawlStrategy(fetcher, max_pages=5)
        result = await strategy.crawl("https://docs.example.com")
        print(result.metadata.pages_crawled)
    """

    name = "deep-crawl"

    def __init__(
        self,
        fetch: FetchFn,
        *,
        max_pages: int | None = None,
        config: DeepCrawlConfig | None = None,
        loader: DocumentLoader = load_document,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.config = config or DeepCrawlConfig()
        self.max_pages = max_pages if max_pages is not None else self.config.max_pages
        if self.max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self._fetch = fetch
        self._load = loader
        self._sleep = sleep
        self._meta_link = re.compile(
            r"\b(?:" + "|".join(re.escape(w) for w in self.config.meta_link_words) + r")\b"
        )

    def can_handle(self, html: str, url: str) -> bool:
        return is_http_url(url)

    def confidence(self) -> float:
        return self.config.prior_confidence

    async def parse(self, html: str, url: str) -> ParseResult:
        """Crawl starting from an already-fetched page, or fetch it when html is empty."""
        if html:
            return await self._crawl(FetchResult(url=url, html=html), url)
        return await self.crawl(url)

    async def crawl(self, start_url: str) -> ParseResult:
        """Fetch the start page and crawl its section pages.

        Raises:
            FetchError: If the start page cannot be fetched
        """
        logger.info("Fetching start page: %s", start_url)
        start_page = await self._fetch_page(start_url)
        return await self._crawl(start_page, start_url)

    async def _fetch_page(self, url: str) -> FetchResult:
        try:
            result = await self._fetch(url)
        except ExtractionError:
            raise
        except Exception as e:
            raise FetchError(f"Failed to fetch {url}: {e}", url) from e

        if result.status_code != 200:
            raise FetchError(
                f"HTTP {result.status_code} from {url}", url, status_code=result.status_code
            )
        return result

    async def _crawl(self, start_page: FetchResult, start_url: str) -> ParseResult:
        start_time = time.perf_counter()
        builder = GraphBuilder()
        warnings: list[str] = []

        doc = self._load(start_page.html)
        root = builder.add_root(
            derive_site_title(doc, start_url),
            description=derive_site_description(doc),
            doc_url=start_page.url if is_http_url(start_page.url) else None,
            source_selector="title",
        )

        sections = self._select_sections(doc, start_url, start_page.url, builder)
        logger.info("Queued %d section pages from %s", len(sections), start_url)
        for section in sections:
            logger.debug("  - %s (score: %d) %s", section.label, section.score, section.url)

        pages_crawled = 1  # Start page
        for index, section in enumerate(sections):
            if index > 0 and self.config.request_delay_seconds > 0:
                await self._sleep(self.config.request_delay_seconds)

            logger.info("Fetching section %s (%s)", section.label, section.url)
            try:
                page = await self._fetch_page(section.url)
            except ExtractionError as e:
                logger.warning("Skipping section %s: %s", section.url, e)
                warnings.append(f"Failed to crawl {section.url}: {e}")
                continue

            pages_crawled += 1
            section_node = builder.add_child(
                root,
                section.label,
                NodeType.FEATURE,
                doc_url=section.url,
                source_selector="section-page",
            )
            if section_node is None:
                logger.debug("Section label %r collides with an existing node", section.label)
                continue

            page_doc = self._load(page.html)
            added = self._collect_subheadings(page_doc, section.url, builder, section_node)
            logger.info("  Found %d sub-features on %s", added, section.url)

        if not sections:
            warnings.append("No section pages found on start page")

        logger.info(
            "Deep crawl completed: %d pages crawled, %d nodes extracted",
            pages_crawled,
            len(builder),
        )

        return ParseResult(
            nodes=builder.nodes,
            edges=builder.edges,
            metadata=GenerationMetadata(
                source_url=start_url,
                strategy=self.name,
                confidence=self._calculate_confidence(len(builder), pages_crawled),
                warnings=warnings,
                stats=GenerationStats(
                    nodes_extracted=len(builder.nodes),
                    nodes_final=len(builder.nodes),
                    edges_extracted=len(builder.edges),
                    duration_ms=(time.perf_counter() - start_time) * 1000,
                ),
                pages_crawled=pages_crawled,
            ),
        )

    # ------------------------------------------------------------------
    # Section discovery
    # ------------------------------------------------------------------

    def _select_sections(
        self,
        doc: QueryableDocument,
        start_url: str,
        final_url: str,
        builder: GraphBuilder,
    ) -> list[SectionLink]:
        """Rank same-site documentation links and keep the best ``max_pages - 1``."""
        candidates = self._find_section_links(doc, start_url)
        candidates.sort(key=lambda link: link.score, reverse=True)

        seen_urls = {start_url, final_url}
        seen_labels: set[str] = set()
        selected: list[SectionLink] = []

        for link in candidates:
            if len(selected) >= self.max_pages - 1:
                break
            lower = link.label.lower()
            if link.url in seen_urls or lower in seen_labels or builder.has_label(link.label):
                continue
            seen_urls.add(link.url)
            seen_labels.add(lower)
            selected.append(link)

        return selected

    def _find_section_links(self, doc: QueryableDocument, start_url: str) -> list[SectionLink]:
        cfg = self.config
        start = urlparse(start_url)
        docs_host = (start.hostname or "").startswith("docs.")
        links: list[SectionLink] = []

        for anchor in doc.select("a[href]"):
            label = sanitize_text(doc.text(anchor))
            href = (doc.attr(anchor, "href") or "").strip()
            if not href or not (cfg.min_link_length <= len(label) <= cfg.max_link_length):
                continue
            if "#" in href:
                continue

            url = resolve_url(href, start_url)
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https") or parsed.netloc != start.netloc:
                continue

            path = parsed.path.lower()
            if path in ("", "/") or any(excluded in path for excluded in cfg.excluded_paths):
                continue
            if not docs_host and not any(marker in path for marker in cfg.documentation_paths):
                continue

            lower = label.lower()
            if lower in cfg.meta_link_labels or self._meta_link.search(lower):
                continue

            clean_label = clean_link_label(label)
            if len(clean_label) < cfg.min_link_length:
                continue

            links.append(
                SectionLink(label=clean_label, url=url, score=score_section_label(clean_label, cfg))
            )

        return links

    # ------------------------------------------------------------------
    # Section pages
    # ------------------------------------------------------------------

    def _collect_subheadings(
        self,
        doc: QueryableDocument,
        page_url: str,
        builder: GraphBuilder,
        section_node: ExtractedNode,
    ) -> int:
        cfg = self.config
        added = 0

        for heading in doc.select("h2, h3, h4"):
            if added >= cfg.max_subheadings:
                break

            label = sanitize_text(doc.text(heading))
            if not (cfg.min_subheading_length <= len(label) <= cfg.max_subheading_length):
                continue
            if builder.has_label(label):
                continue
            if is_meta_heading(label.lower(), cfg.extra_meta_phrases, cfg.extra_meta_prefixes):
                continue

            anchor = doc.attr(heading, "id")
            node = builder.add_child(
                section_node,
                label,
                NodeType.COMPONENT,
                doc_url=f"{page_url.split('#')[0]}#{anchor}" if anchor else None,
                source_selector=doc.tag_name(heading),
            )
            if node is not None:
                added += 1

        return added

    def _calculate_confidence(self, node_count: int, pages_crawled: int) -> float:
        for min_nodes, min_pages, confidence in self.config.confidence_ladder:
            if node_count >= min_nodes and pages_crawled >= min_pages:
                return confidence
        return self.config.default_confidence
