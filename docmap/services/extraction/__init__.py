"""Documentation map extraction engine.

This module turns a documentation site into a product/feature/component
graph using five strategies, tried in order:
1. DeepCrawlStrategy (optional) - Follows section links across a few pages
2. TemplateStrategy - Sidebar layouts of known platforms (AWS, Stripe, GitHub)
3. SchemaStrategy - Embedded OpenAPI documents and sitemap-linked pages
4. HybridStrategy - Title, headings, lists and navigation of a single page
5. HeuristicStrategy (fallback) - Scores arbitrary elements on any HTML

parse_documentation orchestrates them and runs the result through the
deduplication, filtering and sanitisation validators.

Usage:
    from docmap.services.extraction import parse_documentation

    result = await parse_documentation(html, "https://docs.example.com")
    print(result.metadata.strategy, len(result.nodes))
"""

from docmap.services.extraction.base import (
    EdgeType,
    ExtractedEdge,
    ExtractedNode,
    FetchFn,
    FetchResult,
    GenerationMetadata,
    GenerationStats,
    NodeType,
    ParseResult,
    ParsingStrategy,
)
from docmap.services.extraction.config import (
    DeepCrawlConfig,
    ExtractionConfig,
    HeuristicConfig,
    HybridConfig,
    PlatformTemplate,
    SchemaConfig,
    TemplateConfig,
)
from docmap.services.extraction.deep_crawl import DeepCrawlStrategy
from docmap.services.extraction.exceptions import (
    ContentTooLargeError,
    ContentTypeError,
    ExtractionError,
    FetchError,
    InvalidUrlError,
    RateLimitError,
)
from docmap.services.extraction.heuristic import HeuristicStrategy
from docmap.services.extraction.hybrid import HybridStrategy
from docmap.services.extraction.schema import SchemaStrategy
from docmap.services.extraction.selector import (
    build_strategies,
    detect_strategy,
    get_available_strategies,
    parse_documentation,
)
from docmap.services.extraction.template import TemplateStrategy
from docmap.services.extraction.utils import generate_node_id, sanitize_text

__all__ = [
    # Types
    "NodeType",
    "EdgeType",
    "ExtractedNode",
    "ExtractedEdge",
    "GenerationStats",
    "GenerationMetadata",
    "ParseResult",
    "FetchResult",
    "FetchFn",
    "ParsingStrategy",
    # Configuration
    "ExtractionConfig",
    "HeuristicConfig",
    "HybridConfig",
    "DeepCrawlConfig",
    "TemplateConfig",
    "PlatformTemplate",
    "SchemaConfig",
    # Strategies
    "HeuristicStrategy",
    "HybridStrategy",
    "TemplateStrategy",
    "SchemaStrategy",
    "DeepCrawlStrategy",
    # Orchestration
    "parse_documentation",
    "build_strategies",
    "detect_strategy",
    "get_available_strategies",
    # Utilities
    "generate_node_id",
    "sanitize_text",
    # Exceptions
    "ExtractionError",
    "FetchError",
    "RateLimitError",
    "ContentTooLargeError",
    "ContentTypeError",
    "InvalidUrlError",
]
