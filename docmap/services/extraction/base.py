"""Core types shared by every extraction strategy."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Literal, Protocol


class NodeType(str, enum.Enum):
    """Kind of entity a node represents in the documentation map."""

    PRODUCT = "product"
    FEATURE = "feature"
    COMPONENT = "component"


class EdgeType(str, enum.Enum):
    """Kind of relationship between two nodes."""

    HIERARCHY = "hierarchy"
    RELATED = "related"
    DEPENDS_ON = "depends-on"
    OPTIONAL = "optional"


InferenceMethod = Literal["hierarchy", "keyword", "proximity", "explicit"]

# Hierarchy level implied by each node type
NODE_LEVELS: dict[NodeType, int] = {
    NodeType.PRODUCT: 1,
    NodeType.FEATURE: 2,
    NodeType.COMPONENT: 3,
}


@dataclass
class ExtractedNode:
    """Node discovered in documentation content, before layout."""

    id: str
    type: NodeType
    label: str
    description: str = ""
    doc_url: str | None = None
    level: int | None = None
    source_selector: str | None = None  # Where the node came from (debugging aid)


@dataclass
class ExtractedEdge:
    """Directed relationship between two extracted nodes."""

    id: str
    source: str
    target: str
    type: EdgeType = EdgeType.HIERARCHY
    confidence: float | None = None
    inference_method: InferenceMethod | None = None


@dataclass
class GenerationStats:
    """Counters describing one extraction run."""

    nodes_extracted: int = 0
    nodes_final: int = 0
    edges_extracted: int = 0
    nodes_deduplicated: int = 0
    nodes_filtered: int = 0
    duration_ms: float = 0.0


@dataclass
class GenerationMetadata:
    """Metadata about how a parse result was produced."""

    source_url: str
    strategy: str
    confidence: float
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    warnings: list[str] = field(default_factory=list)
    stats: GenerationStats = field(default_factory=GenerationStats)
    pages_crawled: int | None = None  # Only set by multi-page strategies


@dataclass
class ParseResult:
    """Nodes, edges and metadata produced by a strategy."""

    nodes: list[ExtractedNode]
    edges: list[ExtractedEdge]
    metadata: GenerationMetadata


@dataclass(frozen=True)
class FetchResult:
    """Page returned by a fetch capability."""

    url: str  # Final URL after redirects
    html: str
    status_code: int = 200
    content_type: str = "text/html"


# Injected page-retrieval capability (plain HTTP, rendering browser, or a fake)
FetchFn = Callable[[str], Awaitable[FetchResult]]


class ParsingStrategy(Protocol):
    """Protocol every extraction strategy implements."""

    name: str

    def can_handle(self, html: str, url: str) -> bool:
        """Cheap eligibility test for the given page."""
        ...

    async def parse(self, html: str, url: str) -> ParseResult:
        """Extract nodes and edges from the page.

        Args:
            html: Raw HTML content
            url: Source URL (for relative link resolution)

        Returns:
            ParseResult with nodes, edges and metadata

        Raises:
            FetchError: Only strategies that perform I/O may raise
        """
        ...

    def confidence(self) -> float:
        """Strategy-level prior, independent of any specific input."""
        ...
