"""Post-processing applied to a strategy result before it is returned.

The steps run in order: deduplicate near-identical labels, filter out
navigation noise, repair edges, then sanitize node data. Removing a node
never orphans its children; they are re-attached to the nearest surviving
ancestor so that tree-shaped results stay trees.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable

from rapidfuzz.distance import Levenshtein

from docmap.services.extraction.base import EdgeType, ExtractedEdge, ExtractedNode, NodeType
from docmap.services.extraction.config import DEFAULT_EXCLUDED_LABELS
from docmap.services.extraction.utils import is_valid_url, sanitize_text, truncate_description

logger = logging.getLogger(__name__)

_TYPE_PRIORITY = {NodeType.PRODUCT: 100, NodeType.FEATURE: 50, NodeType.COMPONENT: 25}


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------


def label_similarity(first: str, second: str) -> float:
    """Case-insensitive normalized Levenshtein similarity (1 - distance / longer length)."""
    return Levenshtein.normalized_similarity(first.lower(), second.lower())


def _completeness(node: ExtractedNode) -> int:
    score = 0
    if node.description:
        score += 2
    if node.doc_url:
        score += 1
    return score


def merge_nodes(first: ExtractedNode, second: ExtractedNode) -> ExtractedNode:
    """Merge two duplicate nodes, keeping the more complete one as primary."""
    primary, secondary = (
        (second, first) if _completeness(second) > _completeness(first) else (first, second)
    )
    return replace(
        primary,
        description=primary.description or secondary.description,
        doc_url=primary.doc_url or secondary.doc_url,
    )


def deduplicate_nodes(
    nodes: list[ExtractedNode], threshold: float = 0.85
) -> tuple[list[ExtractedNode], dict[str, str]]:
    """Merge nodes of the same type whose labels are at least ``threshold`` similar.

    Returns:
        Tuple of (deduplicated nodes, mapping of every original id to its surviving id)
    """
    deduplicated: list[ExtractedNode] = []
    id_mapping: dict[str, str] = {}
    processed: set[int] = set()

    for i, node in enumerate(nodes):
        if i in processed:
            continue

        duplicates = [i]
        for j in range(i + 1, len(nodes)):
            if j in processed or nodes[j].type is not node.type:
                continue
            if label_similarity(node.label, nodes[j].label) >= threshold:
                duplicates.append(j)
                processed.add(j)

        merged = node
        for index in duplicates[1:]:
            merged = merge_nodes(merged, nodes[index])

        deduplicated.append(merged)
        for index in duplicates:
            id_mapping[nodes[index].id] = merged.id

    return deduplicated, id_mapping


def update_edge_references(
    edges: list[ExtractedEdge], id_mapping: dict[str, str]
) -> list[ExtractedEdge]:
    """Rewrite edges after deduplication, dropping self-loops and repeats."""
    updated: list[ExtractedEdge] = []
    seen: set[tuple[str, str, EdgeType]] = set()

    for edge in edges:
        source = id_mapping.get(edge.source, edge.source)
        target = id_mapping.get(edge.target, edge.target)
        if source == target:
            continue

        key = (source, target, edge.type)
        if key in seen:
            continue
        seen.add(key)

        if (source, target) != (edge.source, edge.target):
            edge = replace(edge, id=f"edge-{source}-{target}", source=source, target=target)
        updated.append(edge)

    return updated


# ---------------------------------------------------------------------------
# Edge integrity
# ---------------------------------------------------------------------------


def prune_edges(nodes: list[ExtractedNode], edges: list[ExtractedEdge]) -> list[ExtractedEdge]:
    """Drop dangling edges and keep a single incoming hierarchy edge per node."""
    node_ids = {node.id for node in nodes}
    has_parent: set[str] = set()
    pruned: list[ExtractedEdge] = []

    for edge in edges:
        if edge.source not in node_ids or edge.target not in node_ids:
            continue
        if edge.source == edge.target:
            continue
        if edge.type is EdgeType.HIERARCHY:
            if edge.target in has_parent:
                continue
            has_parent.add(edge.target)
        pruned.append(edge)

    return pruned


def _parent_map(edges: Iterable[ExtractedEdge]) -> dict[str, ExtractedEdge]:
    parents: dict[str, ExtractedEdge] = {}
    for edge in edges:
        if edge.type is EdgeType.HIERARCHY:
            parents.setdefault(edge.target, edge)
    return parents


def reattach_orphans(
    kept: list[ExtractedNode], edges: list[ExtractedEdge]
) -> list[ExtractedEdge]:
    """Link children of removed nodes to their nearest surviving ancestor."""
    kept_ids = {node.id for node in kept}
    parents = _parent_map(edges)
    result = [e for e in edges if e.source in kept_ids and e.target in kept_ids]

    for node in kept:
        edge = parents.get(node.id)
        if edge is None or edge.source in kept_ids:
            continue

        ancestor = edge.source
        visited = {node.id}
        while ancestor not in kept_ids and ancestor in parents and ancestor not in visited:
            visited.add(ancestor)
            ancestor = parents[ancestor].source

        if ancestor in kept_ids and ancestor != node.id:
            result.append(
                replace(edge, id=f"edge-{ancestor}-{node.id}", source=ancestor, target=node.id)
            )

    return result


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def node_priority(node: ExtractedNode) -> int:
    """Ranking used when a result has to be capped."""
    score = _TYPE_PRIORITY.get(node.type, 0)
    if node.description:
        score += 10
    if node.doc_url:
        score += 5
    if node.level:
        score += (4 - node.level) * 5
    return score


def _protected_roots(nodes: list[ExtractedNode], edges: list[ExtractedEdge]) -> set[str]:
    """Ids of parentless nodes with children, or the first parentless product."""
    targets = {e.target for e in edges if e.type is EdgeType.HIERARCHY}
    sources = {e.source for e in edges if e.type is EdgeType.HIERARCHY}
    roots = {node.id for node in nodes if node.id in sources and node.id not in targets}
    if roots:
        return roots

    for node in nodes:
        if node.type is NodeType.PRODUCT and node.id not in targets:
            return {node.id}
    return set()


def filter_nodes(
    nodes: list[ExtractedNode],
    edges: list[ExtractedEdge],
    *,
    max_nodes: int = 50,
    min_label_length: int = 3,
    max_label_length: int = 100,
    excluded_labels: Iterable[str] = DEFAULT_EXCLUDED_LABELS,
) -> tuple[list[ExtractedNode], list[ExtractedEdge]]:
    """Remove navigation noise and cap the node count by priority.

    Roots are always kept: nodes with children and no parent, or, when the
    graph has no edges yet, its first product. Survivors keep their
    original order.

    Returns:
        Tuple of (kept nodes, edges re-wired around removed nodes)
    """
    excluded = {label.lower() for label in excluded_labels}
    roots = _protected_roots(nodes, edges)

    def keep(node: ExtractedNode) -> bool:
        if node.id in roots:
            return True
        if not (min_label_length <= len(node.label) <= max_label_length):
            return False
        if node.label.lower().strip() in excluded:
            return False
        return True

    kept = [node for node in nodes if keep(node)]

    if len(kept) > max_nodes:
        ranked = sorted(
            range(len(kept)),
            key=lambda i: (kept[i].id not in roots, -node_priority(kept[i]), i),
        )
        allowed = set(ranked[:max_nodes])
        kept = [node for i, node in enumerate(kept) if i in allowed]

    removed = len(nodes) - len(kept)
    if removed:
        logger.debug("Filtered %d of %d nodes", removed, len(nodes))

    return kept, reattach_orphans(kept, edges)


# ---------------------------------------------------------------------------
# Sanitization
# ---------------------------------------------------------------------------


def sanitize_node(node: ExtractedNode, description_max_length: int = 200) -> ExtractedNode:
    """Clean a node's label, description and documentation URL."""
    return replace(
        node,
        label=sanitize_text(node.label),
        description=(
            truncate_description(node.description, description_max_length)
            if node.description
            else ""
        ),
        doc_url=node.doc_url if is_valid_url(node.doc_url) else None,
    )


def sanitize_nodes(
    nodes: list[ExtractedNode], description_max_length: int = 200
) -> list[ExtractedNode]:
    return [sanitize_node(node, description_max_length) for node in nodes]
