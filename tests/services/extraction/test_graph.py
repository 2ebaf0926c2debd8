"""Tests for graph assembly helpers."""

from __future__ import annotations

import pytest

from docmap.services.extraction.base import EdgeType, NodeType
from docmap.services.extraction.dom import load_document
from docmap.services.extraction.graph import (
    GraphBuilder,
    clean_site_title,
    derive_site_description,
    derive_site_title,
    is_meta_heading,
    ladder_confidence,
)


class TestCleanSiteTitle:
    """Test suite for page-title cleanup."""

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Stripe API Reference | Stripe", "Stripe API Reference"),
            ("Acme - Docs", "Acme"),
            ("Next.js Docs", "Next.js"),
            ("Acme Docs Documentation", "Acme"),
            ("acme/widgets GitHub", "acme/widgets"),
            ("my-project", "my-project"),
            ("Documentation", ""),
        ],
    )
    def test_strips_suffixes(self, title: str, expected: str) -> None:
        assert clean_site_title(title) == expected


class TestDeriveSiteTitle:
    """Test suite for root label derivation."""

    def test_prefers_title(self) -> None:
        doc = load_document("<title>Acme | Home</title><h1>Welcome</h1>")
        assert derive_site_title(doc, "https://acme.dev") == "Acme"

    def test_falls_back_to_og_title(self) -> None:
        doc = load_document(
            '<head><title>Docs</title><meta property="og:title" content="Acme Cloud"></head>'
        )
        assert derive_site_title(doc, "https://acme.dev") == "Acme Cloud"

    def test_falls_back_to_h1(self) -> None:
        doc = load_document("<h1>Acme</h1>")
        assert derive_site_title(doc, "https://acme.dev/docs") == "Acme"

    def test_falls_back_to_hostname(self) -> None:
        doc = load_document("<div></div>")
        assert derive_site_title(doc, "https://docs.acme.dev/start") == "docs.acme.dev"

    def test_description_from_meta(self) -> None:
        doc = load_document('<meta name="description" content="  Build   with Acme. ">')
        assert derive_site_description(doc) == "Build with Acme."


class TestMetaHeadings:
    """Test suite for navigation/meta heading detection."""

    @pytest.mark.parametrize(
        "label",
        ["table of contents", "on this page", "related articles", "next steps", "step 2: deploy", "3. configure"],
    )
    def test_meta(self, label: str) -> None:
        assert is_meta_heading(label)

    def test_regular_heading(self) -> None:
        assert not is_meta_heading("webhooks")

    def test_extra_phrases(self) -> None:
        assert not is_meta_heading("prerequisites")
        assert is_meta_heading("prerequisites", extra_phrases=("prerequisites",))
        assert is_meta_heading("what is acme?", extra_prefixes=("what is",))


class TestLadderConfidence:
    def test_ladder(self) -> None:
        ladder = ((10, 0.9), (5, 0.7), (3, 0.5))
        assert ladder_confidence(12, ladder, 0.3) == 0.9
        assert ladder_confidence(5, ladder, 0.3) == 0.7
        assert ladder_confidence(3, ladder, 0.3) == 0.5
        assert ladder_confidence(1, ladder, 0.3) == 0.3


class TestGraphBuilder:
    """Test suite for GraphBuilder."""

    def test_add_child_links_under_parent(self) -> None:
        builder = GraphBuilder()
        root = builder.add_node("Acme", NodeType.PRODUCT)
        child = builder.add_child(root, "Webhooks", NodeType.FEATURE, doc_url="https://acme.dev/w")

        assert len(builder) == 2
        assert child.level == 2
        assert child.doc_url == "https://acme.dev/w"
        edge = builder.edges[0]
        assert edge.id == "edge-product-acme-feature-webhooks"
        assert edge.type is EdgeType.HIERARCHY
        assert (edge.source, edge.target) == (root.id, child.id)

    def test_duplicate_labels_are_case_insensitive(self) -> None:
        builder = GraphBuilder()
        root = builder.add_node("Acme", NodeType.PRODUCT)

        assert builder.add_child(root, "Products", NodeType.FEATURE) is not None
        assert builder.add_child(root, "  products ", NodeType.COMPONENT) is None
        assert builder.has_label("PRODUCTS")
        assert len(builder.edges) == 1

    def test_colliding_ids_are_rejected(self) -> None:
        builder = GraphBuilder()
        root = builder.add_node("Acme", NodeType.PRODUCT)

        assert builder.add_child(root, "C++", NodeType.FEATURE) is not None
        assert builder.add_child(root, "C", NodeType.FEATURE) is None
        assert len({node.id for node in builder.nodes}) == len(builder.nodes)

    def test_blank_label_is_ignored(self) -> None:
        builder = GraphBuilder()
        assert builder.add_node("   ", NodeType.PRODUCT) is None
        assert len(builder) == 0

    def test_add_root_creates_product(self) -> None:
        builder = GraphBuilder()
        root = builder.add_root("Acme", doc_url="https://acme.dev")

        assert root.type is NodeType.PRODUCT
        assert root.level == 1
        assert builder.nodes == [root]

    def test_add_root_blank_label_falls_back(self) -> None:
        root = GraphBuilder().add_root("  ")

        assert root.label == "Documentation"

    def test_add_root_must_be_first(self) -> None:
        builder = GraphBuilder()
        builder.add_node("Webhooks", NodeType.FEATURE)

        with pytest.raises(ValueError):
            builder.add_root("Acme")

    def test_builders_do_not_share_state(self) -> None:
        first = GraphBuilder()
        first.add_node("Acme", NodeType.PRODUCT)

        assert not GraphBuilder().has_label("Acme")
