"""Tests for the queryable-document capability.

The fake document at the bottom of this module proves that strategies only
depend on the QueryableDocument protocol, not on BeautifulSoup.
"""

from __future__ import annotations

from typing import Any, Iterable

import pytest

from docmap.services.extraction.base import NodeType
from docmap.services.extraction.dom import SoupDocument, load_document
from docmap.services.extraction.hybrid import HybridStrategy


SAMPLE_HTML = """
<html>
<body>
<nav class="top menu"><a href="/docs">Docs</a><a href="/api">API</a></nav>
<main>
    <h2 id="auth">Authentication</h2>
    <p><strong><a href="/tokens">Tokens</a></strong></p>
</main>
</body>
</html>
"""


class TestSoupDocument:
    """Test suite for the BeautifulSoup-backed document."""

    def test_select_in_document_order(self) -> None:
        doc = SoupDocument(SAMPLE_HTML)
        labels = [doc.text(a) for a in doc.select("a")]

        assert labels == ["Docs", "API", "Tokens"]

    def test_select_within_scope(self) -> None:
        doc = SoupDocument(SAMPLE_HTML)
        nav = doc.select("nav")[0]

        assert len(doc.select("a", scope=nav)) == 2

    def test_attr_joins_multi_valued_attributes(self) -> None:
        doc = SoupDocument(SAMPLE_HTML)
        nav = doc.select("nav")[0]

        assert doc.attr(nav, "class") == "top menu"
        assert doc.attr(nav, "missing") is None

    def test_tag_name(self) -> None:
        doc = SoupDocument(SAMPLE_HTML)
        assert doc.tag_name(doc.select("h2")[0]) == "h2"

    def test_closest_includes_element_itself(self) -> None:
        doc = SoupDocument(SAMPLE_HTML)
        heading = doc.select("h2")[0]

        assert doc.closest(heading, ("h2",)) is heading
        assert doc.tag_name(doc.closest(heading, ("main", "article"))) == "main"
        assert doc.closest(heading, ("footer",)) is None

    def test_closest_finds_bold_ancestor(self) -> None:
        doc = SoupDocument(SAMPLE_HTML)
        link = doc.select("main a")[0]

        assert doc.tag_name(doc.closest(link, ("strong", "b"))) == "strong"

    def test_malformed_html_degrades_to_empty_matches(self) -> None:
        doc = load_document("<div><h2>Unclosed <b>tags")

        assert doc.select("nav") == []
        assert len(doc.select("h2")) == 1

    def test_empty_document(self) -> None:
        doc = load_document("")
        assert doc.select("a") == []


# -----------------------------------------------------------------------------
# Fake document
# -----------------------------------------------------------------------------


class FakeElement:
    def __init__(
        self,
        tag: str,
        text: str = "",
        attrs: dict[str, str] | None = None,
        children: Iterable[FakeElement] = (),
    ) -> None:
        self.tag = tag
        self.own_text = text
        self.attrs = attrs or {}
        self.children = list(children)
        self.parent: FakeElement | None = None
        for child in self.children:
            child.parent = self


class FakeDocument:
    """Tag-name-only selector engine over a hand-built tree."""

    def __init__(self, root: FakeElement) -> None:
        self.root = root

    def _walk(self, element: FakeElement):
        for child in element.children:
            yield child
            yield from self._walk(child)

    def select(self, selector: str, scope: Any | None = None) -> list[Any]:
        names = {part.strip() for part in selector.split(",")}
        return [el for el in self._walk(scope or self.root) if el.tag in names]

    def text(self, element: FakeElement) -> str:
        parts = [element.own_text, *(self.text(child) for child in element.children)]
        return " ".join(part for part in parts if part)

    def attr(self, element: FakeElement, name: str) -> str | None:
        return element.attrs.get(name)

    def tag_name(self, element: FakeElement) -> str:
        return element.tag

    def closest(self, element: FakeElement, names: Iterable[str]) -> Any | None:
        wanted = set(names)
        node: FakeElement | None = element
        while node is not None:
            if node.tag in wanted:
                return node
            node = node.parent
        return None


def _fake_page() -> FakeDocument:
    return FakeDocument(
        FakeElement(
            "html",
            children=[
                FakeElement("head", children=[FakeElement("title", "Fake Project")]),
                FakeElement(
                    "body",
                    children=[
                        FakeElement(
                            "main",
                            children=[
                                FakeElement("h2", "Authentication"),
                                FakeElement("h2", "Webhooks API"),
                                FakeElement("h3", "Rate Limits"),
                            ],
                        )
                    ],
                ),
            ],
        )
    )


class TestStrategiesWithFakeDocument:
    """Strategies run unchanged against a non-BeautifulSoup document."""

    @pytest.mark.asyncio
    async def test_hybrid_uses_injected_loader(self) -> None:
        strategy = HybridStrategy(loader=lambda html: _fake_page())

        result = await strategy.parse("<ignored/>", "https://fake.dev/docs")

        labels = {node.label: node.type for node in result.nodes}
        assert labels == {
            "Fake Project": NodeType.PRODUCT,
            "Authentication": NodeType.FEATURE,
            "Webhooks API": NodeType.COMPONENT,
            "Rate Limits": NodeType.FEATURE,
        }
        assert len(result.edges) == 3
        assert result.metadata.confidence == 0.5
