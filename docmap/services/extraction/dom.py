"""Queryable-document capability used by the strategies.

Strategies never touch the HTML parser directly. They query a document
through the small ``QueryableDocument`` protocol (select, text, attribute,
tag name, closest ancestor), so any parser that can answer those questions
works and tests can substitute a hand-built fake.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Protocol

from bs4 import BeautifulSoup
from bs4.element import Tag


class QueryableDocument(Protocol):
    """Minimal read-only view of a parsed HTML document."""

    def select(self, selector: str, scope: Any | None = None) -> list[Any]:
        """Return elements matching a CSS selector, in document order."""
        ...

    def text(self, element: Any) -> str:
        """Return the concatenated text content of an element."""
        ...

    def attr(self, element: Any, name: str) -> str | None:
        """Return an attribute value, or None when absent."""
        ...

    def tag_name(self, element: Any) -> str:
        """Return the lowercase tag name of an element."""
        ...

    def closest(self, element: Any, names: Iterable[str]) -> Any | None:
        """Return the element itself or its nearest ancestor with one of the tag names."""
        ...


class SoupDocument:
    """``QueryableDocument`` backed by BeautifulSoup with the lxml parser."""

    def __init__(self, html: str, parser: str = "lxml") -> None:
        self.soup = BeautifulSoup(html or "", parser)

    def select(self, selector: str, scope: Tag | None = None) -> list[Tag]:
        root = self.soup if scope is None else scope
        return list(root.select(selector))

    def text(self, element: Tag) -> str:
        return element.get_text()

    def attr(self, element: Tag, name: str) -> str | None:
        value = element.get(name)
        # Multi-valued attributes such as class come back as lists
        if isinstance(value, list):
            return " ".join(value)
        return value

    def tag_name(self, element: Tag) -> str:
        return (element.name or "").lower()

    def closest(self, element: Tag, names: Iterable[str]) -> Tag | None:
        wanted = set(names)
        node = element
        while isinstance(node, Tag):
            if node.name in wanted:
                return node
            node = node.parent
        return None


DocumentLoader = Callable[[str], QueryableDocument]


def load_document(html: str) -> QueryableDocument:
    """Parse HTML into the default queryable document."""
    return SoupDocument(html)
