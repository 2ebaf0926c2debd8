"""Shared pytest fixtures for extraction, fetcher and route tests.

Usage in test files:
    async def test_something(page_fetcher):
        fetch = page_fetcher({"https://acme.dev/docs": "<h1>Acme</h1>"})
        page = await fetch("https://acme.dev/docs")
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Iterable

import pytest
from fastapi.testclient import TestClient

from docmap.main import app
from docmap.routes.maps import get_fetcher
from docmap.services.extraction.base import EdgeType, FetchResult, NodeType, ParseResult
from docmap.services.extraction.exceptions import FetchError


# ------------------------------------------------------------------
# Fake fetchers
# ------------------------------------------------------------------


@pytest.fixture()
def page_fetcher() -> Callable[..., Callable]:
    """Return a factory for in-memory fetch functions.

    The fetch function serves ``pages`` by URL, raises FetchError for URLs
    listed in ``failing`` or missing from ``pages``, and records every
    requested URL in ``fetch.calls``.
    """

    def _make(pages: dict[str, str], failing: Iterable[str] = ()):
        failing_urls = set(failing)
        calls: list[str] = []

        async def fetch(url: str) -> FetchResult:
            calls.append(url)
            if url in failing_urls:
                raise FetchError(f"Connection reset fetching {url}", url)
            if url not in pages:
                raise FetchError("Documentation not found (404)", url, status_code=404)
            return FetchResult(url=url, html=pages[url])

        fetch.calls = calls
        return fetch

    return _make


# ------------------------------------------------------------------
# Graph assertions
# ------------------------------------------------------------------


def assert_referential_integrity(result: ParseResult) -> None:
    """Every edge endpoint exists and no edge is a self-loop."""
    node_ids = {node.id for node in result.nodes}
    for edge in result.edges:
        assert edge.source in node_ids, f"dangling source {edge.source}"
        assert edge.target in node_ids, f"dangling target {edge.target}"
        assert edge.source != edge.target, f"self-loop on {edge.source}"


def assert_single_rooted_tree(result: ParseResult) -> None:
    """Exactly one product root, every node reachable from it, no cycles."""
    assert_referential_integrity(result)

    products = [node for node in result.nodes if node.type is NodeType.PRODUCT]
    assert len(products) == 1
    root = products[0]

    hierarchy = [edge for edge in result.edges if edge.type is EdgeType.HIERARCHY]
    incoming: dict[str, int] = {}
    children: dict[str, list[str]] = {}
    for edge in hierarchy:
        incoming[edge.target] = incoming.get(edge.target, 0) + 1
        children.setdefault(edge.source, []).append(edge.target)

    assert root.id not in incoming
    assert all(count == 1 for count in incoming.values())

    reached = {root.id}
    queue = deque([root.id])
    while queue:
        for child in children.get(queue.popleft(), []):
            assert child not in reached, f"cycle through {child}"
            reached.add(child)
            queue.append(child)

    assert reached == {node.id for node in result.nodes}


# ------------------------------------------------------------------
# HTTP client
# ------------------------------------------------------------------


@pytest.fixture()
def client_with_fetcher():
    """Return a helper that builds a TestClient serving pages from a fake fetcher."""
    clients: list[TestClient] = []

    def _create(fetch, raise_server_exceptions: bool = True) -> TestClient:
        app.dependency_overrides[get_fetcher] = lambda: fetch
        tc = TestClient(app, raise_server_exceptions=raise_server_exceptions)
        tc.__enter__()
        clients.append(tc)
        return tc

    yield _create

    for tc in clients:
        tc.__exit__(None, None, None)
    app.dependency_overrides.clear()


@pytest.fixture()
def check_integrity() -> Callable[[ParseResult], None]:
    return assert_referential_integrity


@pytest.fixture()
def check_tree() -> Callable[[ParseResult], None]:
    return assert_single_rooted_tree
