"""Tests for text, id and URL helpers."""

from __future__ import annotations

import pytest

from docmap.services.extraction.base import NodeType
from docmap.services.extraction.exceptions import InvalidUrlError
from docmap.services.extraction.utils import (
    generate_node_id,
    is_http_url,
    is_valid_url,
    resolve_url,
    sanitize_text,
    truncate_description,
    validate_url,
)


class TestSanitizeText:
    """Test suite for sanitize_text."""

    def test_collapses_whitespace_and_trims(self) -> None:
        assert sanitize_text("  Getting \n\t Started  ") == "Getting Started"

    def test_decodes_html_entities(self) -> None:
        assert sanitize_text("Foo &amp; Bar &lt;v2&gt;") == "Foo & Bar <v2>"

    def test_strips_zero_width_and_control_characters(self) -> None:
        assert sanitize_text("Web\u200bhooks\x07") == "Webhooks"
        assert sanitize_text("\ufeffAPI") == "API"

    def test_empty_and_none(self) -> None:
        assert sanitize_text("") == ""
        assert sanitize_text(None) == ""
        assert sanitize_text("   ") == ""


class TestGenerateNodeId:
    """Test suite for generate_node_id."""

    def test_format(self) -> None:
        assert generate_node_id("Getting Started!", NodeType.FEATURE) == "feature-getting-started"
        assert generate_node_id("API  Reference", "component") == "component-api-reference"

    def test_deterministic(self) -> None:
        first = generate_node_id("Webhooks & Events", NodeType.FEATURE)
        for _ in range(5):
            assert generate_node_id("Webhooks & Events", NodeType.FEATURE) == first

    def test_type_is_discriminator(self) -> None:
        assert generate_node_id("Payments", NodeType.PRODUCT) != generate_node_id(
            "Payments", NodeType.FEATURE
        )

    def test_case_and_whitespace_insensitive(self) -> None:
        assert generate_node_id("  payments ", NodeType.FEATURE) == generate_node_id(
            "Payments", NodeType.FEATURE
        )

    def test_non_latin_labels_get_distinct_ids(self) -> None:
        first = generate_node_id("入门指南", NodeType.FEATURE)
        second = generate_node_id("接口参考", NodeType.FEATURE)

        assert first.startswith("feature-")
        assert first != second
        assert first == generate_node_id("入门指南", NodeType.FEATURE)

    def test_empty_label_raises(self) -> None:
        with pytest.raises(ValueError):
            generate_node_id("", NodeType.FEATURE)
        with pytest.raises(ValueError):
            generate_node_id("\u200b", NodeType.FEATURE)

    def test_empty_type_raises(self) -> None:
        with pytest.raises(ValueError):
            generate_node_id("Payments", "")


class TestTruncateDescription:
    """Test suite for truncate_description."""

    def test_short_text_unchanged(self) -> None:
        assert truncate_description("A short description.") == "A short description."

    def test_breaks_at_word_boundary(self) -> None:
        text = "word " * 60
        result = truncate_description(text, 200)

        assert result.endswith("word...")
        assert len(result) <= 203

    def test_invalid_max_length(self) -> None:
        with pytest.raises(ValueError):
            truncate_description("text", 0)


class TestUrlHelpers:
    """Test suite for URL validation helpers."""

    def test_resolve_relative(self) -> None:
        assert resolve_url("/api", "https://acme.dev/docs") == "https://acme.dev/api"
        assert resolve_url("guide", "https://acme.dev/docs/") == "https://acme.dev/docs/guide"

    def test_is_http_url(self) -> None:
        assert is_http_url("https://acme.dev")
        assert is_http_url("http://acme.dev/docs")
        assert not is_http_url("mailto:team@acme.dev")
        assert not is_http_url("/docs")

    def test_validate_accepts_public_https(self) -> None:
        validate_url("https://docs.acme.dev/guide")

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "http://acme.dev",
            "ftp://acme.dev/file",
            "https://localhost/docs",
            "https://127.0.0.1/docs",
            "https://10.0.0.5/docs",
            "https://172.20.1.1/docs",
            "https://192.168.1.10/docs",
            "https://[::1]/docs",
        ],
    )
    def test_validate_rejects(self, url: str) -> None:
        with pytest.raises(InvalidUrlError):
            validate_url(url)

    def test_is_valid_url(self) -> None:
        assert is_valid_url("https://acme.dev")
        assert not is_valid_url("http://acme.dev")
        assert not is_valid_url(None)
