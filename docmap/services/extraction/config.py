"""Tuning parameters for the extraction strategies.

All weights and thresholds were tuned by hand against real documentation
sites. They live here as named fields so that callers can adjust them
without touching strategy code; the defaults are the production values.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class HeuristicConfig:
    """Scoring weights for the generic heuristic strategy."""

    candidate_selector: str = "a, h1, h2, h3, h4, button"
    min_label_length: int = 3
    max_label_length: int = 100
    score_threshold: float = 0.3  # Elements must score strictly above this
    max_nodes: int = 50
    product_share: float = 0.2  # Top 20% of ranked elements become products
    feature_share: float = 0.5  # Cumulative: the next 30% become features

    # Position component
    navigation_regions: tuple[str, ...] = ("nav", "aside", "header")
    main_regions: tuple[str, ...] = ("main", "article")
    footer_regions: tuple[str, ...] = ("footer",)
    position_navigation: float = 0.3
    position_main: float = 0.2
    position_footer: float = 0.05
    position_default: float = 0.1

    # Styling component
    bold_bonus: float = 0.1
    heading_bonus: dict[str, float] = field(
        default_factory=lambda: {"h1": 0.3, "h2": 0.25, "h3": 0.2, "h4": 0.15}
    )

    # Text length component
    optimal_length: tuple[int, int] = (10, 50)
    acceptable_length: tuple[int, int] = (5, 100)
    length_optimal_score: float = 0.3
    length_acceptable_score: float = 0.2
    length_default_score: float = 0.05

    # Link density component
    self_link_score: float = 0.2
    per_link_score: float = 0.05
    max_link_score: float = 0.2

    # Tag type component
    tag_scores: dict[str, float] = field(
        default_factory=lambda: {
            "h1": 0.3,
            "h2": 0.25,
            "h3": 0.2,
            "a": 0.15,
            "button": 0.1,
        }
    )
    default_tag_score: float = 0.05

    # Inferred edge and result confidence
    feature_edge_confidence: float = 0.4
    component_edge_confidence: float = 0.3
    prior_confidence: float = 0.4
    empty_confidence: float = 0.2
    base_confidence: float = 0.3
    edges_bonus: float = 0.1
    product_feature_bonus: float = 0.05
    component_bonus: float = 0.05
    max_confidence: float = 0.5


@dataclass(frozen=True)
class HybridConfig:
    """Thresholds for the structure-aware hybrid strategy."""

    main_content_selectors: tuple[str, ...] = (
        "main",
        '[role="main"]',
        "article",
        ".content",
        ".main-content",
        "body",
    )
    heading_selector: str = "h2, h3, h4"
    min_heading_length: int = 3
    max_heading_length: int = 100
    component_keywords: tuple[str, ...] = ("api", "sdk", "client", "library")

    # List / emphasis pass
    list_pass_below: int = 3  # Runs when fewer nodes than this were collected
    list_selector: str = "li, strong, b, .feature, .item"
    list_candidate_limit: int = 15
    min_list_length: int = 5
    max_list_length: int = 100
    call_to_action_words: tuple[str, ...] = ("click", "read", "learn", "more")

    # Navigation pass
    navigation_pass_below: int = 5
    navigation_selectors: tuple[str, ...] = (
        "nav",
        '[role="navigation"]',
        "aside",
        ".sidebar",
        ".nav",
        ".menu",
    )
    navigation_link_limit: int = 25
    min_link_length: int = 3
    max_link_length: int = 80
    meta_link_words: tuple[str, ...] = (
        "edit",
        "github",
        "sign",
        "signin",
        "signup",
        "login",
        "contact",
        "support",
    )
    meta_link_labels: tuple[str, ...] = ("home", "docs")

    prior_confidence: float = 0.7
    # (minimum node count, confidence), checked in order
    confidence_ladder: tuple[tuple[int, float], ...] = ((10, 0.9), (5, 0.7), (3, 0.5))
    default_confidence: float = 0.3


@dataclass(frozen=True)
class DeepCrawlConfig:
    """Link scoring and politeness settings for the deep-crawl strategy."""

    max_pages: int = 5  # Includes the start page
    request_delay_seconds: float = 1.0
    max_subheadings: int = 8
    min_link_length: int = 3
    max_link_length: int = 80
    min_subheading_length: int = 5
    max_subheading_length: int = 80

    excluded_paths: tuple[str, ...] = (
        "/signup",
        "/login",
        "/pricing",
        "/blog",
        "/changelog",
    )
    documentation_paths: tuple[str, ...] = ("/docs", "/api", "/guide", "/reference")
    meta_link_words: tuple[str, ...] = (
        "edit",
        "github",
        "dashboard",
        "sign in",
        "sign up",
        "login",
        "home page",
        "changelog",
    )
    meta_link_labels: tuple[str, ...] = ("home", "welcome")

    # Substring bonuses for section link labels
    keyword_scores: tuple[tuple[str, int], ...] = (
        ("api", 5),
        ("reference", 4),
        ("guide", 3),
        ("integration", 3),
        ("configuration", 2),
        ("deployment", 2),
        ("authentication", 2),
        ("overview", 1),
    )
    # Exact-label penalties
    generic_label_penalties: tuple[tuple[str, int], ...] = (
        ("documentation", -10),
        ("docs", -10),
        ("introduction", -3),
        ("getting started", -2),
    )
    home_page_penalty: int = -10
    short_phrase_words: tuple[int, int] = (2, 4)
    short_phrase_bonus: int = 2
    single_word_penalty: int = -1
    long_phrase_words: int = 6
    long_phrase_penalty: int = -2

    # Extra headings skipped on section pages, on top of the shared meta headings
    extra_meta_phrases: tuple[str, ...] = (
        "prerequisites",
        "introduction",
        "overview",
        "getting started",
    )
    extra_meta_prefixes: tuple[str, ...] = ("what is", "why ")

    prior_confidence: float = 0.85
    # (minimum nodes, minimum pages crawled, confidence), checked in order
    confidence_ladder: tuple[tuple[int, int, float], ...] = (
        (15, 3, 0.95),
        (10, 2, 0.85),
        (5, 0, 0.7),
    )
    default_confidence: float = 0.5


@dataclass(frozen=True)
class PlatformTemplate:
    """Navigation layout of one well-known documentation platform."""

    name: str
    url_pattern: str  # Searched case-insensitively in the page URL
    navigation_selectors: tuple[str, ...]


@dataclass(frozen=True)
class TemplateConfig:
    """Platform layouts for the template strategy."""

    platforms: tuple[PlatformTemplate, ...] = (
        PlatformTemplate(
            name="aws",
            url_pattern=r"^https?://(docs\.)?aws\.amazon\.com",
            navigation_selectors=(".awsui-side-navigation", 'nav[role="navigation"]'),
        ),
        PlatformTemplate(
            name="stripe",
            url_pattern=r"^https?://(docs\.)?stripe\.com",
            navigation_selectors=(".DocsSidebar", "nav.sidebar"),
        ),
        PlatformTemplate(
            name="github",
            url_pattern=r"^https?://(docs\.)?github\.com",
            navigation_selectors=(".js-navigation", 'nav[role="navigation"]'),
        ),
    )
    section_selector: str = ":scope > ul > li"
    min_label_length: int = 3
    edge_confidence: float = 0.8
    prior_confidence: float = 0.9
    empty_confidence: float = 0.3


@dataclass(frozen=True)
class SchemaConfig:
    """Limits and confidences for the OpenAPI / sitemap schema strategy."""

    script_selector: str = 'script[type="application/json"]'
    http_methods: tuple[str, ...] = ("get", "post", "put", "delete", "patch")
    min_label_length: int = 3
    max_label_length: int = 100
    tagged_edge_confidence: float = 0.9
    feature_edge_confidence: float = 0.7
    component_edge_confidence: float = 0.6

    prior_confidence: float = 0.8
    empty_confidence: float = 0.3
    base_confidence: float = 0.7
    edges_bonus: float = 0.1
    product_feature_bonus: float = 0.05
    component_bonus: float = 0.05
    max_confidence: float = 0.9


DEFAULT_EXCLUDED_LABELS: tuple[str, ...] = (
    "home",
    "about",
    "contact",
    "privacy",
    "terms",
    "login",
    "sign up",
    "signup",
    "sign in",
    "signin",
    "search",
    "menu",
    "navigation",
    "footer",
    "header",
    "sidebar",
    "back",
    "next",
    "previous",
    "skip",
    "close",
    "cancel",
)


@dataclass(frozen=True)
class ExtractionConfig:
    """Configuration for the extraction orchestrator and validators."""

    min_viable_nodes: int = 3
    similarity_threshold: float = 0.85
    max_nodes: int = 50
    min_label_length: int = 3
    max_label_length: int = 100
    description_max_length: int = 200
    excluded_labels: tuple[str, ...] = DEFAULT_EXCLUDED_LABELS
    template: TemplateConfig = field(default_factory=TemplateConfig)
    schema: SchemaConfig = field(default_factory=SchemaConfig)
    heuristic: HeuristicConfig = field(default_factory=HeuristicConfig)
    hybrid: HybridConfig = field(default_factory=HybridConfig)
    deep_crawl: DeepCrawlConfig = field(default_factory=DeepCrawlConfig)
