# === FILE: site_digest/parser/html_parser.py ===
"""Main-content extraction for SiteDigest.

Pages come without a schema, so the text is recovered by a cascade of
heuristics tried in order until one yields enough text:

1. ``json_ld``     : ``articleBody`` / ``description`` of embedded JSON-LD;
2. ``open_graph``  : a long enough ``og:description``;
3. ``semantic``    : ``main`` / ``article`` / ``[role=main]`` containers;
4. ``selectors``   : common CMS content classes and ids;
5. ``readability`` : the parent of the best-scoring paragraph;
6. ``fallback``    : the visible body text.

Every strategy is a plain function ``(soup, settings) -> str | None`` that
receives its own freshly parsed document, so destructive clean-up in one
strategy never leaks into the next. A strategy that raises is logged and
skipped. The title is looked up independently of the content.
"""
from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Tuple

from bs4 import BeautifulSoup, ParserRejectedMarkup
from bs4.element import Tag

from site_digest.config import ExtractionSettings
from site_digest.crawler.models import NO_TITLE
from site_digest.logger import get_logger

__all__: Sequence[str] = (
    "ExtractedPage",
    "ContentExtractor",
    "STRATEGIES",
    "clean_content",
    "extract_title",
    "parse_html",
)

logger = get_logger("extract")

Strategy = Callable[[BeautifulSoup, ExtractionSettings], Optional[str]]

_WS_RE = re.compile(r"\s+")

NOISE_SELECTORS: Tuple[str, ...] = (
    "script", "style", "noscript", "nav", "footer", "header", "aside",
    ".advertisement", ".ad", ".sidebar", ".menu", ".navigation",
    ".breadcrumb", ".social-share", ".related-posts", ".comments",
)
BOILERPLATE_SELECTORS: Tuple[str, ...] = (
    "script", "style", "noscript", "nav", "footer", "header", "aside",
    ".advertisement", ".ad", ".sidebar",
)
SEMANTIC_SELECTORS: Tuple[str, ...] = (
    "main article", "main", "article", '[role="main"]',
    ".main-content", "#main-content", ".content-area", "#content-area",
)
CONTENT_SELECTORS: Tuple[str, ...] = (
    ".post-content", ".entry-content", ".article-content", ".content-body",
    ".post-body", ".article-body", ".text-content", ".main-text",
    "#post-content", "#article-content", ".content", "#content",
)
TITLE_SELECTORS: Tuple[str, ...] = (
    "h1", "title", 'meta[property="og:title"]',
    ".post-title", ".entry-title", ".article-title", ".page-title",
)
_CONTAINER_TAGS = frozenset({"article", "main"})
_CONTAINER_CLASSES = frozenset({"post", "entry", "content"})


@dataclass(slots=True)
class ExtractedPage:
    """Title and main text recovered from one HTML document."""

    url: str
    title: str
    content: str
    strategy: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.content


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _text(node: Tag) -> str:
    return _WS_RE.sub(" ", node.get_text(" ")).strip()


def _select_text(soup: BeautifulSoup, selector: str) -> str:
    return " ".join(t for t in (_text(n) for n in soup.select(selector)) if t)


def _strip(soup: BeautifulSoup, selectors: Sequence[str]) -> BeautifulSoup:
    for node in soup.select(", ".join(selectors)):
        if not getattr(node, "decomposed", False):
            node.decompose()
    return soup


def clean_content(text: str, max_length: int = 50_000) -> str:
    """Collapse whitespace runs into single spaces, trim and truncate."""
    return _WS_RE.sub(" ", text).strip()[:max_length].rstrip()


def extract_title(soup: BeautifulSoup) -> str:
    """First non-empty of ``h1``, ``<title>``, ``og:title`` and title classes."""
    for selector in TITLE_SELECTORS:
        node = soup.select_one(selector)
        if node is None:
            continue
        title = _text(node)
        if not title:
            content = node.get("content")
            title = _WS_RE.sub(" ", content).strip() if isinstance(content, str) else ""
        if title:
            return title
    return NO_TITLE


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def _json_ld_objects(data: Any) -> Iterator[dict]:
    if isinstance(data, list):
        for item in data:
            yield from _json_ld_objects(item)
    elif isinstance(data, dict):
        yield data
        graph = data.get("@graph")
        if isinstance(graph, list):
            yield from _json_ld_objects(graph)


def from_json_ld(soup: BeautifulSoup, settings: ExtractionSettings) -> Optional[str]:
    objects: list[dict] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        try:
            objects.extend(_json_ld_objects(json.loads(raw)))
        except (TypeError, ValueError):
            # one broken block must not hide the others
            continue
    for key in ("articleBody", "description"):
        for obj in objects:
            value = obj.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return None


def from_open_graph(soup: BeautifulSoup, settings: ExtractionSettings) -> Optional[str]:
    meta = soup.find("meta", attrs={"property": "og:description"})
    if meta is None:
        return None
    description = meta.get("content")
    if isinstance(description, str) and len(description) > settings.min_content_length:
        return description
    return None


def from_semantic_tags(soup: BeautifulSoup, settings: ExtractionSettings) -> Optional[str]:
    _strip(soup, NOISE_SELECTORS)
    for selector in SEMANTIC_SELECTORS:
        text = _select_text(soup, selector)
        if len(text) > settings.min_container_length:
            return text
    return None


def from_content_selectors(soup: BeautifulSoup, settings: ExtractionSettings) -> Optional[str]:
    _strip(soup, NOISE_SELECTORS)
    for selector in CONTENT_SELECTORS:
        text = _select_text(soup, selector)
        if len(text) > settings.min_container_length:
            return text
    return None


def _in_content_container(node: Tag) -> bool:
    for candidate in (node, *node.parents):
        if not isinstance(candidate, Tag):
            continue
        if candidate.name in _CONTAINER_TAGS:
            return True
        if _CONTAINER_CLASSES.intersection(candidate.get("class") or ()):
            return True
    return False


def from_readability(soup: BeautifulSoup, settings: ExtractionSettings) -> Optional[str]:
    _strip(soup, NOISE_SELECTORS)
    low, high = settings.paragraph_bonus_range
    best: Optional[Tag] = None
    best_score = 0

    for paragraph in soup.find_all("p"):
        length = len(_text(paragraph))
        if length < settings.min_paragraph_length:
            continue
        score = length
        if low < length < high:
            score += settings.paragraph_bonus
        if _in_content_container(paragraph):
            score += settings.container_bonus
        link_count = len(paragraph.find_all("a"))
        if link_count > settings.link_density_threshold:
            score -= link_count * settings.link_penalty
        if score > best_score and isinstance(paragraph.parent, Tag):
            best_score = score
            best = paragraph.parent

    return _text(best) if best is not None else None


def from_body(soup: BeautifulSoup, settings: ExtractionSettings) -> Optional[str]:
    _strip(soup, BOILERPLATE_SELECTORS)
    text = _text(soup.body or soup)
    return text if len(text) > settings.min_content_length else None


STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("json_ld", from_json_ld),
    ("open_graph", from_open_graph),
    ("semantic", from_semantic_tags),
    ("selectors", from_content_selectors),
    ("readability", from_readability),
    ("fallback", from_body),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class ContentExtractor:
    """Runs the strategy cascade over a document."""

    def __init__(
        self,
        settings: Optional[ExtractionSettings] = None,
        strategies: Sequence[Tuple[str, Strategy]] = STRATEGIES,
    ) -> None:
        self.settings = settings or ExtractionSettings()
        self.strategies = tuple(strategies)

    def extract_content(self, html: str, url: str = "") -> Tuple[str, Optional[str]]:
        """Return ``(content, strategy_name)``; ``("", None)`` when nothing qualifies."""
        for name, strategy in self.strategies:
            try:
                result = strategy(BeautifulSoup(html, "html.parser"), self.settings)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Extraction strategy %s failed for %s: %s", name, url, exc)
                continue
            content = clean_content(result or "", self.settings.max_content_length)
            if len(content) > self.settings.min_content_length:
                logger.debug("Strategy %s matched %s (%d chars)", name, url, len(content))
                return content, name
        logger.debug("No strategy produced content for %s", url)
        return "", None

    def extract(self, html: str, url: str = "") -> ExtractedPage:
        content, strategy = self.extract_content(html, url)
        try:
            title = extract_title(BeautifulSoup(html, "html.parser"))
        except ParserRejectedMarkup as exc:
            logger.warning("Unparsable markup at %s: %s", url, exc)
            title = NO_TITLE
        return ExtractedPage(url=url, title=title, content=content, strategy=strategy)


def parse_html(html: str, url: str = "", settings: Optional[ExtractionSettings] = None) -> ExtractedPage:
    """Extract title and main content of *html* with the default cascade."""
    return ContentExtractor(settings).extract(html, url)
