# site_digest/crawler/link_extractor.py
"""
Link discovery and ranking for SiteDigest.

:class:`LinkDiscoverer` collects same-site links from a page and scores
them with URL, anchor-text and context hints; :func:`rank_by_query` re-ranks
them against the words of a search query.
"""
from __future__ import annotations

import re
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, ParserRejectedMarkup
from bs4.element import Tag

from site_digest.config import LinkWeights, RelevanceWeights
from site_digest.crawler.models import CandidateLink
from site_digest.exceptions import InvalidLinkURL
from site_digest.logger import get_logger
from site_digest.utils import extract_host, is_same_site, resolve_href

__all__ = (
    "LINK_SELECTORS",
    "BLOCKED_EXTENSIONS",
    "BLOCKED_PATHS",
    "LinkDiscoverer",
    "rank_by_query",
)

logger = get_logger("links")

LINK_SELECTORS: Tuple[str, ...] = (
    'a[href*="article"]',
    'a[href*="post"]',
    'a[href*="blog"]',
    'a[href*="news"]',
    'a[href*="story"]',
    'a[href*="content"]',
    'a[href*="page"]',
    "main a",
    "article a",
    ".content a",
    "#content a",
    ".post a",
    ".entry a",
    "a",
)

BLOCKED_EXTENSIONS: Tuple[str, ...] = (
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".rar", ".exe", ".dmg",
    ".jpg", ".jpeg", ".png", ".gif", ".svg",
    ".mp3", ".mp4", ".avi", ".mov",
)

BLOCKED_PATHS: Tuple[str, ...] = (
    "/login", "/register", "/cart", "/checkout", "/account", "/admin",
    "/wp-admin", "/search", "/tag/", "/category/", "/author/",
)

_CONTEXT_LIMIT = 200
_WS_RE = re.compile(r"\s+")


def _text(node: Tag) -> str:
    return _WS_RE.sub(" ", node.get_text(" ")).strip()


class LinkDiscoverer:
    """Extracts, filters and scores the links of pages from one site."""

    def __init__(self, base_url: str, weights: Optional[LinkWeights] = None) -> None:
        self.base_url = base_url
        self.base_host = extract_host(base_url)
        self.weights = weights or LinkWeights()

    def discover(self, html: str) -> List[CandidateLink]:
        """Return at most ``weights.max_links`` candidates, best first."""
        try:
            soup = BeautifulSoup(html, "html.parser")
        except ParserRejectedMarkup as exc:
            logger.warning("Unparsable markup at %s, no links taken: %s", self.base_url, exc)
            return []
        seen: set[str] = set()
        links: List[CandidateLink] = []

        for selector in LINK_SELECTORS:
            for tag in soup.select(selector):
                href = tag.get("href")
                if not isinstance(href, str) or not href.strip():
                    continue
                try:
                    absolute = resolve_href(href, self.base_url)
                except InvalidLinkURL as exc:
                    logger.debug("Skipping link: %s", exc)
                    continue
                if absolute in seen:
                    continue
                seen.add(absolute)
                if not self.is_valid_link(absolute):
                    continue
                anchor = _text(tag)
                context = self.extract_context(tag)
                links.append(
                    CandidateLink(
                        url=absolute,
                        anchor_text=anchor,
                        context=context,
                        priority=self.score(absolute, anchor, context),
                        selector=selector,
                    )
                )

        # sorted() is stable: equal priorities keep encounter order
        ranked = sorted(links, key=lambda link: link.priority, reverse=True)
        return ranked[: self.weights.max_links]

    def is_valid_link(self, url: str) -> bool:
        """Same site, not a binary file, not an account/search page, not a bare fragment."""
        host = extract_host(url)
        if not is_same_site(host, self.base_host):
            return False

        path = urlsplit(url).path.lower()
        if path.endswith(BLOCKED_EXTENSIONS):
            return False
        if any(blocked in path for blocked in BLOCKED_PATHS):
            return False

        if "#" in url and "?" not in url:
            return False
        return True

    @staticmethod
    def extract_context(tag: Tag) -> str:
        """Text of the enclosing element, cut to 200 characters."""
        parent = tag.parent
        if not isinstance(parent, Tag):
            return ""
        context = _text(parent)
        if len(context) > _CONTEXT_LIMIT:
            context = context[: _CONTEXT_LIMIT - 3] + "..."
        return context

    def score(self, url: str, anchor_text: str, context: str) -> int:
        w = self.weights
        priority = 0

        url_lower = url.lower()
        for hint, points in w.url_hints.items():
            if hint in url_lower:
                priority += points

        text_lower = anchor_text.lower()
        for hint, points in w.anchor_hints.items():
            if hint in text_lower:
                priority += points
        if 10 < len(anchor_text) < 100:
            priority += w.descriptive_anchor

        context_lower = context.lower()
        if "article" in context_lower or "post" in context_lower:
            priority += w.context_hint

        if len(anchor_text) < 5:
            priority -= w.short_anchor_penalty
        if len(anchor_text) > 150:
            priority -= w.long_anchor_penalty
        # pagination links ("2", "3", ...) are noise
        if anchor_text.isdigit():
            priority -= w.numeric_anchor_penalty

        return priority


def rank_by_query(
    links: Sequence[CandidateLink],
    query: str,
    limit: int,
    weights: Optional[RelevanceWeights] = None,
) -> List[CandidateLink]:
    """Add per-term points for query words found in anchor, context and URL; keep *limit*."""
    terms = query.lower().split()
    if not terms:
        return list(links[:limit])
    w = weights or RelevanceWeights()

    scored: List[CandidateLink] = []
    for link in links:
        relevance = link.priority
        anchor, context, url = link.anchor_text.lower(), link.context.lower(), link.url.lower()
        for term in terms:
            if term in anchor:
                relevance += w.anchor
            if term in context:
                relevance += w.context
            if term in url:
                relevance += w.url
        scored.append(replace(link, relevance=relevance))

    scored.sort(key=lambda link: link.score, reverse=True)
    return scored[:limit]


def describe(links: Sequence[CandidateLink]) -> Dict[str, int]:
    """Map URL to score; handy in debug logs."""
    return {link.url: link.score for link in links}
