# site_digest/crawler/models.py
"""
Data models for the SiteDigest crawler.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set

__all__ = (
    "NO_TITLE",
    "PageResult",
    "CandidateLink",
    "CrawlSession",
    "group_by_depth",
)

NO_TITLE = "No title found"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class PageResult:
    """One successfully extracted page."""

    url: str
    title: str
    content: str
    depth: int
    timestamp: str = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        if not self.content:
            raise ValueError(f"PageResult for {self.url} has no content")
        if self.depth < 0:
            raise ValueError("depth must be >= 0")
        if not self.title:
            self.title = NO_TITLE

    @property
    def content_length(self) -> int:
        return len(self.content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "depth": self.depth,
            "contentLength": self.content_length,
            "timestamp": self.timestamp,
        }

    def preview(self, size: int = 300) -> Dict[str, Any]:
        """Same as :meth:`to_dict` with the content cut down to *size* chars."""
        data = self.to_dict()
        del data["content"]
        data["contentPreview"] = self.content[:size] + "..."
        return data


@dataclass(slots=True)
class CandidateLink:
    """A link found on a page; only lives while the next frontier is built."""

    url: str
    anchor_text: str
    context: str
    priority: int
    selector: str
    relevance: Optional[int] = None

    @property
    def score(self) -> int:
        """Query-adjusted score when re-ranked, the plain priority otherwise."""
        return self.priority if self.relevance is None else self.relevance


@dataclass(slots=True)
class CrawlSession:
    """State of one top-level crawl: visited URLs and results in discovery order."""

    max_depth: int
    max_links_per_page: int
    deadline: Optional[float] = None
    visited: Set[str] = field(default_factory=set)
    results: List[PageResult] = field(default_factory=list)
    cancelled: bool = False

    @classmethod
    def with_budget(
        cls, max_depth: int, max_links_per_page: int, budget: Optional[float] = None
    ) -> CrawlSession:
        """Create a session whose deadline lies *budget* seconds from now."""
        deadline = time.monotonic() + budget if budget else None
        return cls(max_depth=max_depth, max_links_per_page=max_links_per_page, deadline=deadline)

    def cancel(self) -> None:
        self.cancelled = True

    def should_stop(self) -> bool:
        if self.cancelled:
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline


def group_by_depth(results: Iterable[PageResult]) -> Dict[int, List[PageResult]]:
    """Partition *results* by depth, keeping discovery order inside each level."""
    groups: Dict[int, List[PageResult]] = {}
    for result in results:
        groups.setdefault(result.depth, []).append(result)
    return dict(sorted(groups.items()))
