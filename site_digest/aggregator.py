# File: site_digest/aggregator.py
"""site_digest.aggregator: turns crawled pages into the report handed to callers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from site_digest.crawler.models import PageResult, group_by_depth

__all__ = ("CrawlReport", "aggregate_results", "DIRECT_URL_QUERY", "NO_SUMMARY")

DIRECT_URL_QUERY = "Direct URL scraping"
NO_SUMMARY = "No summary requested - set summarize=true to get AI summary"


@dataclass(slots=True)
class CrawlReport:
    """Result of one crawl request: pages in discovery order and their depth groups."""

    query: str
    max_depth: int
    pages: List[PageResult] = field(default_factory=list)
    depth_groups: Dict[int, List[PageResult]] = field(default_factory=dict)
    summary: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def total_pages(self) -> int:
        return len(self.pages)

    def to_dict(self, *, preview_size: int = 300) -> Dict[str, Any]:
        """Output payload; full content lives in ``depthWiseResults``, previews in ``rawResults``."""
        return {
            "query": self.query,
            "timestamp": self.timestamp,
            "totalPages": self.total_pages,
            "maxDepth": self.max_depth,
            "depthWiseResults": {
                str(depth): [page.to_dict() for page in pages]
                for depth, pages in self.depth_groups.items()
            },
            "summary": self.summary if self.summary is not None else NO_SUMMARY,
            "rawResults": [page.preview(preview_size) for page in self.pages],
        }

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def aggregate_results(
    pages: Sequence[PageResult],
    *,
    query: Optional[str],
    max_depth: int,
    summary: Optional[str] = None,
) -> CrawlReport:
    """Build the report; depth groups are computed once, here."""
    return CrawlReport(
        query=query or DIRECT_URL_QUERY,
        max_depth=max_depth,
        pages=list(pages),
        depth_groups=group_by_depth(pages),
        summary=summary,
    )
