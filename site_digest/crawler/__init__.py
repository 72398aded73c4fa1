"""site_digest.crawler: fetching, link discovery and depth-first traversal."""

from .crawler import DepthCrawler
from .fetcher import Fetcher
from .link_extractor import LinkDiscoverer, rank_by_query
from .models import CandidateLink, CrawlSession, PageResult, group_by_depth

__all__ = [
    "DepthCrawler",
    "Fetcher",
    "LinkDiscoverer",
    "rank_by_query",
    "CandidateLink",
    "CrawlSession",
    "PageResult",
    "group_by_depth",
]
