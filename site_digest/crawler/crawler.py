# === FILE: site_digest/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import random
import time
from typing import List, Optional

from aiohttp import ClientSession, DummyCookieJar

from site_digest.config import CrawlerConfig
from site_digest.crawler.fetcher import Fetcher, SleepFunc
from site_digest.crawler.link_extractor import LinkDiscoverer, describe, rank_by_query
from site_digest.crawler.models import CandidateLink, CrawlSession, PageResult
from site_digest.exceptions import FetchFailed
from site_digest.logger import get_logger
from site_digest.parser.html_parser import ContentExtractor
from site_digest.utils import canonicalize_url

__all__ = ("DepthCrawler",)


class DepthCrawler:
    """
    Depth-first crawler: fetch, extract, discover links, recurse.

    All traversal state lives in the :class:`CrawlSession` threaded through
    the recursion, so one crawler can serve several seeds at once. Inside a
    session pages are fetched strictly one after another with a random
    politeness delay before each child.
    """

    def __init__(
        self,
        config: CrawlerConfig,
        *,
        rng: Optional[random.Random] = None,
        sleep: SleepFunc = asyncio.sleep,
        http: Optional[ClientSession] = None,
    ) -> None:
        self.config = config
        self.rng = rng or random.Random(config.random_seed)
        self.sleep = sleep
        self.extractor = ContentExtractor(config.extraction)
        self.logger = get_logger("crawler")
        self.http: Optional[ClientSession] = http
        self._owns_http = http is None
        self.fetcher: Optional[Fetcher] = None
        if http is not None:
            self.fetcher = self._make_fetcher(http)

    async def __aenter__(self) -> DepthCrawler:
        if self.http is None:
            # each request must look like a fresh visitor
            self.http = ClientSession(cookie_jar=DummyCookieJar(), raise_for_status=False)
            self.fetcher = self._make_fetcher(self.http)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_http and self.http and not self.http.closed:
            await self.http.close()

    def _make_fetcher(self, http: ClientSession) -> Fetcher:
        return Fetcher(http, self.config, rng=self.rng, sleep=self.sleep)

    def new_session(
        self,
        max_depth: Optional[int] = None,
        max_links_per_page: Optional[int] = None,
    ) -> CrawlSession:
        return CrawlSession.with_budget(
            max_depth=self.config.max_depth if max_depth is None else max_depth,
            max_links_per_page=(
                self.config.max_links_per_page if max_links_per_page is None else max_links_per_page
            ),
            budget=self.config.crawl_deadline,
        )

    async def run(
        self,
        seed_url: str,
        query: str = "",
        *,
        max_depth: Optional[int] = None,
        max_links_per_page: Optional[int] = None,
    ) -> List[PageResult]:
        """Crawl one seed in a fresh session and return its pages."""
        session = self.new_session(max_depth, max_links_per_page)
        self.logger.info("Crawl started: %s (depth %d)", seed_url, session.max_depth)
        start = time.monotonic()
        results = await self.crawl(seed_url, query, 0, session)
        duration = time.monotonic() - start
        self.logger.info(
            "Crawl finished: %s - %d pages, %d visited in %.2f s",
            seed_url, len(results), len(session.visited), duration,
        )
        return results

    async def crawl(
        self,
        start_url: str,
        query: str = "",
        depth: int = 0,
        session: Optional[CrawlSession] = None,
    ) -> List[PageResult]:
        """Visit *start_url* and its descendants; returns ``session.results``."""
        if self.fetcher is None:
            raise RuntimeError("Session not initialized")
        if session is None:
            session = self.new_session()

        try:
            url = canonicalize_url(start_url)
        except ValueError as exc:
            self.logger.warning("Skipping malformed URL %s: %s", start_url, exc)
            return session.results
        if depth > session.max_depth or url in session.visited:
            return session.results
        if session.should_stop():
            self.logger.info("Deadline reached, skipping %s", url)
            return session.results
        session.visited.add(url)

        self.logger.info("Crawling depth %d: %s", depth, url)
        try:
            html = await self.fetcher.fetch(url, session)
        except FetchFailed as exc:
            self.logger.warning("Failed to crawl %s: %s (%r)", url, exc.reason, exc.__cause__)
            return session.results

        page = self.extractor.extract(html, url)
        if page.content:
            session.results.append(
                PageResult(url=url, title=page.title, content=page.content, depth=depth)
            )
        else:
            self.logger.debug("No content extracted from %s", url)

        if depth < session.max_depth:
            for link in self.select_links(html, url, query, session.max_links_per_page):
                if session.should_stop():
                    break
                await self.sleep(self.rng.uniform(self.config.min_delay, self.config.max_delay))
                await self.crawl(link.url, query, depth + 1, session)

        return session.results

    def select_links(self, html: str, base_url: str, query: str, limit: int) -> List[CandidateLink]:
        """Discovered links, re-ranked by *query* when one is given, cut to *limit*."""
        links = LinkDiscoverer(base_url, self.config.links).discover(html)
        if query and query.strip():
            selected = rank_by_query(links, query, limit, self.config.relevance)
        else:
            selected = links[:limit]
        self.logger.debug("Selected links on %s: %s", base_url, describe(selected))
        return selected
