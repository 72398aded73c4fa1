# File: site_digest/engine.py
"""site_digest.engine: orchestration layer that turns a crawl request into a report.

Seeds come either from the request URL or from the search collaborator; each
seed is crawled in its own session, several seeds at a time, and the pages
are concatenated in seed order before the optional summary is requested.
"""

from __future__ import annotations

import asyncio
import random
from typing import List, Optional

from site_digest.aggregator import CrawlReport, aggregate_results
from site_digest.config import CrawlerConfig, CrawlRequest, load_config
from site_digest.crawler.crawler import DepthCrawler
from site_digest.crawler.fetcher import SleepFunc
from site_digest.crawler.models import PageResult
from site_digest.exceptions import NoContentExtracted, NoSeedResolved, SummarizationFailed
from site_digest.logger import logger
from site_digest.search import SearchResolver, TavilySearch
from site_digest.summarizer import GeminiSummarizer, Summarizer, build_prompt
from site_digest.utils import canonicalize_url, remove_duplicates

__all__ = ["Engine", "resolve_seeds", "start_crawl"]


def _seed_key(url: str) -> str:
    try:
        return canonicalize_url(url)
    except ValueError:
        return url


async def resolve_seeds(
    request: CrawlRequest, config: CrawlerConfig, search: Optional[SearchResolver] = None
) -> List[str]:
    """The request URL, or the top search hits for the request query."""
    if request.url is not None:
        return [str(request.url)]

    query = request.query or ""
    resolver = search or TavilySearch(config.search)
    urls = await resolver.resolve(query)
    seeds = remove_duplicates(urls, key=_seed_key)[: config.search.max_seeds]
    if not seeds:
        raise NoSeedResolved(query)
    logger.info("Query %r resolved to seeds: %s", query, ", ".join(seeds))
    return seeds


async def _crawl_seeds(
    seeds: List[str],
    request: CrawlRequest,
    config: CrawlerConfig,
    rng: random.Random,
    sleep: SleepFunc,
) -> List[PageResult]:
    semaphore = asyncio.Semaphore(config.seed_concurrency)
    query = request.query or ""

    async with DepthCrawler(config, rng=rng, sleep=sleep) as crawler:

        async def _bounded(seed: str) -> List[PageResult]:
            async with semaphore:
                return await crawler.run(
                    seed,
                    query,
                    max_depth=request.max_depth,
                    max_links_per_page=request.max_links_per_page,
                )

        per_seed = await asyncio.gather(*(_bounded(seed) for seed in seeds))

    return [page for pages in per_seed for page in pages]


async def start_crawl(
    request: CrawlRequest,
    config: Optional[CrawlerConfig] = None,
    *,
    search: Optional[SearchResolver] = None,
    summarizer: Optional[Summarizer] = None,
    rng: Optional[random.Random] = None,
    sleep: SleepFunc = asyncio.sleep,
) -> CrawlReport:
    """
    Run a whole crawl request.

    Raises NoSeedResolved when the query finds nothing and NoContentExtracted
    when no page anywhere produced text; per-page failures are absorbed.
    """
    config = config or CrawlerConfig()
    rng = rng or random.Random(config.random_seed)

    seeds = await resolve_seeds(request, config, search)
    pages = await _crawl_seeds(seeds, request, config, rng, sleep)
    if not pages:
        raise NoContentExtracted()

    summary: Optional[str] = None
    if request.summarize:
        writer = summarizer or GeminiSummarizer(config.summary)
        prompt = build_prompt(pages, request.query, config.summary.char_budget)
        try:
            summary = await writer.summarize(prompt)
        except SummarizationFailed as exc:
            logger.warning("Summary unavailable: %s", exc)

    report = aggregate_results(
        pages, query=request.query, max_depth=request.max_depth, summary=summary
    )
    logger.info("Crawl request done: %d pages over %d depth levels", report.total_pages, len(report.depth_groups))
    return report


class Engine:
    """Facade for scripts and tests: config loading plus a blocking crawl call."""

    @staticmethod
    def load_config(path: Optional[str]) -> CrawlerConfig:
        """Load the config from YAML/JSON, or the defaults."""
        return load_config(path)

    def __init__(self, config: Optional[CrawlerConfig] = None) -> None:
        self.config = config or CrawlerConfig()

    def run(self, request: CrawlRequest, **kwargs) -> CrawlReport:
        """Run :func:`start_crawl` in a fresh event loop."""
        try:
            return asyncio.run(start_crawl(request, self.config, **kwargs))
        except (NoSeedResolved, NoContentExtracted) as exc:
            logger.error("Crawl request failed: %s", exc)
            raise
