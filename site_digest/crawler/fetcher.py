# site_digest/crawler/fetcher.py
"""
Fetcher module: retrieves raw HTML, walking the fallback ladder of request
profiles until one of them gets a 2xx/3xx answer.
"""
from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, Optional, Sequence

from aiohttp import ClientError, ClientResponseError, ClientSession, ClientTimeout

from site_digest.config import CrawlerConfig
from site_digest.crawler.models import CrawlSession
from site_digest.crawler.profiles import (
    FALLBACK_LADDER,
    ClientConfig,
    RequestProfile,
    build_client_config,
)
from site_digest.exceptions import FetchFailed
from site_digest.logger import get_logger

__all__ = ("Fetcher", "SleepFunc")

SleepFunc = Callable[[float], Awaitable[None]]


class Fetcher:
    """Fetches pages through an ordered list of browser-like request profiles."""

    def __init__(
        self,
        session: ClientSession,
        config: CrawlerConfig,
        *,
        rng: Optional[random.Random] = None,
        sleep: SleepFunc = asyncio.sleep,
        profiles: Sequence[RequestProfile] = FALLBACK_LADDER,
    ) -> None:
        self.session = session
        self.config = config
        self.rng = rng or random.Random(config.random_seed)
        self.sleep = sleep
        self.profiles = tuple(profiles)
        self.logger = get_logger("fetcher")

    def client_config(self, profile: RequestProfile) -> ClientConfig:
        return build_client_config(
            profile.headers,
            self.rng,
            timeout=self.config.timeout,
            max_redirects=self.config.max_redirects,
        )

    async def fetch(self, url: str, session: Optional[CrawlSession] = None) -> str:
        """
        Return the body of the first profile that succeeds.

        Raises FetchFailed, chained to the last attempt's error, once every
        profile failed or when *session* ran out of time before an attempt.
        """
        last_error: Optional[BaseException] = None
        for number, profile in enumerate(self.profiles, start=1):
            if session is not None and session.should_stop():
                raise FetchFailed(url, "crawl deadline reached") from last_error
            if profile.delay_before and self.config.fallback_delay:
                await self.sleep(self.config.fallback_delay)
            self.logger.debug("Trying profile %d (%s) for %s", number, profile.name, url)
            try:
                return await self._attempt(url, self.client_config(profile))
            except (ClientError, asyncio.TimeoutError) as exc:
                last_error = exc
                self.logger.debug("Profile %d (%s) failed for %s: %r", number, profile.name, url, exc)
        raise FetchFailed(url) from last_error

    async def _attempt(self, url: str, client: ClientConfig) -> str:
        async with self.session.get(
            url,
            headers=client.headers,
            timeout=ClientTimeout(total=client.timeout),
            allow_redirects=True,
            max_redirects=client.max_redirects,
        ) as resp:
            if not client.accepts(resp.status):
                raise ClientResponseError(
                    resp.request_info,
                    resp.history,
                    status=resp.status,
                    message=resp.reason or "",
                )
            return await resp.text(errors="replace")
