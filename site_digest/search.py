"""site_digest.search: resolves a free-text query into seed URLs.

The crawler only needs the ``url`` of each hit; anything implementing
:class:`SearchResolver` can stand in for the Tavily client (tests use a stub).
"""
from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Protocol

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_digest.config import SearchSettings
from site_digest.exceptions import SearchFailed
from site_digest.logger import get_logger

__all__ = ("SearchResolver", "TavilySearch")

logger = get_logger("search")


class SearchResolver(Protocol):
    async def resolve(self, query: str) -> List[str]:
        """Return candidate URLs for *query*, best first."""
        ...


class TavilySearch:
    """Tavily search API client returning result URLs."""

    def __init__(self, settings: Optional[SearchSettings] = None, http: Optional[ClientSession] = None) -> None:
        self.settings = settings or SearchSettings()
        self._http = http

    async def resolve(self, query: str) -> List[str]:
        if not self.settings.api_key:
            raise SearchFailed("Tavily API key is not configured (set TAVILY_API_KEY)")

        payload = {"query": query, "max_results": self.settings.max_results}
        headers = {"Authorization": f"Bearer {self.settings.api_key}"}
        http = self._http or ClientSession()
        try:
            async with http.post(
                self.settings.endpoint,
                json=payload,
                headers=headers,
                timeout=ClientTimeout(total=self.settings.timeout),
            ) as resp:
                if resp.status != 200:
                    raise SearchFailed(f"Tavily returned HTTP {resp.status}")
                data: Any = await resp.json(content_type=None)
        except (ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise SearchFailed(f"Tavily request failed: {exc}") from exc
        finally:
            if self._http is None:
                await http.close()

        results = data.get("results") if isinstance(data, dict) else None
        urls = [r["url"] for r in results or [] if isinstance(r, dict) and isinstance(r.get("url"), str)]
        logger.info("Search %r resolved to %d URLs", query, len(urls))
        return urls[: self.settings.max_results]
