"""site_digest.summarizer: hands the crawled text to a text-generation service.

:func:`build_prompt` is pure and fully owned by SiteDigest; the network call
is delegated to a :class:`Summarizer`, by default Google's Gemini REST API.
"""
from __future__ import annotations

import asyncio
from typing import Any, Optional, Protocol, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_digest.config import SummarySettings
from site_digest.crawler.models import PageResult
from site_digest.exceptions import SummarizationFailed

__all__ = ("Summarizer", "GeminiSummarizer", "build_prompt", "SEPARATOR")

SEPARATOR = "\n\n---\n\n"


def build_prompt(results: Sequence[PageResult], query: Optional[str] = None, budget: int = 40_000) -> str:
    """Join pages as ``[URL] / [Title] / text`` blocks, cut to *budget* chars, add the instruction."""
    combined = SEPARATOR.join(
        f"[URL: {r.url}]\n[Title: {r.title}]\n{r.content}" for r in results
    )[:budget]
    if query:
        return (
            "Based on the following web content from multiple pages, please provide a "
            f'comprehensive answer to: "{query}"\n\nContent:\n{combined}'
        )
    return (
        "Summarize and extract the most important information from the following web "
        f"content collected from multiple pages:\n\n{combined}"
    )


class Summarizer(Protocol):
    async def summarize(self, prompt: str) -> str:
        """Return the plain-text answer for *prompt*."""
        ...


class GeminiSummarizer:
    """Calls ``models/<model>:generateContent`` and returns the concatenated text parts."""

    def __init__(self, settings: Optional[SummarySettings] = None, http: Optional[ClientSession] = None) -> None:
        self.settings = settings or SummarySettings()
        self._http = http

    @property
    def url(self) -> str:
        return f"{self.settings.endpoint.rstrip('/')}/{self.settings.model}:generateContent"

    async def summarize(self, prompt: str) -> str:
        if not self.settings.api_key:
            raise SummarizationFailed("Gemini API key is not configured (set GEMINI_API_KEY)")

        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        http = self._http or ClientSession()
        try:
            async with http.post(
                self.url,
                params={"key": self.settings.api_key},
                json=payload,
                timeout=ClientTimeout(total=self.settings.timeout),
            ) as resp:
                if resp.status != 200:
                    raise SummarizationFailed(f"Gemini returned HTTP {resp.status}")
                data: Any = await resp.json(content_type=None)
        except (ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise SummarizationFailed(f"Gemini request failed: {exc}") from exc
        finally:
            if self._http is None:
                await http.close()

        try:
            parts = data["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError) as exc:
            raise SummarizationFailed("Unexpected Gemini response payload") from exc
