"""Exception hierarchy for SiteDigest.

Per-page failures (:class:`FetchFailed`, :class:`InvalidLinkURL`,
:class:`ExtractionEmpty`) are absorbed by the crawler; only the request-level
ones (:class:`NoSeedResolved`, :class:`NoContentExtracted`) reach the caller.
"""
from __future__ import annotations

__all__ = (
    "SiteDigestError",
    "FetchFailed",
    "InvalidLinkURL",
    "ExtractionEmpty",
    "NoSeedResolved",
    "NoContentExtracted",
    "SummarizationFailed",
    "SearchFailed",
)


class SiteDigestError(Exception):
    """Base class for every error raised by the package."""


class FetchFailed(SiteDigestError):
    """All request profiles were exhausted for *url*."""

    def __init__(self, url: str, reason: str = "all request profiles failed") -> None:
        super().__init__(f"{reason}: {url}")
        self.url = url
        self.reason = reason


class InvalidLinkURL(SiteDigestError, ValueError):
    """An ``href`` could not be resolved to an absolute http(s) URL."""

    def __init__(self, href: str) -> None:
        super().__init__(f"invalid link URL: {href!r}")
        self.href = href


class ExtractionEmpty(SiteDigestError):
    """No extraction strategy produced enough text."""


class NoSeedResolved(SiteDigestError):
    """The search collaborator returned no candidate URL for *query*."""

    def __init__(self, query: str) -> None:
        super().__init__(f"No results found for query: {query!r}")
        self.query = query


class NoContentExtracted(SiteDigestError):
    """Every seed and every descendant produced zero pages."""

    def __init__(self) -> None:
        super().__init__("Failed to extract content from any pages")


class SearchFailed(SiteDigestError):
    """Transport or payload error while talking to the search API."""


class SummarizationFailed(SiteDigestError):
    """Transport or payload error while talking to the text-generation API."""
