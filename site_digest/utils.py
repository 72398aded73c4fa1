# File: site_digest/utils.py
"""site_digest.utils: URL helpers shared by the link discoverer and the crawler."""

from __future__ import annotations

from typing import Callable, Collection, List, Optional, Sequence
from urllib.parse import urljoin, urlsplit, urlunsplit

from site_digest.exceptions import InvalidLinkURL
from site_digest.logger import logger

__all__: Sequence[str] = (
    "canonicalize_url",
    "resolve_href",
    "extract_host",
    "is_same_site",
    "remove_duplicates",
)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def canonicalize_url(url: str) -> str:
    """Lower-case scheme and host, drop default port and fragment, root path becomes ``/``."""
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if ":" in host:
        host = f"[{host}]"
    # raises ValueError for ports outside 0-65535
    port = parts.port
    netloc = host if port is None or _DEFAULT_PORTS.get(scheme) == port else f"{host}:{port}"
    if parts.username:
        creds = parts.username + (f":{parts.password}" if parts.password else "")
        netloc = f"{creds}@{netloc}"
    path = parts.path or "/"
    return urlunsplit((scheme, netloc, path, parts.query, ""))


def resolve_href(href: str, base_url: str) -> str:
    """Resolve *href* against *base_url*; raise :class:`InvalidLinkURL` unless http(s)."""
    try:
        absolute = urljoin(base_url, href.strip())
        parts = urlsplit(absolute)
        # .port raises ValueError on garbage such as "http://host:99999"
        parts.port
    except ValueError as exc:
        raise InvalidLinkURL(href) from exc
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise InvalidLinkURL(href)
    return absolute


def extract_host(url: str) -> str:
    """Return the lower-cased hostname of *url* without port."""
    return (urlsplit(url).hostname or "").lower()


def _strip_www(host: str) -> str:
    return host[4:] if host.startswith("www.") else host


def is_same_site(host: str, origin_host: str) -> bool:
    """True when *host* is the origin, its ``www.`` twin, or one of its subdomains."""
    host, origin = _strip_www(host.lower()), _strip_www(origin_host.lower())
    if not host or not origin:
        return False
    return host == origin or host.endswith("." + origin)


def remove_duplicates(urls: Collection[str], key: Optional[Callable[[str], str]] = None) -> List[str]:
    """Remove duplicate URLs, keeping the first occurrence and the order."""
    seen: set[str] = set()
    unique: List[str] = []
    for url in urls:
        marker = key(url) if key else url
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(url)
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
