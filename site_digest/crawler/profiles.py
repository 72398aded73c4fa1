# site_digest/crawler/profiles.py
"""
Browser-like request profiles.

:func:`build_client_config` produces the headers and transport limits of one
outbound request; :data:`FALLBACK_LADDER` lists the profiles the fetcher tries
in turn when a site answers with 403/429 or drops the connection.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence, Tuple

__all__ = (
    "USER_AGENTS",
    "MOBILE_SAFARI_UA",
    "BASE_HEADERS",
    "ClientConfig",
    "RequestProfile",
    "FALLBACK_LADDER",
    "build_client_config",
)

USER_AGENTS: Tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:109.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36",
)

MOBILE_SAFARI_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)

BASE_HEADERS: Mapping[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    # no "br": aiohttp only decodes brotli when the optional package is installed
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Everything one request needs: headers, timeout and redirect policy."""

    headers: Dict[str, str]
    timeout: float = 20.0
    max_redirects: int = 5

    @property
    def user_agent(self) -> str:
        return self.headers["User-Agent"]

    @staticmethod
    def accepts(status: int) -> bool:
        """2xx and 3xx are success; redirects are not failures."""
        return 200 <= status < 400


@dataclass(frozen=True, slots=True)
class RequestProfile:
    """One rung of the fallback ladder."""

    name: str
    headers: Mapping[str, str] = field(default_factory=dict)
    delay_before: bool = False


FALLBACK_LADDER: Tuple[RequestProfile, ...] = (
    RequestProfile("default"),
    RequestProfile("google-referer", {"Referer": "https://www.google.com/"}),
    RequestProfile(
        "duckduckgo-chrome",
        {
            "Referer": "https://duckduckgo.com/",
            "Accept-Language": "en-GB,en;q=0.9",
            "Sec-CH-UA": '"Google Chrome";v="120", "Chromium";v="120", "Not?A_Brand";v="99"',
            "Sec-CH-UA-Mobile": "?0",
            "Sec-CH-UA-Platform": '"Windows"',
        },
        delay_before=True,
    ),
    RequestProfile("mobile-safari", {"User-Agent": MOBILE_SAFARI_UA}),
)


def build_client_config(
    override_headers: Optional[Mapping[str, str]] = None,
    rng: Optional[random.Random] = None,
    *,
    timeout: float = 20.0,
    max_redirects: int = 5,
    user_agents: Sequence[str] = USER_AGENTS,
) -> ClientConfig:
    """Baseline headers plus a random user-agent; *override_headers* win over both."""
    rng = rng or random.Random()
    headers = {"User-Agent": rng.choice(list(user_agents)), **BASE_HEADERS}
    if override_headers:
        headers.update(override_headers)
    return ClientConfig(headers=headers, timeout=timeout, max_redirects=max_redirects)
