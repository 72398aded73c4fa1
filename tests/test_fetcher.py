# File: tests/test_fetcher.py
from __future__ import annotations

import random
from typing import List

import pytest
from aiohttp import ClientSession, web
from multidict import CIMultiDict

from site_digest.crawler.fetcher import Fetcher
from site_digest.crawler.models import CrawlSession
from site_digest.crawler.profiles import (
    BASE_HEADERS,
    FALLBACK_LADDER,
    MOBILE_SAFARI_UA,
    USER_AGENTS,
    ClientConfig,
    build_client_config,
)
from site_digest.exceptions import FetchFailed


# --------------------------------------------------------------------------- #
#                              Request profiles                               #
# --------------------------------------------------------------------------- #


def test_user_agent_pool_covers_desktop_and_mobile():
    assert len(USER_AGENTS) >= 5
    assert any("Windows" in ua for ua in USER_AGENTS)
    assert any("Macintosh" in ua for ua in USER_AGENTS)
    assert any("Linux" in ua for ua in USER_AGENTS)
    assert any("Firefox" in ua for ua in USER_AGENTS)
    assert any("Mobile" in ua for ua in USER_AGENTS)


def test_build_client_config_defaults():
    cfg = build_client_config(rng=random.Random(3))
    assert cfg.user_agent in USER_AGENTS
    for key, value in BASE_HEADERS.items():
        assert cfg.headers[key] == value
    for key in ("Sec-Fetch-Dest", "Sec-Fetch-Mode", "Sec-Fetch-Site", "DNT", "Pragma"):
        assert key in cfg.headers
    assert cfg.timeout == 20.0
    assert cfg.max_redirects == 5


def test_build_client_config_is_deterministic_with_seeded_rng():
    first = build_client_config(rng=random.Random(99)).user_agent
    second = build_client_config(rng=random.Random(99)).user_agent
    assert first == second


def test_override_headers_replace_baseline():
    cfg = build_client_config(
        {"Accept-Language": "en-GB,en;q=0.9", "User-Agent": MOBILE_SAFARI_UA, "Referer": "https://x/"},
        random.Random(0),
    )
    assert cfg.headers["Accept-Language"] == "en-GB,en;q=0.9"
    assert cfg.user_agent == MOBILE_SAFARI_UA
    assert cfg.headers["Referer"] == "https://x/"


@pytest.mark.parametrize(
    "status,accepted",
    [(199, False), (200, True), (204, True), (301, True), (399, True), (400, False), (403, False), (503, False)],
)
def test_success_predicate(status, accepted):
    assert ClientConfig.accepts(status) is accepted


def test_fallback_ladder_order():
    names = [p.name for p in FALLBACK_LADDER]
    assert names == ["default", "google-referer", "duckduckgo-chrome", "mobile-safari"]
    assert FALLBACK_LADDER[1].headers["Referer"] == "https://www.google.com/"
    assert FALLBACK_LADDER[2].delay_before
    assert "Sec-CH-UA" in FALLBACK_LADDER[2].headers
    assert FALLBACK_LADDER[3].headers["User-Agent"] == MOBILE_SAFARI_UA


# --------------------------------------------------------------------------- #
#                                   Fetcher                                   #
# --------------------------------------------------------------------------- #


def recording_app(responder) -> tuple[web.Application, List[CIMultiDict]]:
    """App answering /page with *responder(headers, attempt)*; records request headers."""
    seen: List[CIMultiDict] = []

    async def handle(request: web.Request) -> web.Response:
        seen.append(request.headers.copy())
        return responder(request.headers, len(seen))

    app = web.Application()
    app.router.add_get("/page", handle)
    return app, seen


@pytest.mark.asyncio()
async def test_first_profile_wins(serve, fast_config, fake_sleep):
    app, seen = recording_app(lambda h, n: web.Response(text="<p>ok</p>", content_type="text/html"))
    base = await serve(app)
    async with ClientSession() as http:
        body = await Fetcher(http, fast_config, sleep=fake_sleep).fetch(f"{base}/page")
    assert body == "<p>ok</p>"
    assert len(seen) == 1
    assert seen[0]["User-Agent"] in USER_AGENTS
    assert "Referer" not in seen[0]


@pytest.mark.asyncio()
async def test_google_referer_profile_after_403(serve, fast_config, fake_sleep):
    def responder(headers, attempt):
        if headers.get("Referer") == "https://www.google.com/":
            return web.Response(text="welcome", content_type="text/html")
        return web.Response(status=403)

    app, seen = recording_app(responder)
    base = await serve(app)
    async with ClientSession() as http:
        body = await Fetcher(http, fast_config, sleep=fake_sleep).fetch(f"{base}/page")
    assert body == "welcome"
    assert len(seen) == 2
    assert fake_sleep.calls == []


@pytest.mark.asyncio()
async def test_mobile_profile_is_last_resort(serve, fast_config, fake_sleep):
    def responder(headers, attempt):
        if "iPhone" in headers.get("User-Agent", ""):
            return web.Response(text="mobile page", content_type="text/html")
        return web.Response(status=429)

    app, seen = recording_app(responder)
    base = await serve(app)
    config = fast_config.model_copy(update={"fallback_delay": 2.0})
    async with ClientSession() as http:
        body = await Fetcher(http, config, sleep=fake_sleep).fetch(f"{base}/page")

    assert body == "mobile page"
    assert len(seen) == 4
    third = seen[2]
    assert third["Referer"] == "https://duckduckgo.com/"
    assert third["Accept-Language"] == "en-GB,en;q=0.9"
    assert "Sec-CH-UA" in third and third["Sec-CH-UA-Mobile"] == "?0"
    # the pause happens once, right before the third profile
    assert fake_sleep.calls == [2.0]


@pytest.mark.asyncio()
async def test_all_profiles_fail(serve, fast_config, fake_sleep):
    app, seen = recording_app(lambda h, n: web.Response(status=503))
    base = await serve(app)
    async with ClientSession() as http:
        with pytest.raises(FetchFailed) as info:
            await Fetcher(http, fast_config, sleep=fake_sleep).fetch(f"{base}/page")
    assert len(seen) == 4
    assert info.value.url == f"{base}/page"
    assert info.value.__cause__ is not None


@pytest.mark.asyncio()
async def test_connection_errors_exhaust_ladder(unused_tcp_port, fast_config, fake_sleep):
    # nothing listens on this port
    async with ClientSession() as http:
        with pytest.raises(FetchFailed):
            await Fetcher(http, fast_config, sleep=fake_sleep).fetch(f"http://127.0.0.1:{unused_tcp_port}/")


@pytest.mark.asyncio()
async def test_redirects_are_followed(serve, fast_config, fake_sleep):
    async def moved(_):
        raise web.HTTPFound("/final")

    async def final(_):
        return web.Response(text="landed", content_type="text/html")

    app = web.Application()
    app.router.add_get("/start", moved)
    app.router.add_get("/final", final)
    base = await serve(app)
    async with ClientSession() as http:
        body = await Fetcher(http, fast_config, sleep=fake_sleep).fetch(f"{base}/start")
    assert body == "landed"


@pytest.mark.asyncio()
async def test_redirect_loop_fails(serve, fast_config, fake_sleep):
    async def loop(_):
        raise web.HTTPFound("/loop")

    app = web.Application()
    app.router.add_get("/loop", loop)
    base = await serve(app)
    async with ClientSession() as http:
        with pytest.raises(FetchFailed):
            await Fetcher(http, fast_config, sleep=fake_sleep).fetch(f"{base}/loop")


@pytest.mark.asyncio()
async def test_expired_session_stops_before_requesting(serve, fast_config, fake_sleep):
    app, seen = recording_app(lambda h, n: web.Response(text="never", content_type="text/html"))
    base = await serve(app)
    session = CrawlSession(max_depth=1, max_links_per_page=1)
    session.cancel()
    async with ClientSession() as http:
        with pytest.raises(FetchFailed) as info:
            await Fetcher(http, fast_config, sleep=fake_sleep).fetch(f"{base}/page", session)
    assert info.value.reason == "crawl deadline reached"
    assert seen == []
