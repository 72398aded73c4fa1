# File: tests/conftest.py
from __future__ import annotations

import logging
import random
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import List

import pytest
import pytest_asyncio
from aiohttp import web

from site_digest.config import CrawlerConfig
from site_digest.logger import LOGGER_NAME

LOREM = (
    "Coastal cities are drafting new flood defences after a decade of rising tides. "
    "Engineers say the barriers must be paired with wetlands restoration, stricter zoning "
    "and early-warning systems so that residents have time to leave before storms arrive. "
)


def article_html(title: str, body: str = LOREM, links: str = "", extra_head: str = "") -> str:
    """A small but realistic article page: nav, article body, footer."""
    return (
        f"<html><head><title>{title} | Example</title>{extra_head}</head><body>"
        f'<nav><a href="/">Home</a> <a href="/login">Sign in</a></nav>'
        f"<main><article><h1>{title}</h1><p>{body}</p>{links}</article></main>"
        f"<footer>Copyright Example Media</footer>"
        f"</body></html>"
    )


@pytest.fixture(autouse=True)
def reset_project_logger():
    """The CLI reconfigures the project logger; undo it between tests."""
    yield
    lg = logging.getLogger(LOGGER_NAME)
    for handler in list(lg.handlers):
        lg.removeHandler(handler)
        handler.close()
    lg.propagate = True
    lg.setLevel(logging.NOTSET)


@pytest.fixture()
def fast_config() -> CrawlerConfig:
    """Config without politeness or fallback pauses."""
    return CrawlerConfig(
        max_depth=2,
        max_links_per_page=3,
        timeout=2.0,
        fallback_delay=0.0,
        min_delay=0.0,
        max_delay=0.0,
        random_seed=7,
    )


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(1234)


class SleepRecorder:
    """Drop-in for asyncio.sleep that only records the requested delays."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


@pytest.fixture()
def fake_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest_asyncio.fixture
async def serve(unused_tcp_port_factory) -> AsyncIterator[Callable[[web.Application], Awaitable[str]]]:
    """Start aiohttp apps on free ports; yields a starter returning the base URL."""
    runners: List[web.AppRunner] = []

    async def _start(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "127.0.0.1", port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{port}"

    try:
        yield _start
    finally:
        for runner in runners:
            await runner.cleanup()


@pytest.fixture()
def make_article() -> Callable[..., str]:
    return article_html


@pytest.fixture()
def lorem() -> str:
    return LOREM
