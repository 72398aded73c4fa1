# File: tests/test_link_extractor.py
import pytest
from bs4 import ParserRejectedMarkup

from site_digest.config import LinkWeights
from site_digest.crawler import link_extractor
from site_digest.crawler.link_extractor import LinkDiscoverer, rank_by_query
from site_digest.crawler.models import CandidateLink
from site_digest.utils import canonicalize_url, is_same_site, remove_duplicates, resolve_href
from site_digest.exceptions import InvalidLinkURL

BASE = "https://example.com/home"


def page(body: str) -> str:
    return f"<html><body>{body}</body></html>"


def urls(links):
    return [link.url for link in links]


# --------------------------------------------------------------------------- #
#                                 URL helpers                                 #
# --------------------------------------------------------------------------- #


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("HTTPS://Example.COM", "https://example.com/"),
        ("https://example.com:443/a?b=1#frag", "https://example.com/a?b=1"),
        ("http://example.com:8080/x", "http://example.com:8080/x"),
        ("http://example.com:80/x/", "http://example.com/x/"),
        ("http://[::1]:8080/a", "http://[::1]:8080/a"),
        ("http://[2001:DB8::1]:80/", "http://[2001:db8::1]/"),
    ],
)
def test_canonicalize_url(raw, expected):
    assert canonicalize_url(raw) == expected


def test_canonicalize_url_rejects_bad_port():
    with pytest.raises(ValueError):
        canonicalize_url("http://example.com:99999/")


@pytest.mark.parametrize("href", ["mailto:news@example.com", "javascript:void(0)", "tel:+100", "http://host:99999/"])
def test_resolve_href_rejects_non_http(href):
    with pytest.raises(InvalidLinkURL):
        resolve_href(href, BASE)


def test_resolve_href_relative():
    assert resolve_href("../news/a", "https://example.com/x/y") == "https://example.com/news/a"
    assert resolve_href("//cdn.example.com/p", BASE) == "https://cdn.example.com/p"


@pytest.mark.parametrize(
    "host,origin,same",
    [
        ("example.com", "example.com", True),
        ("www.example.com", "example.com", True),
        ("example.com", "www.example.com", True),
        ("blog.example.com", "example.com", True),
        ("notexample.com", "example.com", False),
        ("other.org", "example.com", False),
        ("", "example.com", False),
    ],
)
def test_is_same_site(host, origin, same):
    assert is_same_site(host, origin) is same


def test_remove_duplicates_keeps_first_occurrence():
    items = ["https://a.com/", "https://b.com/", "https://a.com/", "https://A.com"]
    assert remove_duplicates(items) == ["https://a.com/", "https://b.com/", "https://A.com"]
    assert remove_duplicates(items, key=canonicalize_url) == ["https://a.com/", "https://b.com/"]


# --------------------------------------------------------------------------- #
#                               Link discovery                                #
# --------------------------------------------------------------------------- #


def test_filters_unwanted_links():
    html = page(
        '<a href="/login">Sign in</a>'
        '<a href="/files/report.PDF">Annual report download</a>'
        '<a href="/tag/climate">Climate tag listing</a>'
        '<a href="https://other.org/story">Elsewhere story link</a>'
        '<a href="#comments">Jump to comments</a>'
        '<a href="mailto:desk@example.com">Write to the desk</a>'
        '<a href="">Empty link text here</a>'
        '<a>No href at all here</a>'
        '<a href="/news/kept">A story that survives filtering</a>'
    )
    links = LinkDiscoverer(BASE).discover(html)
    assert urls(links) == ["https://example.com/news/kept"]


def test_fragment_with_query_is_kept():
    html = page('<a href="/list?page=2#top">Next page of results</a>')
    assert urls(LinkDiscoverer(BASE).discover(html)) == ["https://example.com/list?page=2#top"]


def test_subdomain_and_www_links_are_same_site():
    html = page(
        '<a href="https://blog.example.com/post/1">Blog post about the harbour</a>'
        '<a href="https://www.example.com/about">About the newsroom team</a>'
        '<a href="https://example.org/about">Different site entirely</a>'
    )
    found = urls(LinkDiscoverer(BASE).discover(html))
    assert "https://blog.example.com/post/1" in found
    assert "https://www.example.com/about" in found
    assert "https://example.org/about" not in found


def test_duplicates_are_reported_once():
    html = page(
        '<main><a href="/news/one">First headline of the day</a></main>'
        '<article><a href="/news/one">First headline of the day</a></article>'
        '<a href="https://example.com/news/one">Again the same</a>'
    )
    links = LinkDiscoverer(BASE).discover(html)
    assert urls(links) == ["https://example.com/news/one"]
    # first selector that matched it wins
    assert links[0].selector == 'a[href*="news"]'


def test_scores_follow_weights():
    html = page(
        '<ul><li><a href="/news/article-1">Read more about the flood</a></li></ul>'
        '<div class="pager"><a href="/page/2">2</a></div>'
    )
    by_url = {link.url: link for link in LinkDiscoverer(BASE).discover(html)}
    assert by_url["https://example.com/news/article-1"].priority == 73
    assert by_url["https://example.com/page/2"].priority == -30


def test_context_hint_and_truncation():
    long_text = "This post explains the new budget. " * 10
    html = page(f'<p>{long_text}<a href="/budget">Budget explained</a></p>')
    (link,) = LinkDiscoverer(BASE).discover(html)
    assert len(link.context) == 200
    assert link.context.endswith("...")
    discoverer = LinkDiscoverer(BASE)
    without = discoverer.score(link.url, link.anchor_text, "")
    assert link.priority - without == LinkWeights().context_hint


def test_long_anchor_penalty():
    discoverer = LinkDiscoverer(BASE)
    long_anchor = "x" * 151
    assert discoverer.score("https://example.com/a", long_anchor, "") == -5


def test_discover_caps_and_sorts():
    anchors = "".join(f'<a href="/item/{i}">Item number {i:02d} in list</a>' for i in range(15))
    html = page(anchors + '<a href="/news/article/top">Full article on the top story</a>')
    links = LinkDiscoverer(BASE).discover(html)
    assert len(links) == 10
    assert links[0].url == "https://example.com/news/article/top"
    priorities = [link.priority for link in links]
    assert priorities == sorted(priorities, reverse=True)
    # ties keep document order
    assert urls(links)[1:4] == [f"https://example.com/item/{i}" for i in range(3)]


def test_custom_max_links():
    anchors = "".join(f'<a href="/item/{i}">Item number {i} in list</a>' for i in range(6))
    links = LinkDiscoverer(BASE, LinkWeights(max_links=4)).discover(page(anchors))
    assert len(links) == 4


def test_empty_page_has_no_links():
    assert LinkDiscoverer(BASE).discover("") == []


def test_unparsable_page_has_no_links(monkeypatch, caplog):
    def reject(markup, features):
        raise ParserRejectedMarkup("expected name token")

    monkeypatch.setattr(link_extractor, "BeautifulSoup", reject)
    html = page('<![foo bar]><a href="/news/1">A story that never gets read</a>')
    assert LinkDiscoverer(BASE).discover(html) == []
    assert "expected name token" in caplog.text


# --------------------------------------------------------------------------- #
#                               Query ranking                                 #
# --------------------------------------------------------------------------- #


def candidate(url, anchor, context="", priority=0):
    return CandidateLink(url=url, anchor_text=anchor, context=context, priority=priority, selector="a")


def test_rank_by_query_prefers_matching_links():
    links = [
        candidate("https://example.com/sports/final", "Cup final report", priority=40),
        candidate("https://example.com/climate-policy", "New climate policy announced", priority=10),
        candidate("https://example.com/weather", "Weekend weather", "policy debate continues", priority=5),
    ]
    ranked = rank_by_query(links, "Climate Policy", 2)
    assert urls(ranked) == ["https://example.com/climate-policy", "https://example.com/sports/final"]
    # anchor 30 * 2 terms + url 15 * 2 terms on top of the priority
    assert ranked[0].relevance == 10 + 60 + 30
    assert ranked[1].relevance == 40


def test_rank_by_query_is_monotonic():
    links = [candidate(f"https://example.com/p{i}", f"Story {i}", priority=p) for i, p in enumerate([5, 30, 20])]
    ranked = rank_by_query(links, "nothing matches", 3)
    assert [link.score for link in ranked] == [30, 20, 5]
    # the originals are left untouched
    assert all(link.relevance is None for link in links)


def test_rank_by_query_without_terms_keeps_order():
    links = [candidate(f"https://example.com/{i}", "x", priority=i) for i in range(5)]
    assert rank_by_query(links, "   ", 3) == links[:3]
