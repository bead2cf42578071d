"""
Tests for the link resolver.

Uses FakePage from test_helpers instead of a real browser.
"""

import pytest
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from src.common.errors import NavigationError
from src.common.url_utils import is_blocked_url
from src.harvester.resolver import collect_candidate_urls, resolve_link
from tests.test_helpers import FakeLease

GN_LINK = "https://news.google.com/rss/articles/CBMiXYZ"
INTERSTITIAL = "https://news.google.com/articles/CBMiXYZ?hl=bn"


async def _resolve(routes, link=GN_LINK):
    lease = FakeLease(routes)
    async with lease.page() as page:
        return await resolve_link(page, link, timeout=1, settle_delay=0)


class TestCollectCandidateUrls:
    def test_priority_order(self):
        html = """
        <html><head>
            <link rel="canonical" href="https://news.google.com/articles/abc">
            <meta property="og:url" content="https://og.example.com/story">
        </head><body>
            <iframe src="https://frame.example.com/embed"></iframe>
            <a href="https://first.example.com/a">one</a>
            <a href="/relative/ignored">rel</a>
            <a href="https://second.example.com/b">two</a>
        </body></html>
        """
        assert collect_candidate_urls(html, INTERSTITIAL) == [
            "https://news.google.com/articles/abc",
            "https://og.example.com/story",
            "https://frame.example.com/embed",
            "https://first.example.com/a",
            "https://second.example.com/b",
        ]

    def test_deduplicates_keeping_first(self):
        html = """
        <meta name="og:url" content="https://pub.example.com/x">
        <a href="https://pub.example.com/x">dup</a>
        <a href="https://other.example.com/y">other</a>
        <a href="https://pub.example.com/x">dup again</a>
        """
        assert collect_candidate_urls(html, INTERSTITIAL) == [
            "https://pub.example.com/x",
            "https://other.example.com/y",
        ]

    def test_relative_values_resolved_against_base(self):
        html = '<link rel="canonical" href="/articles/abc"><iframe src="//cdn.example.com/f"></iframe>'
        assert collect_candidate_urls(html, INTERSTITIAL) == [
            "https://news.google.com/articles/abc",
            "https://cdn.example.com/f",
        ]

    def test_empty_document(self):
        assert collect_candidate_urls("", INTERSTITIAL) == []
        assert collect_candidate_urls(None, INTERSTITIAL) == []


class TestResolveLink:
    @pytest.mark.asyncio
    async def test_redirect_to_publisher_returned_unchanged(self):
        resolved = await _resolve({GN_LINK: "https://www.prothomalo.com/bangladesh/abc?x=1"})
        assert resolved == "https://www.prothomalo.com/bangladesh/abc?x=1"

    @pytest.mark.asyncio
    async def test_non_blocked_input_is_returned_as_is(self):
        resolved = await _resolve({}, link="https://news.example/a")
        assert resolved == "https://news.example/a"

    @pytest.mark.asyncio
    async def test_dom_scan_when_stuck_on_aggregator(self):
        html = """
        <html><head><link rel="canonical" href="https://news.google.com/articles/CBMiXYZ"></head>
        <body>
            <iframe src="https://www.gstatic.com/consent"></iframe>
            <a href="https://policies.google.com/privacy">Privacy</a>
            <a href="https://www.thedailystar.net/news/bangladesh/story">Read more</a>
        </body></html>
        """
        resolved = await _resolve({GN_LINK: (INTERSTITIAL, html)})
        assert resolved == "https://www.thedailystar.net/news/bangladesh/story"

    @pytest.mark.asyncio
    async def test_degrades_to_input_when_nothing_qualifies(self):
        html = '<a href="https://accounts.google.com/login">Sign in</a>'
        resolved = await _resolve({GN_LINK: (INTERSTITIAL, html)})
        assert resolved == GN_LINK

    @pytest.mark.asyncio
    async def test_blocked_input_never_resolves_to_blocked_url(self):
        html = '<a href="https://challenges.cloudflare.com/x">x</a><a href="https://www.google.com/">g</a>'
        resolved = await _resolve({GN_LINK: (INTERSTITIAL, html)})
        assert resolved == GN_LINK or not is_blocked_url(resolved)

    @pytest.mark.asyncio
    async def test_timeout_raises_navigation_error(self):
        with pytest.raises(NavigationError) as exc_info:
            await _resolve({GN_LINK: PlaywrightTimeoutError("Timeout 1000ms exceeded")})
        assert exc_info.value.url == GN_LINK
        assert "timed out" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_browser_error_raises_navigation_error(self):
        with pytest.raises(NavigationError):
            await _resolve({GN_LINK: PlaywrightError("net::ERR_NAME_NOT_RESOLVED")})

    @pytest.mark.asyncio
    async def test_page_closed_after_resolve(self):
        lease = FakeLease({GN_LINK: "https://pub.example.com/x"})
        async with lease.page() as page:
            await resolve_link(page, GN_LINK, timeout=1, settle_delay=0)
        assert lease.pages[0].closed is True
