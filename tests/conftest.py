"""
Pytest fixtures for test infrastructure.

This module is automatically loaded by pytest and provides shared fixtures.
For fakes and helper functions, see test_helpers.py.
"""

import pytest

from src.config.settings import Settings


# =============================================================================
# Shared fixtures
# =============================================================================
@pytest.fixture
def fast_settings():
    """Settings with every delay zeroed so orchestrator tests run instantly."""
    return Settings(
        concurrency=3,
        chunk_size=100,
        restart_every=200,
        per_item_retries=2,
        retry_base_delay=0,
        retry_step_delay=0,
        polite_delay=0,
        chunk_pause=0,
        resolved_search_delay=0,
        resolve_settle_delay=0,
        navigation_timeout=5,
    )


@pytest.fixture
def sample_article_html():
    """A realistic news page: chrome, ads, meta tags and a WordPress-style body."""
    return """
    <html lang="bn">
    <head>
        <meta charset="utf-8">
        <title>Site title | Daily Example</title>
        <link rel="canonical" href="https://www.dailyexample.com/national/budget-2024">
        <meta property="og:title" content="Budget 2024 passed in parliament">
        <meta name="author" content="Staff Correspondent">
        <meta property="article:published_time" content="2024-06-30T14:05:00+06:00">
        <meta property="article:modified_time" content="2024-06-30T18:00:00+06:00">
        <meta property="article:section" content="National">
        <script>var tracking = "should never show up";</script>
    </head>
    <body>
        <header><nav><a href="/">Home</a><a href="/national">National</a></nav></header>
        <div class="advertisement">Buy now!</div>
        <article>
            <h1 class="entry-title">Budget 2024 passed</h1>
            <div class="entry-content">
                <p>The national budget   was passed on Sunday.</p>
                <div class="share">Share on Facebook</div>
                <h2>Key allocations</h2>
                <ul><li>Education</li><li>Health</li></ul>
                <p>Opposition members   walked out.</p>
                <p>   </p>
            </div>
            <div class="tags"><a href="/t/budget">Budget</a><a href="/t/parliament">Parliament</a><a href="/t/b">Budget</a></div>
        </article>
        <footer><p>Copyright Daily Example</p></footer>
    </body>
    </html>
    """


@pytest.fixture
def sample_feed_xml():
    """Google News RSS with a duplicate link, an undated entry and a linkless entry."""
    return """<?xml version="1.0" encoding="UTF-8"?>
    <rss version="2.0">
    <channel>
        <title>"budget" - Google News</title>
        <item>
            <title>Older story - Daily Example</title>
            <link>https://news.google.com/rss/articles/older</link>
            <pubDate>Mon, 01 Jan 2024 06:00:00 GMT</pubDate>
            <source url="https://www.dailyexample.com">Daily Example</source>
        </item>
        <item>
            <title>Newer story - Other Paper</title>
            <link>https://news.google.com/rss/articles/newer</link>
            <pubDate>Sat, 01 Jun 2024 06:00:00 GMT</pubDate>
            <source url="https://otherpaper.com">Other Paper</source>
        </item>
        <item>
            <title>Undated story</title>
            <link>https://news.google.com/rss/articles/undated</link>
        </item>
        <item>
            <title>Older story again</title>
            <link>https://news.google.com/rss/articles/older</link>
            <pubDate>Mon, 01 Jan 2024 06:00:00 GMT</pubDate>
        </item>
        <item>
            <title>No link at all</title>
            <pubDate>Mon, 01 Jan 2024 06:00:00 GMT</pubDate>
        </item>
    </channel>
    </rss>
    """
