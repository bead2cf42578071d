"""
Article content extraction.

Turns raw article HTML into an ExtractedArticle: canonical URL, title, author,
dates, language, section, tags and the body text split into paragraphs.

Extraction is heuristic and tolerant. A missing field is None, never an error.
The only hard failure is input that cannot be parsed into a document at all
(ParseFailure).

Body selection walks BODY_SELECTORS in order (most specific first) and then
falls back to <article>, <main>, #content and finally <body>. Real-world page
structures vary a lot, so the order of this chain matters.
"""

import logging
import re
from typing import List, Optional, Union

from bs4 import BeautifulSoup, Tag

from ..common.dates import iso_or_none
from ..common.errors import ParseFailure
from ..common.url_utils import get_domain
from .schemas import ExtractedArticle

logger = logging.getLogger(__name__)

# Likely article body containers, most specific first
BODY_SELECTORS = [
    "article .entry-content",
    "article .post-content",
    "article .content__article-body",
    "article .article-content",
    "article .article-body",
    "article .td-post-content",
    "article .tdb-block-inner .tdb-block-content",
    "article",
    ".single-post .entry-content",
    ".content-area",
    ".main-content",
    ".post-content",
    "#content",
]

# Tried after BODY_SELECTORS, before falling back to <body>
FALLBACK_CONTAINERS = ["article", "main", "#content"]

# Removed before any text is read so they can't pollute paragraphs or word counts
NOISE_SELECTORS = [
    "script",
    "style",
    "noscript",
    "iframe",
    "svg",
    "form",
    "button",
    "header",
    "footer",
    "nav",
    ".advertisement",
    ".ad",
    "[class*='advert']",
    "[id*='advert']",
    ".social",
    ".share",
    "[role='banner']",
    "[role='navigation']",
    "[aria-label='breadcrumb']",
]

BLOCK_TAGS = ["h1", "h2", "h3", "p", "li"]

TAG_SELECTOR = "[rel='tag'], .tags a, a[aria-label='tag']"

_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(value: Optional[str]) -> str:
    """Collapse runs of whitespace and trim."""
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value).strip()


def _first(*values: Optional[str]) -> Optional[str]:
    """First non-empty value, or None."""
    for value in values:
        if value:
            return value
    return None


def _attr(soup: BeautifulSoup, selector: str, attr: str = "content") -> str:
    el = soup.select_one(selector)
    if el is None:
        return ""
    value = el.get(attr)
    if isinstance(value, list):
        value = " ".join(value)
    return clean_text(value)


def _meta(soup: BeautifulSoup, key: str) -> str:
    """Content of meta[key], e.g. _meta(soup, "property='og:title'")."""
    return _attr(soup, f"meta[{key}]")


def _text(soup: Union[BeautifulSoup, Tag], selector: str) -> str:
    el = soup.select_one(selector)
    return clean_text(el.get_text()) if el is not None else ""


def parse_document(html: Union[str, bytes, None]) -> BeautifulSoup:
    """
    Parse HTML into a BeautifulSoup tree.

    Raises:
        ParseFailure: If there is nothing to parse or the parser gives up
    """
    if html is None:
        raise ParseFailure("No HTML to parse")
    if isinstance(html, bytes):
        if not html.strip():
            raise ParseFailure("Empty HTML document")
    elif not isinstance(html, str) or not html.strip():
        raise ParseFailure("Empty HTML document")

    try:
        return BeautifulSoup(html, "lxml")
    except Exception as e:
        raise ParseFailure(f"Could not parse HTML: {e}") from e


def strip_noise(soup: BeautifulSoup) -> None:
    """Remove scripts, navigation, ads, forms and social widgets in place."""
    for el in soup.select(", ".join(NOISE_SELECTORS)):
        # Nested matches are already gone once their ancestor is decomposed
        if el.decomposed:
            continue
        el.decompose()


def select_body(soup: BeautifulSoup) -> Union[BeautifulSoup, Tag]:
    """
    Pick the element holding the article body.

    First BODY_SELECTORS match with non-empty text wins. Then <article>,
    <main>, #content, <body>, and the whole document as a last resort.
    """
    for selector in BODY_SELECTORS + FALLBACK_CONTAINERS:
        el = soup.select_one(selector)
        if el is not None and clean_text(el.get_text()):
            return el

    return soup.body or soup


def collect_blocks(container: Union[BeautifulSoup, Tag]) -> List[str]:
    """Heading, paragraph and list item texts in document order."""
    blocks = []
    for el in container.find_all(BLOCK_TAGS):
        text = clean_text(el.get_text())
        if text:
            blocks.append(text)
    return blocks


def collect_blocks_global(soup: BeautifulSoup) -> List[str]:
    """Every non-empty <p> in the document."""
    return [t for t in (clean_text(p.get_text()) for p in soup.find_all("p")) if t]


def _extract_tags(soup: BeautifulSoup) -> Optional[tuple]:
    tags = []
    for el in soup.select(TAG_SELECTOR):
        tag = clean_text(el.get_text())
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags) if tags else None


def extract_article(html: Union[str, bytes, None], url: str) -> ExtractedArticle:
    """
    Extract a structured article from raw HTML.

    Args:
        html: Raw page HTML
        url: The URL the HTML was actually served from (after redirects)

    Returns:
        ExtractedArticle; fields that can't be found are None

    Raises:
        ParseFailure: When no document can be parsed at all
    """
    soup = parse_document(html)
    strip_noise(soup)

    canonical = _first(
        _attr(soup, "link[rel='canonical']", "href"),
        _meta(soup, "property='og:url'"),
        _meta(soup, "name='og:url'"),
    )

    title = _first(
        _meta(soup, "property='og:title'"),
        _text(soup, "h1.entry-title"),
        _text(soup, "h1"),
    )

    author = _first(
        _meta(soup, "name='author'"),
        _text(soup, "[itemprop='author']"),
        _text(soup, "[class*='author'] a"),
        _text(soup, "[class*='author']"),
    )

    published_raw = _first(
        _meta(soup, "property='article:published_time'"),
        _meta(soup, "name='published_time'"),
        _attr(soup, "time[datetime]", "datetime"),
        _text(soup, "time"),
    )

    updated_raw = _first(
        _meta(soup, "property='article:modified_time'"),
        _meta(soup, "name='updated_time'"),
    )

    html_el = soup.find("html")
    lang = _first(
        clean_text(html_el.get("lang")) if html_el is not None else "",
        _meta(soup, "http-equiv='content-language'"),
    )

    section = _first(
        _meta(soup, "property='article:section'"),
        _text(soup, "[rel='category tag']"),
    )

    body = select_body(soup)
    paragraphs = collect_blocks(body)

    if not paragraphs:
        # Last resort: every paragraph on the page
        paragraphs = collect_blocks_global(soup)

    text = "\n\n".join(paragraphs)

    article = ExtractedArticle(
        url=url,
        canonical=canonical,
        domain=get_domain(canonical or url) or get_domain(url),
        title=title,
        author=author,
        lang=lang,
        section=section,
        tags=_extract_tags(soup),
        published_at=iso_or_none(published_raw),
        updated_at=iso_or_none(updated_raw),
        word_count=len(text.split()),
        paragraphs=tuple(paragraphs),
        text=text,
    )

    logger.debug(
        f"Extracted {url}: title={'yes' if title else 'no'} "
        f"paragraphs={len(paragraphs)} words={article.word_count}"
    )
    return article
