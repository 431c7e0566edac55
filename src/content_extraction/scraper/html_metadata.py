"""Metadata and body-text extraction from HTML with BeautifulSoup.

Shared by the rendering tier (which parses the rendered DOM snapshot) and
the metadata-only tier (which parses the raw HTTP response).  Each
``<meta>`` field is looked up through an ordered selector list: Open Graph
first, then Twitter Card, then generic names.

Body text extraction mutates the soup (noise elements are decomposed), so
read metadata and JSON-LD before calling :func:`extract_main_text`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup, Tag

from content_extraction.core.text import collapse_whitespace, truncate
from content_extraction.scraper.config import (
    AUTHOR_META_SELECTORS,
    CONTENT_SELECTORS,
    DATE_META_SELECTORS,
    DESCRIPTION_META_SELECTORS,
    IMAGE_META_SELECTORS,
    MIN_CONTAINER_CHARS,
    NOISE_SELECTORS,
    SITE_NAME_META_SELECTORS,
    TITLE_META_SELECTORS,
)

logger = logging.getLogger(__name__)

UNTITLED: str = "Untitled"


@dataclass
class PageMetadata:
    """Declared metadata of a page.

    Attributes:
        title: Best available title; ``"Untitled"`` when nothing is declared.
        description: Declared description, or empty string.
        author: Author name, or ``None``.
        date_published: Publication timestamp as declared (not normalised).
        image_url: Declared social-card image URL (as written, may be relative).
        site_name: Publisher name, or ``None``.
        language: ``<html lang>`` value, or ``None``.
        keywords: Comma-separated ``<meta name="keywords">`` entries.
    """

    title: str = UNTITLED
    description: str = ""
    author: str | None = None
    date_published: str | None = None
    image_url: str | None = None
    site_name: str | None = None
    language: str | None = None
    keywords: list[str] = field(default_factory=list)


def parse_html(html: str) -> BeautifulSoup:
    """Parse *html* with the stdlib-backed ``html.parser`` tree builder."""
    return BeautifulSoup(html, "html.parser")


def get_meta_content(soup: BeautifulSoup, selectors: tuple[str, ...]) -> str | None:
    """Return the first non-blank ``content`` attribute among *selectors*."""
    for selector in selectors:
        tag = soup.select_one(selector)
        if tag is None:
            continue
        content = tag.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()
    return None


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------


def iter_json_ld(soup: BeautifulSoup) -> Iterator[Any]:
    """Yield the parsed payload of every ``application/ld+json`` script.

    Scripts that are not valid JSON are skipped.
    """
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            yield json.loads(raw)
        except ValueError:
            logger.debug("scraper: skipping malformed JSON-LD block")


def walk_json(node: Any) -> Iterator[dict[str, Any]]:
    """Depth-first iteration over every dict nested anywhere in *node*."""
    if isinstance(node, dict):
        yield node
        for value in node.values():
            yield from walk_json(value)
    elif isinstance(node, list):
        for item in node:
            yield from walk_json(item)


def _json_ld_field(soup: BeautifulSoup, key: str) -> Any:
    for payload in iter_json_ld(soup):
        for obj in walk_json(payload):
            value = obj.get(key)
            if value:
                return value
    return None


def _person_name(value: Any) -> str | None:
    """Normalise a schema.org ``author`` value (string, Person, or list)."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        name = value.get("name")
        return name.strip() if isinstance(name, str) and name.strip() else None
    if isinstance(value, list):
        names = [n for n in (_person_name(v) for v in value) if n]
        return ", ".join(names) or None
    return None


# ---------------------------------------------------------------------------
# Public extraction functions
# ---------------------------------------------------------------------------


def extract_title(soup: BeautifulSoup) -> str:
    """Return og/twitter title, then ``<title>``, then the first ``<h1>``."""
    title = get_meta_content(soup, TITLE_META_SELECTORS)
    if title:
        return title
    if soup.title is not None:
        text = collapse_whitespace(soup.title.get_text())
        if text:
            return text
    h1 = soup.find("h1")
    if isinstance(h1, Tag):
        text = collapse_whitespace(h1.get_text())
        if text:
            return text
    return UNTITLED


def extract_page_metadata(soup: BeautifulSoup) -> PageMetadata:
    """Collect declared metadata from ``<meta>`` tags, JSON-LD and ``<html>``."""
    author = get_meta_content(soup, AUTHOR_META_SELECTORS) or _person_name(
        _json_ld_field(soup, "author")
    )
    date_published = get_meta_content(soup, DATE_META_SELECTORS)
    if not date_published:
        ld_date = _json_ld_field(soup, "datePublished")
        date_published = ld_date if isinstance(ld_date, str) else None

    keywords_raw = get_meta_content(soup, ('meta[name="keywords"]',)) or ""
    keywords = [k.strip() for k in keywords_raw.split(",") if k.strip()]

    language = None
    html_tag = soup.find("html")
    if isinstance(html_tag, Tag):
        lang = html_tag.get("lang")
        language = lang.strip() if isinstance(lang, str) and lang.strip() else None

    return PageMetadata(
        title=extract_title(soup),
        description=get_meta_content(soup, DESCRIPTION_META_SELECTORS) or "",
        author=author,
        date_published=date_published,
        image_url=get_meta_content(soup, IMAGE_META_SELECTORS),
        site_name=get_meta_content(soup, SITE_NAME_META_SELECTORS),
        language=language,
        keywords=keywords,
    )


def remove_noise(soup: BeautifulSoup) -> None:
    """Decompose scripts, styles, navigation and ad containers in place."""
    for selector in NOISE_SELECTORS:
        for tag in soup.select(selector):
            tag.decompose()


def extract_main_text(soup: BeautifulSoup, *, max_chars: int) -> str:
    """Return the main readable text of the page, capped at *max_chars*.

    Content containers are tried in priority order; the first whose text
    reaches the minimum length wins.  Falls back to the whole ``<body>``
    (or the whole document when there is no body).  Mutates *soup*.
    """
    remove_noise(soup)

    for selector in CONTENT_SELECTORS:
        matches = soup.select(selector)
        if not matches:
            continue
        text = collapse_whitespace(" ".join(m.get_text(" ") for m in matches))
        if len(text) >= MIN_CONTAINER_CHARS:
            return truncate(text, max_chars)

    root = soup.body if soup.body is not None else soup
    return truncate(collapse_whitespace(root.get_text(" ")), max_chars)
