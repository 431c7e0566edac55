"""Lead-image candidate collection and ranking.

Candidates are gathered from four sources in trust order, each with its own
base score:

==========================  ======  ===========
Source                      Score   source_type
==========================  ======  ===========
``og:image`` family         100     meta
``twitter:image`` family    90      meta
JSON-LD ``image`` fields    85      meta
``<picture><source>``       80      srcset
in-content ``<img>``        60      content
==========================  ======  ===========

Duplicates (same absolute URL) are dropped at insertion time, so the first,
most trusted source keeps the URL.  A separate adjustment pass then rewards
large, card-shaped, modern-format images and penalises small ones and SVGs.
"""

from __future__ import annotations

import logging
import re
import urllib.parse
from collections.abc import Iterable, Mapping
from typing import Any

from bs4 import BeautifulSoup

from content_extraction.core.models import ImageCandidate, SourceType
from content_extraction.scraper.html_metadata import (
    get_meta_content,
    iter_json_ld,
    parse_html,
    walk_json,
)

logger = logging.getLogger(__name__)

OG_IMAGE_SELECTORS: tuple[str, ...] = (
    'meta[property="og:image"]',
    'meta[property="og:image:secure_url"]',
    'meta[property="og:image:url"]',
)
TWITTER_IMAGE_SELECTORS: tuple[str, ...] = (
    'meta[name="twitter:image"]',
    'meta[name="twitter:image:src"]',
)
CONTENT_IMAGE_SELECTORS: tuple[str, ...] = (
    "article img",
    "main img",
    ".content img",
    ".post img",
    "figure img",
)

SCORE_OPEN_GRAPH: int = 100
SCORE_TWITTER: int = 90
SCORE_STRUCTURED_DATA: int = 85
SCORE_SRCSET: int = 80
SCORE_CONTENT: int = 60

#: ``selectBest`` keeps candidates meeting any of these thresholds.
MIN_SELECT_WIDTH: int = 600
MIN_SELECT_HEIGHT: int = 400
MIN_SELECT_SCORE: int = 80

_DIMENSIONS_RE = re.compile(r"(\d{3,4})x(\d{3,4})")
_MODERN_FORMATS: frozenset[str] = frozenset({"webp", "avif"})


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------


def make_absolute_url(url: str, base_url: str) -> str:
    """Resolve *url* against *base_url*.

    Protocol-relative URLs are forced to ``https``.  Inline ``data:`` URIs
    (typically lazy-load placeholders) resolve to an empty string.
    """
    url = (url or "").strip()
    if not url or url.startswith("data:"):
        return ""
    if url.startswith("//"):
        return "https:" + url
    return urllib.parse.urljoin(base_url, url)


def infer_dimensions(url: str) -> tuple[int, int]:
    """Read a ``WIDTHxHEIGHT`` hint from the URL, e.g. ``photo-1200x630.jpg``."""
    match = _DIMENSIONS_RE.search(url)
    if match is None:
        return 0, 0
    return int(match.group(1)), int(match.group(2))


def image_format(url: str) -> str:
    """Return the lower-case file extension of the URL path, default ``"jpg"``."""
    path = urllib.parse.urlparse(url).path
    last_segment = path.rsplit("/", 1)[-1]
    if "." not in last_segment:
        return "jpg"
    ext = last_segment.rsplit(".", 1)[-1].lower()
    return ext if ext.isalnum() and len(ext) <= 5 else "jpg"


def parse_srcset(srcset: str) -> list[tuple[str, str]]:
    """Split a ``srcset`` attribute into ``(url, descriptor)`` pairs.

    Entries without a descriptor default to ``"1x"``.
    """
    entries: list[tuple[str, str]] = []
    for part in srcset.split(","):
        tokens = part.strip().split()
        if not tokens:
            continue
        entries.append((tokens[0], tokens[1] if len(tokens) > 1 else "1x"))
    return entries


def _descriptor_value(descriptor: str, *, x_weight: float, w_weight: float) -> float:
    try:
        if descriptor.endswith("x"):
            return float(descriptor[:-1]) * x_weight
        if descriptor.endswith("w"):
            return float(descriptor[:-1]) * w_weight
    except ValueError:
        return 0.0
    return x_weight


def _to_int(value: Any) -> int:
    """Coerce declared dimensions (``"1200"``, ``1200.0``, ``{"value": 1200}``)."""
    if isinstance(value, dict):
        value = value.get("value")
    try:
        return max(int(float(value)), 0)
    except (TypeError, ValueError):
        return 0


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def adjust_score(candidate: ImageCandidate) -> ImageCandidate:
    """Apply size, aspect-ratio and format adjustments to ``candidate.score``.

    The size rules are exclusive: +20 for social-card size, else +10 for
    medium size, else -20 for small images.
    """
    width, height = candidate.width, candidate.height
    score = candidate.score

    if width >= 1200 and height >= 630:
        score += 20
    elif width >= 800 and height >= 600:
        score += 10
    elif width < 400 or height < 300:
        score -= 20

    if height > 0 and 1.5 <= width / height <= 2.0:
        score += 10

    if candidate.format in _MODERN_FORMATS:
        score += 5
    if candidate.format == "svg":
        score -= 10

    candidate.score = score
    return candidate


def rank_candidates(candidates: Iterable[ImageCandidate]) -> list[ImageCandidate]:
    """Score every candidate and return them best first (stable on ties)."""
    scored = [adjust_score(c) for c in candidates]
    return sorted(scored, key=lambda c: c.score, reverse=True)


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


class _CandidateSet:
    """Insertion-ordered candidates deduplicated by absolute URL."""

    def __init__(self, base_url: str, natural_sizes: Mapping[str, tuple[int, int]]) -> None:
        self.base_url = base_url
        self.natural_sizes = natural_sizes
        self.items: list[ImageCandidate] = []
        self._seen: set[str] = set()

    def add(
        self,
        raw_url: str,
        *,
        score: int,
        source_type: SourceType,
        width: int = 0,
        height: int = 0,
        alt: str | None = None,
    ) -> None:
        url = make_absolute_url(raw_url, self.base_url)
        if not url or url in self._seen:
            return
        self._seen.add(url)

        if not (width and height):
            natural = self.natural_sizes.get(url)
            if natural:
                width, height = width or natural[0], height or natural[1]
        if not (width and height):
            inferred_w, inferred_h = infer_dimensions(url)
            width, height = width or inferred_w, height or inferred_h

        self.items.append(
            ImageCandidate(
                url=url,
                width=width,
                height=height,
                format=image_format(url),
                score=score,
                source_type=source_type,
                alt=alt,
            )
        )


class ImageSelector:
    """Collects, ranks and picks the lead image of a rendered page."""

    def __init__(self, content_selectors: tuple[str, ...] = CONTENT_IMAGE_SELECTORS) -> None:
        self.content_selectors = content_selectors

    def collect_candidates(
        self,
        html: str,
        base_url: str,
        natural_sizes: Mapping[str, tuple[int, int]] | None = None,
    ) -> list[ImageCandidate]:
        """Return every image candidate on the page, scored, best first.

        Args:
            html: Rendered DOM (or raw HTML).
            base_url: URL used to resolve relative image references.
            natural_sizes: Optional natural pixel sizes reported by the
                renderer, keyed by absolute image URL.
        """
        soup = parse_html(html)
        candidates = _CandidateSet(base_url, natural_sizes or {})

        self._collect_social_meta(soup, candidates)
        self._collect_structured_data(soup, candidates)
        self._collect_picture_sources(soup, candidates)
        self._collect_content_images(soup, candidates)

        ranked = rank_candidates(candidates.items)
        logger.debug("image_selector: %d candidates for %s", len(ranked), base_url)
        return ranked

    @staticmethod
    def select_best(candidates: list[ImageCandidate]) -> ImageCandidate | None:
        """Pick the highest-scoring usable candidate.

        Candidates at least 600 px wide, 400 px high, or scoring 80+ are
        preferred; if none qualify the top candidate overall is returned.
        """
        if not candidates:
            return None
        usable = [
            c
            for c in candidates
            if c.width >= MIN_SELECT_WIDTH
            or c.height >= MIN_SELECT_HEIGHT
            or c.score >= MIN_SELECT_SCORE
        ]
        return max(usable or candidates, key=lambda c: c.score)

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    @staticmethod
    def _collect_social_meta(soup: BeautifulSoup, candidates: _CandidateSet) -> None:
        og_width = _to_int(get_meta_content(soup, ('meta[property="og:image:width"]',)))
        og_height = _to_int(get_meta_content(soup, ('meta[property="og:image:height"]',)))
        for selector in OG_IMAGE_SELECTORS:
            url = get_meta_content(soup, (selector,))
            if url:
                candidates.add(
                    url,
                    score=SCORE_OPEN_GRAPH,
                    source_type="meta",
                    width=og_width,
                    height=og_height,
                )
        for selector in TWITTER_IMAGE_SELECTORS:
            url = get_meta_content(soup, (selector,))
            if url:
                candidates.add(url, score=SCORE_TWITTER, source_type="meta")

    @staticmethod
    def _collect_structured_data(soup: BeautifulSoup, candidates: _CandidateSet) -> None:
        for payload in iter_json_ld(soup):
            for obj in walk_json(payload):
                image = obj.get("image")
                images = image if isinstance(image, list) else [image]
                for item in images:
                    if isinstance(item, str):
                        candidates.add(item, score=SCORE_STRUCTURED_DATA, source_type="meta")
                    elif isinstance(item, dict):
                        url = item.get("url") or item.get("contentUrl") or item.get("@id")
                        if isinstance(url, str):
                            candidates.add(
                                url,
                                score=SCORE_STRUCTURED_DATA,
                                source_type="meta",
                                width=_to_int(item.get("width")),
                                height=_to_int(item.get("height")),
                            )

    @staticmethod
    def _collect_picture_sources(soup: BeautifulSoup, candidates: _CandidateSet) -> None:
        for source in soup.select("picture source"):
            srcset = source.get("srcset") or source.get("data-srcset")
            if not isinstance(srcset, str):
                continue
            entries = parse_srcset(srcset)
            if not entries:
                continue
            best_url, _ = max(
                entries,
                key=lambda e: _descriptor_value(e[1], x_weight=1.0, w_weight=0.01),
            )
            candidates.add(best_url, score=SCORE_SRCSET, source_type="srcset")

    def _collect_content_images(self, soup: BeautifulSoup, candidates: _CandidateSet) -> None:
        for selector in self.content_selectors:
            for img in soup.select(selector):
                src = img.get("src") or img.get("data-src") or img.get("data-lazy-src")
                if not isinstance(src, str) or not make_absolute_url(src, candidates.base_url):
                    continue

                url = src
                srcset = img.get("srcset") or img.get("data-srcset")
                if isinstance(srcset, str):
                    entries = parse_srcset(srcset)
                    if entries:
                        url, _ = max(
                            entries,
                            key=lambda e: _descriptor_value(e[1], x_weight=1000.0, w_weight=1.0),
                        )

                alt = img.get("alt")
                candidates.add(
                    url,
                    score=SCORE_CONTENT,
                    source_type="content",
                    width=_to_int(img.get("width")),
                    height=_to_int(img.get("height")),
                    alt=alt if isinstance(alt, str) and alt else None,
                )
