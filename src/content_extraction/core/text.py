"""Pure text and URL helpers shared by every extraction tier.

All functions in this module are pure (no I/O).  Keeping word counting,
reading-time formatting and excerpting in one place is what makes results
from different tiers comparable.
"""

from __future__ import annotations

import math
import re
import urllib.parse

#: Reading speed used for ``reading_time`` across all tiers.
WORDS_PER_MINUTE: int = 200

#: Maximum excerpt length in characters (including the ellipsis).
EXCERPT_MAX_CHARS: int = 300

_WHITESPACE_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r"<[^>]*>")

_VIDEO_HOSTS: tuple[str, ...] = (
    "youtube.com",
    "youtu.be",
    "vimeo.com",
    "twitch.tv",
    "dailymotion.com",
    "tiktok.com",
)
_AUDIO_HOSTS: tuple[str, ...] = (
    "spotify.com",
    "soundcloud.com",
    "anchor.fm",
    "podcast",
)
_VIDEO_EXT_RE = re.compile(r"\.(mp4|avi|mov|wmv|flv|webm|mkv)$", re.IGNORECASE)
_AUDIO_EXT_RE = re.compile(r"\.(mp3|wav|ogg|aac|flac|m4a)$", re.IGNORECASE)
_IMAGE_EXT_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg|bmp|tiff)$", re.IGNORECASE)


def count_words(text: str) -> int:
    """Return the number of whitespace-separated tokens in *text*."""
    return len(text.split())


def format_reading_time(word_count: int) -> str:
    """Return a human reading-time string, e.g. ``"3 min"``.

    ``ceil(word_count / 200)`` minutes with a floor of one minute, so an
    empty page still reads as ``"1 min"``.
    """
    minutes = max(1, math.ceil(max(word_count, 0) / WORDS_PER_MINUTE))
    return f"{minutes} min"


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and strip the ends."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def strip_html(html: str) -> str:
    """Drop tags from an HTML fragment and collapse whitespace."""
    return collapse_whitespace(_TAG_RE.sub(" ", html))


def truncate(text: str, limit: int) -> str:
    """Cut *text* to at most *limit* characters without splitting a word."""
    if len(text) <= limit:
        return text
    cut = text[:limit]
    head, sep, _ = cut.rpartition(" ")
    return head if sep and head else cut


def make_excerpt(description: str | None, text: str) -> str:
    """Build an excerpt of at most :data:`EXCERPT_MAX_CHARS` characters.

    Prefers the declared page description; falls back to the head of the
    body text with a trailing ellipsis when the text had to be cut.
    """
    source = collapse_whitespace(description or "") or collapse_whitespace(text)
    if len(source) <= EXCERPT_MAX_CHARS:
        return source
    return truncate(source, EXCERPT_MAX_CHARS - 3).rstrip() + "..."


def extract_domain(url: str) -> str:
    """Return the lowercase hostname of *url*, or ``"unknown"`` if it has none."""
    try:
        host = urllib.parse.urlparse(url).hostname
    except ValueError:
        host = None
    return host.lower() if host else "unknown"


def detect_media_type(url: str) -> str:
    """Classify *url* as ``video``, ``audio``, ``image`` or ``text`` by pattern.

    Only hostnames and path extensions are inspected; no request is made.
    """
    try:
        parsed = urllib.parse.urlparse(url)
    except ValueError:
        return "text"
    host = (parsed.hostname or "").lower()
    path = parsed.path.lower()

    if any(h in host for h in _VIDEO_HOSTS) or _VIDEO_EXT_RE.search(path):
        return "video"
    if any(h in host for h in _AUDIO_HOSTS) or _AUDIO_EXT_RE.search(path):
        return "audio"
    if _IMAGE_EXT_RE.search(path):
        return "image"
    return "text"
