"""Data model shared by every extraction tier.

``ExtractionResult`` is the single output shape regardless of which tier
produced it.  Word count and reading time are derived from ``text_content``
at construction time so the two can never disagree.
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Literal, Union

from content_extraction.core.text import count_words, format_reading_time

MediaType = Literal["text", "video", "audio", "image"]
SourceType = Literal["meta", "srcset", "content"]


class Strategy(str, Enum):
    """Names of the extraction tiers as they appear in ``ExtractionResult.method``.

    Attributes:
        PRIMARY: Headless-browser rendering via the renderer pool.
        ARTICLE: Non-browser article parsing with trafilatura.
        METADATA: Plain GET and ``<meta>``/``<title>`` parsing only.
        FAILED: Stub produced when every tier failed.
    """

    PRIMARY = "playwright"
    ARTICLE = "trafilatura"
    METADATA = "metadata"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


@dataclass
class ImageCandidate:
    """One possible lead image discovered on a page.

    Attributes:
        url: Absolute image URL.
        width: Declared, inferred or natural width in pixels (0 if unknown).
        height: Declared, inferred or natural height in pixels (0 if unknown).
        format: Lower-case file extension (``"jpg"``, ``"webp"``, ...).
        score: Ranking score; recomputed during the adjustment pass.
        source_type: Where the candidate was found.
        alt: ``alt`` text for in-content images.
    """

    url: str
    width: int
    height: int
    format: str
    score: float
    source_type: SourceType
    alt: str | None = None


@dataclass
class EnhancedImageResult:
    """Outcome of re-encoding a lead image.

    A failed enhancement keeps ``original_url`` and the pre-enhancement
    dimensions, with ``enhanced_url=None``, ``quality=0`` and
    ``file_size=0``.
    """

    original_url: str
    width: int
    height: int
    format: str
    quality: int
    file_size: int
    enhanced_url: str | None = None
    variants: dict[str, str] = field(default_factory=dict)

    @property
    def enhanced(self) -> bool:
        """``True`` if the image was actually fetched and re-encoded."""
        return self.enhanced_url is not None and self.quality > 0


# ---------------------------------------------------------------------------
# Media metadata (closed union, discriminated by ``kind``)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VideoMetadata:
    """Metadata attached by a video analyzer."""

    duration: int = 0
    view_count: int = 0
    thumbnails: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    category: str = ""
    transcript: str = ""
    kind: Literal["video"] = "video"

    @property
    def has_transcript(self) -> bool:
        return bool(self.transcript)


@dataclass(frozen=True)
class AudioMetadata:
    """Metadata attached by an audio analyzer."""

    duration: int = 0
    artist: str | None = None
    album: str | None = None
    kind: Literal["audio"] = "audio"


@dataclass(frozen=True)
class ImageMetadata:
    """Pixel metadata for pages whose URL points directly at an image."""

    width: int
    height: int
    format: str
    quality: int
    file_size: int
    kind: Literal["image"] = "image"

    @classmethod
    def from_enhanced(cls, image: EnhancedImageResult) -> "ImageMetadata":
        return cls(
            width=image.width,
            height=image.height,
            format=image.format,
            quality=image.quality,
            file_size=image.file_size,
        )


MediaMetadata = Union[VideoMetadata, AudioMetadata, ImageMetadata]


# ---------------------------------------------------------------------------
# Extraction result
# ---------------------------------------------------------------------------


@dataclass
class ExtractionResult:
    """Canonical output of the pipeline.

    ``word_count`` and ``reading_time`` are read-only properties computed
    from ``text_content``, so they stay correct when the text is replaced.

    Raises:
        ValueError: If ``success`` is ``False`` without an ``error``, or if
            ``media_metadata`` does not match ``media_type``.
    """

    title: str
    url: str
    domain: str
    method: str
    success: bool
    content: str = ""
    text_content: str = ""
    excerpt: str = ""
    description: str = ""
    author: str | None = None
    date_published: str | None = None
    lead_image_url: str | None = None
    site_name: str | None = None
    language: str | None = None
    keywords: list[str] = field(default_factory=list)
    media_type: MediaType = "text"
    media_metadata: MediaMetadata | None = None
    lead_image: EnhancedImageResult | None = None
    error: str | None = None
    tier_errors: dict[str, str] = field(default_factory=dict)
    load_time_ms: float = 0.0

    def __post_init__(self) -> None:
        if not self.success and not self.error:
            raise ValueError("unsuccessful ExtractionResult requires an error message")
        if self.media_metadata is not None and self.media_metadata.kind != self.media_type:
            raise ValueError(
                f"media_metadata kind {self.media_metadata.kind!r} does not match "
                f"media_type {self.media_type!r}"
            )

    @property
    def word_count(self) -> int:
        return count_words(self.text_content)

    @property
    def reading_time(self) -> str:
        return format_reading_time(self.word_count)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping with camelCase keys."""
        lead_image = None
        if self.lead_image is not None:
            lead_image = {
                "originalUrl": self.lead_image.original_url,
                "enhancedUrl": self.lead_image.enhanced_url,
                "width": self.lead_image.width,
                "height": self.lead_image.height,
                "format": self.lead_image.format,
                "quality": self.lead_image.quality,
                "fileSize": self.lead_image.file_size,
                "variants": dict(self.lead_image.variants),
            }
        return {
            "title": self.title,
            "content": self.content,
            "textContent": self.text_content,
            "excerpt": self.excerpt,
            "description": self.description,
            "author": self.author,
            "datePublished": self.date_published,
            "leadImageUrl": self.lead_image_url,
            "leadImage": lead_image,
            "siteName": self.site_name,
            "language": self.language,
            "keywords": list(self.keywords),
            "url": self.url,
            "domain": self.domain,
            "wordCount": self.word_count,
            "readingTime": self.reading_time,
            "success": self.success,
            "method": self.method,
            "mediaType": self.media_type,
            "mediaMetadata": asdict(self.media_metadata) if self.media_metadata else None,
            "error": self.error,
            "tierErrors": dict(self.tier_errors),
            "loadTimeMs": round(self.load_time_ms, 2),
        }


# ---------------------------------------------------------------------------
# Monitoring
# ---------------------------------------------------------------------------


@dataclass
class DomainStats:
    """Running per-domain aggregates."""

    count: int = 0
    success_rate: float = 0.0
    avg_load_time: float = 0.0


@dataclass
class ScrapingMetrics:
    """Process-lifetime aggregate of every recorded extraction attempt."""

    total_requests: int = 0
    success_count: int = 0
    failure_count: int = 0
    average_load_time: float = 0.0
    strategy_success: dict[str, int] = field(default_factory=dict)
    domain_stats: dict[str, DomainStats] = field(default_factory=dict)

    def copy(self) -> "ScrapingMetrics":
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRequests": self.total_requests,
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "averageLoadTime": self.average_load_time,
            "strategySuccess": dict(self.strategy_success),
            "domainStats": {
                domain: {
                    "count": stats.count,
                    "successRate": stats.success_rate,
                    "avgLoadTime": stats.avg_load_time,
                }
                for domain, stats in self.domain_stats.items()
            },
        }
