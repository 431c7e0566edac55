"""Lead-image fetching and re-encoding with Pillow.

The winning :class:`~content_extraction.core.models.ImageCandidate` is
fetched (through a CDN-specific "give me the big one" URL where the host is
recognised), decoded to learn its real size, cover-cropped to the target of
the requested quality tier and re-encoded as a progressive JPEG data URI.

Enhancement failures never propagate: :meth:`ImageEnhancer.enhance` returns
a degraded result that still carries the original URL.  The screenshot
fallback, used when a page has no image candidates at all, does raise; the
caller decides what "no image" means.
"""

from __future__ import annotations

import asyncio
import base64
import io
import logging
import re
from dataclasses import dataclass

import httpx
from PIL import Image, ImageOps

from content_extraction.core.exceptions import ImageFetchFailure
from content_extraction.core.models import EnhancedImageResult, ImageCandidate
from content_extraction.monitoring.metrics import image_enhancements_total
from content_extraction.scraper.config import VIEWPORT_HEIGHT, VIEWPORT_WIDTH
from content_extraction.scraper.renderer import PageSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QualityPreset:
    """Target size and JPEG quality of one quality tier."""

    width: int
    height: int
    quality: int


QUALITY_TIERS: dict[str, QualityPreset] = {
    "thumbnail": QualityPreset(width=400, height=300, quality=85),
    "standard": QualityPreset(width=800, height=600, quality=90),
    "high": QualityPreset(width=1920, height=1080, quality=95),
    "ultra": QualityPreset(width=2560, height=1440, quality=95),
}
DEFAULT_TIER: str = "high"

#: Social-card output of the screenshot fallback.
SOCIAL_CARD_WIDTH: int = 1200
SOCIAL_CARD_HEIGHT: int = 630
SCREENSHOT_QUALITY: int = 90

_WORDPRESS_SIZE_RE = re.compile(r"-\d+x\d+\.")


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def optimize_image_url(url: str) -> str:
    """Rewrite known CDN URLs to request a large, compressed variant.

    - Cloudinary: inject ``q_auto,f_auto,w_1200,h_630,c_fill`` after ``/upload/``.
    - imgix: append ``auto=format,compress&w=1200&h=630&fit=crop&q=90``.
    - WordPress: drop the ``-WxH`` thumbnail suffix to get the original upload.

    Any other URL is returned unchanged.
    """
    if "cloudinary" in url and "/upload/" in url:
        return url.replace("/upload/", "/upload/q_auto,f_auto,w_1200,h_630,c_fill/", 1)
    if "imgix" in url:
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}auto=format,compress&w=1200&h=630&fit=crop&q=90"
    if "wordpress" in url or "/wp-content/uploads/" in url:
        return _WORDPRESS_SIZE_RE.sub(".", url)
    return url


def target_dimensions(source_width: int, source_height: int, preset: QualityPreset) -> tuple[int, int]:
    """Return the output size for *preset*, never exceeding the source.

    When the source is narrower than the tier target, the target is clamped
    to the source width and the height rescaled to keep the tier's aspect
    ratio; the same is then applied to the height.
    """
    width, height = preset.width, preset.height
    if source_width < width:
        height = round(height * source_width / width)
        width = source_width
    if source_height < height:
        width = round(width * source_height / height)
        height = source_height
    return max(width, 1), max(height, 1)


def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def _flatten(image: Image.Image) -> Image.Image:
    """Convert to RGB, compositing any transparency onto white."""
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    """Encode *image* as an optimised progressive JPEG."""
    buffer = io.BytesIO()
    _flatten(image).save(buffer, "JPEG", quality=quality, progressive=True, optimize=True)
    return buffer.getvalue()


def generate_formats(image: Image.Image) -> dict[str, str]:
    """Encode *image* as JPEG, WebP and (where supported) AVIF data URIs.

    AVIF needs a Pillow build with libavif; when encoding is unavailable the
    ``avif`` key is omitted.
    """
    rgb = _flatten(image)
    variants = {"jpeg": to_data_uri(encode_jpeg(rgb, 90), "image/jpeg")}

    webp = io.BytesIO()
    rgb.save(webp, "WEBP", quality=85)
    variants["webp"] = to_data_uri(webp.getvalue(), "image/webp")

    avif = io.BytesIO()
    try:
        rgb.save(avif, "AVIF", quality=80)
    except (KeyError, OSError, ValueError) as exc:
        logger.debug("image_enhancer: AVIF encoding unavailable: %s", exc)
    else:
        variants["avif"] = to_data_uri(avif.getvalue(), "image/avif")
    return variants


# ---------------------------------------------------------------------------
# Enhancer
# ---------------------------------------------------------------------------


class ImageEnhancer:
    """Fetches and re-encodes lead images.

    Args:
        client: Shared HTTP client used for image downloads.
        default_tier: Quality tier used when :meth:`enhance` gets none.
        timeout: Download timeout in seconds.
        emit_formats: Also attach WebP/AVIF variants to each result.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        default_tier: str = DEFAULT_TIER,
        timeout: float = 15.0,
        emit_formats: bool = False,
    ) -> None:
        self._client = client
        self.default_tier = default_tier
        self._timeout = timeout
        self.emit_formats = emit_formats

    async def enhance(
        self, candidate: ImageCandidate, tier: str | None = None
    ) -> EnhancedImageResult:
        """Fetch *candidate* and re-encode it for *tier*.

        Unknown tiers fall back to ``"high"``.  Never raises: any failure
        yields a degraded result with ``quality=0`` and ``file_size=0``.
        """
        preset = QUALITY_TIERS.get(tier or self.default_tier, QUALITY_TIERS[DEFAULT_TIER])
        resolved_url = optimize_image_url(candidate.url)

        try:
            data = await self._fetch(resolved_url)
            result = await asyncio.to_thread(self._reencode, data, preset, candidate.url)
        except ImageFetchFailure as exc:
            logger.info("image_enhancer: %s", exc)
            return self._degraded(candidate)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            logger.info("image_enhancer: could not decode %s: %s", resolved_url, exc)
            return self._degraded(candidate)

        image_enhancements_total.labels(outcome="enhanced").inc()
        return result

    async def capture_screenshot(self, page: PageSession, page_url: str) -> EnhancedImageResult:
        """Screenshot the page top and fit it to a 1200x630 social card.

        Raises:
            Any error from the renderer or from Pillow; callers treat a
            failure as "no image available".
        """
        raw = await page.screenshot(width=VIEWPORT_WIDTH, height=VIEWPORT_HEIGHT)
        result = await asyncio.to_thread(self._fit_screenshot, raw, page_url)
        image_enhancements_total.labels(outcome="screenshot").inc()
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _fetch(self, url: str) -> bytes:
        try:
            response = await self._client.get(url, timeout=self._timeout)
        except httpx.HTTPError as exc:
            raise ImageFetchFailure(f"fetch failed for {url}: {exc}", details={"url": url}) from exc
        if response.status_code >= 400:
            raise ImageFetchFailure(
                f"HTTP {response.status_code} for {url}",
                details={"url": url, "status_code": response.status_code},
            )
        if not response.content:
            raise ImageFetchFailure(f"empty body for {url}", details={"url": url})
        return response.content

    def _reencode(self, data: bytes, preset: QualityPreset, original_url: str) -> EnhancedImageResult:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            width, height = target_dimensions(image.width, image.height, preset)
            fitted = ImageOps.fit(
                _flatten(image),
                (width, height),
                method=Image.Resampling.LANCZOS,
                centering=(0.5, 0.5),
            )
        encoded = encode_jpeg(fitted, preset.quality)
        return EnhancedImageResult(
            original_url=original_url,
            enhanced_url=to_data_uri(encoded, "image/jpeg"),
            width=width,
            height=height,
            format="jpeg",
            quality=preset.quality,
            file_size=len(encoded),
            variants=generate_formats(fitted) if self.emit_formats else {},
        )

    def _fit_screenshot(self, raw: bytes, page_url: str) -> EnhancedImageResult:
        with Image.open(io.BytesIO(raw)) as image:
            image.load()
            card = ImageOps.fit(
                _flatten(image),
                (SOCIAL_CARD_WIDTH, SOCIAL_CARD_HEIGHT),
                method=Image.Resampling.LANCZOS,
                centering=(0.5, 0.0),
            )
        encoded = encode_jpeg(card, SCREENSHOT_QUALITY)
        return EnhancedImageResult(
            original_url=page_url,
            enhanced_url=to_data_uri(encoded, "image/jpeg"),
            width=SOCIAL_CARD_WIDTH,
            height=SOCIAL_CARD_HEIGHT,
            format="jpeg",
            quality=SCREENSHOT_QUALITY,
            file_size=len(encoded),
            variants=generate_formats(card) if self.emit_formats else {},
        )

    @staticmethod
    def _degraded(candidate: ImageCandidate) -> EnhancedImageResult:
        image_enhancements_total.labels(outcome="degraded").inc()
        return EnhancedImageResult(
            original_url=candidate.url,
            width=candidate.width,
            height=candidate.height,
            format=candidate.format,
            quality=0,
            file_size=0,
        )
