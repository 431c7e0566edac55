"""Async HTTP page fetcher used by the non-browser tiers.

Uses ``httpx`` for all requests.  Redirect limits are a property of the
client (``httpx.AsyncClient(max_redirects=...)``), so callers build the
client once with :func:`build_http_client` and share it across tiers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from content_extraction.config.settings import Settings
from content_extraction.scraper.config import BINARY_CONTENT_TYPES, HTML_ACCEPT

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass
class FetchResult:
    """Result of a single HTTP fetch attempt.

    Attributes:
        html: Decoded response body, or ``None`` if the fetch failed.
        status_code: HTTP status code, or ``None`` on network error.
        final_url: URL after following redirects.
        error: Human-readable error description, or ``None`` on success.
    """

    html: str | None
    status_code: int | None
    final_url: str | None
    error: str | None

    @property
    def ok(self) -> bool:
        return self.error is None and self.html is not None


# ---------------------------------------------------------------------------
# Client factory
# ---------------------------------------------------------------------------


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Build the shared :class:`httpx.AsyncClient` for page and image GETs.

    The client follows redirects up to ``settings.max_redirects`` hops and
    sends a realistic browser user agent on every request.
    """
    return httpx.AsyncClient(
        follow_redirects=True,
        max_redirects=settings.max_redirects,
        timeout=settings.http_timeout,
        headers={
            "User-Agent": settings.user_agent,
            "Accept-Language": settings.accept_language,
        },
    )


# ---------------------------------------------------------------------------
# Binary content-type check
# ---------------------------------------------------------------------------


def _is_binary_content_type(content_type: str) -> bool:
    """Return ``True`` if the Content-Type indicates a non-text binary resource."""
    ct = content_type.lower().split(";")[0].strip()
    return any(ct.startswith(prefix) for prefix in BINARY_CONTENT_TYPES)


# ---------------------------------------------------------------------------
# Public fetch function
# ---------------------------------------------------------------------------


def _describe_request_error(exc: httpx.RequestError) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return "timeout"
    if isinstance(exc, httpx.TooManyRedirects):
        return "too many redirects"
    return f"request error: {exc}"


async def fetch_url(
    url: str,
    *,
    client: httpx.AsyncClient,
    timeout: float,
) -> FetchResult:
    """Fetch a single page with a plain GET.

    Never raises for network-level problems; every failure is reported via
    ``FetchResult.error``:

    - timeouts, connection errors and redirect loops,
    - HTTP status >= 400,
    - binary content types (PDF, images, ...),
    - undecodable bodies.

    Args:
        url: Target URL.
        client: Shared client from :func:`build_http_client`.
        timeout: Request timeout in seconds.

    Returns:
        A :class:`FetchResult`.
    """
    try:
        response = await client.get(url, timeout=timeout, headers={"Accept": HTML_ACCEPT})
    except httpx.RequestError as exc:
        reason = _describe_request_error(exc)
        logger.warning("scraper: GET %s failed: %s", url, reason)
        return FetchResult(html=None, status_code=None, final_url=url, error=reason)

    status_code = response.status_code
    final_url = str(response.url)
    content_type = response.headers.get("content-type", "")

    error: str | None = None
    html: str | None = None
    if status_code >= 400:
        error = f"HTTP {status_code}"
    elif _is_binary_content_type(content_type):
        error = f"binary content-type: {content_type}"
    else:
        try:
            html = response.text
        except (UnicodeDecodeError, LookupError) as exc:
            error = f"decode error: {exc}"

    if error is not None:
        logger.info("scraper: skipping %s (%s)", url, error)
    return FetchResult(html=html, status_code=status_code, final_url=final_url, error=error)
