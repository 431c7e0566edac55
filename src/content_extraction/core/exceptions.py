"""Exception hierarchy for the content extraction pipeline.

All custom exceptions subclass ``ContentExtractionError``, enabling
consistent error handling and structured logging across the tiers.

Hierarchy::

    ContentExtractionError
    └── ScrapingError            (code, retryable, details)
        ├── RendererLaunchFailure
        ├── NavigationTimeout
        ├── ContentNotFound
        ├── NetworkFailure
        └── ImageFetchFailure
"""

from __future__ import annotations

from typing import Any


class ContentExtractionError(Exception):
    """Base class for all content extraction exceptions.

    All package-specific exceptions inherit from this class so that
    callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


# ---------------------------------------------------------------------------
# Tier exceptions
# ---------------------------------------------------------------------------


class ScrapingError(ContentExtractionError):
    """Raised by an extraction tier when it cannot produce a result.

    The orchestrator converts any ``ScrapingError`` into a transition to the
    next tier.  ``retryable`` tells the orchestrator whether trying the same
    tier again immediately could help; it is not acted on today (tiers are
    never retried in place) but is preserved on the exception and on the
    logged event.

    Args:
        message: Human-readable description of the failure.
        code: Stable machine-readable error code (e.g. ``"NAVIGATION_TIMEOUT"``).
        retryable: Whether the failure is transient.  Defaults to ``True``.
        details: Optional free-form context for debugging (URL, status, ...).
    """

    default_code: str = "SCRAPING_ERROR"
    default_retryable: bool = True

    def __init__(
        self,
        message: str,
        code: str | None = None,
        retryable: bool | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.retryable = self.default_retryable if retryable is None else retryable
        self.details = details

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class RendererLaunchFailure(ScrapingError):
    """Raised when the renderer pool cannot launch a headless browser."""

    default_code = "RENDERER_LAUNCH_FAILED"


class NavigationTimeout(ScrapingError):
    """Raised when a page fails to load or stabilise within the timeout."""

    default_code = "NAVIGATION_TIMEOUT"


class ContentNotFound(ScrapingError):
    """Raised when a tier loads a page but locates no usable text."""

    default_code = "CONTENT_NOT_FOUND"


class NetworkFailure(ScrapingError):
    """Raised when a plain HTTP GET fails (DNS, connection, HTTP status).

    Not retryable: the last tier turns it into a stub result.
    """

    default_code = "NETWORK_FAILURE"
    default_retryable = False


class ImageFetchFailure(ScrapingError):
    """Raised inside the image enhancer when the lead image cannot be processed.

    Never escapes the enhancer; it only degrades the image field.
    """

    default_code = "IMAGE_FETCH_FAILED"
    default_retryable = False
