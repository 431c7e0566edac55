"""Constants and tuning parameters for the extraction tiers.

Runtime-adjustable values (pool size, timeouts, quality tier) live in
:mod:`content_extraction.config.settings`; this module holds the fixed
selector lists, caps and browser flags the tiers are built around.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

#: Chromium flags used for every pooled browser.  The sandbox is disabled
#: because the renderer runs inside an already-isolated container, and the
#: ``AutomationControlled`` blink feature is switched off so that
#: ``navigator.webdriver`` is not advertised.
BROWSER_LAUNCH_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-features=IsolateOrigins",
    "--disable-site-isolation-trials",
    "--disable-blink-features=AutomationControlled",
)

#: Init script masking the most common automation fingerprints.
STEALTH_INIT_SCRIPT: str = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
"""

#: Viewport used for page loads and the screenshot fallback.
VIEWPORT_WIDTH: int = 1920
VIEWPORT_HEIGHT: int = 1080

#: Auto-scroll after load so lazily loaded images report their natural size.
SCROLL_STEP_PX: int = 800
SCROLL_MAX_STEPS: int = 10
SCROLL_DELAY_MS: int = 100

# ---------------------------------------------------------------------------
# Content selection
# ---------------------------------------------------------------------------

#: Elements removed before any text is read.
NOISE_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "nav",
    "header",
    "footer",
    "aside",
    ".advertisement",
    ".ads",
    ".sidebar",
    ".menu",
    ".navigation",
)

#: Content containers in priority order.  The first one whose text reaches
#: :data:`MIN_CONTAINER_CHARS` wins; otherwise the whole ``<body>`` is used.
CONTENT_SELECTORS: tuple[str, ...] = (
    "article",
    '[role="main"]',
    "main",
    ".content",
    ".post-content",
    ".entry-content",
    ".article-content",
    ".post-body",
    ".main-content",
    "#content",
    ".story-body",
    ".article-body",
    ".text-content",
)

#: Minimum stripped text length for a container to count as the body.
MIN_CONTAINER_CHARS: int = 100

#: Text cap for the rendering tier.
MAX_TEXT_CHARS: int = 5000

#: Text cap for the metadata-only tier.
METADATA_TEXT_CHARS: int = 3000

# ---------------------------------------------------------------------------
# <meta> lookup order
# ---------------------------------------------------------------------------

TITLE_META_SELECTORS: tuple[str, ...] = (
    'meta[property="og:title"]',
    'meta[name="twitter:title"]',
)

DESCRIPTION_META_SELECTORS: tuple[str, ...] = (
    'meta[property="og:description"]',
    'meta[name="twitter:description"]',
    'meta[name="description"]',
)

AUTHOR_META_SELECTORS: tuple[str, ...] = (
    'meta[name="author"]',
    'meta[property="article:author"]',
    'meta[name="twitter:creator"]',
)

DATE_META_SELECTORS: tuple[str, ...] = (
    'meta[property="article:published_time"]',
    'meta[name="pubdate"]',
    'meta[name="date"]',
    'meta[itemprop="datePublished"]',
)

IMAGE_META_SELECTORS: tuple[str, ...] = (
    'meta[property="og:image"]',
    'meta[name="twitter:image"]',
)

SITE_NAME_META_SELECTORS: tuple[str, ...] = (
    'meta[property="og:site_name"]',
    'meta[name="application-name"]',
)

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

#: ``Accept`` header for plain page GETs.
HTML_ACCEPT: str = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

#: Content-Type prefixes that indicate binary resources the text tiers skip.
BINARY_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/zip",
        "application/octet-stream",
        "application/vnd.",
        "image/",
        "video/",
        "audio/",
        "font/",
    }
)
