"""Extract a single URL from the command line.

Usage::

    python -m content_extraction https://example.com/post [--tier high] [--json]

Options:
    --tier   Lead-image quality tier (thumbnail, standard, high, ultra).
    --json   Print the full result as JSON instead of a summary.

Exit codes:
    0 - A tier produced a successful result.
    1 - Every tier failed; the stub result is still printed.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import get_args

from content_extraction.config.settings import QualityTier, Settings, get_settings
from content_extraction.core.logging_config import configure_logging
from content_extraction.core.models import ExtractionResult
from content_extraction.orchestrator import ExtractionOrchestrator


async def _run(url: str, settings: Settings) -> ExtractionResult:
    async with ExtractionOrchestrator.create(settings) as orchestrator:
        return await orchestrator.extract(url)


def _print_summary(result: ExtractionResult) -> None:
    print(f"{result.title}")
    print(f"  url:      {result.url}")
    print(f"  method:   {result.method} ({'ok' if result.success else 'failed'})")
    print(f"  words:    {result.word_count} ({result.reading_time})")
    if result.author:
        print(f"  author:   {result.author}")
    if result.date_published:
        print(f"  date:     {result.date_published}")
    if result.lead_image_url:
        image = result.lead_image_url
        print(f"  image:    {image[:80] + '...' if len(image) > 80 else image}")
    if result.excerpt:
        print(f"\n{result.excerpt}")
    for tier, error in result.tier_errors.items():
        print(f"  [{tier}] {error}", file=sys.stderr)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m content_extraction",
        description="Extract title, text and lead image from a URL.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("url", help="Absolute http(s) URL to extract.")
    parser.add_argument(
        "--tier",
        choices=get_args(QualityTier),
        default=None,
        help="Lead-image quality tier (default: EXTRACTION_IMAGE_QUALITY or 'high').",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the full result as JSON.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``python -m content_extraction``."""
    args = _parse_args(argv)
    settings = get_settings()
    if args.tier:
        settings = settings.model_copy(update={"image_quality": args.tier})
    configure_logging(settings.log_level)

    result = asyncio.run(_run(args.url, settings))

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_summary(result)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
