"""Tiered content extraction: turn a URL into title, text and lead image.

Usage::

    from content_extraction import ExtractionOrchestrator

    async with ExtractionOrchestrator.create() as orchestrator:
        result = await orchestrator.extract("https://example.com/post")
"""

from content_extraction.core.models import ExtractionResult
from content_extraction.orchestrator import ExtractionOrchestrator

__version__ = "0.1.0"

__all__ = ["ExtractionOrchestrator", "ExtractionResult", "__version__"]
