"""Extraction tiers, most expensive and most faithful first."""

from content_extraction.extractors.article import ArticleFallbackExtractor
from content_extraction.extractors.base import Extractor, failure_result
from content_extraction.extractors.metadata import MetadataOnlyFallback
from content_extraction.extractors.primary import PrimaryExtractor

__all__ = [
    "ArticleFallbackExtractor",
    "Extractor",
    "MetadataOnlyFallback",
    "PrimaryExtractor",
    "failure_result",
]
