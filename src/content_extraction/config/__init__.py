"""Configuration package.

Re-exports the settings entry points so callers can write::

    from content_extraction.config import get_settings
"""

from __future__ import annotations

from content_extraction.config.settings import QualityTier, Settings, get_settings

__all__ = [
    "QualityTier",
    "Settings",
    "get_settings",
]
