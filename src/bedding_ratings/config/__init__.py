"""Configuration package for the bedding ratings service.

Re-exports the most commonly used configuration symbols so that
callers can write::

    from bedding_ratings.config import get_settings, ALL_CATEGORIES

without needing to know which sub-module each symbol lives in.
"""

from __future__ import annotations

from bedding_ratings.config.settings import Settings, get_settings
from bedding_ratings.config.vocabulary import (
    ALL_CATEGORIES,
    CATEGORY_LABELS,
    MULTI_VALUE_CATEGORIES,
    MULTI_VALUE_VOCABULARY,
    SINGLE_VALUE_CATEGORIES,
    SINGLE_VALUE_VOCABULARY,
    VALUE_LABELS,
    value_tone,
    vocabulary_for,
)

__all__ = [
    # settings
    "Settings",
    "get_settings",
    # vocabulary
    "ALL_CATEGORIES",
    "CATEGORY_LABELS",
    "MULTI_VALUE_CATEGORIES",
    "MULTI_VALUE_VOCABULARY",
    "SINGLE_VALUE_CATEGORIES",
    "SINGLE_VALUE_VOCABULARY",
    "VALUE_LABELS",
    "value_tone",
    "vocabulary_for",
]
