"""Pydantic schemas for request/response validation.

Sub-modules:
    ratings: RatingCreate, RatingRead, RatingCreated, CategorySummary,
              VocabularyCategory
"""

from __future__ import annotations
