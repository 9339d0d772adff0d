"""SQLAlchemy ORM models for the bedding ratings service.

All models are imported here so that:
1. Alembic autogenerate can discover them via Base.metadata.
2. Application code can do `from bedding_ratings.core.models import RatingRecord`
   without knowing which sub-module a model lives in.
"""

from __future__ import annotations

from bedding_ratings.core.models.base import Base, TimestampMixin
from bedding_ratings.core.models.ratings import RateLimitEntryRecord, RatingRecord

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Ratings
    "RatingRecord",
    "RateLimitEntryRecord",
]
