"""Factory Boy factories for test data generation.

Available factories
-------------------
RatingDraftFactory     : valid RatingDraft (core input type)
RatingFactory          : persisted Rating snapshot
RatingPayloadFactory   : POST /ratings JSON body dict
"""

from __future__ import annotations

from tests.factories.ratings import (
    RatingDraftFactory,
    RatingFactory,
    RatingPayloadFactory,
)

__all__ = [
    "RatingDraftFactory",
    "RatingFactory",
    "RatingPayloadFactory",
]
