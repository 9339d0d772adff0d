"""Top-2 summary of a location's ratings, computed at read time.

Pure functions only: given the same ratings, :func:`summarize_ratings`
returns an identical dict (same keys, same order, same values) regardless
of input order.

Per category:

- ``total`` is the number of respondents who answered the category (a
  rating with no value for the category does not count).  Percentages use
  this per-category total, not the location's grand total, because
  categories have independent response rates.
- ``top2`` holds at most two ``{"rating", "count", "percentage"}`` entries,
  ordered by count descending, ties broken by value ascending.
- Percentages are rounded half-up to one decimal.

For multi-valued categories ``total`` counts respondents who mentioned any
value, so percentages read as "share of respondents who mentioned this" and
can sum to more than 100.
"""

from __future__ import annotations

from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Sequence

from bedding_ratings.config.vocabulary import (
    MULTI_VALUE_CATEGORIES,
    SINGLE_VALUE_CATEGORIES,
)
from bedding_ratings.core.exceptions import AggregationError
from bedding_ratings.core.records import Rating

TOP_N = 2

_ONE_DECIMAL = Decimal("0.1")


def percentage(count: int, total: int) -> float:
    """Return ``count / total * 100`` rounded half-up to one decimal.

    >>> percentage(1, 3)
    33.3
    >>> percentage(1, 16)
    6.3
    """
    if total <= 0:
        return 0.0
    ratio = Decimal(count * 100) / Decimal(total)
    return float(ratio.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def rank_values(counts: Counter, total: int, limit: int = TOP_N) -> list[dict[str, Any]]:
    """Rank *counts* by count descending, value ascending, and keep *limit*."""
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [
        {"rating": value, "count": count, "percentage": percentage(count, total)}
        for value, count in ranked[:limit]
    ]


def _empty_category() -> dict[str, Any]:
    return {"total": 0, "top2": []}


def _single_value_counts(ratings: Iterable[Rating], category: str) -> tuple[Counter, int]:
    counts: Counter = Counter()
    respondents = 0
    for rating in ratings:
        value = rating.attributes.get(category)
        if value is None:
            continue
        if not isinstance(value, str):
            raise AggregationError(
                f"Rating {rating.id} has a non-string value for {category}",
                category=category,
            )
        if not value.strip():
            continue
        counts[value] += 1
        respondents += 1
    return counts, respondents


def _multi_value_counts(ratings: Iterable[Rating], category: str) -> tuple[Counter, int]:
    counts: Counter = Counter()
    respondents = 0
    for rating in ratings:
        values = rating.multi_value_attributes.get(category)
        if values is None:
            continue
        if not isinstance(values, frozenset):
            raise AggregationError(
                f"Rating {rating.id} has a non-collection value for {category}",
                category=category,
            )
        mentioned = False
        for value in values:
            if not isinstance(value, str):
                raise AggregationError(
                    f"Rating {rating.id} has a non-string value for {category}",
                    category=category,
                )
            counts[value] += 1
            mentioned = True
        if mentioned:
            respondents += 1
    return counts, respondents


def summarize_category(
    ratings: Sequence[Rating],
    category: str,
    *,
    multi_valued: bool,
) -> dict[str, Any]:
    """Return ``{"total", "top2"}`` for one category.

    Raises:
        AggregationError: If a stored value has the wrong type.
    """
    if multi_valued:
        counts, respondents = _multi_value_counts(ratings, category)
    else:
        counts, respondents = _single_value_counts(ratings, category)
    if respondents == 0:
        return _empty_category()
    return {"total": respondents, "top2": rank_values(counts, respondents)}


def summarize_ratings(location_key: str, ratings: Sequence[Rating]) -> dict[str, Any]:
    """Build the summary response for one location.

    Args:
        location_key: The location the ratings belong to.
        ratings: Every stored rating for the location, in any order.

    Returns:
        ``{"locationKey", "totalRatings", <category>: {"total", "top2"}}``
        with one entry per static category, single-valued categories first.

    Raises:
        AggregationError: If stored data is malformed.
    """
    summary: dict[str, Any] = {
        "locationKey": location_key,
        "totalRatings": len(ratings),
    }
    for category in SINGLE_VALUE_CATEGORIES:
        summary[category] = summarize_category(ratings, category, multi_valued=False)
    for category in MULTI_VALUE_CATEGORIES:
        summary[category] = summarize_category(ratings, category, multi_valued=True)
    return summary
