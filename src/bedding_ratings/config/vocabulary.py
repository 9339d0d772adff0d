"""Rating categories and their fixed value vocabularies.

The category lists and vocabularies below are part of the public API
contract: clients submit only these category names and values, and the
summary endpoint emits one entry per category in exactly this order, even
when a category has no data.

- Single-valued categories (one optional value per rating):
  :data:`SINGLE_VALUE_CATEGORIES`
- Multi-valued categories (a set of values per rating):
  :data:`MULTI_VALUE_CATEGORIES`
- Display labels and tone for each value: :data:`VALUE_LABELS`,
  :data:`POSITIVE_VALUES`, :data:`NEGATIVE_VALUES`

Category names use the camelCase spelling of the browser extension's form
fields so that the JSON shape stays stable across clients.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Single-valued categories
# ---------------------------------------------------------------------------

_COMFORT_SCALE: tuple[str, ...] = ("too-soft", "soft", "medium", "hard", "too-hard")

SINGLE_VALUE_VOCABULARY: dict[str, tuple[str, ...]] = {
    "bedSize": ("as-described", "not-as-described"),
    "bedComfort": _COMFORT_SCALE,
    "bedcoverSize": ("big-enough", "not-big-enough"),
    "bedcoverComfort": (
        "too-hot",
        "synthetic-heat",
        "natural-heat",
        "just-right",
        "too-cold",
    ),
    "pillowSize": ("too-low", "nicely-judged", "too-high"),
    "pillowComfort": _COMFORT_SCALE,
}
"""Allowed values per single-valued category, in form display order."""

SINGLE_VALUE_CATEGORIES: tuple[str, ...] = tuple(SINGLE_VALUE_VOCABULARY)

# ---------------------------------------------------------------------------
# Multi-valued categories
# ---------------------------------------------------------------------------

MULTI_VALUE_VOCABULARY: dict[str, tuple[str, ...]] = {
    "lightAnnoyances": (
        "ac-panel",
        "telephone",
        "tv-dot",
        "corridor-light",
        "curtain-window",
        "smoke-alarm",
    ),
    "noiseIssues": (
        "street-traffic",
        "corridor",
        "neighbours",
        "air-conditioning",
        "plumbing",
        "elevator",
        "nightlife",
    ),
}
"""Allowed values per multi-valued category (checkbox groups)."""

MULTI_VALUE_CATEGORIES: tuple[str, ...] = tuple(MULTI_VALUE_VOCABULARY)

ALL_CATEGORIES: tuple[str, ...] = SINGLE_VALUE_CATEGORIES + MULTI_VALUE_CATEGORIES
"""Static output order of the summary response."""

# ---------------------------------------------------------------------------
# Display metadata
# ---------------------------------------------------------------------------

VALUE_LABELS: dict[str, str] = {
    "as-described": "as described",
    "not-as-described": "not as described",
    "too-soft": "too soft",
    "soft": "soft",
    "medium": "medium",
    "hard": "hard",
    "too-hard": "too hard",
    "big-enough": "big enough",
    "not-big-enough": "not big enough",
    "too-hot": "too hot",
    "synthetic-heat": "synthetic heat",
    "natural-heat": "natural heat",
    "just-right": "just right",
    "too-cold": "too cold",
    "too-low": "too low",
    "nicely-judged": "nicely judged",
    "too-high": "too high",
    "ac-panel": "AC panel",
    "telephone": "telephone",
    "tv-dot": "TV dot",
    "corridor-light": "corridor light",
    "curtain-window": "curtain/window",
    "smoke-alarm": "smoke alarm",
    "street-traffic": "street traffic",
    "corridor": "corridor",
    "neighbours": "neighbours",
    "air-conditioning": "air conditioning",
    "plumbing": "plumbing",
    "elevator": "elevator",
    "nightlife": "nightlife",
}
"""Human-readable label for every vocabulary value."""

CATEGORY_LABELS: dict[str, str] = {
    "bedSize": "Bed Size",
    "bedComfort": "Bed Comfort",
    "bedcoverSize": "Bed Cover Size",
    "bedcoverComfort": "Bed Cover Comfort",
    "pillowSize": "Pillow Size",
    "pillowComfort": "Pillow Comfort",
    "lightAnnoyances": "Light Annoyances",
    "noiseIssues": "Noise Issues",
}

POSITIVE_VALUES: frozenset[str] = frozenset({
    "as-described",
    "medium",
    "big-enough",
    "natural-heat",
    "nicely-judged",
    "just-right",
})

NEGATIVE_VALUES: frozenset[str] = frozenset({
    "not-as-described",
    "too-soft",
    "too-hard",
    "not-big-enough",
    "too-hot",
    "too-cold",
    "too-low",
    "too-high",
}) | frozenset(MULTI_VALUE_VOCABULARY["lightAnnoyances"]) | frozenset(
    MULTI_VALUE_VOCABULARY["noiseIssues"]
)
"""Values rendered as complaints.  Every light and noise value is negative."""


def value_tone(value: str) -> str:
    """Return ``"positive"``, ``"negative"`` or ``"neutral"`` for a vocabulary value."""
    if value in POSITIVE_VALUES:
        return "positive"
    if value in NEGATIVE_VALUES:
        return "negative"
    return "neutral"


def vocabulary_for(category: str) -> tuple[str, ...]:
    """Return the allowed values for *category*.

    Raises:
        KeyError: If *category* is not a known category name.
    """
    if category in SINGLE_VALUE_VOCABULARY:
        return SINGLE_VALUE_VOCABULARY[category]
    return MULTI_VALUE_VOCABULARY[category]
