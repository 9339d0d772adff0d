"""Structural and vocabulary validation of rating drafts.

:func:`validate_draft` is a pure function: it never touches the store and
returns a normalized copy of the draft or raises a
:class:`~bedding_ratings.core.exceptions.RatingValidationError` subclass.

Rules are applied in a fixed order so that the reported reason is stable:

1. location key present        → ``missing_location``
2. location key within width   → ``field_too_long``
3. identity present            → ``missing_identity``
4. identity within width       → ``field_too_long``
5. category names known        → ``unknown_category``
6. values inside vocabularies  → ``invalid_category_value``
7. at least one signal remains → ``empty_submission``

Only the first failing rule is reported.  A draft with both an unknown
category and an out-of-vocabulary value is rejected as ``unknown_category``;
its values are not inspected until the category names are fixed.

Normalization trims every string, drops blank single values (the browser
form sends ``""`` for "not rated") and de-duplicates multi-valued sets.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from bedding_ratings.config.vocabulary import (
    MULTI_VALUE_VOCABULARY,
    SINGLE_VALUE_VOCABULARY,
)
from bedding_ratings.core.exceptions import (
    EmptySubmissionError,
    FieldTooLongError,
    InvalidCategoryValueError,
    MissingIdentityError,
    MissingLocationError,
    UnknownCategoryError,
)
from bedding_ratings.core.records import (
    IDENTITY_MAX_LENGTH,
    LOCATION_KEY_MAX_LENGTH,
    RatingDraft,
)

_MAX_DISPLAY_LENGTH = 500


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


def _clean_display(value: Optional[str]) -> Optional[str]:
    cleaned = _clean(value)
    return cleaned[:_MAX_DISPLAY_LENGTH] or None


def _normalize_single(attributes: Mapping[str, Optional[str]]) -> dict[str, str]:
    return {
        category: _clean(value)
        for category, value in attributes.items()
        if _clean(value)
    }


def _normalize_multi(
    attributes: Mapping[str, Iterable[str]],
) -> dict[str, frozenset[str]]:
    normalized: dict[str, frozenset[str]] = {}
    for category, values in attributes.items():
        cleaned = frozenset(_clean(v) for v in values if _clean(v))
        if cleaned:
            normalized[category] = cleaned
    return normalized


def _unknown_categories(
    single: Mapping[str, object],
    multi: Mapping[str, object],
) -> list[str]:
    unknown = {c for c in single if c not in SINGLE_VALUE_VOCABULARY}
    unknown |= {c for c in multi if c not in MULTI_VALUE_VOCABULARY}
    return sorted(unknown)


def _invalid_values(
    single: Mapping[str, str],
    multi: Mapping[str, frozenset[str]],
) -> dict[str, list[str]]:
    invalid: dict[str, list[str]] = {}
    for category, value in single.items():
        if value not in SINGLE_VALUE_VOCABULARY[category]:
            invalid[category] = [value]
    for category, values in multi.items():
        bad = sorted(v for v in values if v not in MULTI_VALUE_VOCABULARY[category])
        if bad:
            invalid[category] = bad
    return dict(sorted(invalid.items()))


def _accepted_for(categories: Iterable[str]) -> dict[str, list[str]]:
    accepted: dict[str, list[str]] = {}
    for category in categories:
        vocabulary = SINGLE_VALUE_VOCABULARY.get(category) or MULTI_VALUE_VOCABULARY[category]
        accepted[category] = list(vocabulary)
    return accepted


def validate_draft(draft: RatingDraft) -> RatingDraft:
    """Validate and normalize a rating draft.

    Args:
        draft: The candidate submission as parsed from the request body.

    Returns:
        A new :class:`RatingDraft` with trimmed keys, blank values removed
        and multi-valued sets de-duplicated.

    Raises:
        MissingLocationError: If the location key is absent or blank.
        FieldTooLongError: If the location key or identity is longer than
            its stored width.
        MissingIdentityError: If the identity is absent or blank.
        UnknownCategoryError: If any category name is not a known category.
        InvalidCategoryValueError: If any value lies outside its category
            vocabulary.  Every offending value is reported.
        EmptySubmissionError: If no category carries a value.
    """
    location_key = _clean(draft.location_key)
    if not location_key:
        raise MissingLocationError()
    if len(location_key) > LOCATION_KEY_MAX_LENGTH:
        raise FieldTooLongError("locationKey", LOCATION_KEY_MAX_LENGTH)

    identity = _clean(draft.identity)
    if not identity:
        raise MissingIdentityError()
    if len(identity) > IDENTITY_MAX_LENGTH:
        raise FieldTooLongError("identity", IDENTITY_MAX_LENGTH)

    unknown = _unknown_categories(draft.attributes, draft.multi_value_attributes)
    if unknown:
        raise UnknownCategoryError(unknown)

    single = _normalize_single(draft.attributes)
    multi = _normalize_multi(draft.multi_value_attributes)

    invalid = _invalid_values(single, multi)
    if invalid:
        raise InvalidCategoryValueError(invalid, _accepted_for(invalid))

    normalized = RatingDraft(
        location_key=location_key,
        identity=identity,
        attributes=single,
        multi_value_attributes=multi,
        location_name=_clean_display(draft.location_name),
        location_address=_clean_display(draft.location_address),
    )
    if not normalized.has_signal:
        raise EmptySubmissionError()
    return normalized
