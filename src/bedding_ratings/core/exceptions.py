"""Application-wide exception hierarchy for the bedding ratings service.

All custom exceptions subclass ``BeddingRatingsError``, enabling
consistent error handling and structured logging across the application.

Hierarchy::

    BeddingRatingsError
    ├── RatingValidationError        (code: str)
    │   ├── MissingLocationError
    │   ├── MissingIdentityError
    │   ├── FieldTooLongError        (field: str, max_length: int)
    │   ├── UnknownCategoryError     (categories: list[str])
    │   ├── InvalidCategoryValueError (invalid_values, accepted)
    │   └── EmptySubmissionError
    ├── StoreUnavailableError
    └── AggregationError

Rate limiting is deliberately absent: a throttled submission is a normal
outcome of :class:`~bedding_ratings.core.submission_service.SubmissionService`,
not an exception.
"""

from __future__ import annotations


class BeddingRatingsError(Exception):
    """Base class for all bedding ratings exceptions.

    All application-specific exceptions inherit from this class so that
    callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


# ---------------------------------------------------------------------------
# Client input exceptions
# ---------------------------------------------------------------------------


class RatingValidationError(BeddingRatingsError):
    """Raised when a rating draft fails structural or vocabulary checks.

    Every subclass carries a stable, machine-readable ``code`` that the HTTP
    boundary returns verbatim in the ``error`` field of a 400 response.

    Args:
        message: Human-readable description of the rejection.
    """

    code: str = "invalid_rating"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Return the JSON error body for this rejection."""
        return {"error": self.code, "message": self.message}


class MissingLocationError(RatingValidationError):
    """Raised when the location key is absent or blank."""

    code = "missing_location"

    def __init__(self, message: str = "Missing locationKey") -> None:
        super().__init__(message)


class MissingIdentityError(RatingValidationError):
    """Raised when the client identity is absent or blank."""

    code = "missing_identity"

    def __init__(self, message: str = "Missing identity for abuse prevention") -> None:
        super().__init__(message)


class FieldTooLongError(RatingValidationError):
    """Raised when a keying field exceeds its stored width.

    Args:
        field: Wire name of the offending field (e.g. ``"locationKey"``).
        max_length: Maximum accepted length after trimming.
    """

    code = "field_too_long"

    def __init__(self, field: str, max_length: int) -> None:
        super().__init__(f"{field} must be at most {max_length} characters")
        self.field = field
        self.max_length = max_length

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["field"] = self.field
        body["maxLength"] = self.max_length
        return body


class UnknownCategoryError(RatingValidationError):
    """Raised when a draft names categories outside the static category lists.

    Args:
        categories: Every unknown category name, sorted.
    """

    code = "unknown_category"

    def __init__(self, categories: list[str]) -> None:
        super().__init__(f"Unknown rating categories: {', '.join(categories)}")
        self.categories = categories

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["categories"] = self.categories
        return body


class InvalidCategoryValueError(RatingValidationError):
    """Raised when any submitted value is outside its category vocabulary.

    The whole submission is rejected; nothing is partially accepted.

    Args:
        invalid_values: Offending values keyed by category, each list sorted.
        accepted: The accepted vocabulary for every category that had an
            offending value.
    """

    code = "invalid_category_value"

    def __init__(
        self,
        invalid_values: dict[str, list[str]],
        accepted: dict[str, list[str]],
    ) -> None:
        parts = [
            f"{category}: {', '.join(values)}"
            for category, values in invalid_values.items()
        ]
        super().__init__(f"Invalid category values ({'; '.join(parts)})")
        self.invalid_values = invalid_values
        self.accepted = accepted

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["invalidValues"] = self.invalid_values
        body["acceptedValues"] = self.accepted
        return body


class EmptySubmissionError(RatingValidationError):
    """Raised when a draft carries no rating signal at all."""

    code = "empty_submission"

    def __init__(
        self,
        message: str = "At least one rating field must be provided",
    ) -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Server-side exceptions
# ---------------------------------------------------------------------------


class StoreUnavailableError(BeddingRatingsError):
    """Raised when the record store cannot complete a read or write.

    Wraps the underlying driver exception so that callers above the
    repository never depend on SQLAlchemy exception types.

    Args:
        message: Description of the failed operation.
        operation: Repository method that failed (e.g. ``"insert_rating"``).
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class AggregationError(BeddingRatingsError):
    """Raised when stored ratings cannot be aggregated.

    Indicates a data-integrity problem in persisted records (e.g. a
    non-string category value); surfaced as a server-side failure.

    Args:
        message: Description of the malformed data.
        category: Category being aggregated when the problem was found.
    """

    def __init__(self, message: str, category: str | None = None) -> None:
        super().__init__(message)
        self.category = category
