"""Submission orchestration and read paths for ratings.

:class:`SubmissionService` sequences the validator, the rate limiter and the
record store for one request.  It owns no state: every call works inside
the unit of work wrapped by the repository it was given.

Write path (linear, every step may end the sequence)::

    validate ──reject──▶ REJECTED
       │
    admit ────deny────▶ THROTTLED
       │
    insert ───error───▶ PERSIST_FAILED   (rollback)
       │
    commit window ─lost─▶ THROTTLED      (rollback, rating discarded)
       │
    store commit ─error─▶ PERSIST_FAILED (rollback)
       │
    PERSISTED

The rating insert and both window upserts share one transaction, so the
window is only ever advanced together with a durable rating and never for
a failed write.  No step is retried internally.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import structlog

from bedding_ratings.core.aggregation import summarize_ratings
from bedding_ratings.core.exceptions import (
    MissingLocationError,
    RatingValidationError,
    StoreUnavailableError,
)
from bedding_ratings.core.rate_limiter import AdmissionDecision, SubmissionRateLimiter
from bedding_ratings.core.records import Rating, RatingDraft
from bedding_ratings.core.repository import RatingRepository
from bedding_ratings.core.validator import validate_draft

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


class SubmissionOutcome(str, enum.Enum):
    """Terminal states of a submission."""

    REJECTED = "rejected"
    THROTTLED = "throttled"
    PERSISTED = "persisted"
    PERSIST_FAILED = "persist_failed"


@dataclass(frozen=True)
class SubmissionResult:
    """Tagged result of :meth:`SubmissionService.submit`.

    Exactly one of ``rating``, ``error``, ``decision`` or ``failure`` is set,
    matching ``outcome``.
    """

    outcome: SubmissionOutcome
    rating: Optional[Rating] = None
    error: Optional[RatingValidationError] = None
    decision: Optional[AdmissionDecision] = None
    failure: Optional[StoreUnavailableError] = None


class SubmissionService:
    """Composes validation, admission, persistence and aggregation.

    Args:
        repository: Unit-of-work repository for the current request.
        rate_limiter: Limiter bound to the same repository.
        clock: Callable returning the current aware datetime.  Injected so
            tests can control window arithmetic.
    """

    def __init__(
        self,
        repository: RatingRepository,
        rate_limiter: SubmissionRateLimiter,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.rate_limiter = rate_limiter
        self.clock = clock

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    async def submit(self, draft: RatingDraft, source_address: str) -> SubmissionResult:
        """Validate, admit and persist one rating.

        Args:
            draft: The candidate rating as parsed from the request.
            source_address: Network origin captured by the HTTP boundary.

        Returns:
            A :class:`SubmissionResult`.  Store failures are reported as
            ``PERSIST_FAILED`` rather than raised.
        """
        try:
            accepted = validate_draft(draft)
        except RatingValidationError as exc:
            logger.info("rating.rejected", code=exc.code)
            return SubmissionResult(SubmissionOutcome.REJECTED, error=exc)

        location_key = accepted.location_key or ""
        identity = accepted.identity or ""
        now = self.clock()

        try:
            decision = await self.rate_limiter.admit(
                identity, location_key, source_address, now
            )
            if not decision.allowed:
                await self.repository.rollback()
                return self._throttled(decision, location_key)

            rating = await self.repository.insert_rating(
                Rating.from_draft(
                    accepted, source_address=source_address, submitted_at=now
                )
            )

            decision = await self.rate_limiter.commit(
                identity, location_key, source_address, now
            )
            if not decision.allowed:
                await self.repository.rollback()
                return self._throttled(decision, location_key)

            await self.repository.commit()
        except StoreUnavailableError as exc:
            await self.repository.rollback()
            logger.error(
                "rating.persist_failed",
                operation=exc.operation,
                location_key=location_key,
            )
            return SubmissionResult(SubmissionOutcome.PERSIST_FAILED, failure=exc)

        logger.info(
            "rating.persisted",
            rating_id=str(rating.id),
            location_key=location_key,
        )
        return SubmissionResult(SubmissionOutcome.PERSISTED, rating=rating)

    def _throttled(self, decision: AdmissionDecision, location_key: str) -> SubmissionResult:
        logger.info(
            "rating.throttled",
            kind=decision.kind.value if decision.kind else None,
            location_key=location_key,
        )
        return SubmissionResult(SubmissionOutcome.THROTTLED, decision=decision)

    # ------------------------------------------------------------------
    # Read paths
    # ------------------------------------------------------------------

    async def list_ratings(self, location_key: Optional[str]) -> list[Rating]:
        """Return every rating for a location, newest first.

        Raises:
            MissingLocationError: If *location_key* is absent or blank.
            StoreUnavailableError: If the store cannot be read.
        """
        key = (location_key or "").strip()
        if not key:
            raise MissingLocationError("Missing locationKey parameter")
        return await self.repository.find_by_location(key)

    async def summarize(self, location_key: Optional[str]) -> dict[str, Any]:
        """Return the top-2 summary for a location.

        Raises:
            MissingLocationError: If *location_key* is absent or blank.
            StoreUnavailableError: If the store cannot be read.
            AggregationError: If stored data is malformed.
        """
        key = (location_key or "").strip()
        if not key:
            raise MissingLocationError("Missing locationKey parameter")
        ratings = await self.repository.find_by_location(key)
        summary = summarize_ratings(key, ratings)
        logger.debug("rating.summary_built", location_key=key, total=len(ratings))
        return summary
