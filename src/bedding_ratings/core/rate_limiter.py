"""Dual-key, store-backed submission rate limiter.

Every submission is checked against two independent keys, and both must
pass:

``origin_location``: ``(source_address, location_key)``
    Bounds one network origin against one location, even when many client
    identities share the origin.

``identity_location``: ``(identity, location_key)``
    Bounds one client identity against one location, even when it switches
    network origins.

A key is "in window" when its entry exists and ``now - window_start <
window``.  Entries are never deleted; a stale entry is simply ignored.

The limiter has two phases, driven by
:class:`~bedding_ratings.core.submission_service.SubmissionService`:

1. :meth:`SubmissionRateLimiter.admit`: read-only pre-check, rejects early.
2. :meth:`SubmissionRateLimiter.commit`: after the rating insert, claims both
   keys through the store's atomic conditional upsert.  If another
   submission claimed a key in between, the claim fails and the caller rolls
   back its unit of work.

Typical usage::

    limiter = SubmissionRateLimiter(repository)
    decision = await limiter.admit(identity, location_key, address, now)
    if decision.allowed:
        await repository.insert_rating(rating)
        decision = await limiter.commit(identity, location_key, address, now)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from bedding_ratings.core.records import (
    RateLimitEntry,
    RateLimitKind,
    rate_limit_identifier,
)
from bedding_ratings.core.repository import RatingRepository

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_WINDOW: timedelta = timedelta(weeks=1)

_DENIAL_MESSAGES: dict[RateLimitKind, str] = {
    RateLimitKind.ORIGIN_LOCATION: (
        "Origin rate limit: only 1 rating per week per network address per location"
    ),
    RateLimitKind.IDENTITY_LOCATION: (
        "Identity rate limit: only 1 rating per week per browser per location"
    ),
}


def describe_window(window: timedelta) -> str:
    """Render *window* as the coarse retry hint returned to clients.

    >>> describe_window(timedelta(weeks=1))
    '1 week'
    >>> describe_window(timedelta(days=3))
    '3 days'
    """
    seconds = int(window.total_seconds())
    for unit, size in (("week", 604800), ("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size and seconds % size == 0:
            count = seconds // size
            return f"{count} {unit}" + ("s" if count != 1 else "")
    return f"{seconds} seconds"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of an admission check or a window commit.

    Attributes:
        allowed: ``True`` when the submission may proceed.
        kind: The key that was exceeded.  ``None`` when allowed.
        message: Human-readable denial reason.  ``None`` when allowed.
        retry_after: Fixed retry hint equal to the window length.  ``None``
            when allowed.
    """

    allowed: bool
    kind: Optional[RateLimitKind] = None
    message: Optional[str] = None
    retry_after: Optional[timedelta] = None

    @classmethod
    def admitted(cls) -> "AdmissionDecision":
        return cls(allowed=True)

    @classmethod
    def denied(cls, kind: RateLimitKind, window: timedelta) -> "AdmissionDecision":
        return cls(
            allowed=False,
            kind=kind,
            message=_DENIAL_MESSAGES[kind],
            retry_after=window,
        )

    @property
    def retry_after_text(self) -> Optional[str]:
        """The retry hint as text (``"1 week"``), or ``None`` when allowed."""
        if self.retry_after is None:
            return None
        return describe_window(self.retry_after)


# ---------------------------------------------------------------------------
# SubmissionRateLimiter
# ---------------------------------------------------------------------------


class SubmissionRateLimiter:
    """Decides admission for ``(identity, location)`` and ``(origin, location)``.

    Holds no state of its own; the repository is the only synchronization
    point, so any number of service replicas may share one store.

    Args:
        repository: The unit-of-work repository for the current request.
        window: Length of the per-key window.  Defaults to one week.
    """

    def __init__(
        self,
        repository: RatingRepository,
        window: timedelta = DEFAULT_WINDOW,
    ) -> None:
        self.repository = repository
        self.window = window

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _keys(
        self,
        identity: str,
        location_key: str,
        source_address: str,
    ) -> list[tuple[str, RateLimitKind]]:
        """Return the two composite keys, origin key first."""
        return [
            (
                rate_limit_identifier(source_address, location_key),
                RateLimitKind.ORIGIN_LOCATION,
            ),
            (
                rate_limit_identifier(identity, location_key),
                RateLimitKind.IDENTITY_LOCATION,
            ),
        ]

    def in_window(self, entry: Optional[RateLimitEntry], now: datetime) -> bool:
        """Return True when *entry* was used less than one window before *now*."""
        return entry is not None and now - entry.window_start < self.window

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def admit(
        self,
        identity: str,
        location_key: str,
        source_address: str,
        now: datetime,
    ) -> AdmissionDecision:
        """Check both keys against the store without writing anything.

        Returns:
            An allowed decision when neither key is in its window, otherwise
            a denial naming the first exceeded key.

        Raises:
            StoreUnavailableError: If the store cannot be read.
        """
        for identifier, kind in self._keys(identity, location_key, source_address):
            entry = await self.repository.find_rate_limit_entry(identifier, kind)
            if self.in_window(entry, now):
                logger.info(
                    "rate_limit.denied",
                    extra={"kind": kind.value, "location_key": location_key},
                )
                return AdmissionDecision.denied(kind, self.window)
        return AdmissionDecision.admitted()

    async def commit(
        self,
        identity: str,
        location_key: str,
        source_address: str,
        now: datetime,
    ) -> AdmissionDecision:
        """Advance both keys' windows to *now*.

        Must only be called after the rating insert succeeded, inside the
        same unit of work.  Each key is claimed through the store's atomic
        conditional upsert; a failed claim means a concurrent submission got
        there first.

        Returns:
            An allowed decision when both keys were claimed, otherwise a
            denial naming the key that was lost.  The caller must roll back
            on denial so that no partial claim survives.

        Raises:
            StoreUnavailableError: If the store cannot be written.
        """
        stale_before = now - self.window
        for identifier, kind in self._keys(identity, location_key, source_address):
            claimed = await self.repository.upsert_rate_limit_entry(
                RateLimitEntry(identifier=identifier, kind=kind, window_start=now),
                stale_before=stale_before,
            )
            if not claimed:
                logger.info(
                    "rate_limit.claim_lost",
                    extra={"kind": kind.value, "location_key": location_key},
                )
                return AdmissionDecision.denied(kind, self.window)
        return AdmissionDecision.admitted()
