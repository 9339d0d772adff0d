"""Record store interface and its PostgreSQL implementation.

The core talks to persistence exclusively through :class:`RatingRepository`.
One repository instance wraps one unit of work (one ``AsyncSession``): the
orchestrator stages a rating insert and the rate-limit upserts, then either
commits or rolls back the whole unit.

Concurrency contract of :meth:`RatingRepository.upsert_rate_limit_entry`:

    The write applies only when no entry exists for ``(identifier, kind)``
    or the existing entry's ``window_start`` is at or before
    ``stale_before``.  The method returns ``True`` when the write applied and
    ``False`` when a fresher entry already holds the key.  The check and the
    write are a single atomic statement in the store, so two submissions
    racing on the same key can never both observe ``True``.

On PostgreSQL this is ``INSERT ... ON CONFLICT ... DO UPDATE ... WHERE ...
RETURNING``; a concurrent writer blocks on the conflicting row until the
first transaction commits or rolls back and then re-evaluates the
``WHERE`` clause against the committed row.
"""

from __future__ import annotations

import abc
import logging
import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bedding_ratings.core.exceptions import StoreUnavailableError
from bedding_ratings.core.models.ratings import RateLimitEntryRecord, RatingRecord
from bedding_ratings.core.records import RateLimitEntry, RateLimitKind, Rating

logger = logging.getLogger(__name__)


class RatingRepository(abc.ABC):
    """Persistence boundary for ratings and rate-limit window markers."""

    @abc.abstractmethod
    async def find_by_location(self, location_key: str) -> list[Rating]:
        """Return every rating for *location_key*, newest first."""

    @abc.abstractmethod
    async def find_rate_limit_entry(
        self,
        identifier: str,
        kind: RateLimitKind,
    ) -> Optional[RateLimitEntry]:
        """Return the window marker for ``(identifier, kind)`` or ``None``."""

    @abc.abstractmethod
    async def upsert_rate_limit_entry(
        self,
        entry: RateLimitEntry,
        *,
        stale_before: datetime,
    ) -> bool:
        """Atomically claim the key unless a fresher entry holds it.

        Returns:
            ``True`` if the entry was inserted or advanced, ``False`` if an
            existing entry with ``window_start > stale_before`` was kept.
        """

    @abc.abstractmethod
    async def insert_rating(self, rating: Rating) -> Rating:
        """Stage *rating* for insertion and return the stored snapshot."""

    @abc.abstractmethod
    async def commit(self) -> None:
        """Make every staged write of this unit of work durable."""

    @abc.abstractmethod
    async def rollback(self) -> None:
        """Discard every staged write of this unit of work."""


# ---------------------------------------------------------------------------
# Row conversion helpers
# ---------------------------------------------------------------------------


def _rating_from_record(record: RatingRecord) -> Rating:
    multi = record.multi_value_attributes or {}
    return Rating(
        id=record.id,
        location_key=record.location_key,
        attributes=dict(record.attributes or {}),
        multi_value_attributes=dict(multi),
        identity=record.identity,
        source_address=record.source_address,
        submitted_at=record.submitted_at,
        location_name=record.location_name,
        location_address=record.location_address,
    )


def _record_from_rating(rating: Rating) -> RatingRecord:
    return RatingRecord(
        id=rating.id,
        location_key=rating.location_key,
        location_name=rating.location_name,
        location_address=rating.location_address,
        attributes=dict(rating.attributes),
        multi_value_attributes={
            category: sorted(values)
            for category, values in rating.multi_value_attributes.items()
        },
        identity=rating.identity,
        source_address=rating.source_address,
        submitted_at=rating.submitted_at,
    )


def build_rate_limit_upsert(entry: RateLimitEntry, stale_before: datetime):
    """Build the conditional ``INSERT ... ON CONFLICT`` statement for *entry*.

    Exposed as a module-level function so that the generated SQL can be
    inspected in unit tests without a database.
    """
    table = RateLimitEntryRecord.__table__
    stmt = pg_insert(RateLimitEntryRecord).values(
        id=uuid.uuid4(),
        identifier=entry.identifier,
        kind=entry.kind.value,
        window_start=entry.window_start,
    )
    return stmt.on_conflict_do_update(
        constraint="uq_rate_limit_identifier_kind",
        set_={
            "window_start": stmt.excluded.window_start,
            "updated_at": sa.func.now(),
        },
        where=table.c.window_start <= stale_before,
    ).returning(table.c.id)


# ---------------------------------------------------------------------------
# SqlAlchemyRatingRepository
# ---------------------------------------------------------------------------


class SqlAlchemyRatingRepository(RatingRepository):
    """PostgreSQL-backed repository over a single ``AsyncSession``.

    Every SQLAlchemy error is logged and re-raised as
    :class:`~bedding_ratings.core.exceptions.StoreUnavailableError` so that
    callers never depend on driver exception types.

    Args:
        session: An open :class:`sqlalchemy.ext.asyncio.AsyncSession`.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_location(self, location_key: str) -> list[Rating]:
        stmt = (
            select(RatingRecord)
            .where(RatingRecord.location_key == location_key)
            .order_by(RatingRecord.submitted_at.desc(), RatingRecord.id.desc())
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.exception("repository.find_by_location_failed")
            raise StoreUnavailableError(
                "Could not load ratings", operation="find_by_location"
            ) from exc
        return [_rating_from_record(record) for record in result.scalars().all()]

    async def find_rate_limit_entry(
        self,
        identifier: str,
        kind: RateLimitKind,
    ) -> Optional[RateLimitEntry]:
        stmt = select(RateLimitEntryRecord).where(
            RateLimitEntryRecord.identifier == identifier,
            RateLimitEntryRecord.kind == kind.value,
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.exception("repository.find_rate_limit_entry_failed")
            raise StoreUnavailableError(
                "Could not load rate-limit entry", operation="find_rate_limit_entry"
            ) from exc
        record = result.scalar_one_or_none()
        if record is None:
            return None
        return RateLimitEntry(
            identifier=record.identifier,
            kind=RateLimitKind(record.kind),
            window_start=record.window_start,
        )

    async def upsert_rate_limit_entry(
        self,
        entry: RateLimitEntry,
        *,
        stale_before: datetime,
    ) -> bool:
        stmt = build_rate_limit_upsert(entry, stale_before)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.exception("repository.upsert_rate_limit_entry_failed")
            raise StoreUnavailableError(
                "Could not update rate-limit entry", operation="upsert_rate_limit_entry"
            ) from exc
        return result.scalar_one_or_none() is not None

    async def insert_rating(self, rating: Rating) -> Rating:
        record = _record_from_rating(rating)
        self.session.add(record)
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.exception("repository.insert_rating_failed")
            raise StoreUnavailableError(
                "Could not store rating", operation="insert_rating"
            ) from exc
        return _rating_from_record(record)

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            logger.exception("repository.commit_failed")
            raise StoreUnavailableError("Could not commit", operation="commit") from exc

    async def rollback(self) -> None:
        await self.session.rollback()
