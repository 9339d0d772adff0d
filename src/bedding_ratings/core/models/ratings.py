"""Rating and rate-limit window ORM models.

Two tables:

``ratings``
    Append-only log of submitted ratings.  Rows are never updated or
    deleted by the application; retention is an operational concern.
    Single-valued categories are stored as a JSONB object
    (``{"bedComfort": "soft"}``) and multi-valued categories as a JSONB
    object of sorted arrays (``{"lightAnnoyances": ["tv-dot"]}``) so that the
    vocabulary can grow without a schema migration.

``rate_limit_entries``
    One window marker per ``(identifier, kind)``.  The unique constraint is
    the upsert target used by
    :meth:`~bedding_ratings.core.repository.SqlAlchemyRatingRepository.upsert_rate_limit_entry`
    and is what serializes concurrent submissions racing on the same key.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from bedding_ratings.core.models.base import Base, TimestampMixin
from bedding_ratings.core.records import (
    IDENTITY_MAX_LENGTH,
    LOCATION_KEY_MAX_LENGTH,
    SOURCE_ADDRESS_MAX_LENGTH,
)


class RatingRecord(Base):
    """A single crowd-sourced rating of one location.

    Attributes:
        id: UUID primary key (application-generated via uuid.uuid4).
        location_key: Opaque stable location identifier.  Indexed for the
            per-location scan used by listing and aggregation.
        location_name: Optional display name captured at submission time.
        location_address: Optional display address captured at submission time.
        attributes: JSONB object of single-valued category → value.
        multi_value_attributes: JSONB object of multi-valued category →
            sorted array of values.
        identity: Client-supplied abuse-control identity.  Never returned by
            the API.
        source_address: Network origin captured by the HTTP boundary.  Never
            returned by the API.
        submitted_at: Server-assigned acceptance timestamp.
    """

    __tablename__ = "ratings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    location_key: Mapped[str] = mapped_column(
        sa.String(LOCATION_KEY_MAX_LENGTH),
        nullable=False,
        index=True,
    )

    location_name: Mapped[Optional[str]] = mapped_column(
        sa.String(500),
        nullable=True,
    )

    location_address: Mapped[Optional[str]] = mapped_column(
        sa.String(500),
        nullable=True,
    )

    # ---------------------------------------------------------------------------
    # Rating signal
    # ---------------------------------------------------------------------------

    attributes: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=sa.text("'{}'::jsonb"),
    )

    multi_value_attributes: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=sa.text("'{}'::jsonb"),
    )

    # ---------------------------------------------------------------------------
    # Abuse-control fields
    # ---------------------------------------------------------------------------

    identity: Mapped[str] = mapped_column(
        sa.String(IDENTITY_MAX_LENGTH),
        nullable=False,
        index=True,
    )

    source_address: Mapped[str] = mapped_column(
        sa.String(SOURCE_ADDRESS_MAX_LENGTH),
        nullable=False,
        index=True,
    )

    submitted_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        # Listing is "newest first" within one location.
        sa.Index("idx_ratings_location_submitted", "location_key", "submitted_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<RatingRecord id={self.id} "
            f"location_key={self.location_key!r} "
            f"submitted_at={self.submitted_at}>"
        )


class RateLimitEntryRecord(Base, TimestampMixin):
    """Window marker for one abuse-control key.

    Attributes:
        id: UUID primary key.
        identifier: Composite key string, ``"<subject>|<location_key>"``
            where subject is the source address or the client identity.
        kind: ``"origin_location"`` or ``"identity_location"``.  Validated at
            the application layer via
            :class:`~bedding_ratings.core.records.RateLimitKind`.
        window_start: Timestamp of the most recent admitted submission for
            this key.
    """

    __tablename__ = "rate_limit_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    identifier: Mapped[str] = mapped_column(
        sa.String(1024),
        nullable=False,
    )

    kind: Mapped[str] = mapped_column(
        sa.String(32),
        nullable=False,
    )

    window_start: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
    )

    __table_args__ = (
        sa.UniqueConstraint(
            "identifier",
            "kind",
            name="uq_rate_limit_identifier_kind",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<RateLimitEntryRecord identifier={self.identifier!r} "
            f"kind={self.kind!r} window_start={self.window_start}>"
        )
