"""Immutable value types shared by the validator, rate limiter and aggregation engine.

These are plain frozen dataclasses, deliberately decoupled from the
SQLAlchemy ORM classes in :mod:`bedding_ratings.core.models.ratings`.  The
repository converts ORM rows into these snapshots so that the core never
holds a reference to a live, mutable session object.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional

LOCATION_KEY_MAX_LENGTH = 512
IDENTITY_MAX_LENGTH = 256
SOURCE_ADDRESS_MAX_LENGTH = 128
"""Column widths of the ``ratings`` table; longer input is rejected, never truncated."""


class RateLimitKind(str, enum.Enum):
    """Discriminates the two composite rate-limit key forms."""

    ORIGIN_LOCATION = "origin_location"
    """Key is ``(source_address, location_key)``."""

    IDENTITY_LOCATION = "identity_location"
    """Key is ``(identity, location_key)``."""


def _freeze_attributes(attributes: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(sorted(attributes.items())))


def _freeze_multi(
    attributes: Mapping[str, frozenset[str]],
) -> Mapping[str, frozenset[str]]:
    # Anything that is not a collection is kept as-is so that the
    # aggregation engine can report it instead of splitting a string.
    return MappingProxyType(
        {
            category: frozenset(values)
            if isinstance(values, (list, tuple, set, frozenset))
            else values
            for category, values in sorted(attributes.items())
        }
    )


@dataclass(frozen=True)
class RatingDraft:
    """A rating submission before persistence.

    ``submitted_at`` and ``source_address`` are not part of the draft: the
    former is assigned by the server at acceptance time, the latter is
    captured by the HTTP boundary.

    Attributes:
        location_key: Opaque stable identifier of the rated location.
        identity: Opaque client identity used for abuse control.
        attributes: Single-valued category → value.
        multi_value_attributes: Multi-valued category → set of values.
        location_name: Optional display name of the location.
        location_address: Optional display address of the location.
    """

    location_key: Optional[str]
    identity: Optional[str]
    attributes: Mapping[str, str] = field(default_factory=dict)
    multi_value_attributes: Mapping[str, frozenset[str]] = field(default_factory=dict)
    location_name: Optional[str] = None
    location_address: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _freeze_attributes(self.attributes))
        object.__setattr__(
            self, "multi_value_attributes", _freeze_multi(self.multi_value_attributes)
        )

    @property
    def has_signal(self) -> bool:
        """Return True when at least one category carries a value."""
        return bool(self.attributes) or any(self.multi_value_attributes.values())


@dataclass(frozen=True)
class Rating:
    """One persisted opinion about one location.

    Immutable once stored; the core never updates or deletes ratings.
    """

    id: uuid.UUID
    location_key: str
    attributes: Mapping[str, str]
    multi_value_attributes: Mapping[str, frozenset[str]]
    identity: str
    source_address: str
    submitted_at: datetime
    location_name: Optional[str] = None
    location_address: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _freeze_attributes(self.attributes))
        object.__setattr__(
            self, "multi_value_attributes", _freeze_multi(self.multi_value_attributes)
        )

    @classmethod
    def from_draft(
        cls,
        draft: RatingDraft,
        *,
        source_address: str,
        submitted_at: datetime,
        rating_id: uuid.UUID | None = None,
    ) -> "Rating":
        """Build a ``Rating`` from a validated draft."""
        return cls(
            id=rating_id or uuid.uuid4(),
            location_key=draft.location_key or "",
            attributes=draft.attributes,
            multi_value_attributes=draft.multi_value_attributes,
            identity=draft.identity or "",
            source_address=source_address,
            submitted_at=submitted_at,
            location_name=draft.location_name,
            location_address=draft.location_address,
        )

    def to_public_dict(self) -> dict:
        """Serialise to the JSON shape returned by the API.

        Abuse-control fields (``identity``, ``source_address``) are never
        included.  Multi-valued sets are emitted as sorted lists.
        """
        return {
            "id": str(self.id),
            "locationKey": self.location_key,
            "locationName": self.location_name,
            "locationAddress": self.location_address,
            "attributes": dict(self.attributes),
            "multiValueAttributes": {
                category: sorted(values)
                for category, values in self.multi_value_attributes.items()
            },
            "submittedAt": self.submitted_at.isoformat(),
        }


@dataclass(frozen=True)
class RateLimitEntry:
    """Window marker for one abuse-control key.

    At most one entry exists per ``(identifier, kind)``; ``window_start`` is
    advanced on every admitted submission for the key.
    """

    identifier: str
    kind: RateLimitKind
    window_start: datetime


def rate_limit_identifier(subject: str, location_key: str) -> str:
    """Build the composite identifier ``"<len(subject)>:<subject>|<location_key>"``.

    The length prefix keeps the split point unambiguous: both parts are
    opaque and may themselves contain ``|`` or ``:``.
    """
    return f"{len(subject)}:{subject}|{location_key}"
