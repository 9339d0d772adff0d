"""Pydantic request/response schemas for the ratings API.

These schemas are used by the ratings routes for parsing, serialisation and
OpenAPI documentation.  They are kept separate from both the SQLAlchemy ORM
models and the core record types so that transport concerns stay out of
persistence and validation logic.

Field names are camelCase on the wire (``locationKey``) to match the browser
extension; snake_case is accepted too.  Vocabulary checks are NOT done here:
they belong to :func:`bedding_ratings.core.validator.validate_draft` so that
every rejection carries the same stable reason codes.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from bedding_ratings.core.records import RatingDraft


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class RatingCreate(BaseModel):
    """Payload for ``POST /ratings``.

    Attributes:
        location_key: Opaque stable location identifier produced by the page
            scraper.
        location_name: Optional display name of the location.
        location_address: Optional display address of the location.
        identity: Opaque client identity used for abuse control.  The legacy
            field name ``fingerprint`` is accepted.
        attributes: Single-valued category → value.  ``null`` or ``""``
            means "not rated".
        multi_value_attributes: Multi-valued category → list of values.
    """

    model_config = ConfigDict(populate_by_name=True)

    location_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("locationKey", "location_key"),
    )
    location_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("locationName", "location_name"),
    )
    location_address: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("locationAddress", "location_address"),
    )
    identity: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("identity", "fingerprint"),
    )
    attributes: dict[str, Optional[str]] = Field(default_factory=dict)
    multi_value_attributes: dict[str, list[str]] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("multiValueAttributes", "multi_value_attributes"),
    )

    def to_draft(self) -> RatingDraft:
        """Convert to the core draft type.

        ``None`` single values are dropped here; every other check is left
        to the validator.
        """
        return RatingDraft(
            location_key=self.location_key,
            identity=self.identity,
            attributes={k: v for k, v in self.attributes.items() if v is not None},
            multi_value_attributes={
                k: frozenset(v) for k, v in self.multi_value_attributes.items()
            },
            location_name=self.location_name,
            location_address=self.location_address,
        )


# ---------------------------------------------------------------------------
# Response schemas (OpenAPI documentation only; handlers return dicts)
# ---------------------------------------------------------------------------


class RankedValue(BaseModel):
    """One entry of a category's top-2 list."""

    rating: str
    count: int
    percentage: float


class CategorySummary(BaseModel):
    """Per-category aggregate.

    Attributes:
        total: Respondents who answered the category.
        top2: Up to two most frequent values.
    """

    total: int
    top2: list[RankedValue]


class RatingRead(BaseModel):
    """Public representation of a stored rating.

    Abuse-control fields are never part of this schema.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    location_key: str = Field(alias="locationKey")
    location_name: Optional[str] = Field(default=None, alias="locationName")
    location_address: Optional[str] = Field(default=None, alias="locationAddress")
    attributes: dict[str, str]
    multi_value_attributes: dict[str, list[str]] = Field(alias="multiValueAttributes")
    submitted_at: str = Field(alias="submittedAt")


class RatingCreated(BaseModel):
    """Response body for a persisted submission."""

    message: str
    rating: RatingRead


class VocabularyValue(BaseModel):
    """One allowed value of a category, with display metadata."""

    value: str
    label: str
    tone: str


class VocabularyCategory(BaseModel):
    """One category of the vocabulary endpoint."""

    category: str
    label: str
    multi_valued: bool = Field(alias="multiValued")
    values: list[VocabularyValue]
