"""Unit tests for the core value types and request schema.

Tests cover:
- RatingDraft and Rating freeze their attribute maps
- Rating.to_public_dict() uses camelCase keys, sorted lists and omits
  abuse-control fields
- rate_limit_identifier() composes subject and location without ambiguity
- RatingCreate accepts camelCase, snake_case and the fingerprint alias and
  converts to a draft without null values
"""

from __future__ import annotations

import pytest

from bedding_ratings.core.records import RatingDraft, rate_limit_identifier
from bedding_ratings.core.schemas.ratings import RatingCreate
from tests.factories import RatingFactory
from tests.fakes import DEFAULT_NOW


class TestFrozenTypes:
    def test_draft_maps_are_read_only(self) -> None:
        draft = RatingDraft(
            location_key="hotel-a",
            identity="b1",
            attributes={"bedSize": "as-described"},
            multi_value_attributes={"noiseIssues": ["elevator"]},
        )
        with pytest.raises(TypeError):
            draft.attributes["bedSize"] = "not-as-described"
        assert draft.multi_value_attributes["noiseIssues"] == frozenset({"elevator"})

    def test_rating_is_immutable(self) -> None:
        rating = RatingFactory.build()
        with pytest.raises(AttributeError):
            rating.location_key = "elsewhere"


class TestPublicDict:
    def test_shape(self) -> None:
        rating = RatingFactory.build(
            location_key="hotel-a",
            location_name="Hotel A",
            attributes={"pillowComfort": "hard"},
            multi_value_attributes={"lightAnnoyances": {"tv-dot", "ac-panel"}},
            submitted_at=DEFAULT_NOW,
        )

        public = rating.to_public_dict()

        assert public == {
            "id": str(rating.id),
            "locationKey": "hotel-a",
            "locationName": "Hotel A",
            "locationAddress": None,
            "attributes": {"pillowComfort": "hard"},
            "multiValueAttributes": {"lightAnnoyances": ["ac-panel", "tv-dot"]},
            "submittedAt": "2026-03-02T12:00:00+00:00",
        }


def test_rate_limit_identifier() -> None:
    assert rate_limit_identifier("203.0.113.7", "hotel-a") == "11:203.0.113.7|hotel-a"


def test_rate_limit_identifier_unambiguous() -> None:
    assert rate_limit_identifier("a|b", "c") != rate_limit_identifier("a", "b|c")
    assert rate_limit_identifier("a:1", "x") != rate_limit_identifier("a", "1|x")


class TestRatingCreate:
    def test_camel_case(self) -> None:
        payload = RatingCreate.model_validate(
            {
                "locationKey": "hotel-a",
                "locationAddress": "1 Main St",
                "identity": "b1",
                "attributes": {"bedSize": "as-described", "bedComfort": None},
                "multiValueAttributes": {"noiseIssues": ["elevator", "plumbing"]},
            }
        )

        draft = payload.to_draft()

        assert draft.location_key == "hotel-a"
        assert draft.location_address == "1 Main St"
        assert dict(draft.attributes) == {"bedSize": "as-described"}
        assert draft.multi_value_attributes["noiseIssues"] == frozenset({"elevator", "plumbing"})

    def test_fingerprint_alias(self) -> None:
        payload = RatingCreate.model_validate({"location_key": "hotel-a", "fingerprint": "fp-1"})
        assert payload.to_draft().identity == "fp-1"

    def test_missing_fields_default(self) -> None:
        draft = RatingCreate.model_validate({}).to_draft()
        assert draft.location_key is None
        assert draft.identity is None
        assert not draft.has_signal
