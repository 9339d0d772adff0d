"""Tests for the ratings HTTP routes.

Tests cover:
- POST /ratings returns 201 with the public rating view (no abuse fields)
- POST /ratings accepts snake_case keys and the legacy ``fingerprint`` alias
- POST /ratings returns 400 with stable reason codes for invalid input
- POST /ratings returns 429 with reason, retry hint and Retry-After header
- the source address is the proxy-appended X-Forwarded-For entry; rotating
  client-written entries does not escape the origin window
- over-long keys are rejected with 400, never reported as a store failure
- POST /ratings returns 500 when the store fails, and never reports success
- POST /ratings returns 422 for structurally malformed bodies
- GET /ratings lists newest first and returns 400 without a location key
- GET /ratings/summary/{location_key} returns the summary, accepts keys
  containing slashes, zeros for an
  unknown location, 400 for a blank key and 500 for malformed stored data
- GET /ratings/vocabulary lists every category with labels and tones
- system endpoints: banner, liveness, metrics, CORS for extension origins

Routes run against the in-memory store via the ``client`` fixture.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from httpx import AsyncClient

from bedding_ratings.config.vocabulary import ALL_CATEGORIES
from tests.factories import RatingFactory, RatingPayloadFactory
from tests.fakes import FrozenClock, InMemoryStore

LOCATION = "booking.com/hotel/dk/hotel-alpha"


def _forwarded(address: str, spoofed: str = "6.6.6.6") -> dict[str, str]:
    return {"X-Forwarded-For": f"{spoofed}, {address}"}


# ---------------------------------------------------------------------------
# POST /ratings
# ---------------------------------------------------------------------------


class TestSubmitRating:
    """POST /ratings."""

    @pytest.mark.asyncio
    async def test_created(self, client: AsyncClient, store: InMemoryStore) -> None:
        payload = RatingPayloadFactory.build(identity="browser-created")

        response = await client.post("/ratings", json=payload)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Rating submitted successfully"
        rating = body["rating"]
        assert rating["locationKey"] == LOCATION
        assert rating["attributes"] == {"bedComfort": "medium"}
        assert rating["multiValueAttributes"] == {"lightAnnoyances": ["tv-dot"]}
        assert "identity" not in rating
        assert "sourceAddress" not in rating
        assert len(store.ratings) == 1

    @pytest.mark.asyncio
    async def test_snake_case_and_fingerprint_alias(
        self, client: AsyncClient, store: InMemoryStore
    ) -> None:
        response = await client.post(
            "/ratings",
            json={
                "location_key": "hotel-b",
                "fingerprint": "legacy-browser",
                "attributes": {"pillowSize": "too-high"},
                "multi_value_attributes": {"noiseIssues": ["elevator", "elevator"]},
            },
        )

        assert response.status_code == 201
        assert store.ratings[0].identity == "legacy-browser"
        assert response.json()["rating"]["multiValueAttributes"] == {"noiseIssues": ["elevator"]}

    @pytest.mark.asyncio
    async def test_source_address_from_forwarded_for(
        self, client: AsyncClient, store: InMemoryStore
    ) -> None:
        await client.post(
            "/ratings",
            json=RatingPayloadFactory.build(),
            headers=_forwarded("203.0.113.50"),
        )
        assert store.ratings[0].source_address == "203.0.113.50"

    @pytest.mark.asyncio
    async def test_rotating_client_entries_still_throttled(
        self, client: AsyncClient, store: InMemoryStore
    ) -> None:
        statuses = []
        for n in range(3):
            response = await client.post(
                "/ratings",
                json=RatingPayloadFactory.build(identity=f"browser-{n}"),
                headers=_forwarded("203.0.113.9", spoofed=f"6.6.6.{n}"),
            )
            statuses.append(response.status_code)

        assert statuses == [201, 429, 429]
        assert [r.source_address for r in store.ratings] == ["203.0.113.9"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("overrides", "field", "max_length"),
        [
            ({"locationKey": "k" * 513}, "locationKey", 512),
            ({"identity": "i" * 257}, "identity", 256),
        ],
    )
    async def test_overlong_keys_rejected(
        self,
        client: AsyncClient,
        store: InMemoryStore,
        overrides: dict,
        field: str,
        max_length: int,
    ) -> None:
        response = await client.post("/ratings", json=RatingPayloadFactory.build(**overrides))

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "field_too_long"
        assert body["field"] == field
        assert body["maxLength"] == max_length
        assert store.ratings == []

    @pytest.mark.asyncio
    async def test_overlong_forwarded_entry_uses_peer(
        self, client: AsyncClient, store: InMemoryStore
    ) -> None:
        response = await client.post(
            "/ratings",
            json=RatingPayloadFactory.build(),
            headers={"X-Forwarded-For": "f" * 200},
        )

        assert response.status_code == 201
        assert store.ratings[0].source_address == "127.0.0.1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("overrides", "code"),
        [
            ({"locationKey": ""}, "missing_location"),
            ({"identity": None}, "missing_identity"),
            ({"attributes": {"wifi": "fast"}}, "unknown_category"),
            ({"attributes": {"bedComfort": "cloud-like"}}, "invalid_category_value"),
            ({"attributes": {"bedComfort": ""}, "multiValueAttributes": {}}, "empty_submission"),
        ],
    )
    async def test_rejected(
        self, client: AsyncClient, store: InMemoryStore, overrides: dict, code: str
    ) -> None:
        response = await client.post("/ratings", json=RatingPayloadFactory.build(**overrides))

        assert response.status_code == 400
        assert response.json()["error"] == code
        assert store.ratings == []

    @pytest.mark.asyncio
    async def test_invalid_value_details(self, client: AsyncClient) -> None:
        payload = RatingPayloadFactory.build(
            multiValueAttributes={"lightAnnoyances": ["tv-dot", "lava-lamp"]},
        )

        body = (await client.post("/ratings", json=payload)).json()

        assert body["invalidValues"] == {"lightAnnoyances": ["lava-lamp"]}
        assert "tv-dot" in body["acceptedValues"]["lightAnnoyances"]

    @pytest.mark.asyncio
    async def test_malformed_body(self, client: AsyncClient) -> None:
        response = await client.post("/ratings", json={"locationKey": "x", "attributes": 5})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_throttled_same_origin(self, client: AsyncClient, store: InMemoryStore) -> None:
        first = await client.post("/ratings", json=RatingPayloadFactory.build())
        second = await client.post("/ratings", json=RatingPayloadFactory.build())

        assert first.status_code == 201
        assert second.status_code == 429
        body = second.json()
        assert body["error"] == "rate_limited"
        assert body["reason"] == "origin_location"
        assert body["retryAfter"] == "1 week"
        assert second.headers["Retry-After"] == str(7 * 24 * 3600)
        assert len(store.ratings) == 1

    @pytest.mark.asyncio
    async def test_throttled_same_identity(
        self, client: AsyncClient, clock: FrozenClock
    ) -> None:
        payload = RatingPayloadFactory.build(identity="roaming-browser")
        await client.post("/ratings", json=payload, headers=_forwarded("198.51.100.1"))
        clock.advance(timedelta(days=3))

        response = await client.post("/ratings", json=payload, headers=_forwarded("198.51.100.2"))

        assert response.status_code == 429
        assert response.json()["reason"] == "identity_location"

    @pytest.mark.asyncio
    async def test_store_failure(self, client: AsyncClient, store: InMemoryStore) -> None:
        store.fail_operations.add("commit")

        response = await client.post("/ratings", json=RatingPayloadFactory.build())

        assert response.status_code == 500
        assert response.json()["error"] == "internal_error"
        assert store.ratings == []


# ---------------------------------------------------------------------------
# GET /ratings
# ---------------------------------------------------------------------------


class TestListRatings:
    """GET /ratings?locationKey=."""

    @pytest.mark.asyncio
    async def test_newest_first(self, client: AsyncClient, store: InMemoryStore) -> None:
        ratings = RatingFactory.build_batch(3, location_key=LOCATION)
        store.ratings.extend(reversed(ratings))

        response = await client.get("/ratings", params={"locationKey": LOCATION})

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [str(r.id) for r in ratings]
        assert all("identity" not in r for r in response.json())

    @pytest.mark.asyncio
    async def test_missing_key(self, client: AsyncClient) -> None:
        response = await client.get("/ratings")
        assert response.status_code == 400
        assert response.json()["error"] == "missing_location"

    @pytest.mark.asyncio
    async def test_store_failure(self, client: AsyncClient, store: InMemoryStore) -> None:
        store.fail_operations.add("find_by_location")
        response = await client.get("/ratings", params={"locationKey": LOCATION})
        assert response.status_code == 500


# ---------------------------------------------------------------------------
# GET /ratings/summary/{location_key}
# ---------------------------------------------------------------------------


class TestSummary:
    """GET /ratings/summary/{location_key}."""

    @pytest.mark.asyncio
    async def test_summary(self, client: AsyncClient, store: InMemoryStore) -> None:
        store.ratings.extend(
            RatingFactory.build(location_key=LOCATION, attributes={"bedComfort": value})
            for value in ["soft"] * 6 + ["medium"] * 3 + ["hard"]
        )

        response = await client.get(f"/ratings/summary/{LOCATION}")

        assert response.status_code == 200
        body = response.json()
        assert body["locationKey"] == LOCATION
        assert body["totalRatings"] == 10
        assert body["bedComfort"]["top2"] == [
            {"rating": "soft", "count": 6, "percentage": 60.0},
            {"rating": "medium", "count": 3, "percentage": 30.0},
        ]

    @pytest.mark.asyncio
    async def test_key_with_slashes(self, client: AsyncClient, store: InMemoryStore) -> None:
        key = "booking.com/hotel/dk/x"
        store.ratings.append(RatingFactory.build(location_key=key))
        store.ratings.append(RatingFactory.build(location_key="x"))

        response = await client.get(f"/ratings/summary/{key}")

        assert response.status_code == 200
        body = response.json()
        assert body["locationKey"] == key
        assert body["totalRatings"] == 1

    @pytest.mark.asyncio
    async def test_unknown_location_is_zero(self, client: AsyncClient) -> None:
        response = await client.get("/ratings/summary/never-rated")

        assert response.status_code == 200
        body = response.json()
        assert body["totalRatings"] == 0
        assert all(body[c] == {"total": 0, "top2": []} for c in ALL_CATEGORIES)

    @pytest.mark.asyncio
    async def test_blank_key(self, client: AsyncClient) -> None:
        response = await client.get("/ratings/summary/%20%20")
        assert response.status_code == 400
        assert response.json()["error"] == "missing_location"

    @pytest.mark.asyncio
    async def test_malformed_stored_data(self, client: AsyncClient, store: InMemoryStore) -> None:
        store.ratings.append(RatingFactory.build(location_key="hotel-x", attributes={"bedSize": 3}))

        response = await client.get("/ratings/summary/hotel-x")

        assert response.status_code == 500
        assert response.json()["error"] == "internal_error"

    @pytest.mark.asyncio
    async def test_submission_visible_in_summary(self, client: AsyncClient) -> None:
        payload = RatingPayloadFactory.build(
            locationKey="hotel-y", attributes={"bedSize": "as-described"}
        )
        await client.post("/ratings", json=payload)

        body = (await client.get("/ratings/summary/hotel-y")).json()

        assert body["bedSize"]["total"] == 1
        assert body["lightAnnoyances"]["top2"][0]["rating"] == "tv-dot"


# ---------------------------------------------------------------------------
# GET /ratings/vocabulary
# ---------------------------------------------------------------------------


class TestVocabulary:
    @pytest.mark.asyncio
    async def test_lists_categories_in_order(self, client: AsyncClient) -> None:
        response = await client.get("/ratings/vocabulary")

        assert response.status_code == 200
        body = response.json()
        assert [c["category"] for c in body] == list(ALL_CATEGORIES)
        light = next(c for c in body if c["category"] == "lightAnnoyances")
        assert light["multiValued"] is True
        assert {"value": "tv-dot", "label": "TV dot", "tone": "negative"} in light["values"]
        assert all(v["tone"] == "negative" for v in light["values"])

    @pytest.mark.asyncio
    async def test_tones(self, client: AsyncClient) -> None:
        body = (await client.get("/ratings/vocabulary")).json()
        bed_size = next(c for c in body if c["category"] == "bedSize")
        tones = {v["value"]: v["tone"] for v in bed_size["values"]}
        assert tones == {"as-described": "positive", "not-as-described": "negative"}
        assert bed_size["multiValued"] is False


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


class TestSystemEndpoints:
    @pytest.mark.asyncio
    async def test_banner(self, client: AsyncClient) -> None:
        response = await client.get("/")
        assert response.status_code == 200
        assert "running" in response.text

    @pytest.mark.asyncio
    async def test_liveness(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.json() == {"status": "ok"}
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_metrics_count_submissions(self, client: AsyncClient) -> None:
        await client.post("/ratings", json=RatingPayloadFactory.build(locationKey="hotel-m"))

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert 'rating_submissions_total{outcome="persisted"}' in response.text
        assert "http_requests_total" in response.text

    @pytest.mark.asyncio
    async def test_cors_allows_extension_origin(self, client: AsyncClient) -> None:
        response = await client.options(
            "/ratings",
            headers={
                "Origin": "chrome-extension://abcdefghijklmnop",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.status_code == 200
        assert (
            response.headers["access-control-allow-origin"]
            == "chrome-extension://abcdefghijklmnop"
        )

    @pytest.mark.asyncio
    async def test_cors_rejects_unknown_origin(self, client: AsyncClient) -> None:
        response = await client.options(
            "/ratings",
            headers={
                "Origin": "https://evil.example.com",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert "access-control-allow-origin" not in response.headers
