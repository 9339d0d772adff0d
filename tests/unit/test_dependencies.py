"""Unit tests for request-scoped dependency providers.

Tests cover:
- get_source_address() takes the last X-Forwarded-For entry, the one the
  proxy appended, and ignores client-written entries to its left
- over-long forwarded entries fall back to the peer; the peer is cut to the
  stored width
- it falls back to the socket peer, then to 127.0.0.1
- forwarded headers are ignored when trust_forwarded_for is disabled
"""

from __future__ import annotations

import pytest
from starlette.requests import Request

from bedding_ratings.api.dependencies import get_source_address
from bedding_ratings.config.settings import get_settings
from bedding_ratings.core.records import SOURCE_ADDRESS_MAX_LENGTH


def _request(headers: dict[str, str] | None = None, client=("192.0.2.10", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/ratings",
        "headers": [
            (key.lower().encode(), value.encode()) for key, value in (headers or {}).items()
        ],
        "client": client,
    }
    return Request(scope)


class TestGetSourceAddress:
    def test_last_forwarded_entry(self) -> None:
        request = _request({"X-Forwarded-For": " 6.6.6.1 , 203.0.113.7 "})
        assert get_source_address(request) == "203.0.113.7"

    def test_client_written_entries_do_not_change_origin(self) -> None:
        addresses = {
            get_source_address(_request({"X-Forwarded-For": f"6.6.6.{n}, 203.0.113.9"}))
            for n in range(3)
        }
        assert addresses == {"203.0.113.9"}

    def test_blank_forwarded_falls_back_to_peer(self) -> None:
        request = _request({"X-Forwarded-For": " "})
        assert get_source_address(request) == "192.0.2.10"

    def test_overlong_forwarded_falls_back_to_peer(self) -> None:
        request = _request({"X-Forwarded-For": "a" * (SOURCE_ADDRESS_MAX_LENGTH + 1)})
        assert get_source_address(request) == "192.0.2.10"

    def test_peer_cut_to_stored_width(self) -> None:
        request = _request(client=("h" * (SOURCE_ADDRESS_MAX_LENGTH + 20), 5000))
        assert len(get_source_address(request)) == SOURCE_ADDRESS_MAX_LENGTH

    def test_no_client_falls_back_to_loopback(self) -> None:
        assert get_source_address(_request(client=None)) == "127.0.0.1"

    def test_forwarded_ignored_when_untrusted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(get_settings(), "trust_forwarded_for", False)
        request = _request({"X-Forwarded-For": "203.0.113.7"})
        assert get_source_address(request) == "192.0.2.10"
