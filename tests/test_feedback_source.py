"""
Tests for the comment feedback sources.

The network is never touched: `FigmaCommentSource._get` is patched for the
mapping tests, and `urllib.request.urlopen` for the HTTP error mapping.
"""

from __future__ import annotations

import io
import urllib.error
from typing import Any

import pytest

from framelog.core.contracts.commit import Author, Comment
from framelog.core.errors import FeedbackFetchError
from framelog.feedback.source import (
    INVALID_TOKEN_ERROR,
    MISSING_TOKEN_ERROR,
    FigmaCommentSource,
    StaticFeedbackSource,
)

API_COMMENTS = {
    "comments": [
        {
            "id": "101",
            "user": {"handle": "grace", "email": "grace@example.com"},
            "created_at": "2026-01-02T09:30:00Z",
            "message": "Align the CTA",
            "client_meta": {"node_id": "12:34", "node_offset": {"x": 1, "y": 2}},
            "parent_id": "",
        },
        {
            "id": "102",
            "user": {},
            "created_at": "2026-01-02T10:00:00Z",
            "message": "Agreed",
            "client_meta": {"x": 10, "y": 20},
            "parent_id": "101",
        },
    ]
}


def _source(token: str | None = "figd_abc") -> FigmaCommentSource:
    return FigmaCommentSource(file_key="FILE", token_provider=lambda: token, base_url="https://api.test/v1")


def test_fetch_maps_rest_comments(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, str]] = []

    def fake_get(self: FigmaCommentSource, url: str, token: str) -> dict[str, Any]:
        calls.append((url, token))
        return API_COMMENTS

    monkeypatch.setattr(FigmaCommentSource, "_get", fake_get)

    fetched = _source().fetch()

    assert fetched.success and fetched.error is None
    assert calls == [("https://api.test/v1/files/FILE/comments", "figd_abc")]
    first, reply = fetched.items
    assert first.id == "101" and first.author.name == "grace" and first.author.email == "grace@example.com"
    assert first.node_id == "12:34" and first.parent_id is None
    assert first.text == "Align the CTA"
    assert reply.author.name == "Unknown"
    assert reply.node_id is None and reply.parent_id == "101"


def test_missing_token_fails_without_request(monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(*_: Any) -> dict[str, Any]:
        raise AssertionError("no request expected")

    monkeypatch.setattr(FigmaCommentSource, "_get", boom)
    fetched = _source(token=None).fetch()
    assert not fetched.success and fetched.error == MISSING_TOKEN_ERROR and fetched.items == []


def _raise_http(code: int) -> Any:
    def fake_urlopen(request: Any, timeout: float) -> Any:
        raise urllib.error.HTTPError(request.full_url, code, "nope", None, io.BytesIO(b""))  # type: ignore[arg-type]

    return fake_urlopen


def test_forbidden_maps_to_invalid_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("urllib.request.urlopen", _raise_http(403))
    fetched = _source().fetch()
    assert not fetched.success and fetched.error == INVALID_TOKEN_ERROR


def test_other_http_errors_keep_status(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("urllib.request.urlopen", _raise_http(500))
    fetched = _source().fetch()
    assert not fetched.success and "500" in (fetched.error or "")


def test_network_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def offline(request: Any, timeout: float) -> Any:
        raise urllib.error.URLError("no route to host")

    monkeypatch.setattr("urllib.request.urlopen", offline)
    fetched = _source().fetch()
    assert fetched.error == "Network error: no route to host"


def test_malformed_payload_is_a_failed_fetch(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        FigmaCommentSource, "_get", lambda self, url, token: {"comments": [{"id": "1", "created_at": "later"}]}
    )
    fetched = _source().fetch()
    assert not fetched.success and fetched.error and fetched.error.startswith("Malformed")


def test_validate_token(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[str] = []

    def fake_get(self: FigmaCommentSource, url: str, token: str) -> dict[str, Any]:
        seen.append(url)
        if token != "good":
            raise FeedbackFetchError(INVALID_TOKEN_ERROR)
        return {"id": "user-1"}

    monkeypatch.setattr(FigmaCommentSource, "_get", fake_get)

    assert _source().validate_token("good").is_ok()
    assert _source().validate_token("bad").unwrap_err() == INVALID_TOKEN_ERROR
    assert seen == ["https://api.test/v1/me", "https://api.test/v1/me"]


def test_static_source_returns_copy() -> None:
    items = [Comment(id="1", author=Author(name="Ada"), text="hi")]
    source = StaticFeedbackSource(items)
    fetched = source.fetch()
    fetched.items.clear()
    assert source.fetch().items == items
