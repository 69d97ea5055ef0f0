"""
Tests for the framelog FastAPI application.

Each test builds its own app through `create_app(service)` over the in-memory
fixtures. Using `TestClient` as a context manager runs the lifespan, which
performs the one-time backup backfill.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from framelog import __version__
from framelog.api.app import create_app
from framelog.core.contracts.commit import Author, Comment
from framelog.core.storage.commit_store import BACKUP_KEY, MIGRATION_FLAG_KEY, CommitStore
from framelog.feedback.source import StaticFeedbackSource
from framelog.pipelines.create_commit import CREATE_IN_PROGRESS_ERROR, CommitService

from conftest import BASE_TIME, FlakyStore

COMMIT_BODY = {
    "title": "Checkout redesign",
    "author": {"name": "Ada"},
    "counts": {"totalNodes": 40, "frames": 3},
    "annotations": [{"label": "Spacing", "nodeId": "1:2"}],
}


@pytest.fixture
def service(store: CommitStore) -> CommitService:
    source = StaticFeedbackSource([Comment(id="k1", author=Author(name="Lin"), text="nice", node_id="1:2")])
    ticks = iter(range(1_000))
    return CommitService(store, source, clock=lambda: BASE_TIME + timedelta(minutes=next(ticks)))


@pytest.fixture
def client(service: CommitService) -> Iterator[TestClient]:
    with TestClient(create_app(service)) as c:
        yield c


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok" and data["version"] == __version__
    assert data["environment"] in {"dev", "test", "prod"}


def test_startup_runs_backfill(client: TestClient, backup: FlakyStore) -> None:
    assert backup.get(MIGRATION_FLAG_KEY) is True


def test_create_and_list_commits(client: TestClient) -> None:
    resp = client.post("/commits", json=COMMIT_BODY)
    assert resp.status_code == 201, resp.text
    created = resp.json()
    assert created["commit"]["version"] == "1.0.0"
    assert created["commit"]["metrics"]["feedbackCount"] == 2
    assert created["feedback"]["newComments"] == 1
    assert created["backedUp"] is True

    second = client.post("/commits", json={**COMMIT_BODY, "title": "Follow-up"}).json()
    assert second["commit"]["version"] == "1.0.1"
    assert second["commit"]["metrics"]["feedbackCount"] == 0

    listed = client.get("/commits").json()
    assert [c["title"] for c in listed] == ["Follow-up", "Checkout redesign"]
    assert len(client.get("/commits", params={"limit": 1}).json()) == 1


def test_create_validation_error(client: TestClient) -> None:
    resp = client.post("/commits", json={"title": "", "author": {"name": "Ada"}})
    assert resp.status_code == 422


def test_create_storage_failure_is_500(client: TestClient, primary: FlakyStore) -> None:
    primary.fail_set.add("commit_chunk_")
    resp = client.post("/commits", json=COMMIT_BODY)
    assert resp.status_code == 500
    assert resp.json()["success"] is False


def test_create_while_busy_is_409(client: TestClient, service: CommitService) -> None:
    assert service._create_lock.acquire()
    try:
        resp = client.post("/commits", json=COMMIT_BODY)
    finally:
        service._create_lock.release()
    assert resp.status_code == 409
    assert resp.json() == {"success": False, "error": CREATE_IN_PROGRESS_ERROR}


def test_analytics_histogram_search(client: TestClient) -> None:
    client.post("/commits", json=COMMIT_BODY)
    client.post("/commits", json={**COMMIT_BODY, "title": "Nav bar", "counts": {"totalNodes": 52}})

    analytics = client.get("/analytics").json()
    assert analytics["fileGrowth"]["totalGrowth"] == 12
    assert analytics["activeNodes"]["hotspots"][0]["nodeId"] == "1:2"

    bars = client.get("/histogram").json()
    assert [b["title"] for b in bars] == ["Checkout redesign", "Nav bar"]
    newest = client.get("/histogram", params={"order": "newest", "maxBars": 1}).json()
    assert [b["title"] for b in newest] == ["Nav bar"]
    assert client.get("/histogram", params={"order": "sideways"}).status_code == 422

    hits = client.get("/search", params={"q": "nav"}).json()
    assert [c["title"] for c in hits] == ["Nav bar"]


def test_preview_and_mode(client: TestClient) -> None:
    preview = client.post("/commits/preview", json={"annotations": [{"label": "A", "nodeId": "9:9"}]}).json()
    assert preview == {
        "newCommentsCount": 1,
        "newAnnotationsCount": 1,
        "pageChanges": [],
        "hasRealTimeTracking": False,
    }

    assert client.get("/mode").json()["nextVersion"] == "1.0.0"
    updated = client.put("/mode", json={"mode": "date-based"}).json()
    assert updated["mode"] == "date-based"
    assert client.put("/mode", json={"mode": "calver"}).status_code == 422


def test_backup_already_present_is_left_alone(store: CommitStore, backup: FlakyStore) -> None:
    backup.set(BACKUP_KEY, [{"id": "x"}])
    with TestClient(create_app(CommitService(store))):
        pass
    assert backup.get(BACKUP_KEY) == [{"id": "x"}]
