"""
Integration tests for the commit-creation flow.

Scope
-----
- Version sequencing from the stored mode and `current_version`.
- Feedback deduplication against the whole history.
- Metrics: feedback count and deltas versus the most recent commit.
- Failure handling: comment fetch failure is reported, primary write failure
  becomes `Err`, a second concurrent create is refused.
"""

from __future__ import annotations

import threading
from datetime import date, datetime, timedelta

from framelog.core.contracts.commit import Annotation, Author, Comment
from framelog.core.contracts.stats import PageChangeStats
from framelog.core.storage.commit_store import CommitStore
from framelog.feedback.source import FeedbackFetch, StaticFeedbackSource
from framelog.pipelines.create_commit import (
    CREATE_IN_PROGRESS_ERROR,
    CommitRequest,
    CommitService,
    NodeCounts,
    build_pre_commit_stats,
)

from conftest import BASE_TIME, FlakyStore


class Clock:
    """Advances one hour per call."""

    def __init__(self) -> None:
        self.now = BASE_TIME

    def __call__(self) -> datetime:
        self.now += timedelta(hours=1)
        return self.now


class FailingSource:
    def fetch(self) -> FeedbackFetch:
        return FeedbackFetch.failed("No Personal Access Token found. Please configure it in settings.")


def _comment(cid: str) -> Comment:
    return Comment(id=cid, author=Author(name="Ada"), text=f"comment {cid}", node_id="1:1")


def _request(title: str = "Update", nodes: int = 10, **extra: object) -> CommitRequest:
    return CommitRequest(
        title=title,
        author=Author(name="Ada"),
        counts=NodeCounts(total_nodes=nodes, frames=2),
        **extra,  # type: ignore[arg-type]
    )


def _service(store: CommitStore, source: object = None, today: date = date(2026, 1, 1)) -> CommitService:
    return CommitService(store, source, clock=Clock(), today=lambda: today)  # type: ignore[arg-type]


def test_first_commit_starts_at_one_and_then_increments(store: CommitStore) -> None:
    service = _service(store)

    first = service.create(_request("Initial")).unwrap()
    second = service.create(_request("Tweak")).unwrap()
    third = service.create(_request("Feature", increment="minor")).unwrap()

    assert [c.commit.version for c in (first, second, third)] == ["1.0.0", "1.0.1", "1.1.0"]
    assert store.get_current_version() == "1.1.0"
    assert [c.id for c in store.load_all()] == [third.commit.id, second.commit.id, first.commit.id]


def test_date_based_mode_from_store(store: CommitStore) -> None:
    store.set_mode("date-based")
    service = _service(store)

    labels = [service.create(_request()).unwrap().commit.version for _ in range(3)]
    assert labels == ["2026-01-01", "2026-01-01.1", "2026-01-01.2"]


def test_request_mode_overrides_stored_mode(store: CommitStore) -> None:
    created = _service(store).create(_request(mode="date-based")).unwrap()
    assert created.commit.version == "2026-01-01"
    assert store.get_mode() == "semantic"


def test_feedback_is_deduplicated_across_history(store: CommitStore) -> None:
    source = StaticFeedbackSource([_comment("k1"), _comment("k2")])
    pin = Annotation(label="Spacing", node_id="2:2", properties={"gap": 8})
    service = _service(store, source)

    first = service.create(_request(annotations=[pin])).unwrap()
    source.items = [_comment("k1"), _comment("k2"), _comment("k3")]
    second = service.create(_request(annotations=[pin], nodes=25)).unwrap()

    assert first.feedback.new_comments == 2 and first.feedback.new_annotations == 1
    assert first.commit.metrics.feedback_count == 3
    assert [c.id for c in second.commit.comments] == ["k3"]
    assert second.commit.annotations == []
    assert second.commit.metrics.feedback_count == 1
    assert second.commit.metrics.feedback_delta == -2
    assert second.commit.metrics.nodes_delta == 15
    assert first.commit.metrics.nodes_delta is None


def test_comment_fetch_failure_is_reported_not_raised(store: CommitStore) -> None:
    created = _service(store, FailingSource()).create(_request()).unwrap()

    assert created.commit.comments == []
    assert created.feedback.comment_error is not None
    assert created.feedback.comment_error.startswith("No Personal Access Token")


def test_primary_write_failure_returns_err(store: CommitStore, primary: FlakyStore) -> None:
    primary.fail_set.add("commit_chunk_")

    result = _service(store).create(_request())

    assert result.is_err()
    assert "Failed to save commit" in result.unwrap_err()
    assert result.to_payload()["success"] is False
    assert store.get_current_version() is None


def test_backup_failure_still_succeeds(store: CommitStore, backup: FlakyStore) -> None:
    backup.fail_set.add("commits_backup")
    created = _service(store).create(_request()).unwrap()
    assert created.backed_up is False and created.verified is True


def test_second_create_while_busy_is_refused(store: CommitStore) -> None:
    entered = threading.Event()
    release = threading.Event()

    class SlowSource:
        def fetch(self) -> FeedbackFetch:
            entered.set()
            release.wait(timeout=5)
            return FeedbackFetch(success=True)

    service = _service(store, SlowSource())
    results: list[object] = []
    worker = threading.Thread(target=lambda: results.append(service.create(_request("slow"))))
    worker.start()
    assert entered.wait(timeout=5)

    assert service.busy
    refused = service.create(_request("fast"))
    release.set()
    worker.join(timeout=5)

    assert refused.unwrap_err() == CREATE_IN_PROGRESS_ERROR
    assert len(store.load_all()) == 1
    assert not service.busy


def test_preview_counts_without_writing(store: CommitStore, primary: FlakyStore) -> None:
    source = StaticFeedbackSource([_comment("k1")])
    service = _service(store, source)
    service.create(_request())
    source.items = [_comment("k1"), _comment("k2")]
    keys_before = primary.keys()

    stats = service.preview(
        [Annotation(label="New", node_id="5:5")],
        [PageChangeStats(page_id="0:1", page_name="Home", nodes_added=3, total_delta=3)],
    )

    assert (stats.new_comments_count, stats.new_annotations_count) == (1, 1)
    assert stats.has_real_time_tracking is True
    assert primary.keys() == keys_before


def test_build_pre_commit_stats_without_page_tracking() -> None:
    stats = build_pre_commit_stats([_comment("a")], [], [])
    assert stats.to_wire() == {
        "newCommentsCount": 1,
        "newAnnotationsCount": 0,
        "pageChanges": [],
        "hasRealTimeTracking": False,
    }
