"""
Commit creation: from a request to a persisted, versioned commit.

Flow
----
1. Refuse if another create is still in flight (one create at a time).
2. Load the full history and fetch comments from the feedback source. A
   failed fetch is not fatal: the commit gets zero new comments and the
   reason is reported in :class:`FeedbackReport`.
3. Keep only feedback that no earlier commit recorded.
4. Compute the next version label from the versioning mode and the stored
   ``current_version``.
5. Assemble metrics (``feedbackCount`` always equals the number of new
   comments plus annotations) with deltas versus the most recent commit.
6. Append through :class:`~framelog.core.storage.commit_store.CommitStore`.
   A primary write failure becomes ``Err``; backup and read-back problems are
   only reported on the result.

Analytics and histogram reads never go through this service; they run over
``CommitStore.load_all()`` snapshots and may observe a slightly stale list.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from datetime import date, datetime

from pydantic import Field

from framelog.core.contracts.base import WireModel
from framelog.core.contracts.commit import (
    Annotation,
    Author,
    Comment,
    Commit,
    CommitMetrics,
    Count,
    DevStatusChange,
    utcnow,
)
from framelog.core.contracts.meta import VersionIncrement, VersioningMode
from framelog.core.contracts.stats import PageChangeStats, PreCommitStats
from framelog.core.dedup import filter_new_feedback
from framelog.core.errors import StorageWriteError
from framelog.core.result import Result, err, ok
from framelog.core.settings import get_logger
from framelog.core.storage.commit_store import CommitStore
from framelog.core.versioning import next_version
from framelog.feedback.source import FeedbackSource, StaticFeedbackSource

logger = get_logger(__name__)

CREATE_IN_PROGRESS_ERROR = "A commit is already being created. Please wait for it to finish."


# --------------------------------------------------------------------------- #
# Request / response contracts
# --------------------------------------------------------------------------- #


class NodeCounts(WireModel):
    """Structural counts measured on the canvas at commit time."""

    total_nodes: Count = 0
    frames: Count = 0
    components: Count = 0
    instances: Count = 0
    text_nodes: Count = 0


class CommitRequest(WireModel):
    """Everything the caller supplies to create one commit.

    ``mode`` falls back to the stored versioning mode; ``increment`` only
    matters in semantic mode and defaults to ``"patch"``. ``annotations`` is
    the full current set; only unseen ones end up on the commit.
    """

    title: str = Field(min_length=1)
    description: str | None = None
    author: Author
    mode: VersioningMode | None = None
    increment: VersionIncrement | None = None
    annotations: list[Annotation] = Field(default_factory=list)
    counts: NodeCounts = Field(default_factory=NodeCounts)
    dev_status_changes: list[DevStatusChange] | None = None


class FeedbackReport(WireModel):
    new_comments: int = 0
    new_annotations: int = 0
    comment_error: str | None = None


class CreatedCommit(WireModel):
    """A stored commit plus the best-effort signals gathered while storing it."""

    commit: Commit
    feedback: FeedbackReport
    chunk_count: int
    verified: bool
    backed_up: bool


def build_pre_commit_stats(
    new_comments: Sequence[Comment],
    new_annotations: Sequence[Annotation],
    page_changes: Sequence[PageChangeStats] = (),
) -> PreCommitStats:
    """Aggregate already-filtered feedback with collaborator page statistics."""
    return PreCommitStats(
        new_comments_count=len(new_comments),
        new_annotations_count=len(new_annotations),
        page_changes=list(page_changes),
        has_real_time_tracking=bool(page_changes),
    )


def _latest(history: Sequence[Commit]) -> Commit | None:
    return max(history, key=lambda c: c.timestamp) if history else None


def build_metrics(
    counts: NodeCounts, feedback_count: int, previous: Commit | None
) -> CommitMetrics:
    """Commit metrics with deltas versus ``previous`` (no deltas without one)."""
    return CommitMetrics(
        total_nodes=counts.total_nodes,
        frames=counts.frames,
        components=counts.components,
        instances=counts.instances,
        text_nodes=counts.text_nodes,
        nodes_delta=counts.total_nodes - previous.metrics.total_nodes if previous else None,
        feedback_count=feedback_count,
        feedback_delta=feedback_count - previous.metrics.feedback_count if previous else None,
    )


# --------------------------------------------------------------------------- #
# Service
# --------------------------------------------------------------------------- #


class CommitService:
    """Serializes commit creation over one :class:`CommitStore`.

    Parameters
    ----------
    store:
        Persistence for the history and the small settings keys.
    comment_source:
        Where comments come from. Defaults to an empty static source.
    clock:
        Returns the current instant; injectable for deterministic tests.
    today:
        Returns the calendar day used by date-based versioning.
    """

    def __init__(
        self,
        store: CommitStore,
        comment_source: FeedbackSource | None = None,
        *,
        clock: Callable[[], datetime] = utcnow,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.comment_source: FeedbackSource = comment_source or StaticFeedbackSource()
        self._clock = clock
        self._today = today
        self._create_lock = threading.Lock()

    @property
    def busy(self) -> bool:
        """True while a create is in flight."""
        return self._create_lock.locked()

    def _fetch_comments(self) -> tuple[list[Comment], str | None]:
        fetched = self.comment_source.fetch()
        if fetched.success:
            return list(fetched.items), None
        logger.warning("Proceeding without comments: %s", fetched.error)
        return [], fetched.error or "Unknown feedback error"

    def preview(
        self,
        annotations: Sequence[Annotation] = (),
        page_changes: Sequence[PageChangeStats] = (),
    ) -> PreCommitStats:
        """Counts of what the next commit would record, without writing anything."""
        history = self.store.load_all()
        comments, _ = self._fetch_comments()
        new = filter_new_feedback(comments, annotations, history)
        return build_pre_commit_stats(new.comments, new.annotations, page_changes)

    def create(self, request: CommitRequest) -> Result[CreatedCommit, str]:
        if not self._create_lock.acquire(blocking=False):
            logger.warning("Rejected create for %r: another create is in flight", request.title)
            return err(CREATE_IN_PROGRESS_ERROR)
        try:
            return self._create(request)
        finally:
            self._create_lock.release()

    def _create(self, request: CommitRequest) -> Result[CreatedCommit, str]:
        history = self.store.load_all()
        comments, comment_error = self._fetch_comments()
        new = filter_new_feedback(comments, request.annotations, history)

        mode = request.mode or self.store.get_mode()
        previous = _latest(history)
        current = self.store.get_current_version() or (previous.version if previous else None)
        version = next_version(mode, current, request.increment or "patch", today=self._today())

        commit = Commit(
            version=version,
            title=request.title,
            description=request.description,
            author=request.author,
            timestamp=self._clock(),
            comments=new.comments,
            annotations=new.annotations,
            metrics=build_metrics(request.counts, new.count, previous),
            dev_status_changes=request.dev_status_changes,
        )

        try:
            outcome = self.store.append(commit)
        except (StorageWriteError, ValueError) as exc:
            logger.error("Commit %s (%s) was not stored: %s", commit.id, version, exc)
            return err(f"Failed to save commit: {exc}")

        try:
            self.store.set_current_version(version)
        except StorageWriteError as exc:
            logger.warning("Commit stored but current_version not updated: %s", exc)

        return ok(
            CreatedCommit(
                commit=commit,
                feedback=FeedbackReport(
                    new_comments=len(new.comments),
                    new_annotations=len(new.annotations),
                    comment_error=comment_error,
                ),
                chunk_count=outcome.chunk_count,
                verified=outcome.verified,
                backed_up=outcome.backed_up,
            )
        )


__all__ = [
    "CREATE_IN_PROGRESS_ERROR",
    "CommitRequest",
    "CommitService",
    "CreatedCommit",
    "FeedbackReport",
    "NodeCounts",
    "build_metrics",
    "build_pre_commit_stats",
]
