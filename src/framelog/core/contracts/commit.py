"""Commit contracts: the unit of history and the feedback it carries.

A :class:`Commit` is built once, when a version is created, and is frozen
afterwards. The only permitted change is back-filling ``changelog_frame_id``
after the rendering collaborator has drawn it; that goes through
:meth:`Commit.with_frame_id`, which returns a new instance.

``comments`` and ``annotations`` hold the items that are *new since the
previous commit*. Reconstructing all feedback as of commit N means
concatenating commits 1..N (see :func:`framelog.core.dedup.collect_history`).
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, ConfigDict, Field

from .base import WireModel

Count = Annotated[int, Field(ge=0)]


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC so ordering never mixes kinds."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


def new_commit_id() -> str:
    """Return a fresh, process-unique commit identifier."""
    return f"commit-{uuid.uuid4().hex}"


def utcnow() -> datetime:
    return datetime.now(UTC)


class Author(WireModel):
    """Display identity of a commit or comment author."""

    name: str
    email: str | None = None


class Comment(WireModel):
    """A comment thread item captured from the feedback source.

    ``id`` is the stable external identifier and the primary dedup key.
    Items from old sources may lack it; those fall back to a composite
    fingerprint.
    """

    id: str | None = None
    author: Author
    timestamp: UtcDatetime = Field(default_factory=utcnow)
    text: str
    node_id: str | None = None
    parent_id: str | None = None


class Annotation(WireModel):
    """A pinned annotation collected from the canvas.

    ``properties`` is origin-defined and never validated here.
    """

    label: str
    node_id: str
    is_pinned: bool = True
    properties: dict[str, Any] | None = None


class CommitMetrics(WireModel):
    """Structural counts at commit time plus deltas versus the previous commit."""

    total_nodes: Count = 0
    frames: Count = 0
    components: Count = 0
    instances: Count = 0
    text_nodes: Count = 0
    nodes_delta: int | None = None
    feedback_count: Count = 0
    feedback_delta: int | None = None


class DevStatusChange(WireModel):
    """A dev-status transition observed on one layer since the previous commit."""

    node_id: str
    node_name: str | None = None
    previous_status: str | None = None
    status: str | None = None


class Commit(WireModel):
    """Immutable snapshot record: version label, authorship, delta feedback, metrics."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_commit_id)
    version: str
    title: str = Field(min_length=1)
    description: str | None = None
    author: Author
    timestamp: UtcDatetime = Field(default_factory=utcnow)
    comments: list[Comment] = Field(default_factory=list)
    annotations: list[Annotation] = Field(default_factory=list)
    metrics: CommitMetrics = Field(default_factory=CommitMetrics)
    changelog_frame_id: str | None = None
    dev_status_changes: list[DevStatusChange] | None = None

    @property
    def feedback_total(self) -> int:
        """Number of feedback items carried by this commit."""
        return len(self.comments) + len(self.annotations)

    def with_frame_id(self, frame_id: str | None) -> Commit:
        """Return a copy with ``changelog_frame_id`` set."""
        return self.model_copy(update={"changelog_frame_id": frame_id})


__all__ = [
    "Annotation",
    "Author",
    "Comment",
    "Commit",
    "CommitMetrics",
    "DevStatusChange",
    "new_commit_id",
]
