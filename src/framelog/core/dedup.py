"""
Feedback deduplication across the full commit history.

Feedback sources are re-fetched in full every time a commit is created, so
the candidate set always contains items that earlier commits already
recorded. Each commit stores only the *new* items; this module decides which
ones those are.

Fingerprints
------------
- Comment:    the stable external ``id`` when present, otherwise
  ``author name | text | nodeId`` for legacy items without one.
- Annotation: ``label | nodeId | properties`` where the properties map is
  serialized with sorted keys, so key order never matters.

The filter runs against the union of *every* historical commit's feedback,
not only the previous commit's, because a comment can stay open across
several commits without being recorded again.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Sequence
from typing import NamedTuple, TypeVar

from .contracts.commit import Annotation, Comment, Commit

T = TypeVar("T")


def comment_fingerprint(comment: Comment) -> str:
    if comment.id:
        return comment.id
    return f"{comment.author.name}|{comment.text}|{comment.node_id or ''}"


def canonical_properties(properties: dict[str, object] | None) -> str:
    """Serialize ``properties`` with keys sorted at every level ("" when absent)."""
    if not properties:
        return ""
    return json.dumps(properties, sort_keys=True, separators=(",", ":"), default=str)


def annotation_fingerprint(annotation: Annotation) -> str:
    return f"{annotation.label}|{annotation.node_id}|{canonical_properties(annotation.properties)}"


def _filter_new(
    current: Sequence[T], previous: Iterable[T], fingerprint: Callable[[T], str]
) -> list[T]:
    seen = {fingerprint(item) for item in previous}
    if not seen:
        return list(current)
    return [item for item in current if fingerprint(item) not in seen]


def filter_new_comments(current: Sequence[Comment], all_previous: Iterable[Comment]) -> list[Comment]:
    """Return the comments in ``current`` that no earlier commit recorded."""
    return _filter_new(current, all_previous, comment_fingerprint)


def filter_new_annotations(
    current: Sequence[Annotation], all_previous: Iterable[Annotation]
) -> list[Annotation]:
    """Return the annotations in ``current`` that no earlier commit recorded."""
    return _filter_new(current, all_previous, annotation_fingerprint)


class FeedbackHistory(NamedTuple):
    """Every feedback item recorded across a commit history."""

    comments: list[Comment]
    annotations: list[Annotation]


def collect_history(commits: Iterable[Commit]) -> FeedbackHistory:
    """Concatenate the per-commit feedback deltas into the cumulative history."""
    comments: list[Comment] = []
    annotations: list[Annotation] = []
    for commit in commits:
        comments.extend(commit.comments)
        annotations.extend(commit.annotations)
    return FeedbackHistory(comments, annotations)


class NewFeedback(NamedTuple):
    comments: list[Comment]
    annotations: list[Annotation]

    @property
    def count(self) -> int:
        return len(self.comments) + len(self.annotations)


def filter_new_feedback(
    comments: Sequence[Comment],
    annotations: Sequence[Annotation],
    history: Iterable[Commit],
) -> NewFeedback:
    """Filter both feedback kinds against the full ``history`` in one pass."""
    previous = collect_history(history)
    return NewFeedback(
        filter_new_comments(comments, previous.comments),
        filter_new_annotations(annotations, previous.annotations),
    )


__all__ = [
    "FeedbackHistory",
    "NewFeedback",
    "annotation_fingerprint",
    "canonical_properties",
    "collect_history",
    "comment_fingerprint",
    "filter_new_annotations",
    "filter_new_comments",
    "filter_new_feedback",
]
