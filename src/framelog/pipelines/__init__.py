"""Pipeline entry points for framelog.

Currently exposed:

- :class:`CommitService`: dedupe → version → append, one create at a time,
  implemented in ``create_commit.py``.
"""

from __future__ import annotations

from .create_commit import (
    CommitRequest,
    CommitService,
    CreatedCommit,
    FeedbackReport,
    NodeCounts,
    build_pre_commit_stats,
)

__all__ = [
    "CommitRequest",
    "CommitService",
    "CreatedCommit",
    "FeedbackReport",
    "NodeCounts",
    "build_pre_commit_stats",
]
