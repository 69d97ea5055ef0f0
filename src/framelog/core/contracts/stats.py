"""PreCommitStats: what changed since the last commit, shown before committing.

Page-level counts come pre-computed from the canvas collaborator; framelog
only aggregates them next to the deduplicated feedback counts.
"""

from __future__ import annotations

from pydantic import Field

from .base import WireModel


class PageChangeStats(WireModel):
    """Per-page node churn reported by the canvas collaborator."""

    page_id: str
    page_name: str
    nodes_added: int = Field(default=0, ge=0)
    nodes_removed: int = Field(default=0, ge=0)
    nodes_modified: int = Field(default=0, ge=0)
    total_delta: int = 0


class PreCommitStats(WireModel):
    """Counts previewed before a commit is created."""

    new_comments_count: int = Field(default=0, ge=0)
    new_annotations_count: int = Field(default=0, ge=0)
    page_changes: list[PageChangeStats] = Field(default_factory=list)
    has_real_time_tracking: bool = False


__all__ = ["PageChangeStats", "PreCommitStats"]
