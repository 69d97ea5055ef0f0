"""Pydantic v2 contracts shared by storage, analytics and the outer surfaces."""

from __future__ import annotations

from .analytics import (
    ActivityHotspot,
    ChangelogAnalytics,
    FileGrowthAnalysis,
    FrameChurnAnalysis,
    MostActiveNodesAnalysis,
    PeriodClassification,
)
from .commit import Annotation, Author, Comment, Commit, CommitMetrics, DevStatusChange
from .meta import ChangelogMeta, VersionIncrement, VersioningMode
from .stats import PageChangeStats, PreCommitStats

__all__ = [
    "ActivityHotspot",
    "Annotation",
    "Author",
    "ChangelogAnalytics",
    "ChangelogMeta",
    "Comment",
    "Commit",
    "CommitMetrics",
    "DevStatusChange",
    "FileGrowthAnalysis",
    "FrameChurnAnalysis",
    "MostActiveNodesAnalysis",
    "PageChangeStats",
    "PeriodClassification",
    "PreCommitStats",
    "VersionIncrement",
    "VersioningMode",
]
