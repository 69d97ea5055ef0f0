"""Result contracts for the analytics engine.

Every model has a neutral default so an empty history yields a valid,
renderable value instead of an error.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from .base import WireModel

GrowthTrend = Literal["growing", "shrinking", "stable"]
PeriodType = Literal["expansion", "cleanup", "stable", "mixed"]


class FileGrowthAnalysis(WireModel):
    """Node-count growth between the oldest and newest commit."""

    trend: GrowthTrend = "stable"
    average_growth_rate: float = 0.0
    total_growth: int = 0
    current_nodes: int = 0
    initial_nodes: int = 0


class FrameChurnAnalysis(WireModel):
    """How often the frame count changes, normalised per day."""

    modifications_per_day: float = 0.0
    current_frames: int = 0
    peak_frames: int = 0


class PeriodClassification(WireModel):
    """Share of adjacent commit pairs that grew, shrank or held steady (percent)."""

    type: PeriodType = "stable"
    expansion_rate: float = 0.0
    cleanup_rate: float = 0.0
    stable_rate: float = 100.0
    total_commits: int = 0


class ActivityHotspot(WireModel):
    """A canvas node that feedback keeps pointing at."""

    node_id: str
    activity_count: int = Field(ge=0)
    commit_count: int = Field(ge=0)


class MostActiveNodesAnalysis(WireModel):
    """Hotspots ranked by activity count, highest first."""

    hotspots: list[ActivityHotspot] = Field(default_factory=list)
    total_active_nodes: int = 0


class ChangelogAnalytics(WireModel):
    """All trend analytics bundled for a single UI refresh."""

    file_growth: FileGrowthAnalysis = Field(default_factory=FileGrowthAnalysis)
    frame_churn: FrameChurnAnalysis = Field(default_factory=FrameChurnAnalysis)
    period_classification: PeriodClassification = Field(default_factory=PeriodClassification)
    active_nodes: MostActiveNodesAnalysis = Field(default_factory=MostActiveNodesAnalysis)


__all__ = [
    "ActivityHotspot",
    "ChangelogAnalytics",
    "FileGrowthAnalysis",
    "FrameChurnAnalysis",
    "GrowthTrend",
    "MostActiveNodesAnalysis",
    "PeriodClassification",
    "PeriodType",
]
