"""
Histogram projection: one visual magnitude record per commit.

Each :class:`HistogramBar` stacks two layers:

- ``feedback_count`` taken straight from the commit metrics, and
- ``nodes_delta``, the absolute node-count change versus the previous bar.

The projector always returns bars **chronologically, oldest first**. Any
reversal for display is an explicit presentation step, :func:`newest_first`,
applied by the caller.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime

from pydantic import Field

from .analytics import chronological
from .contracts.base import WireModel
from .contracts.commit import Commit

DEFAULT_MAX_BARS = 100


class HistogramBar(WireModel):
    """Magnitudes for one commit, ready for a rendering collaborator."""

    commit_id: str
    version: str
    title: str
    timestamp: datetime
    feedback_count: int = Field(ge=0)
    nodes_delta: int = Field(ge=0)
    total_height: int = Field(ge=0)
    changelog_frame_id: str | None = None


def calculate_histogram_data(
    commits: Sequence[Commit], max_bars: int = DEFAULT_MAX_BARS
) -> list[HistogramBar]:
    """Project ``commits`` into bars, oldest first, keeping the latest ``max_bars``.

    The very first commit has no baseline and gets a delta of 0. When older
    commits were cut off by ``max_bars``, the first bar in the window falls
    back to the ``nodes_delta`` recorded on the commit itself.
    """
    if not commits or max_bars <= 0:
        return []

    ordered = chronological(commits)
    window = ordered[-max_bars:]
    truncated = len(window) < len(ordered)
    bars: list[HistogramBar] = []
    for index, commit in enumerate(window):
        if index > 0:
            delta = commit.metrics.total_nodes - window[index - 1].metrics.total_nodes
        elif truncated:
            delta = commit.metrics.nodes_delta or 0
        else:
            delta = 0
        magnitude = abs(delta)
        feedback = commit.metrics.feedback_count
        bars.append(
            HistogramBar(
                commit_id=commit.id,
                version=commit.version,
                title=commit.title,
                timestamp=commit.timestamp,
                feedback_count=feedback,
                nodes_delta=magnitude,
                total_height=feedback + magnitude,
                changelog_frame_id=commit.changelog_frame_id,
            )
        )
    return bars


def newest_first(bars: Sequence[HistogramBar]) -> list[HistogramBar]:
    """Presentation-time reversal of the projector's chronological output."""
    return list(reversed(bars))


def calculate_bar_height(value: float, max_value: float, max_height: float, min_height: float) -> int:
    """Square-root scale ``value`` into ``[min_height, max_height]`` pixels.

    The square root compresses large values so small commits stay visible.
    """
    if max_value <= 0 or value <= 0:
        return round(min_height)
    height = round(math.sqrt(value) / math.sqrt(max_value) * max_height)
    return max(height, round(min_height))


def format_bar_tooltip(bar: HistogramBar) -> str:
    lines = [
        f"Version: {bar.version}",
        f"Title: {bar.title}",
        f"Feedback: {bar.feedback_count}",
    ]
    if bar.nodes_delta > 0:
        lines.append(f"Nodes Changed: {bar.nodes_delta}")
    return "\n".join(lines)


__all__ = [
    "DEFAULT_MAX_BARS",
    "HistogramBar",
    "calculate_bar_height",
    "calculate_histogram_data",
    "format_bar_tooltip",
    "newest_first",
]
