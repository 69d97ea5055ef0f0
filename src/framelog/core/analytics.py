"""
Trend analytics over a commit history.

All functions are pure and accept the history in any order; each sorts by
timestamp itself. An empty history yields the neutral default of the result
contract rather than an error.

- :func:`analyze_file_growth`      node-count trend from first to last commit
- :func:`analyze_frame_churn`      frame-count changes per day
- :func:`classify_periods`         expansion / cleanup / stable / mixed
- :func:`analyze_most_active_nodes` feedback hotspots by node id
- :func:`compute_changelog_analytics` all of the above in one bundle

Rounding follows the dashboards that consume these numbers: growth rate and
churn to 2 decimals, period rates to 1 decimal.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .contracts.analytics import (
    ActivityHotspot,
    ChangelogAnalytics,
    FileGrowthAnalysis,
    FrameChurnAnalysis,
    GrowthTrend,
    MostActiveNodesAnalysis,
    PeriodClassification,
    PeriodType,
)
from .contracts.commit import Commit

# Below this average change per commit the file counts as stable.
STABLE_GROWTH_RATE = 1.0
# Below this relative node change a commit pair counts as stable.
STABLE_CHANGE_THRESHOLD = 0.05
# Both expansion and cleanup above this share (percent) make a period mixed.
SIGNIFICANT_ACTIVITY_THRESHOLD = 25.0
# A single kind above this share (percent) names the period.
CLEAR_MAJORITY_THRESHOLD = 60.0

SECONDS_PER_DAY = 86_400


def chronological(commits: Sequence[Commit]) -> list[Commit]:
    """Return a copy sorted oldest first (stable for equal timestamps)."""
    return sorted(commits, key=lambda c: c.timestamp)


def analyze_file_growth(commits: Sequence[Commit]) -> FileGrowthAnalysis:
    if not commits:
        return FileGrowthAnalysis()

    ordered = chronological(commits)
    initial = ordered[0].metrics.total_nodes
    current = ordered[-1].metrics.total_nodes
    total_growth = current - initial
    rate = total_growth / (len(ordered) - 1) if len(ordered) > 1 else 0.0

    trend: GrowthTrend
    if abs(rate) < STABLE_GROWTH_RATE:
        trend = "stable"
    elif rate > 0:
        trend = "growing"
    else:
        trend = "shrinking"

    return FileGrowthAnalysis(
        trend=trend,
        average_growth_rate=round(rate, 2),
        total_growth=total_growth,
        current_nodes=current,
        initial_nodes=initial,
    )


def analyze_frame_churn(commits: Sequence[Commit]) -> FrameChurnAnalysis:
    if not commits:
        return FrameChurnAnalysis()

    ordered = chronological(commits)
    span_days = (ordered[-1].timestamp - ordered[0].timestamp).total_seconds() / SECONDS_PER_DAY
    changes = sum(
        1 for prev, curr in zip(ordered, ordered[1:]) if prev.metrics.frames != curr.metrics.frames
    )
    return FrameChurnAnalysis(
        modifications_per_day=round(changes / max(1.0, span_days), 2),
        current_frames=ordered[-1].metrics.frames,
        peak_frames=max(c.metrics.frames for c in ordered),
    )


def classify_periods(commits: Sequence[Commit]) -> PeriodClassification:
    """Classify each adjacent commit pair, then the history as a whole."""
    if not commits:
        return PeriodClassification()

    ordered = chronological(commits)
    expansion = cleanup = stable = 0
    for prev, curr in zip(ordered, ordered[1:]):
        before = prev.metrics.total_nodes
        delta = curr.metrics.total_nodes - before
        change = abs(delta) / before if before > 0 else 0.0
        if change < STABLE_CHANGE_THRESHOLD:
            stable += 1
        elif delta > 0:
            expansion += 1
        else:
            cleanup += 1

    analyzed = max(1, len(ordered) - 1)
    expansion_rate = round(expansion / analyzed * 100, 1)
    cleanup_rate = round(cleanup / analyzed * 100, 1)
    stable_rate = round(stable / analyzed * 100, 1)

    kind: PeriodType
    if expansion_rate > SIGNIFICANT_ACTIVITY_THRESHOLD and cleanup_rate > SIGNIFICANT_ACTIVITY_THRESHOLD:
        kind = "mixed"
    elif expansion_rate > CLEAR_MAJORITY_THRESHOLD:
        kind = "expansion"
    elif cleanup_rate > CLEAR_MAJORITY_THRESHOLD:
        kind = "cleanup"
    elif stable_rate > CLEAR_MAJORITY_THRESHOLD:
        kind = "stable"
    else:
        kind = "mixed"

    return PeriodClassification(
        type=kind,
        expansion_rate=expansion_rate,
        cleanup_rate=cleanup_rate,
        stable_rate=stable_rate,
        total_commits=len(commits),
    )


@dataclass
class _NodeActivity:
    count: int = 0
    commit_ids: set[str] = field(default_factory=set)

    def hit(self, commit_id: str) -> None:
        self.count += 1
        self.commit_ids.add(commit_id)


def analyze_most_active_nodes(
    commits: Sequence[Commit], last_n: int | None = None
) -> MostActiveNodesAnalysis:
    """Rank node ids by how much feedback references them.

    ``last_n`` restricts the analysis to the most recent commits. Ties keep
    first-seen order (newest commit first).
    """
    if not commits:
        return MostActiveNodesAnalysis()

    newest_first = sorted(commits, key=lambda c: c.timestamp, reverse=True)
    window = newest_first[:last_n] if last_n else newest_first

    activity: dict[str, _NodeActivity] = {}
    for commit in window:
        for comment in commit.comments:
            if comment.node_id:
                activity.setdefault(comment.node_id, _NodeActivity()).hit(commit.id)
        for annotation in commit.annotations:
            if annotation.node_id:
                activity.setdefault(annotation.node_id, _NodeActivity()).hit(commit.id)

    hotspots = [
        ActivityHotspot(node_id=node_id, activity_count=a.count, commit_count=len(a.commit_ids))
        for node_id, a in activity.items()
    ]
    hotspots.sort(key=lambda h: h.activity_count, reverse=True)
    return MostActiveNodesAnalysis(hotspots=hotspots, total_active_nodes=len(activity))


def top_hotspots(analysis: MostActiveNodesAnalysis, n: int = 5) -> list[ActivityHotspot]:
    """Return the ``n`` highest-ranked hotspots (the high-churn list)."""
    return analysis.hotspots[: max(0, n)]


def compute_changelog_analytics(
    commits: Sequence[Commit], recent_commits_for_nodes: int | None = None
) -> ChangelogAnalytics:
    return ChangelogAnalytics(
        file_growth=analyze_file_growth(commits),
        frame_churn=analyze_frame_churn(commits),
        period_classification=classify_periods(commits),
        active_nodes=analyze_most_active_nodes(commits, recent_commits_for_nodes),
    )


__all__ = [
    "analyze_file_growth",
    "analyze_frame_churn",
    "analyze_most_active_nodes",
    "chronological",
    "classify_periods",
    "compute_changelog_analytics",
    "top_hotspots",
]
