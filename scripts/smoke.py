# scripts/smoke.py
"""
Smoke run for the framelog commit flow on real files.

Creates a throwaway data directory, records a few commits, wipes the primary
store to simulate a host clearing client storage, then reloads (restoring
from the per-file backup) and prints analytics.

Usage
-----
    $ python scripts/smoke.py
    $ python scripts/smoke.py --commits 25 --keep
"""

import argparse
import logging
import shutil
import sys
import tempfile
from pathlib import Path

from dotenv import load_dotenv

from framelog.core.analytics import compute_changelog_analytics
from framelog.core.contracts.commit import Annotation, Author, Comment
from framelog.core.histogram import calculate_histogram_data, format_bar_tooltip
from framelog.core.settings import Settings
from framelog.core.storage.commit_store import CommitStore, build_context
from framelog.feedback.source import StaticFeedbackSource
from framelog.pipelines.create_commit import CommitRequest, CommitService, NodeCounts

load_dotenv(Path(".env"))

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)


def main() -> None:
    """Execute the smoke workflow."""
    parser = argparse.ArgumentParser(description="Run the framelog smoke test")
    parser.add_argument("--commits", "-n", type=int, default=12, help="Number of commits to create")
    parser.add_argument("--keep", action="store_true", help="Keep the temporary data directory")
    args = parser.parse_args()

    data_dir = Path(tempfile.mkdtemp(prefix="framelog-smoke-"))
    print(f"\n📂 Data dir: {data_dir}")
    cfg = Settings(FRAMELOG_DATA_DIR=data_dir, FRAMELOG_FILE_KEY="smoke")

    # 1. Record commits with a growing comment thread
    source = StaticFeedbackSource()
    service = CommitService(CommitStore(build_context(cfg)), source)
    for i in range(args.commits):
        source.items = [
            Comment(id=f"k{j}", author=Author(name="Reviewer"), text=f"note {j}", node_id=f"1:{j % 3}")
            for j in range(i + 1)
        ]
        result = service.create(
            CommitRequest(
                title=f"Iteration {i}",
                author=Author(name="Smoke"),
                annotations=[Annotation(label="Redline", node_id=f"2:{i % 4}")],
                counts=NodeCounts(total_nodes=100 + 7 * i - (i % 3) * 9, frames=4 + i // 3),
            )
        )
        if result.is_err():
            print(f"❌ Commit {i} failed: {result.unwrap_err()}")
            return
        print(f"  ✅ {result.unwrap().commit.version}")

    # 2. Simulate the host clearing client storage
    shutil.rmtree(data_dir / "client")
    print("\n🧹 Primary store removed")

    # 3. Reload: the backup restores the history
    restored = CommitStore(build_context(cfg)).load_all()
    print(f"♻️  Restored {len(restored)} commit(s)")

    analytics = compute_changelog_analytics(restored)
    print("\n📈 Analytics:")
    print(f"  - Growth: {analytics.file_growth.trend} ({analytics.file_growth.average_growth_rate:+})")
    print(f"  - Churn: {analytics.frame_churn.modifications_per_day} changes/day")
    print(f"  - Period: {analytics.period_classification.type}")
    for hotspot in analytics.active_nodes.hotspots[:3]:
        print(f"  - Hotspot {hotspot.node_id}: {hotspot.activity_count}")

    bars = calculate_histogram_data(restored)
    if bars:
        print("\n📊 Latest bar:")
        print(format_bar_tooltip(bars[-1]))

    if not args.keep:
        shutil.rmtree(data_dir)


if __name__ == "__main__":
    main()
