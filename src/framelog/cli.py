"""
framelog Command Line Interface (CLI).

Terminal front-end over the commit store, built with `typer` and `rich`.
Every command works on the file-backed stores under ``FRAMELOG_DATA_DIR``
for the design file named by ``FRAMELOG_FILE_KEY``.

Usage
-----
    # Record a new version (comments are fetched with the stored PAT)
    $ framelog commit "Checkout redesign" --total-nodes 420 --frames 12

    # Inspect the history
    $ framelog log --limit 5
    $ framelog analytics
    $ framelog histogram --order newest
    $ framelog search "checkout button"

    # Settings
    $ framelog mode date-based
    $ framelog token set figd_xxx
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from framelog.core.analytics import compute_changelog_analytics, top_hotspots
from framelog.core.contracts.commit import Annotation, Author, Comment, Commit
from framelog.core.histogram import (
    calculate_bar_height,
    calculate_histogram_data,
    newest_first,
)
from framelog.core.search import get_recent_commits, search_commits
from framelog.core.storage.commit_store import CommitStore
from framelog.core.versioning import next_version
from framelog.feedback.source import FeedbackSource, FigmaCommentSource, StaticFeedbackSource
from framelog.pipelines.create_commit import CommitRequest, CommitService, NodeCounts

# Ensure FRAMELOG_* / FIGMA_TOKEN are loaded before settings are read.
load_dotenv()

app = typer.Typer(
    help="framelog: version history, feedback and analytics for design files.",
    rich_markup_mode="markdown",
)
token_app = typer.Typer(help="Manage the personal access token used to fetch comments.")
app.add_typer(token_app, name="token")
console = Console()

BAR_MAX_WIDTH = 40


class Mode(str, Enum):
    semantic = "semantic"
    date_based = "date-based"


class Increment(str, Enum):
    major = "major"
    minor = "minor"
    patch = "patch"


class Order(str, Enum):
    chronological = "chronological"
    newest = "newest"


# --------------------------------------------------------------------------- #
# Helpers: wiring & I/O
# --------------------------------------------------------------------------- #


def build_store() -> CommitStore:
    """Store factory; tests replace it with an in-memory store."""
    return CommitStore.from_settings()


def _comment_source(store: CommitStore, comments_file: Path | None, offline: bool) -> FeedbackSource:
    if comments_file is not None:
        return StaticFeedbackSource(_read_json_list(comments_file, Comment))
    if offline:
        return StaticFeedbackSource()
    return FigmaCommentSource.from_env(token_provider=store.get_pat)


def _read_json_list(path: Path, model: type[Any]) -> list[Any]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return TypeAdapter(list[model]).validate_python(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        console.print(f"[bold red]❌ Could not read {path}:[/bold red] {e}")
        raise typer.Exit(code=1) from e


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _fail(message: str) -> None:
    console.print(f"[bold red]❌ {message}[/bold red]")
    raise typer.Exit(code=1)


def _commit_table(commits: list[Commit], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Version", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("When", no_wrap=True)
    table.add_column("Feedback", justify="right")
    table.add_column("Nodes", justify="right")
    for c in commits:
        table.add_row(
            c.version,
            c.title,
            c.author.name,
            c.timestamp.strftime("%Y-%m-%d %H:%M"),
            str(c.metrics.feedback_count),
            str(c.metrics.total_nodes),
        )
    return table


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def commit(
    title: Annotated[str, typer.Argument(help="Short summary of this version.")],
    description: Annotated[str | None, typer.Option("--description", "-d")] = None,
    author: Annotated[str, typer.Option("--author", "-a", help="Display name.")] = "Unknown",
    email: Annotated[str | None, typer.Option("--email")] = None,
    mode: Annotated[
        Mode | None, typer.Option("--mode", help="Override the stored versioning mode.")
    ] = None,
    increment: Annotated[Increment, typer.Option("--increment", "-i")] = Increment.patch,
    total_nodes: Annotated[int, typer.Option("--total-nodes", min=0)] = 0,
    frames: Annotated[int, typer.Option("--frames", min=0)] = 0,
    components: Annotated[int, typer.Option("--components", min=0)] = 0,
    instances: Annotated[int, typer.Option("--instances", min=0)] = 0,
    text_nodes: Annotated[int, typer.Option("--text-nodes", min=0)] = 0,
    annotations_file: Annotated[
        Path | None,
        typer.Option("--annotations-file", exists=True, dir_okay=False, help="JSON list of annotations."),
    ] = None,
    comments_file: Annotated[
        Path | None,
        typer.Option("--comments-file", exists=True, dir_okay=False, help="JSON list of comments."),
    ] = None,
    offline: Annotated[
        bool, typer.Option("--offline", help="Do not fetch comments from the API.")
    ] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON.")] = False,
) -> None:
    """Create a new version of the design file."""
    store = build_store()
    annotations = _read_json_list(annotations_file, Annotation) if annotations_file else []
    request = CommitRequest(
        title=title,
        description=description,
        author=Author(name=author, email=email),
        mode=mode.value if mode else None,
        increment=increment.value,
        annotations=annotations,
        counts=NodeCounts(
            total_nodes=total_nodes,
            frames=frames,
            components=components,
            instances=instances,
            text_nodes=text_nodes,
        ),
    )
    service = CommitService(store, _comment_source(store, comments_file, offline))
    result = service.create(request)

    if as_json:
        _echo_json(result.to_payload("created"))
        if result.is_err():
            raise typer.Exit(code=1)
        return
    if result.is_err():
        _fail(result.unwrap_err())

    created = result.unwrap()
    feedback = created.feedback
    lines = [
        f"[bold]{created.commit.version}[/bold]  {created.commit.title}",
        f"New comments: {feedback.new_comments}  New annotations: {feedback.new_annotations}",
    ]
    if feedback.comment_error:
        lines.append(f"[yellow]Comments skipped: {feedback.comment_error}[/yellow]")
    if not created.backed_up:
        lines.append("[yellow]Backup write failed; primary history is intact.[/yellow]")
    console.print(Panel("\n".join(lines), title="✅ Commit created", border_style="green"))


@app.command()  # type: ignore[misc]
def log(
    limit: Annotated[int, typer.Option("--limit", "-n", min=1)] = 20,
    as_json: Annotated[bool, typer.Option("--json")] = False,
) -> None:
    """Show the most recent commits, newest first."""
    commits = build_store().load_all()[:limit]
    if as_json:
        _echo_json([c.to_wire() for c in commits])
        return
    if not commits:
        console.print("[dim]No commits yet.[/dim]")
        return
    console.print(_commit_table(commits, "History"))


@app.command()  # type: ignore[misc]
def analytics(
    recent: Annotated[
        int | None, typer.Option("--recent", min=1, help="Only use the last N commits for hotspots.")
    ] = None,
    top: Annotated[int, typer.Option("--top", min=0)] = 5,
    as_json: Annotated[bool, typer.Option("--json")] = False,
) -> None:
    """Growth, churn, period classification and feedback hotspots."""
    result = compute_changelog_analytics(build_store().load_all(), recent)
    if as_json:
        _echo_json(result.to_wire())
        return

    growth, churn, periods = result.file_growth, result.frame_churn, result.period_classification
    console.print(
        Panel.fit(
            f"Trend: [cyan]{growth.trend}[/cyan]  ({growth.initial_nodes} → {growth.current_nodes} nodes, "
            f"avg {growth.average_growth_rate:+} per commit)\n"
            f"Frame churn: {churn.modifications_per_day} changes/day "
            f"(current {churn.current_frames}, peak {churn.peak_frames})\n"
            f"Period: [magenta]{periods.type}[/magenta]  expansion {periods.expansion_rate}% / "
            f"cleanup {periods.cleanup_rate}% / stable {periods.stable_rate}%",
            title="Analytics",
        )
    )
    hotspots = top_hotspots(result.active_nodes, top)
    if hotspots:
        table = Table(title="Hotspots")
        table.add_column("Node")
        table.add_column("Activity", justify="right")
        table.add_column("Commits", justify="right")
        for h in hotspots:
            table.add_row(h.node_id, str(h.activity_count), str(h.commit_count))
        console.print(table)


@app.command()  # type: ignore[misc]
def histogram(
    order: Annotated[Order, typer.Option("--order")] = Order.chronological,
    max_bars: Annotated[int, typer.Option("--max-bars", min=1)] = 100,
    as_json: Annotated[bool, typer.Option("--json")] = False,
) -> None:
    """Per-commit feedback and node-change magnitudes."""
    bars = calculate_histogram_data(build_store().load_all(), max_bars)
    if order is Order.newest:
        bars = newest_first(bars)
    if as_json:
        _echo_json([b.to_wire() for b in bars])
        return
    if not bars:
        console.print("[dim]No commits yet.[/dim]")
        return

    peak = max(b.total_height for b in bars)
    for bar in bars:
        width = calculate_bar_height(bar.total_height, peak, BAR_MAX_WIDTH, 1)
        console.print(f"{bar.version:>14} [green]{'█' * width}[/green] {bar.total_height}")


@app.command()  # type: ignore[misc]
def search(
    query: Annotated[str, typer.Argument(help="Words to look for.")],
    days: Annotated[
        int | None, typer.Option("--days", min=1, help="Only commits from the last N days.")
    ] = None,
    as_json: Annotated[bool, typer.Option("--json")] = False,
) -> None:
    """Find commits mentioning any keyword of QUERY."""
    commits = build_store().load_all()
    if days is not None:
        commits = get_recent_commits(commits, days)
    matches = search_commits(commits, query)
    if as_json:
        _echo_json([c.to_wire() for c in matches])
        return
    if not matches:
        console.print(f"[dim]No commits match {query!r}.[/dim]")
        return
    console.print(_commit_table(matches, f"Matches for {query!r}"))


@app.command()  # type: ignore[misc]
def mode(
    new_mode: Annotated[Mode | None, typer.Argument(metavar="[MODE]")] = None,
) -> None:
    """Show or change the versioning mode."""
    store = build_store()
    if new_mode is not None:
        store.set_mode(new_mode.value)
    console.print(f"Versioning mode: [cyan]{store.get_mode()}[/cyan]")


@app.command(name="next-version")  # type: ignore[misc]
def next_version_cmd(
    increment: Annotated[Increment, typer.Option("--increment", "-i")] = Increment.patch,
    mode_override: Annotated[Mode | None, typer.Option("--mode")] = None,
) -> None:
    """Print the label the next commit would get."""
    store = build_store()
    active = mode_override.value if mode_override else store.get_mode()
    typer.echo(next_version(active, store.get_current_version(), increment.value))


@app.command()  # type: ignore[misc]
def migrate() -> None:
    """Back-fill the per-file backup from the primary store (runs once)."""
    result = build_store().migrate_backup_once()
    if result.is_err():
        _fail(f"Migration failed: {result.unwrap_err()}")
    console.print(f"Backup migration: [cyan]{result.unwrap()}[/cyan]")


@token_app.command("set")  # type: ignore[misc]
def token_set(
    token: Annotated[str, typer.Argument(help="Personal access token.")],
    validate: Annotated[
        bool, typer.Option("--validate/--no-validate", help="Check the token against the API first.")
    ] = False,
) -> None:
    """Store a personal access token."""
    if validate:
        check = FigmaCommentSource.from_env().validate_token(token)
        if check.is_err():
            _fail(check.unwrap_err())
    build_store().store_pat(token)
    console.print("[green]Token saved.[/green]")


@token_app.command("remove")  # type: ignore[misc]
def token_remove() -> None:
    """Forget the stored personal access token."""
    build_store().remove_pat()
    console.print("Token removed.")


@token_app.command("status")  # type: ignore[misc]
def token_status() -> None:
    """Report whether a token is stored."""
    configured = build_store().has_pat()
    console.print("Token configured." if configured else "No token configured.")


if __name__ == "__main__":
    app()
