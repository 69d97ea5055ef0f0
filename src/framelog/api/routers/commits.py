"""
API routes over the commit history.

Endpoints
---------
- `GET  /commits`           : history, newest first.
- `POST /commits`           : create a commit (201), 409 while another create
                              is in flight, 500 when the primary write fails.
- `POST /commits/preview`   : counts the next commit would record.
- `GET  /analytics`         : growth / churn / periods / hotspots.
- `GET  /histogram`         : per-commit magnitudes, chronological by default.
- `GET  /search`            : keyword search, optionally limited to recent days.
- `GET|PUT /mode`           : versioning mode and the next label it would give.

Handlers are plain ``def`` so FastAPI runs them in its threadpool; the
service and the store do blocking file I/O.
"""

from __future__ import annotations

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from framelog.api.schemas import ErrorPayload, ModeInfo, ModeUpdate, PreviewRequest
from framelog.core.analytics import compute_changelog_analytics
from framelog.core.contracts.analytics import ChangelogAnalytics
from framelog.core.contracts.commit import Commit
from framelog.core.contracts.stats import PreCommitStats
from framelog.core.histogram import HistogramBar, calculate_histogram_data, newest_first
from framelog.core.search import get_recent_commits, search_commits
from framelog.core.versioning import next_version
from framelog.pipelines.create_commit import (
    CREATE_IN_PROGRESS_ERROR,
    CommitRequest,
    CommitService,
    CreatedCommit,
)

router = APIRouter(tags=["Commits"])


def get_service(request: Request) -> CommitService:
    """Return the service bound to the running app (see ``create_app``)."""
    service: CommitService = request.app.state.service
    return service


ServiceDep = Annotated[CommitService, Depends(get_service)]


@router.get("/commits", response_model=list[Commit], summary="List commits, newest first")
def list_commits(
    service: ServiceDep,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> list[Commit]:
    commits = service.store.load_all()
    return commits[:limit] if limit else commits


@router.post(
    "/commits",
    response_model=CreatedCommit,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorPayload}, 500: {"model": ErrorPayload}},
    summary="Create a new commit",
)
def create_commit(body: CommitRequest, service: ServiceDep) -> CreatedCommit | JSONResponse:
    """
    Run dedupe → version → append for one request.

    A failed comment fetch does not fail the request; its reason is returned
    in ``feedback.commentError``.
    """
    result = service.create(body)
    if result.is_ok():
        return result.unwrap()

    error = result.unwrap_err()
    code = status.HTTP_409_CONFLICT if error == CREATE_IN_PROGRESS_ERROR else 500
    return JSONResponse(status_code=code, content=ErrorPayload(error=error).to_wire())


@router.post("/commits/preview", response_model=PreCommitStats, summary="Preview the next commit")
def preview_commit(body: PreviewRequest, service: ServiceDep) -> PreCommitStats:
    return service.preview(body.annotations, body.page_changes)


@router.get("/analytics", response_model=ChangelogAnalytics)
def get_analytics(
    service: ServiceDep,
    recent: Annotated[int | None, Query(ge=1, description="Hotspots over the last N commits")] = None,
) -> ChangelogAnalytics:
    return compute_changelog_analytics(service.store.load_all(), recent)


@router.get("/histogram", response_model=list[HistogramBar])
def get_histogram(
    service: ServiceDep,
    order: Literal["chronological", "newest"] = "chronological",
    max_bars: Annotated[int, Query(ge=1, alias="maxBars")] = 100,
) -> list[HistogramBar]:
    bars = calculate_histogram_data(service.store.load_all(), max_bars)
    return newest_first(bars) if order == "newest" else bars


@router.get("/search", response_model=list[Commit])
def search(
    service: ServiceDep,
    q: Annotated[str, Query(description="Free-text query")],
    days: Annotated[int | None, Query(ge=1)] = None,
) -> list[Commit]:
    commits = service.store.load_all()
    if days is not None:
        commits = get_recent_commits(commits, days)
    return search_commits(commits, q)


def _mode_info(service: CommitService) -> ModeInfo:
    mode = service.store.get_mode()
    current = service.store.get_current_version()
    return ModeInfo(mode=mode, current_version=current, next_version=next_version(mode, current))


@router.get("/mode", response_model=ModeInfo)
def get_mode(service: ServiceDep) -> ModeInfo:
    return _mode_info(service)


@router.put("/mode", response_model=ModeInfo)
def put_mode(body: ModeUpdate, service: ServiceDep) -> ModeInfo:
    service.store.set_mode(body.mode)
    return _mode_info(service)


__all__ = ["get_service", "router"]
