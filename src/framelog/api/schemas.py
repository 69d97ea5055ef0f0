"""Request/response bodies specific to the HTTP layer.

Domain contracts (``Commit``, ``ChangelogAnalytics``, ``HistogramBar``,
``PreCommitStats``, ``CommitRequest``) are served as-is; only the envelopes
that exist purely for HTTP live here.
"""

from __future__ import annotations

from pydantic import Field

from framelog.core.contracts.base import WireModel
from framelog.core.contracts.commit import Annotation
from framelog.core.contracts.meta import VersioningMode
from framelog.core.contracts.stats import PageChangeStats


class HealthInfo(WireModel):
    status: str = "ok"
    environment: str
    version: str


class ErrorPayload(WireModel):
    """The ``{success: false, error}`` shape returned for failed actions."""

    success: bool = False
    error: str


class PreviewRequest(WireModel):
    annotations: list[Annotation] = Field(default_factory=list)
    page_changes: list[PageChangeStats] = Field(default_factory=list)


class ModeUpdate(WireModel):
    mode: VersioningMode


class ModeInfo(WireModel):
    mode: VersioningMode
    current_version: str | None = None
    next_version: str


__all__ = ["ErrorPayload", "HealthInfo", "ModeInfo", "ModeUpdate", "PreviewRequest"]
