"""Changelog metadata and the vocabulary of versioning modes."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from .base import WireModel

VersioningMode = Literal["semantic", "date-based"]
VersionIncrement = Literal["major", "minor", "patch"]

VERSIONING_MODES: tuple[VersioningMode, ...] = ("semantic", "date-based")

# Bump when the persisted record layout changes; migrations gate on it.
SCHEMA_VERSION = 1


class ChangelogMeta(WireModel):
    """Bookkeeping record stored under ``changelog_meta``."""

    version: int = Field(default=SCHEMA_VERSION, ge=1)
    mode: VersioningMode = "semantic"
    last_commit_id: str | None = None
    chunk_count: int = Field(default=0, ge=0)


__all__ = [
    "SCHEMA_VERSION",
    "VERSIONING_MODES",
    "ChangelogMeta",
    "VersionIncrement",
    "VersioningMode",
]
