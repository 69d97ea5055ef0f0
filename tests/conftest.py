"""Shared fixtures: in-memory storage contexts, commit factories, flaky backends."""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

os.environ.setdefault("FRAMELOG_ENV", "test")
os.environ.setdefault("LOG_LEVEL", "CRITICAL")

from framelog.core.contracts.commit import (  # noqa: E402
    Annotation,
    Author,
    Comment,
    Commit,
    CommitMetrics,
)
from framelog.core.errors import StorageReadError, StorageWriteError  # noqa: E402
from framelog.core.storage.commit_store import CommitStore, StorageContext  # noqa: E402
from framelog.core.storage.kv import MemoryStore  # noqa: E402

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class FlakyStore(MemoryStore):
    """MemoryStore whose reads or writes fail for keys starting with given prefixes."""

    __slots__ = ("fail_get", "fail_set")

    def __init__(self, max_value_bytes: int | None = None) -> None:
        super().__init__(max_value_bytes)
        self.fail_get: set[str] = set()
        self.fail_set: set[str] = set()

    def _hits(self, key: str, prefixes: set[str]) -> bool:
        return any(key.startswith(p) for p in prefixes)

    def get(self, key: str) -> Any | None:
        if self._hits(key, self.fail_get):
            raise StorageReadError(key, "simulated read failure")
        return super().get(key)

    def set(self, key: str, value: Any) -> None:
        if self._hits(key, self.fail_set):
            raise StorageWriteError(key, "simulated write failure")
        super().set(key, value)


def build_commit(
    index: int = 0,
    *,
    total_nodes: int = 10,
    frames: int = 1,
    comments: list[Comment] | None = None,
    annotations: list[Annotation] | None = None,
    title: str | None = None,
    version: str | None = None,
    when: datetime | None = None,
) -> Commit:
    feedback = len(comments or []) + len(annotations or [])
    return Commit(
        id=f"c{index}",
        version=version or f"1.0.{index}",
        title=title or f"Commit {index}",
        author=Author(name="Ada"),
        timestamp=when or BASE_TIME + timedelta(days=index),
        comments=comments or [],
        annotations=annotations or [],
        metrics=CommitMetrics(total_nodes=total_nodes, frames=frames, feedback_count=feedback),
    )


@pytest.fixture
def make_commit() -> Callable[..., Commit]:
    """Factory for commits ``c<index>`` spaced one day apart from 2026-01-01."""
    return build_commit


@pytest.fixture
def primary() -> FlakyStore:
    return FlakyStore(max_value_bytes=100_000)


@pytest.fixture
def backup() -> FlakyStore:
    return FlakyStore()


@pytest.fixture
def context(primary: FlakyStore, backup: FlakyStore) -> StorageContext:
    return StorageContext(file_key="file-1", primary=primary, backup=backup, chunk_size=10)


@pytest.fixture
def store(context: StorageContext) -> CommitStore:
    return CommitStore(context)
