"""Record codec: persisted JSON <-> :class:`Commit`.

Two record shapes exist in storage:

- **CurrentRecord**: the :class:`Commit` wire shape (camelCase keys, ISO-8601
  timestamps). Recognised by the presence of a ``title`` key.
- **LegacyRecord**: written by early builds. It has ``message`` instead of
  ``title``/``description``, may store the author as a bare string, and may
  carry epoch-millisecond timestamps.

Decoding is a pure pipeline: discriminate on ``"title" in record``, coerce
timestamps into a *new* dict, migrate legacy records with
:func:`migrate_legacy`, validate into a frozen :class:`Commit`. The raw input
is never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import Field, ValidationError

from ..contracts.base import WireModel
from ..contracts.commit import Annotation, Author, Comment, Commit, CommitMetrics
from ..errors import StorageReadError

UNKNOWN_AUTHOR = "Unknown"
UNTITLED = "(untitled)"


class LegacyRecord(WireModel):
    """Commit record as written before titles and descriptions were split."""

    id: str
    version: str
    message: str = ""
    author: Author
    timestamp: datetime
    comments: list[Comment] = Field(default_factory=list)
    annotations: list[Annotation] = Field(default_factory=list)
    metrics: CommitMetrics = Field(default_factory=CommitMetrics)
    changelog_frame_id: str | None = None


def is_current_record(raw: Mapping[str, Any]) -> bool:
    """Discriminant of the record union: current records carry ``title``."""
    return "title" in raw


def coerce_timestamp(value: Any) -> datetime:
    """Rehydrate a stored timestamp.

    Accepts ``datetime`` objects, ISO-8601 strings (a trailing ``Z`` is
    honoured) and epoch milliseconds. Naive values are read as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        raise ValueError(f"not a timestamp: {value!r}")
    elif isinstance(value, int | float):
        parsed = datetime.fromtimestamp(value / 1000, tz=UTC)
    elif isinstance(value, str) and value.strip():
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    else:
        raise ValueError(f"not a timestamp: {value!r}")
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def _coerce_author(value: Any) -> Any:
    if isinstance(value, str):
        return {"name": value or UNKNOWN_AUTHOR}
    if value is None:
        return {"name": UNKNOWN_AUTHOR}
    return value


def _normalize(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``raw`` with timestamps and authors in canonical form."""
    out = dict(raw)
    out["timestamp"] = coerce_timestamp(raw.get("timestamp"))
    out["author"] = _coerce_author(raw.get("author"))
    comments: list[Any] = []
    for item in raw.get("comments") or []:
        if isinstance(item, Mapping):
            fixed = dict(item)
            fixed["author"] = _coerce_author(item.get("author"))
            if "timestamp" in item:
                fixed["timestamp"] = coerce_timestamp(item["timestamp"])
            comments.append(fixed)
    out["comments"] = comments
    out["annotations"] = [a for a in raw.get("annotations") or [] if isinstance(a, Mapping)]
    return out


def migrate_legacy(record: LegacyRecord) -> Commit:
    """Lift a legacy record into the current shape: ``message`` becomes ``title``."""
    return Commit(
        id=record.id,
        version=record.version,
        title=record.message.strip() or UNTITLED,
        description="",
        author=record.author,
        timestamp=record.timestamp,
        comments=list(record.comments),
        annotations=list(record.annotations),
        metrics=record.metrics,
        changelog_frame_id=record.changelog_frame_id,
    )


def decode_record(raw: Any) -> Commit:
    """Decode one stored record of either shape.

    Raises
    ------
    StorageReadError
        If the record is not an object, has an unusable timestamp, or fails
        validation.
    """
    if not isinstance(raw, Mapping):
        raise StorageReadError("record", f"expected an object, got {type(raw).__name__}")
    label = f"record {raw.get('id', '?')}"
    try:
        data = _normalize(raw)
        if is_current_record(data):
            return Commit.model_validate(data)
        return migrate_legacy(LegacyRecord.model_validate(data))
    except (ValueError, ValidationError) as exc:
        raise StorageReadError(label, str(exc)) from exc


def encode_commit(commit: Commit) -> dict[str, Any]:
    """Encode a commit into its stored JSON shape (ISO-8601 timestamps)."""
    return commit.to_wire()


def encode_commits(commits: Iterable[Commit]) -> list[dict[str, Any]]:
    return [encode_commit(c) for c in commits]


__all__ = [
    "LegacyRecord",
    "coerce_timestamp",
    "decode_record",
    "encode_commit",
    "encode_commits",
    "is_current_record",
    "migrate_legacy",
]
