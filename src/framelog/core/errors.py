"""Error taxonomy for the commit history engine.

Only two of these ever reach a caller: :class:`StorageWriteError` (a primary
chunk write failed, so ``append`` failed) and its subclass
:class:`ValueTooLargeError`. The others are raised by backends and caught at
the boundary that owns the recovery policy:

- ``StorageReadError``   -> per-chunk skip, or restore from backup.
- ``BackupWriteError``   -> logged by ``CommitStore.append``.
- ``FeedbackFetchError`` -> folded into ``FeedbackFetch(success=False)``.
- ``MigrationError``     -> logged by ``CommitStore.migrate_backup_once``.

Malformed version labels are not errors at all: the parsers return ``None``.
"""

from __future__ import annotations


class FramelogError(Exception):
    """Base class for all framelog errors."""


class StorageReadError(FramelogError):
    """A key could not be read or its payload could not be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"failed to read {key!r}: {reason}")
        self.key = key
        self.reason = reason


class StorageWriteError(FramelogError):
    """A key in the primary store could not be written."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"failed to write {key!r}: {reason}")
        self.key = key
        self.reason = reason


class ValueTooLargeError(StorageWriteError):
    """The serialized value exceeds the store's per-key bound."""

    def __init__(self, key: str, size: int, limit: int) -> None:
        super().__init__(key, f"value is {size} bytes, limit is {limit}")
        self.size = size
        self.limit = limit


class BackupWriteError(FramelogError):
    """The redundant backup namespace could not be written."""


class FeedbackFetchError(FramelogError):
    """A feedback source could not deliver its items."""


class MigrationError(FramelogError):
    """The one-time backup backfill failed."""


__all__ = [
    "FramelogError",
    "StorageReadError",
    "StorageWriteError",
    "ValueTooLargeError",
    "BackupWriteError",
    "FeedbackFetchError",
    "MigrationError",
]
