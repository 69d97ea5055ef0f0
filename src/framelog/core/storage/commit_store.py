"""
Durable, chunked persistence of the commit history.

Key space
---------
Primary store (bounded value size per key):

- ``changelog_meta``     -> :class:`ChangelogMeta` (schema version, mode,
  ``lastCommitId``, ``chunkCount``)
- ``commit_chunk_<i>``   -> JSON array of at most ``chunk_size`` commit records,
  most-recent-first across the chunk sequence
- ``versioning_mode``, ``current_version``, ``pat`` -> small scalar values

Backup store (scoped to one design file, survives the primary being cleared):

- ``commits_backup``         -> the full history as one JSON array
- ``migration_backfill_v1``  -> one-time backfill flag

Write policy
------------
``append`` rewrites every chunk, then the backup, then the metadata. A
failed primary write raises :class:`StorageWriteError` to the caller. A failed
backup write is logged and ignored. After the chunks are written, chunk 0 is
read back and checked; the outcome is reported, never raised.

Read policy
-----------
``load_all`` reads ``chunkCount`` chunks in order, skipping chunks and
records that cannot be read or decoded. If nothing survives, it restores from
the backup and re-persists the restored history into the primary store.
Duplicate commit ids keep their first occurrence.

Only :meth:`CommitStore.append`, :meth:`CommitStore.set_frame_ids` and the
restore path write chunk keys, and each does so under the store's write lock
starting from a fresh read of the history. Readers hold no lock and keep no
shared state, so a reader that sees a half-written chunk set only returns a
stale list; it never changes what the next write persists.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from ..contracts.commit import Commit
from ..contracts.meta import VERSIONING_MODES, ChangelogMeta, VersioningMode
from ..errors import BackupWriteError, MigrationError, StorageReadError
from ..result import Result, err, ok
from ..settings import Settings, get_logger, load_settings
from .codec import decode_record, encode_commits
from .kv import JsonDirectoryStore, KeyValueStore

logger = get_logger(__name__)

META_KEY = "changelog_meta"
CHUNK_KEY_PREFIX = "commit_chunk_"
MODE_KEY = "versioning_mode"
CURRENT_VERSION_KEY = "current_version"
PAT_KEY = "pat"
BACKUP_KEY = "commits_backup"
MIGRATION_FLAG_KEY = "migration_backfill_v1"

DEFAULT_CHUNK_SIZE = 10

MigrationOutcome = Literal["copied", "already-migrated", "backup-present", "nothing-to-copy"]


def chunk_key(index: int) -> str:
    return f"{CHUNK_KEY_PREFIX}{index}"


def chunked(records: Sequence[Any], size: int) -> list[list[Any]]:
    """Split ``records`` into consecutive slices of at most ``size`` items."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    return [list(records[i : i + size]) for i in range(0, len(records), size)]


@dataclass(frozen=True, slots=True)
class StorageContext:
    """Everything a :class:`CommitStore` needs to locate its data.

    Attributes
    ----------
    file_key : str
        Identifier of the design file; the backup namespace belongs to it.
    primary : KeyValueStore
        Size-bounded store holding chunks, metadata and small settings.
    backup : KeyValueStore
        Redundant, file-scoped store holding the full-history backup.
    chunk_size : int
        Records per chunk key.
    """

    file_key: str
    primary: KeyValueStore
    backup: KeyValueStore
    chunk_size: int = DEFAULT_CHUNK_SIZE


def build_context(settings: Settings | None = None) -> StorageContext:
    """Build a file-backed :class:`StorageContext` rooted at ``settings.data_dir``."""
    cfg = settings or load_settings()
    root = Path(cfg.data_dir)
    return StorageContext(
        file_key=cfg.file_key,
        primary=JsonDirectoryStore(root / "client", max_value_bytes=cfg.max_value_bytes),
        backup=JsonDirectoryStore(root / "documents" / cfg.file_key),
        chunk_size=cfg.chunk_size,
    )


@dataclass(frozen=True, slots=True)
class AppendOutcome:
    """What happened during :meth:`CommitStore.append` besides the primary write."""

    commit_id: str
    chunk_count: int
    verified: bool
    backed_up: bool


def dedupe_by_id(commits: Iterable[Commit]) -> list[Commit]:
    """Keep the first occurrence of every commit id, logging the rest."""
    seen: set[str] = set()
    out: list[Commit] = []
    for commit in commits:
        if commit.id in seen:
            logger.warning("Discarding duplicate commit id %s (version %s)", commit.id, commit.version)
            continue
        seen.add(commit.id)
        out.append(commit)
    return out


class CommitStore:
    """Chunked commit history with a redundant backup and self-healing restore."""

    def __init__(self, context: StorageContext) -> None:
        self.context = context
        self._write_lock = threading.RLock()
        self._migration_error: str | None = None
        self._migration_attempted = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CommitStore:
        return cls(build_context(settings))

    @property
    def primary(self) -> KeyValueStore:
        return self.context.primary

    @property
    def backup(self) -> KeyValueStore:
        return self.context.backup

    # ------------------------------------------------------------------ #
    # Small persisted values
    # ------------------------------------------------------------------ #

    def _read_quietly(self, store: KeyValueStore, key: str) -> Any | None:
        try:
            return store.get(key)
        except StorageReadError as exc:
            logger.warning("Treating %s as absent: %s", key, exc)
            return None

    def read_meta(self) -> ChangelogMeta | None:
        raw = self._read_quietly(self.primary, META_KEY)
        if raw is None:
            return None
        try:
            return ChangelogMeta.model_validate(raw)
        except ValueError as exc:
            logger.warning("Ignoring malformed %s: %s", META_KEY, exc)
            return None

    def get_mode(self) -> VersioningMode:
        """Return the stored versioning mode; anything unknown reads as semantic."""
        raw = self._read_quietly(self.primary, MODE_KEY)
        return "date-based" if raw == "date-based" else "semantic"

    def set_mode(self, mode: VersioningMode) -> None:
        if mode not in VERSIONING_MODES:
            raise ValueError(f"unknown versioning mode: {mode!r}")
        self.primary.set(MODE_KEY, mode)

    def get_current_version(self) -> str | None:
        raw = self._read_quietly(self.primary, CURRENT_VERSION_KEY)
        return raw if isinstance(raw, str) and raw else None

    def set_current_version(self, version: str) -> None:
        self.primary.set(CURRENT_VERSION_KEY, version)

    def get_pat(self) -> str | None:
        raw = self._read_quietly(self.primary, PAT_KEY)
        return raw if isinstance(raw, str) and raw else None

    def has_pat(self) -> bool:
        return self.get_pat() is not None

    def store_pat(self, pat: str) -> None:
        self.primary.set(PAT_KEY, pat)

    def remove_pat(self) -> None:
        self.primary.delete(PAT_KEY)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def _decode_all(self, raw_records: Iterable[Any], source: str) -> list[Commit]:
        commits: list[Commit] = []
        for raw in raw_records:
            try:
                commits.append(decode_record(raw))
            except StorageReadError as exc:
                logger.warning("Skipping undecodable record in %s: %s", source, exc)
        return commits

    def load_primary(self) -> list[Commit]:
        """Read every chunk named by the metadata, skipping unreadable ones."""
        meta = self.read_meta()
        if meta is None or meta.chunk_count == 0:
            return []

        commits: list[Commit] = []
        for index in range(meta.chunk_count):
            key = chunk_key(index)
            try:
                chunk = self.primary.get(key)
            except StorageReadError as exc:
                logger.error("Skipping unreadable chunk %s: %s", key, exc)
                continue
            if not isinstance(chunk, list):
                logger.error("Skipping chunk %s: expected a list, got %s", key, type(chunk).__name__)
                continue
            commits.extend(self._decode_all(chunk, key))
        return commits

    def load_backup(self) -> list[Commit]:
        raw = self._read_quietly(self.backup, BACKUP_KEY)
        if not isinstance(raw, list):
            return []
        return self._decode_all(raw, BACKUP_KEY)

    def load_all(self) -> list[Commit]:
        """Return the full history, most recent first.

        Falls back to the backup namespace when the primary store yields no
        records, and writes the restored history back into the primary store.
        """
        commits = dedupe_by_id(self.load_primary())
        if not commits:
            commits = self.restore_from_backup()
        return commits

    def restore_from_backup(self) -> list[Commit]:
        """Load the backup and re-persist it into the primary store (best effort)."""
        restored = dedupe_by_id(self.load_backup())
        if not restored:
            return []
        with self._write_lock:
            current = dedupe_by_id(self.load_primary())
            if current:
                # A writer filled the primary store after our first read.
                return current
            logger.warning(
                "Primary store is empty; restoring %d commit(s) from backup for file %s",
                len(restored),
                self.context.file_key,
            )
            try:
                self._write_primary(restored)
            except Exception as exc:
                logger.error("Restored history could not be re-persisted: %s", exc)
        return restored

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def _write_primary(self, commits: Sequence[Commit]) -> int:
        """Rewrite all chunk keys plus metadata; return the new chunk count."""
        chunk_count = self._write_chunks(commits)
        self._write_meta(commits, chunk_count)
        return chunk_count

    def _write_chunks(self, commits: Sequence[Commit]) -> int:
        previous = self.read_meta()
        chunks = chunked(encode_commits(commits), self.context.chunk_size)
        for index, chunk in enumerate(chunks):
            self.primary.set(chunk_key(index), chunk)

        stale_from = len(chunks)
        stale_to = previous.chunk_count if previous else 0
        for index in range(stale_from, stale_to):
            self.primary.delete(chunk_key(index))
        return len(chunks)

    def _write_meta(self, commits: Sequence[Commit], chunk_count: int) -> None:
        meta = ChangelogMeta(
            mode=self.get_mode(),
            last_commit_id=commits[0].id if commits else None,
            chunk_count=chunk_count,
        )
        self.primary.set(META_KEY, meta.to_wire())

    def _set_backup(self, commits: Sequence[Commit]) -> None:
        try:
            self.backup.set(BACKUP_KEY, encode_commits(commits))
        except Exception as exc:
            raise BackupWriteError(f"file {self.context.file_key}: {exc}") from exc

    def _write_backup(self, commits: Sequence[Commit]) -> bool:
        try:
            self._set_backup(commits)
        except BackupWriteError as exc:
            logger.warning("Backup write failed, primary chunks remain authoritative: %s", exc)
            return False
        return True

    def verify_head(self, expected_id: str) -> bool:
        """Read back chunk 0 and check that it starts with ``expected_id``.

        A post-condition signal only: the write has already happened, so a
        mismatch is logged and reported but never raised.
        """
        try:
            head = self.primary.get(chunk_key(0))
        except StorageReadError as exc:
            logger.warning("Read-back of %s failed: %s", chunk_key(0), exc)
            return False
        if not isinstance(head, list) or not head:
            logger.warning("Read-back of %s returned no records", chunk_key(0))
            return False
        first = head[0]
        actual = first.get("id") if isinstance(first, Mapping) else None
        if actual != expected_id:
            logger.warning("Read-back mismatch: expected %s at head, found %s", expected_id, actual)
            return False
        return True

    def append(self, commit: Commit) -> AppendOutcome:
        """Insert ``commit`` at the head of the history and persist everything.

        Raises
        ------
        StorageWriteError
            If a primary chunk or the metadata could not be written.
        ValueError
            If a commit with the same id is already stored.
        """
        with self._write_lock:
            existing = self.load_all()
            if any(c.id == commit.id for c in existing):
                raise ValueError(f"commit id already stored: {commit.id}")

            history = [commit, *existing]
            chunk_count = self._write_chunks(history)
            verified = self.verify_head(commit.id)
            backed_up = self._write_backup(history)
            self._write_meta(history, chunk_count)

        logger.info(
            "Stored commit %s (%s); %d commit(s) in %d chunk(s)",
            commit.id,
            commit.version,
            len(history),
            chunk_count,
        )
        return AppendOutcome(commit.id, chunk_count, verified, backed_up)

    def set_frame_ids(self, frame_ids: Mapping[str, str]) -> int:
        """Back-fill ``changelogFrameId`` on stored commits; return how many changed."""
        with self._write_lock:
            updated: list[Commit] = []
            changed = 0
            for commit in self.load_all():
                frame_id = frame_ids.get(commit.id)
                if frame_id is not None and frame_id != commit.changelog_frame_id:
                    commit = commit.with_frame_id(frame_id)
                    changed += 1
                updated.append(commit)
            if changed:
                self._write_primary(updated)
                self._write_backup(updated)
        return changed

    # ------------------------------------------------------------------ #
    # One-time backfill
    # ------------------------------------------------------------------ #

    def migrate_backup_once(self) -> Result[MigrationOutcome, str]:
        """Copy primary -> backup once per file, guarded twice.

        Guard 1 is the persisted ``migration_backfill_v1`` flag; guard 2 is
        "backup already populated". Both are checked before anything is
        written, so a lost flag write cannot cause a second copy. A failure is
        logged and not retried within the same session; later calls return
        the same error.
        """
        if self._migration_error is not None:
            return err(self._migration_error)
        if self._migration_attempted:
            return ok("already-migrated")
        self._migration_attempted = True
        commits: list[Commit] = []

        try:
            if self.backup.get(MIGRATION_FLAG_KEY) is True:
                return ok("already-migrated")

            existing = self.backup.get(BACKUP_KEY)
            if isinstance(existing, list) and existing:
                self.backup.set(MIGRATION_FLAG_KEY, True)
                return ok("backup-present")

            commits = dedupe_by_id(self.load_primary())
            if commits:
                self.backup.set(BACKUP_KEY, encode_commits(commits))
            self.backup.set(MIGRATION_FLAG_KEY, True)
        except Exception as exc:
            error = MigrationError(f"backup backfill failed for file {self.context.file_key}: {exc}")
            logger.error("%s", error)
            self._migration_error = str(error)
            return err(self._migration_error)

        if commits:
            logger.info("Backfilled %d commit(s) into the backup namespace", len(commits))
            return ok("copied")
        return ok("nothing-to-copy")


__all__ = [
    "AppendOutcome",
    "CommitStore",
    "MigrationOutcome",
    "StorageContext",
    "build_context",
    "chunk_key",
    "chunked",
    "dedupe_by_id",
]
