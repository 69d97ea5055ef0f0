"""Persistence layer: key-value backends, record codec and the commit store."""

from __future__ import annotations

from .codec import decode_record, encode_commit, migrate_legacy
from .commit_store import AppendOutcome, CommitStore, StorageContext, build_context
from .kv import JsonDirectoryStore, KeyValueStore, MemoryStore

__all__ = [
    "AppendOutcome",
    "CommitStore",
    "JsonDirectoryStore",
    "KeyValueStore",
    "MemoryStore",
    "StorageContext",
    "build_context",
    "decode_record",
    "encode_commit",
    "migrate_legacy",
]
