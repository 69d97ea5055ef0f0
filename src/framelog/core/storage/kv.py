"""
Flat key-value backends used by the commit store.

The commit history lives in two namespaces:

- a **primary** store with a bounded value size per key (which is why the
  commit list is chunked), and
- a **backup** store scoped to one design file that survives the primary
  store being cleared.

Both speak the same tiny :class:`KeyValueStore` protocol (``get`` / ``set`` /
``delete`` / ``keys``). Values are JSON documents; every backend stores a
serialized copy, so callers never share mutable state with the store.

Backends
--------
- :class:`MemoryStore`:        dict-backed, used by tests and ephemeral sessions.
- :class:`JsonDirectoryStore`: one ``<key>.json`` file per key under a directory.

Failures are reported with the storage error taxonomy: unreadable or
undecodable values raise :class:`StorageReadError`, failed or oversized writes
raise :class:`StorageWriteError` / :class:`ValueTooLargeError`.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ..errors import StorageReadError, StorageWriteError, ValueTooLargeError

_SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal JSON key-value contract shared by the primary and backup stores."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> tuple[str, ...]: ...


def _encode(key: str, value: Any, limit: int | None) -> str:
    """Serialize ``value`` and enforce the per-key bound."""
    try:
        text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise StorageWriteError(key, f"value is not JSON-serializable: {exc}") from exc
    if limit is not None:
        size = len(text.encode("utf-8"))
        if size > limit:
            raise ValueTooLargeError(key, size, limit)
    return text


def _decode(key: str, text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise StorageReadError(key, f"corrupt JSON payload: {exc}") from exc


class MemoryStore:
    """
    In-memory key-value store.

    Parameters
    ----------
    max_value_bytes : int | None
        Optional bound on the UTF-8 size of each serialized value.
    """

    __slots__ = ("_data", "max_value_bytes")

    def __init__(self, max_value_bytes: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self.max_value_bytes = max_value_bytes

    def get(self, key: str) -> Any | None:
        text = self._data.get(key)
        return None if text is None else _decode(key, text)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = _encode(key, value, self.max_value_bytes)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> tuple[str, ...]:
        """Return the current keys as a sorted tuple (stable for tests)."""
        return tuple(sorted(self._data))

    def clear(self) -> None:
        """Drop every key, as a host does when it resets client storage."""
        self._data.clear()

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._data)


class JsonDirectoryStore:
    """
    Disk-backed key-value store: one JSON file per key.

    Writes go to a temporary file in the same directory and are moved into
    place with :func:`os.replace`, so a crash never leaves a half-written value.
    """

    def __init__(self, base_dir: Path, max_value_bytes: int | None = None) -> None:
        self.base_dir = Path(base_dir)
        self.max_value_bytes = max_value_bytes

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY_RE.match(key):
            raise ValueError(f"unsupported storage key: {key!r}")
        return self.base_dir / f"{key}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as exc:
            raise StorageReadError(key, f"value is not valid UTF-8: {exc}") from exc
        except OSError as exc:
            raise StorageReadError(key, str(exc)) from exc
        return _decode(key, text)

    def set(self, key: str, value: Any) -> None:
        text = _encode(key, value, self.max_value_bytes)
        path = self._path(key)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=f".{key}.", suffix=".tmp")
        except OSError as exc:
            raise StorageWriteError(key, str(exc)) from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.write("\n")
            os.replace(tmp_name, path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageWriteError(key, str(exc)) from exc

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageWriteError(key, str(exc)) from exc

    def keys(self) -> tuple[str, ...]:
        if not self.base_dir.is_dir():
            return ()
        return tuple(sorted(p.stem for p in self.base_dir.glob("*.json")))


__all__ = ["JsonDirectoryStore", "KeyValueStore", "MemoryStore"]
