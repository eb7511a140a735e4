"""Local key-value storage for comments and UI preferences.

Values are plain JSON documents. Three implementations share the
``KeyValueStorage`` protocol:

- ``MemoryStorage``: process-local, used by tests and as a fallback.
- ``JsonFileStorage``: a single JSON file per user profile, written
  atomically (temp file + rename).
- ``WriteBehindStorage``: wraps another storage so callers never wait on
  disk; writes are queued on the running event loop and coalesced per key
  (last write wins).
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from mdreview.core.errors import StorageError
from mdreview.core.metrics import record_storage_failure
from mdreview.core.structured_logging import log_json

logger = logging.getLogger(__name__)

_DELETED = object()


class KeyValueStorage(Protocol):
    """Port for persisted JSON values scoped to one user profile."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """In-memory storage. Values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str) -> Any | None:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStorage:
    """Storage backed by one JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data
        if not self.path.exists():
            self._data = {}
            return self._data
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Cannot read storage file {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Storage file {self.path} does not contain a JSON object")
        self._data = data
        return self._data

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        except OSError as exc:
            raise StorageError(f"Cannot write storage file {self.path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise StorageError(f"Cannot write storage file {self.path}: {exc}") from exc

    def get(self, key: str) -> Any | None:
        data = self._load()
        if key not in data:
            return None
        return copy.deepcopy(data[key])

    def set(self, key: str, value: Any) -> None:
        data = dict(self._load())
        data[key] = copy.deepcopy(value)
        self._write(data)
        self._data = data

    def delete(self, key: str) -> None:
        data = dict(self._load())
        if key not in data:
            return
        del data[key]
        self._write(data)
        self._data = data


class WriteBehindStorage:
    """Queue writes and flush them on the next event-loop iteration.

    Without a running loop every write is flushed immediately. Flush
    failures are logged and counted; the caller's in-memory state remains
    authoritative.
    """

    def __init__(self, backend: KeyValueStorage) -> None:
        self.backend = backend
        self._pending: dict[str, Any] = {}
        self._flush_scheduled = False

    def get(self, key: str) -> Any | None:
        if key in self._pending:
            value = self._pending[key]
            return None if value is _DELETED else copy.deepcopy(value)
        return self.backend.get(key)

    def set(self, key: str, value: Any) -> None:
        # Snapshot now so later mutation of ``value`` cannot leak into the write.
        self._pending[key] = json.loads(json.dumps(value))
        self._schedule_flush()

    def delete(self, key: str) -> None:
        self._pending[key] = _DELETED
        self._schedule_flush()

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def _schedule_flush(self) -> None:
        if self._flush_scheduled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush()
            return
        self._flush_scheduled = True
        loop.call_soon(self.flush)

    def flush(self) -> None:
        """Write every pending key to the backend."""
        self._flush_scheduled = False
        pending, self._pending = self._pending, {}
        for key, value in pending.items():
            try:
                if value is _DELETED:
                    self.backend.delete(key)
                else:
                    self.backend.set(key, value)
            except StorageError as exc:
                record_storage_failure("write")
                log_json(
                    logger,
                    logging.ERROR,
                    "storage_write_failed",
                    key=key,
                    error=str(exc),
                )


def build_storage(path: Path) -> WriteBehindStorage:
    """Profile storage used by the running server."""
    return WriteBehindStorage(JsonFileStorage(path))
