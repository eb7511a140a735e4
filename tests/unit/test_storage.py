"""Unit tests for the local key-value storage implementations."""

import asyncio
import json

import pytest

from mdreview.core.errors import StorageError
from mdreview.core.storage import (
    JsonFileStorage,
    MemoryStorage,
    WriteBehindStorage,
    build_storage,
)


class RecordingStorage(MemoryStorage):
    def __init__(self):
        super().__init__()
        self.writes: list[tuple[str, object]] = []

    def set(self, key, value):
        self.writes.append((key, value))
        super().set(key, value)


class BrokenStorage(MemoryStorage):
    def set(self, key, value):
        raise StorageError("read-only profile")


def test_memory_storage_copies_values():
    storage = MemoryStorage()
    value = {"a": [1, 2]}

    storage.set("k", value)
    value["a"].append(3)
    fetched = storage.get("k")
    fetched["a"].append(4)

    assert storage.get("k") == {"a": [1, 2]}
    storage.delete("k")
    storage.delete("k")
    assert storage.get("k") is None


def test_json_file_storage_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "storage.json"

    JsonFileStorage(path).set("md-review-theme", "dark")

    assert json.loads(path.read_text(encoding="utf-8")) == {"md-review-theme": "dark"}
    assert JsonFileStorage(path).get("md-review-theme") == "dark"
    assert list(path.parent.glob("*.tmp")) == []


def test_json_file_storage_delete_removes_key(tmp_path):
    path = tmp_path / "storage.json"
    storage = JsonFileStorage(path)
    storage.set("a", 1)
    storage.set("b", 2)

    storage.delete("a")

    assert json.loads(path.read_text(encoding="utf-8")) == {"b": 2}


def test_missing_file_reads_as_empty(tmp_path):
    assert JsonFileStorage(tmp_path / "absent.json").get("anything") is None


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
def test_corrupt_file_raises_storage_error(tmp_path, content):
    path = tmp_path / "storage.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(StorageError):
        JsonFileStorage(path).get("key")


def test_write_behind_flushes_immediately_without_event_loop():
    backend = RecordingStorage()
    storage = WriteBehindStorage(backend)

    storage.set("k", {"v": 1})

    assert backend.get("k") == {"v": 1}
    assert not storage.has_pending


@pytest.mark.asyncio
async def test_write_behind_coalesces_writes_on_running_loop():
    backend = RecordingStorage()
    storage = WriteBehindStorage(backend)

    storage.set("k", 1)
    storage.set("k", 2)
    storage.set("k", 3)

    assert storage.get("k") == 3
    assert backend.writes == []

    await asyncio.sleep(0)

    assert backend.writes == [("k", 3)]
    assert not storage.has_pending


@pytest.mark.asyncio
async def test_write_behind_snapshots_value_at_set_time():
    backend = RecordingStorage()
    storage = WriteBehindStorage(backend)
    value = {"items": [1]}

    storage.set("k", value)
    value["items"].append(2)
    await asyncio.sleep(0)

    assert backend.get("k") == {"items": [1]}


@pytest.mark.asyncio
async def test_write_behind_delete_hides_value_before_flush():
    backend = MemoryStorage({"k": "old"})
    storage = WriteBehindStorage(backend)

    storage.delete("k")

    assert storage.get("k") is None
    await asyncio.sleep(0)
    assert backend.get("k") is None


def test_write_behind_flush_failure_is_logged_not_raised(caplog):
    storage = WriteBehindStorage(BrokenStorage())

    with caplog.at_level("ERROR"):
        storage.set("k", 1)

    assert "storage_write_failed" in caplog.text
    assert not storage.has_pending


def test_build_storage_wraps_json_file(tmp_path):
    storage = build_storage(tmp_path / "storage.json")

    storage.set("md-review-sidebar-width", 320)

    assert isinstance(storage.backend, JsonFileStorage)
    assert JsonFileStorage(tmp_path / "storage.json").get("md-review-sidebar-width") == 320
