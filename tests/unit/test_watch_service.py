"""Unit tests for markdown change notifications."""

import asyncio
import json
import threading

import pytest

from mdreview.services.file_service import FileService
from mdreview.services.watch_service import (
    FILE_ADDED,
    FILE_CHANGED,
    WatchEvent,
    WatchService,
)


@pytest.fixture
def watch_service(docs_dir) -> WatchService:
    return WatchService(docs_dir, FileService(docs_dir))


def test_watch_event_serializes_as_sse_data_line():
    assert WatchEvent(type=FILE_CHANGED, path="guide/setup.md").to_sse() == (
        'data: {"type": "file-changed", "path": "guide/setup.md"}\n\n'
    )
    assert WatchEvent(type="connected").to_sse() == 'data: {"type": "connected"}\n\n'


def test_event_path_maps_served_markdown_only(watch_service, docs_dir, tmp_path):
    assert watch_service.event_path(str(docs_dir / "guide" / "setup.md")) == "guide/setup.md"
    assert watch_service.event_path(str(docs_dir / "guide" / "image.png")) is None
    assert watch_service.event_path(str(docs_dir / "node_modules" / "pkg" / "README.md")) is None
    assert watch_service.event_path(str(docs_dir / ".github" / "CONTRIBUTING.md")) is None
    assert watch_service.event_path(str(tmp_path / "outside.md")) == "outside.md"


@pytest.mark.asyncio
async def test_dispatch_from_observer_thread_reaches_subscribers(watch_service, docs_dir):
    first = watch_service.subscribe()
    second = watch_service.subscribe()

    worker = threading.Thread(
        target=watch_service.dispatch,
        args=(FILE_ADDED, str(docs_dir / "new.md")),
    )
    worker.start()
    worker.join()

    for queue in (first, second):
        event = await asyncio.wait_for(queue.get(), timeout=1)
        assert event == WatchEvent(type=FILE_ADDED, path="new.md")


@pytest.mark.asyncio
async def test_ignored_changes_are_not_published(watch_service, docs_dir):
    queue = watch_service.subscribe()

    watch_service.dispatch(FILE_CHANGED, str(docs_dir / "guide" / "image.png"))
    await asyncio.sleep(0)

    assert queue.empty()


@pytest.mark.asyncio
async def test_stream_sends_connected_then_events_and_keepalive(watch_service):
    stream = watch_service.stream(keepalive=0.01)

    assert json.loads((await anext(stream)).removeprefix("data: ")) == {"type": "connected"}
    assert watch_service.subscriber_count == 1
    assert await anext(stream) == ": ping\n\n"

    watch_service.publish(WatchEvent(type=FILE_CHANGED, path="README.md"))
    assert await anext(stream) == 'data: {"type": "file-changed", "path": "README.md"}\n\n'

    await stream.aclose()
    assert watch_service.subscriber_count == 0


@pytest.mark.asyncio
async def test_unstarted_stream_registers_no_subscriber(watch_service):
    stream = watch_service.stream()

    assert watch_service.subscriber_count == 0

    await stream.aclose()
    assert watch_service.subscriber_count == 0


def test_start_and_stop_observer(watch_service):
    watch_service.start()
    try:
        assert watch_service.running
    finally:
        watch_service.stop()

    assert not watch_service.running
