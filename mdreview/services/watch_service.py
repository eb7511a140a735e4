"""File change notifications for open previews.

A watchdog observer thread watches the served root. Markdown changes are
handed to every subscribed asyncio queue with ``call_soon_threadsafe`` and
streamed to clients as server-sent events.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import threading
from collections.abc import AsyncIterator
from dataclasses import asdict, dataclass
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from mdreview.core.structured_logging import log_json
from mdreview.services.file_service import FileService, is_markdown_file

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15.0

FILE_CHANGED = "file-changed"
FILE_ADDED = "file-added"
CONNECTED = "connected"


@dataclass(frozen=True)
class WatchEvent:
    type: str
    path: str | None = None

    def to_sse(self) -> str:
        payload = {k: v for k, v in asdict(self).items() if v is not None}
        return f"data: {json.dumps(payload)}\n\n"


class _MarkdownEventHandler(FileSystemEventHandler):
    def __init__(self, service: WatchService) -> None:
        super().__init__()
        self.service = service

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.service.dispatch(FILE_CHANGED, os.fsdecode(event.src_path))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.service.dispatch(FILE_ADDED, os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save atomically rename a temp file over the original.
        if not event.is_directory:
            self.service.dispatch(FILE_CHANGED, os.fsdecode(event.dest_path))


class WatchService:
    """Fan-out of markdown change events to SSE subscribers."""

    def __init__(self, root: Path, file_service: FileService) -> None:
        self.root = root
        self.file_service = file_service
        self._subscribers: set[tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = set()
        self._lock = threading.Lock()
        self._observer: Observer | None = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        observer.schedule(_MarkdownEventHandler(self), str(self.root), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        log_json(logger, logging.INFO, "watch_started", root=self.root)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        log_json(logger, logging.INFO, "watch_stopped", root=self.root)

    def subscribe(self) -> asyncio.Queue:
        """Register a queue on the running loop."""
        queue: asyncio.Queue = asyncio.Queue()
        with self._lock:
            self._subscribers.add((asyncio.get_running_loop(), queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        with self._lock:
            self._subscribers = {(loop, q) for loop, q in self._subscribers if q is not queue}

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def event_path(self, src_path: str) -> str | None:
        """Served path for a changed file, or ``None`` if it is not served."""
        path = Path(src_path)
        if not is_markdown_file(path.name):
            return None
        relative = self.file_service.relative_to_base(path)
        if relative is None:
            return path.name
        if any(self.file_service.is_ignored(part) for part in Path(relative).parts):
            return None
        return relative

    def dispatch(self, kind: str, src_path: str) -> None:
        relative = self.event_path(src_path)
        if relative is None:
            return
        log_json(logger, logging.DEBUG, "watch_event", type=kind, path=relative)
        self.publish(WatchEvent(type=kind, path=relative))

    def publish(self, event: WatchEvent) -> None:
        """Thread-safe delivery to every subscriber."""
        with self._lock:
            targets = list(self._subscribers)
        for loop, queue in targets:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, event)
            except RuntimeError:
                # Loop already closed; the client went away.
                self.unsubscribe(queue)

    async def stream(self, keepalive: float = KEEPALIVE_SECONDS) -> AsyncIterator[str]:
        """Server-sent event chunks for one subscriber.

        The subscription starts with the first chunk, so a response that is
        never iterated leaves nothing registered.
        """
        queue = self.subscribe()
        try:
            yield WatchEvent(type=CONNECTED).to_sse()
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=keepalive)
                except TimeoutError:
                    yield ": ping\n\n"
                    continue
                yield event.to_sse()
        finally:
            self.unsubscribe(queue)
