from __future__ import annotations

import logging
import queue
import threading
import time
import typing
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .decoder.constants import NCM_FILE_EXTENSION

logger = logging.getLogger(__name__)

_CLOSED = object()


class _NewFileHandler(FileSystemEventHandler):
    """
    Queue files with a given extension once their writer is done.

    A created file stays pending until it is closed after writing, or until
    no event has touched it for settle_time seconds on platforms that do not
    report closes. Files renamed into the directory are queued right away.
    """

    def __init__(self, extension: str, channel: queue.Queue, settle_time: float):
        self.extension = extension.lower()
        self.channel = channel
        self.settle_time = settle_time
        self._lock = threading.Lock()
        self._pending = {}

    def _matches(self, path: Path) -> bool:
        return path.suffix.lower() == self.extension

    def _deliver(self, path: Path) -> None:
        logger.debug(f'Detected new file "{path}"')
        self.channel.put(path)

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = Path(event.src_path)
        if self._matches(path):
            with self._lock:
                self._pending[path] = time.monotonic()

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = Path(event.src_path)
        with self._lock:
            if path in self._pending:
                self._pending[path] = time.monotonic()

    def on_closed(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = Path(event.src_path)
        with self._lock:
            if self._pending.pop(path, None) is None:
                return
        self._deliver(path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        with self._lock:
            self._pending.pop(Path(event.src_path), None)
        dest_path = Path(event.dest_path)
        if self._matches(dest_path):
            self._deliver(dest_path)

    def flush_settled(self, now: float) -> list[Path]:
        with self._lock:
            settled = [
                path
                for path, last_seen in self._pending.items()
                if now - last_seen >= self.settle_time
            ]
            for path in settled:
                del self._pending[path]
        for path in settled:
            self._deliver(path)
        return settled


class FolderWatcher:
    """
    Watch a directory for new files with a given extension.

    Detected paths are delivered through a channel once the file is fully
    written. Iterating the watcher blocks until the next path arrives and
    ends once the watcher is stopped. Calling start() again after stop()
    opens a new channel.
    """

    def __init__(
        self,
        path: str,
        extension: str = NCM_FILE_EXTENSION,
        recursive: bool = False,
        settle_time: float = 2.0,
    ):
        self.path = path
        self.extension = extension
        self.recursive = recursive
        self.settle_time = settle_time
        self.channel = None
        self.observer = None
        self.handler = None
        self._settle_thread = None
        self._stopping = threading.Event()

    @property
    def is_running(self) -> bool:
        return self.observer is not None

    def _flush_settled(self) -> None:
        interval = min(self.settle_time / 4, 0.5)
        while not self._stopping.wait(interval):
            self.handler.flush_settled(time.monotonic())

    def start(self) -> FolderWatcher:
        if self.is_running:
            return self

        self.channel = queue.Queue()
        self.handler = _NewFileHandler(self.extension, self.channel, self.settle_time)
        self.observer = Observer()
        self.observer.schedule(
            self.handler,
            str(self.path),
            recursive=self.recursive,
        )
        self.observer.start()
        self._stopping.clear()
        self._settle_thread = threading.Thread(target=self._flush_settled, daemon=True)
        self._settle_thread.start()
        logger.debug(f'Started watching "{self.path}"')
        return self

    def stop(self) -> None:
        if not self.is_running:
            return

        self._stopping.set()
        self._settle_thread.join()
        self._settle_thread = None
        self.observer.stop()
        self.observer.join()
        self.observer = None
        self.channel.put(_CLOSED)
        logger.debug(f'Stopped watching "{self.path}"')

    def get(self, timeout: float = None) -> Path | None:
        if self.channel is None:
            return None

        try:
            item = self.channel.get(timeout=timeout)
        except queue.Empty:
            return None

        if item is _CLOSED:
            # keep the channel closed for every other consumer
            self.channel.put(_CLOSED)
            return None
        return item

    def __iter__(self) -> typing.Iterator[Path]:
        while True:
            path = self.get()
            if path is None:
                return
            yield path

    def __enter__(self) -> FolderWatcher:
        return self.start()

    def __exit__(self, *args) -> None:
        self.stop()


class WatchHandle:
    """Holds at most one active FolderWatcher."""

    def __init__(self):
        self._lock = threading.Lock()
        self._watcher = None

    @property
    def active(self) -> FolderWatcher | None:
        with self._lock:
            return self._watcher

    def start(self, path: str, **kwargs) -> FolderWatcher:
        with self._lock:
            if self._watcher is not None:
                self._watcher.stop()
                self._watcher = None
            self._watcher = FolderWatcher(path, **kwargs).start()
            return self._watcher

    def stop(self) -> None:
        with self._lock:
            if self._watcher is not None:
                self._watcher.stop()
                self._watcher = None
