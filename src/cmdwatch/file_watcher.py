"""Watch source implementation using watchdog."""

import asyncio
import logging
import os
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from cmdwatch.errors import WatchRegistrationError
from cmdwatch.filters import FilterChain
from cmdwatch.models import Operation, WatchEvent
from cmdwatch.watchers import WatcherConfig

logger = logging.getLogger(__name__)


class _FilteredHandler(FileSystemEventHandler):
    """Turns watchdog callbacks into filtered WatchEvents."""

    def __init__(self, source: "WatchdogSource", filters: FilterChain, only: str | None = None):
        """Initialize handler.

        Args:
            source: Source that forwards accepted events to the loop
            filters: Filter chain every event must survive
            only: If set, ignore every path except this one (file roots)
        """
        self.source = source
        self.filters = filters
        self.only = only

    def _handle(self, path: str, operation: Operation) -> None:
        if self.only is not None and path != self.only:
            return
        if not self.filters.interested(path):
            logger.debug(f"Filtered out {operation.value}: {path}")
            return
        logger.debug(f"Change detected ({operation.value}): {path}")
        self.source.emit(WatchEvent(path=path, operation=operation))

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._handle(os.fsdecode(event.src_path), Operation.CREATE)

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._handle(os.fsdecode(event.src_path), Operation.WRITE)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._handle(os.fsdecode(event.dest_path), Operation.RENAME)


class WatchdogSource:
    """Watches the configured roots and feeds events to an asyncio queue.

    The observer runs in its own thread; events cross into the event loop
    with ``call_soon_threadsafe`` so the queue is only touched by the loop.
    """

    def __init__(self, config: WatcherConfig, filters: FilterChain):
        self.config = config
        self.filters = filters
        if config.use_polling:
            self.observer = PollingObserver(timeout=config.poll_interval)
        else:
            self.observer = Observer()
        self.handlers: list[_FilteredHandler] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[WatchEvent] | None = None

    def register(self) -> None:
        """Schedule every configured root on the observer.

        Raises:
            WatchRegistrationError: If a root does not exist or cannot be watched
        """
        for root in self.config.roots:
            path = Path(root).absolute()
            if not path.exists():
                raise WatchRegistrationError(f"Watch root does not exist: {root}")

            if path.is_dir():
                handler = _FilteredHandler(self, self.filters)
                target, recursive = path, True
            else:
                handler = _FilteredHandler(self, self.filters, only=str(path))
                target, recursive = path.parent, False

            try:
                self.observer.schedule(handler, str(target), recursive=recursive)
            except OSError as e:
                raise WatchRegistrationError(f"Failed to watch {root}: {e}") from e
            self.handlers.append(handler)
            logger.info(f"Watching {path}")

    def emit(self, event: WatchEvent) -> None:
        """Hand an event to the event loop (called from the observer thread)."""
        if self._loop is None or self._queue is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError:
            # Loop already closed during shutdown.
            logger.debug(f"Dropped event after loop shutdown: {event.path}")

    def start(self, loop: asyncio.AbstractEventLoop, queue: "asyncio.Queue[WatchEvent]") -> None:
        """Start the observer thread."""
        self._loop = loop
        self._queue = queue
        self.observer.start()
        mode = f"polling every {self.config.poll_interval}s" if self.config.use_polling else "native"
        logger.info(f"Started watching {len(self.handlers)} root(s) ({mode})")

    def stop(self) -> None:
        """Stop the observer thread."""
        if self.observer.is_alive():
            self.observer.stop()
            self.observer.join(timeout=2.0)
            logger.info("Stopped watching")
        self._loop = None
        self._queue = None
