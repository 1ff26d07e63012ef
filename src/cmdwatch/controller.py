"""Watch controller: wires the watch source, coalescer and runner together."""

import asyncio
import logging
import signal
from collections.abc import Callable
from typing import TextIO

from cmdwatch.coalescer import Coalescer
from cmdwatch.config import WatchConfig
from cmdwatch.file_watcher import WatchdogSource
from cmdwatch.filters import FilterChain
from cmdwatch.models import RunResult, WatchEvent
from cmdwatch.notifier import NoOpNotifier, RunNotifier
from cmdwatch.runner import CommandRunner
from cmdwatch.watchers import EventSource

logger = logging.getLogger(__name__)

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class WatchController:
    """Owns the watch loop lifecycle. Primary embed point.

    Construction does all fatal validation: the working directory and the
    ignore file are resolved here. Watch roots are registered at the start
    of :meth:`run`.
    """

    def __init__(
        self,
        config: WatchConfig,
        notifier: RunNotifier | None = None,
        source: EventSource | None = None,
        output: TextIO | None = None,
    ):
        """Initialize controller.

        Args:
            config: Startup configuration
            notifier: Optional notification handler (defaults to NoOpNotifier - silent)
            source: Event source (defaults to a watchdog source for config.watch)
            output: Stream for command output (defaults to sys.stdout)

        Raises:
            WorkingDirectoryError: If the working directory cannot be resolved
            IgnoreFileError: If the ignore file cannot be read
        """
        self.config = config
        self.notifier = notifier or NoOpNotifier()

        base = config.resolve_working_dir()
        self.filters = FilterChain.build(
            base,
            include=config.include,
            excludes=[config.load_ignore_patterns(), config.ignore],
        )
        self.source: EventSource = source or WatchdogSource(config.watcher_config(), self.filters)
        self.runner = CommandRunner(config.commands, output=output, notifier=self.notifier)

        self.events: asyncio.Queue[WatchEvent] = asyncio.Queue()
        self.coalescer = Coalescer(self.events, self.runner.run, on_run_finished=self._on_run_finished)

        self.on_run_finished: Callable[[RunResult], None] | None = None
        self._task: asyncio.Task | None = None
        self._stopping = False

    def _on_run_finished(self, result: RunResult) -> None:
        if self.on_run_finished is not None:
            self.on_run_finished(result)

    async def run(self) -> None:
        """Watch and run commands until :meth:`stop` is called or a stop signal arrives.

        Raises:
            WatchRegistrationError: If a watch root cannot be registered
        """
        self.source.register()
        loop = asyncio.get_running_loop()
        self._stopping = False
        self.source.start(loop, self.events)
        self._task = asyncio.create_task(self.coalescer.run())
        installed = self._install_signal_handlers(loop)
        self.notifier.watch_started(self.config.watch, self.config.commands)
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._stopping:
                raise
            logger.info("Watch loop stopped")
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            self.source.stop()
            self._task = None

    def stop(self) -> None:
        """Cancel the watch loop and any command in flight."""
        if self._task is not None and not self._task.done():
            logger.debug("Stop requested")
            self._stopping = True
            self._task.cancel()

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> list[signal.Signals]:
        installed = []
        for sig in _STOP_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.stop)
            except (NotImplementedError, RuntimeError, ValueError):
                # Unsupported platform or not in the main thread; Ctrl+C
                # then surfaces as KeyboardInterrupt instead.
                continue
            installed.append(sig)
        return installed
