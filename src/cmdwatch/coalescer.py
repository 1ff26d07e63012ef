"""Event coalescing: at most one command run at a time, at most one rerun queued.

The coalescer is the single consumer of the event queue. When an event
arrives while idle it starts a run. While the run is in progress a drain
task keeps consuming the queue so the watch source is never blocked, and
remembers whether anything arrived. When the run finishes, one synthetic
event is put back on the queue if it did, so a burst of any size during a
run produces exactly one follow-up run.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from cmdwatch.models import CoalescerState, RunResult, WatchEvent

logger = logging.getLogger(__name__)


class Coalescer:
    """Debounce/coalescing loop between the event queue and the runner."""

    def __init__(
        self,
        queue: "asyncio.Queue[WatchEvent]",
        run: Callable[[], Awaitable[RunResult]],
        on_run_finished: Callable[[RunResult], None] | None = None,
    ):
        """Initialize coalescer.

        Args:
            queue: Filtered event queue; this coalescer is its only consumer
            run: Coroutine function running the command sequence once
            on_run_finished: Optional callback receiving each RunResult
        """
        self.queue = queue
        self._run = run
        self.on_run_finished = on_run_finished
        self.state = CoalescerState.IDLE
        self.runs_started = 0
        self.runs_completed = 0
        self.last_result: RunResult | None = None

    async def run(self) -> None:
        """Consume events until cancelled."""
        while True:
            event = await self.queue.get()
            await self.handle(event)

    async def handle(self, event: WatchEvent) -> None:
        """Run the command sequence for one trigger.

        Events already waiting in the queue belong to the same burst and are
        absorbed before the run starts.
        """
        absorbed = self._absorb_queued()
        if event.is_synthetic:
            logger.debug("Rerunning for changes seen during the previous run")
        else:
            logger.debug(f"Triggered by {event.operation.value} {event.path} (+{absorbed} queued)")

        self._set_state(CoalescerState.RUNNING)
        self.runs_started += 1
        done = asyncio.Event()
        drain = asyncio.create_task(self._drain(done))

        result: RunResult | None = None
        try:
            result = await self._run()
        except asyncio.CancelledError:
            drain.cancel()
            self._set_state(CoalescerState.IDLE)
            raise
        except Exception:
            logger.exception("Command run failed unexpectedly")
        finally:
            done.set()

        pending = await drain
        if self._absorb_queued():
            pending = True

        self.runs_completed += 1
        self._set_state(CoalescerState.IDLE)
        if pending:
            self.queue.put_nowait(WatchEvent.synthetic())

        if result is not None:
            self.last_result = result
            self._notify_finished(result)

    def _notify_finished(self, result: RunResult) -> None:
        if self.on_run_finished is None:
            return
        try:
            self.on_run_finished(result)
        except Exception:
            logger.exception("on_run_finished callback raised")

    async def _drain(self, done: asyncio.Event) -> bool:
        """Consume events until ``done`` is set.

        Returns:
            True if at least one event arrived during the run
        """
        has_event = False
        finished = asyncio.ensure_future(done.wait())
        getter: asyncio.Future | None = None
        try:
            while not done.is_set():
                getter = asyncio.ensure_future(self.queue.get())
                await asyncio.wait({getter, finished}, return_when=asyncio.FIRST_COMPLETED)
                if getter.done():
                    getter.result()
                    if not has_event:
                        has_event = True
                        self._set_state(CoalescerState.RUNNING_PENDING)
                else:
                    getter.cancel()
                getter = None
        finally:
            if getter is not None:
                getter.cancel()
            finished.cancel()
        return has_event

    def _absorb_queued(self) -> int:
        """Discard events already waiting in the queue."""
        count = 0
        while True:
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                return count
            count += 1

    def _set_state(self, state: CoalescerState) -> None:
        if state is not self.state:
            logger.debug(f"{self.state.value} -> {state.value}")
            self.state = state
