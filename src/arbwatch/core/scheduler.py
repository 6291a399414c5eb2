"""
Timer scheduling for periodic polls and debounced commits.

Every periodic job gets a `TimerHandle`. Cancelling a handle stops
future ticks only: a callback already running is allowed to finish,
so components guard their own state against late completions.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any


logger = logging.getLogger(__name__)


TimerCallback = Callable[[], Awaitable[Any]]


class TimerHandle:
    """Cancellation token for one periodic timer."""

    __slots__ = ("name", "interval", "ticks", "_stop", "_task")

    def __init__(self, name: str, interval: float) -> None:
        self.name = name
        self.interval = interval
        self.ticks = 0
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    def cancel(self) -> None:
        """Stop scheduling further ticks."""
        self._stop.set()

    @property
    def cancelled(self) -> bool:
        """True once `cancel()` was called."""
        return self._stop.is_set()

    @property
    def done(self) -> bool:
        """True once the timer loop has exited."""
        return self._task is not None and self._task.done()

    async def _sleep(self) -> bool:
        """Wait one interval; returns True if cancelled meanwhile."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
        except TimeoutError:
            return False
        return True

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"TimerHandle({self.name!r}, every {self.interval}s, {state})"


class Scheduler:
    """
    Owner of all periodic timers of a dashboard instance.

    Timers are independent: each runs its callback, then sleeps for its
    interval, so a timer never overlaps with its own previous tick.
    """

    def __init__(self) -> None:
        self._timers: dict[str, TimerHandle] = {}

    def every(
        self,
        name: str,
        interval: float,
        callback: TimerCallback,
        run_immediately: bool = True,
    ) -> TimerHandle:
        """
        Start a periodic timer.

        Args:
            name: Timer name; an active timer with the same name is cancelled.
            interval: Seconds between the end of one tick and the next.
            callback: Coroutine function invoked on every tick.
            run_immediately: Tick once right away instead of after one interval.

        Returns:
            Handle used to cancel the timer.
        """
        existing = self._timers.get(name)
        if existing is not None:
            existing.cancel()

        handle = TimerHandle(name, interval)
        handle._task = asyncio.create_task(
            self._run(handle, callback, run_immediately),
            name=f"timer:{name}",
        )
        self._timers[name] = handle
        logger.debug(f"Timer {name} started (every {interval}s)")
        return handle

    async def _run(
        self,
        handle: TimerHandle,
        callback: TimerCallback,
        run_immediately: bool,
    ) -> None:
        if not run_immediately and await handle._sleep():
            return

        while not handle.cancelled:
            try:
                await callback()
            except Exception as e:
                logger.error(f"Timer {handle.name} callback failed: {e}")
            handle.ticks += 1

            if await handle._sleep():
                break

        logger.debug(f"Timer {handle.name} stopped after {handle.ticks} ticks")

    def get(self, name: str) -> TimerHandle | None:
        """Get a timer by name."""
        return self._timers.get(name)

    def cancel(self, name: str) -> bool:
        """
        Cancel a timer by name.

        Returns:
            True if an active timer was cancelled.
        """
        handle = self._timers.pop(name, None)
        if handle is None or handle.cancelled:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        """Cancel every timer."""
        for handle in self._timers.values():
            handle.cancel()

    async def aclose(self, timeout: float = 5.0) -> None:
        """
        Cancel every timer and wait for in-flight ticks to settle.

        Ticks still running after `timeout` are cancelled outright.
        """
        self.cancel_all()
        tasks = [h._task for h in self._timers.values() if h._task is not None]
        self._timers.clear()
        if not tasks:
            return

        _, still_running = await asyncio.wait(tasks, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)

    @property
    def active_timers(self) -> list[str]:
        """Names of timers that are not cancelled."""
        return [name for name, h in self._timers.items() if not h.cancelled]


class Debouncer:
    """
    Trailing-edge debouncer for async commits.

    Each `schedule()` restarts the quiescence window; when the window
    elapses without a new call, the callback runs once with the latest
    value.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[Any], Awaitable[None]],
        name: str = "debounce",
    ) -> None:
        """
        Initialize debouncer.

        Args:
            delay: Quiescence window in seconds.
            callback: Coroutine function receiving the latest value.
            name: Name used in log messages.
        """
        self._delay = delay
        self._callback = callback
        self._name = name
        self._latest: Any = None
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    def schedule(self, value: Any) -> None:
        """Record a new value and restart the quiescence window."""
        if self._handle is not None:
            self._handle.cancel()
        self._latest = value
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        task = asyncio.ensure_future(self._callback(self._latest))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: "asyncio.Future[None]") -> None:
        self._tasks.discard(task)  # type: ignore[arg-type]
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Debounced {self._name} commit failed: {task.exception()}")

    def cancel(self) -> None:
        """Drop a scheduled call that has not fired yet."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def flush(self) -> None:
        """Fire a scheduled call now and wait for all running commits."""
        if self._handle is not None:
            self._handle.cancel()
            self._fire()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    @property
    def scheduled(self) -> bool:
        """True while a call is waiting for the window to elapse."""
        return self._handle is not None

    @property
    def in_flight(self) -> bool:
        """True while a fired commit is still running."""
        return bool(self._tasks)
