"""Timer bookkeeping with guaranteed cleanup for an owning scope.

A ``TimerManager`` tracks every timeout and interval it schedules on the
asyncio loop so that all of them can be cancelled at once when the owner
goes away:

    async with TimerManager() as timers:
        timers.set_timeout(refresh, 0.5)
        timers.set_interval(poll_alerts, 30)
    # every pending timer is cancelled here
"""

import asyncio
import itertools
from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class TimerManager:
    """Schedules callbacks on the running loop and cancels them together."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop
        self._ids = itertools.count(1)
        self._timeouts: dict[int, asyncio.TimerHandle] = {}
        self._intervals: dict[int, asyncio.TimerHandle] = {}
        self._closed = False

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def pending_count(self) -> int:
        """Number of timeouts and intervals still scheduled."""
        return len(self._timeouts) + len(self._intervals)

    def _run(self, callback: Callable[[], Any], kind: str) -> None:
        try:
            callback()
        except Exception:
            logger.exception("timer_callback_failed", kind=kind)

    def set_timeout(self, callback: Callable[[], Any], delay: float) -> int:
        """Run ``callback`` once after ``delay`` seconds."""
        timer_id = next(self._ids)

        def fire() -> None:
            self._timeouts.pop(timer_id, None)
            self._run(callback, "timeout")

        self._timeouts[timer_id] = self._get_loop().call_later(max(delay, 0), fire)
        return timer_id

    def set_interval(self, callback: Callable[[], Any], delay: float) -> int:
        """Run ``callback`` every ``delay`` seconds until cleared."""
        if delay <= 0:
            raise ValueError("interval delay must be positive")
        timer_id = next(self._ids)
        loop = self._get_loop()

        def fire() -> None:
            if timer_id not in self._intervals:
                return
            self._intervals[timer_id] = loop.call_later(delay, fire)
            self._run(callback, "interval")

        self._intervals[timer_id] = loop.call_later(delay, fire)
        return timer_id

    def clear_timeout(self, timer_id: int) -> None:
        handle = self._timeouts.pop(timer_id, None)
        if handle is not None:
            handle.cancel()

    def clear_interval(self, timer_id: int) -> None:
        handle = self._intervals.pop(timer_id, None)
        if handle is not None:
            handle.cancel()

    def clear_all(self) -> None:
        """Cancel every pending timeout and interval."""
        for handle in [*self._timeouts.values(), *self._intervals.values()]:
            handle.cancel()
        self._timeouts.clear()
        self._intervals.clear()

    def close(self) -> None:
        """Release all timers; later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        self.clear_all()

    def __enter__(self) -> "TimerManager":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    async def __aenter__(self) -> "TimerManager":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def debounce(
    callback: Callable[..., Any], delay: float, timers: TimerManager
) -> Callable[..., None]:
    """Return a function that runs ``callback`` once calls stop for ``delay`` seconds."""
    pending: list[int] = []

    def debounced(*args: Any, **kwargs: Any) -> None:
        if pending:
            timers.clear_timeout(pending.pop())
        pending.append(timers.set_timeout(lambda: callback(*args, **kwargs), delay))

    return debounced
