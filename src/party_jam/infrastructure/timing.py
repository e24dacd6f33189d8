"""asyncio-backed clock and scheduler adapters."""

from __future__ import annotations

import asyncio
import logging
import time

from party_jam.application.interfaces.clock import Clock, Scheduler, TimerCallback, TimerHandle
from party_jam.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)


class SystemClock(Clock):
    """Wall-clock time in epoch milliseconds."""

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000


class AsyncioTimerHandle(TimerHandle):
    def __init__(self, scheduler: AsyncioScheduler, name: str) -> None:
        self._scheduler = scheduler
        self._timer: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False
        self.name = name

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._task is not None

    def cancel(self) -> bool:
        if self._cancelled or self._task is not None:
            return False
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
        self._scheduler._forget(self)
        return True


class AsyncioScheduler(Scheduler):
    """Schedules callbacks with ``loop.call_later`` on the running event loop.

    Each firing runs the callback in its own task. Exceptions are logged, not
    propagated, since there is no caller left to report them to.
    """

    def __init__(self) -> None:
        self._pending: set[AsyncioTimerHandle] = set()
        self._running: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def schedule(self, delay_ms: int, callback: TimerCallback, *, name: str = "") -> TimerHandle:
        if delay_ms < 0:
            raise ValueError(ErrorMessages.INVALID_DELAY)

        loop = asyncio.get_running_loop()
        handle = AsyncioTimerHandle(self, name or getattr(callback, "__name__", "callback"))

        def fire() -> None:
            self._pending.discard(handle)
            task = loop.create_task(self._run(handle.name, callback))
            handle._task = task
            self._running.add(task)
            task.add_done_callback(self._running.discard)

        handle._timer = loop.call_later(delay_ms / 1000, fire)
        self._pending.add(handle)
        return handle

    def cancel_all(self) -> int:
        handles = list(self._pending)
        cancelled = sum(1 for handle in handles if handle.cancel())
        for task in list(self._running):
            task.cancel()
        return cancelled

    def _forget(self, handle: AsyncioTimerHandle) -> None:
        self._pending.discard(handle)

    @staticmethod
    async def _run(name: str, callback: TimerCallback) -> None:
        try:
            await callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(LogTemplates.TIMER_CALLBACK_ERROR, name)
