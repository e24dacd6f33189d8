"""Port interfaces for time and delayed-callback scheduling."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

TimerCallback = Callable[[], Awaitable[None]]


class Clock(ABC):
    """Time source for activity windows and suggestion timestamps."""

    @abstractmethod
    def now_ms(self) -> int:
        """Current time in milliseconds since the Unix epoch."""
        ...


class TimerHandle(ABC):
    """Handle for a scheduled one-shot callback."""

    @abstractmethod
    def cancel(self) -> bool:
        """Cancel the callback if it has not fired. Returns True if cancelled."""
        ...

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        ...


class Scheduler(ABC):
    """Schedules one-shot async callbacks relative to now.

    Cancellation is best effort: a callback may still run after ``cancel()``
    races with it, so callbacks must re-validate state before acting.
    """

    @abstractmethod
    def schedule(self, delay_ms: int, callback: TimerCallback, *, name: str = "") -> TimerHandle:
        ...

    @abstractmethod
    def cancel_all(self) -> int:
        """Cancel every pending callback and return how many were cancelled."""
        ...
