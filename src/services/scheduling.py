"""
Deferred execution of the computer's move.

The session only needs `call_later(delay, callback)` returning something it can `cancel()`.
`asyncio.AbstractEventLoop` already fits that contract, so a GUI/async host can pass its loop directly.
Headless hosts and tests use the ManualScheduler and decide themselves when time "passes".
"""

from dataclasses import dataclass
from typing import Callable, Protocol

Callback = Callable[[], None]


class ScheduledTask(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Contract for the Session layer."""

    def call_later(self, delay: float, callback: Callback) -> ScheduledTask: ...


@dataclass
class ManualTask:
    delay: float
    callback: Callback
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Callbacks wait in a queue until `run_pending()` is called. Delays are recorded, not waited for."""

    def __init__(self) -> None:
        self._queue: list[ManualTask] = []

    def call_later(self, delay: float, callback: Callback) -> ManualTask:
        task = ManualTask(delay, callback)
        self._queue.append(task)
        return task

    @property
    def pending(self) -> list[ManualTask]:
        return [task for task in self._queue if not task.cancelled]

    def run_pending(self) -> int:
        """
        Run everything queued so far (callbacks scheduled while running wait for the next call).
        Returns how many callbacks ran.
        """
        due, self._queue = self._queue, []
        ran = 0
        for task in due:
            if task.cancelled:
                continue
            task.callback()
            ran += 1
        return ran
