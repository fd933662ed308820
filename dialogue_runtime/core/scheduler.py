"""
Cooperative deferred tasks driven by the host's tick loop.

Nothing here sleeps or spawns threads: the host calls ``update(dt)`` once
per frame (the same way systems are updated in a fixed-timestep loop) and
tasks whose delay has elapsed fire from inside that call.

Usage:
    scheduler = Scheduler()
    task = scheduler.schedule(0.5, advance)

    # every frame
    scheduler.update(dt)

    # changed our mind
    task.cancel()
"""

from __future__ import annotations

import itertools
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Absorbs float drift from summing many small dt values
EPSILON = 1e-9


class ScheduledTask:
    """
    Handle for a pending callback.

    Attributes:
        delay: Seconds between scheduling and firing
        due: Scheduler clock time at which the callback fires
        remaining: Seconds left before the callback fires, as of the last update
        cancelled: Set by cancel(); a cancelled task never fires
        fired: Set once the callback has run
    """

    def __init__(
        self,
        task_id: int,
        delay: float,
        callback: Callable[[], None],
        due: float = 0.0,
    ):
        self.task_id = task_id
        self.delay = delay
        self.due = due
        self.remaining = delay
        self.cancelled = False
        self.fired = False
        self._callback: Optional[Callable[[], None]] = callback

    @property
    def pending(self) -> bool:
        return not self.cancelled and not self.fired

    def cancel(self) -> bool:
        """
        Invalidate the task.

        Returns:
            True if the task was still pending
        """
        if not self.pending:
            return False
        self.cancelled = True
        self._callback = None
        return True

    def _fire(self) -> None:
        callback = self._callback
        self.fired = True
        self._callback = None
        if callback is not None:
            callback()

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "fired" if self.fired else "pending"
        return f"ScheduledTask(id={self.task_id}, remaining={self.remaining:.3f}, {state})"


class Scheduler:
    """Tick-driven queue of cancellable one-shot callbacks."""

    def __init__(self):
        self._tasks: list[ScheduledTask] = []
        self._ids = itertools.count(1)
        self.elapsed = 0.0

    def schedule(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        """Run ``callback`` once, no earlier than ``delay`` seconds from now."""
        delay = max(0.0, float(delay))
        task = ScheduledTask(next(self._ids), delay, callback, due=self.elapsed + delay)
        self._tasks.append(task)
        return task

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._tasks if task.pending)

    def update(self, dt: float) -> int:
        """
        Advance time and fire due tasks in scheduling order.

        Tasks scheduled by a callback during this update start counting from
        the next update.

        Returns:
            Number of callbacks fired
        """
        self.elapsed += dt
        snapshot = list(self._tasks)
        fired = 0

        for task in snapshot:
            if not task.pending:
                continue
            task.remaining = max(0.0, task.due - self.elapsed)
            if self.elapsed + EPSILON >= task.due:
                fired += 1
                try:
                    task._fire()
                except Exception:
                    logger.exception(f"Scheduled task {task.task_id} raised")

        self._tasks = [task for task in self._tasks if task.pending]
        return fired

    def cancel_all(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
