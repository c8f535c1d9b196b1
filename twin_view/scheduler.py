from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class RecurringTask:
    """A fixed-interval job driven by whoever owns the clock."""

    def __init__(self, name: str, interval_ms: float, callback: Callable[[float], None], max_catchup: int = 8) -> None:
        self.name = name
        self.interval = max(float(interval_ms), 1.0) / 1000.0
        self.callback = callback
        self.max_catchup = max(1, int(max_catchup))
        self.runs = 0
        self._next: Optional[float] = None

    @property
    def active(self) -> bool:
        return self._next is not None

    def start(self, now: float) -> None:
        if self._next is None:
            self._next = now + self.interval

    def stop(self) -> None:
        self._next = None

    def due(self, now: float) -> bool:
        return self._next is not None and now >= self._next

    def run_if_due(self, now: float) -> int:
        """Run once per elapsed interval (bounded); a long stall is not replayed in full."""
        ran = 0
        while self.due(now) and ran < self.max_catchup:
            self.callback(now)
            ran += 1
            self.runs += 1
            if self._next is None:
                # the callback stopped its own task
                break
            self._next += self.interval
        if self._next is not None and now >= self._next:
            self._next = now + self.interval
        return ran


class TaskScheduler:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._tasks: Dict[str, RecurringTask] = {}
        self.errors = 0

    def add(self, task: RecurringTask, start: bool = True) -> RecurringTask:
        self._tasks[task.name] = task
        if start:
            task.start(self._clock())
        return task

    def get(self, name: str) -> Optional[RecurringTask]:
        return self._tasks.get(name)

    @property
    def tasks(self) -> List[RecurringTask]:
        return list(self._tasks.values())

    def run_pending(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        ran = 0
        for task in list(self._tasks.values()):
            try:
                ran += task.run_if_due(now)
            except Exception as exc:  # pylint: disable=broad-except
                self.errors += 1
                # skip the rest of this task's backlog; later frames still run it
                if task.active:
                    task.stop()
                    task.start(now)
                logger.error("scheduler-error", extra={"source": task.name, "error": str(exc)})
        return ran

    def cancel_all(self) -> None:
        for task in self._tasks.values():
            task.stop()
        self._tasks.clear()


class FrameThrottle:
    """
    Single-slot coalescing of high-frequency requests (drag-resize).

    `request` replaces whatever is pending; `flush` commits at most one value
    per call, and never faster than ``min_interval_ms``.
    """

    def __init__(self, apply: Callable[[object], None], min_interval_ms: float = 33.0) -> None:
        self.apply = apply
        self.min_interval = max(float(min_interval_ms), 0.0) / 1000.0
        self._pending: Optional[object] = None
        self._has_pending = False
        self._last_commit: Optional[float] = None
        self.commits = 0

    @property
    def pending(self) -> bool:
        return self._has_pending

    def request(self, value: object) -> None:
        self._pending = value
        self._has_pending = True

    def flush(self, now: float) -> bool:
        if not self._has_pending:
            return False
        if self._last_commit is not None and now - self._last_commit < self.min_interval:
            return False
        value = self._pending
        self._pending = None
        self._has_pending = False
        self._last_commit = now
        self.commits += 1
        self.apply(value)
        return True

    def cancel(self) -> None:
        self._pending = None
        self._has_pending = False


__all__ = ["FrameThrottle", "RecurringTask", "TaskScheduler"]
