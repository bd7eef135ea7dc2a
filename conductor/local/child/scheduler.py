import time
import logging
from typing import Callable, List, Optional

log = logging.getLogger(__name__)


class PeriodicTask:
    """A callback run every `interval` seconds by a CooperativeScheduler."""

    def __init__(self, name: str, interval: float, callback: Callable[[], None]) -> None:
        if interval <= 0:
            raise ValueError(f"Interval of task '{name}' must be positive.")
        self.name = name
        self.interval = interval
        self.callback = callback
        self.next_run = 0.0

    def __repr__(self) -> str:
        return f"PeriodicTask({self.name!r}, every {self.interval}s)"


class CooperativeScheduler:
    """
    Runs periodic tasks on the calling thread.

    The loop sleeps until the earliest task is due, runs it and reschedules it.
    Tasks are independent: a failing task is logged and keeps its schedule.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.tasks: List[PeriodicTask] = []
        self._clock = clock
        self._sleep = sleep
        self._stopped = False

    def add(self, task: PeriodicTask) -> PeriodicTask:
        self.tasks.append(task)
        return task

    def stop(self) -> None:
        self._stopped = True

    @property
    def stopped(self) -> bool:
        return self._stopped

    def _run_task(self, task: PeriodicTask) -> None:
        try:
            task.callback()
        except Exception as e:
            log.error(f"Task '{task.name}' failed: {e}", exc_info=True)

    def run(self, max_iterations: Optional[int] = None) -> None:
        """
        Runs until `stop()` is called (or `max_iterations` task runs happened).
        Every task runs once immediately on start.
        """
        if not self.tasks:
            return
        now = self._clock()
        for task in self.tasks:
            task.next_run = now
        iterations = 0
        while not self._stopped:
            if max_iterations is not None and iterations >= max_iterations:
                break
            task = min(self.tasks, key=lambda t: t.next_run)
            delay = task.next_run - self._clock()
            if delay > 0:
                self._sleep(delay)
            self._run_task(task)
            iterations += 1
            task.next_run += task.interval
            # Skip missed slots instead of bursting to catch up
            now = self._clock()
            if task.next_run < now:
                task.next_run = now + task.interval
