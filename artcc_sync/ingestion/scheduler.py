"""
Background polling loops.

Each periodic task runs in its own daemon thread with a fixed sleep
between invocations. The tasks share nothing and are not synchronized
with each other; overlap within a task is prevented by the task itself
(Reconciler.poll and ReportIngester.poll skip if already running).
"""

import logging
import threading
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs a callable every `interval` seconds until stopped."""

    def __init__(self, name: str, func: Callable[[], object], interval: float):
        self.name = name
        self.func = func
        self.interval = interval

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._runs = 0

    def run_continuous(self) -> None:
        """
        Run the loop in the calling thread.

        This method blocks - use start() for non-blocking.
        """
        logger.info(f'Starting {self.name} (interval={self.interval}s)')
        while not self._stop.is_set():
            try:
                self.func()
            except Exception:
                # Keep the loop alive; the next tick retries
                logger.exception(f'{self.name} failed')
            self._runs += 1
            self._stop.wait(self.interval)
        logger.info(f'{self.name} stopped')

    def start(self) -> None:
        """Start the loop in a background thread."""
        if self._thread and self._thread.is_alive():
            logger.warning(f'{self.name} already running')
            return

        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run_continuous,
            name=self.name,
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = 5) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    @property
    def stats(self) -> dict:
        return {'runs': self._runs, 'interval': self.interval, 'running': self.running}


class PollScheduler:
    """Owns the fast (network) and slow (reports) polling tasks."""

    def __init__(self):
        self.tasks: Dict[str, PeriodicTask] = {}

    def add(self, name: str, func: Callable[[], object], interval: float) -> PeriodicTask:
        task = PeriodicTask(name, func, interval)
        self.tasks[name] = task
        return task

    def start(self) -> None:
        for task in self.tasks.values():
            task.start()
        logger.info(f'Started {len(self.tasks)} polling tasks')

    def stop(self) -> None:
        for task in self.tasks.values():
            task.stop()

    @property
    def stats(self) -> dict:
        return {name: task.stats for name, task in self.tasks.items()}
