"""
Publish Scheduler

Runs the publication sweep on a fixed interval in a background thread:
- Sweeps once immediately on start, then every ``interval_seconds``
- ``stop()`` wakes the thread and joins it
- ``run_once()`` performs a single synchronous sweep (tests, scripts)

There is no overlap lock. Sweeps from other processes or from the
``publish_due`` script may run at the same time; the guarded status write
keeps each record from being published twice.
"""
import threading
from typing import Optional

from ..logging_config import worker_logger
from ..services.publisher import PublicationEngine, SweepResult


class PublishScheduler:
    """Owns the repeating sweep task for one application."""

    def __init__(self, engine: PublicationEngine, interval_seconds: float = 60):
        self.engine = engine
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> SweepResult:
        """Run one sweep now"""
        return self.engine.run_sweep()

    def start(self) -> bool:
        """Start sweeping in a daemon thread (non-blocking for FastAPI)"""
        if self.running:
            return False  # Already running

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="publish-scheduler")
        self._thread.start()

        worker_logger.info("Publish scheduler started", interval_seconds=self.interval_seconds)
        return True

    def stop(self, timeout: Optional[float] = 10.0) -> bool:
        """Stop sweeping; an in-flight sweep is allowed to finish"""
        if not self.running:
            return False

        self._stop_event.set()
        self._thread.join(timeout)
        if self._thread.is_alive():
            worker_logger.warning("Publish scheduler did not stop within timeout", timeout=timeout)
        else:
            worker_logger.info("Publish scheduler stopped")
        self._thread = None
        return True

    def _loop(self):
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception as e:
                # run_sweep already isolates item failures; keep ticking regardless
                worker_logger.error("Publish sweep crashed", error=e)

            self._stop_event.wait(self.interval_seconds)
