"""
Fixed-delay scheduling for periodic work.

The delay is measured from the end of one run to the start of the next, so
runs never overlap: a synchronization pass, including saving its watermark,
always finishes before the next one begins.
"""

import logging
import threading
from datetime import timedelta
from typing import Any, Callable, Optional, Union

logger = logging.getLogger(__name__)


class FixedDelayScheduler:
    """
    Runs a task repeatedly on a background thread with a fixed delay between runs.

    A failing run is logged and the loop carries on; the next run starts over
    from whatever state the failed run left behind.
    """

    def __init__(self, task: Callable[[], Any], interval: Union[timedelta, float], name: str = "scheduler"):
        self.task = task
        self.interval = interval.total_seconds() if isinstance(interval, timedelta) else float(interval)
        self.name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            logger.warning(f"{self.name} already started")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run_forever, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"Started {self.name} with {self.interval:.0f}s delay")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info(f"Stopped {self.name}")

    def run_forever(self) -> None:
        """Run the task until ``stop()`` is called. Blocks the calling thread."""
        while not self._stop_event.is_set():
            try:
                self.task()
            except Exception:
                logger.exception(f"{self.name} run failed, retrying in {self.interval:.0f}s")
            self._stop_event.wait(self.interval)
