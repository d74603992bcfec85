from __future__ import annotations

import logging
import threading
from typing import Optional

from auto_mute.work.runtime import Runtime

logger = logging.getLogger(__name__)


def sweep_once(runtime: Runtime, now: Optional[float] = None) -> int:
    """
    Remove files and job records older than the retention window,
    whatever state the job is in. Returns the number of files removed.
    """
    max_age = runtime.settings.retention_seconds
    files = runtime.store.sweep(max_age, now=now)
    jobs = runtime.registry.sweep_expired(max_age, now=now)
    if files or jobs:
        logger.info("cleanup completed: %d files removed, %d jobs evicted", files, jobs)
    return files


class Sweeper:
    """Runs sweep_once on a fixed interval in a daemon thread."""

    def __init__(self, runtime: Runtime) -> None:
        self._runtime = runtime
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="auto-mute-sweeper", daemon=True)
        self._thread.start()
        logger.info(
            "auto cleanup scheduled every %.0fs, retention %.0fs",
            self._runtime.settings.sweep_interval_seconds,
            self._runtime.settings.retention_seconds,
        )

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self) -> None:
        interval = self._runtime.settings.sweep_interval_seconds
        while not self._stop.wait(interval):
            try:
                sweep_once(self._runtime)
            except Exception:
                logger.exception("cleanup sweep failed")
