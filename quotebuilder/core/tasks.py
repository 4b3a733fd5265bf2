"""
tasks.py — Single-flight guard for slow side effects (AI fill, PDF export)

A task is either idle or running. A second run() while one is in flight is
rejected with TaskBusyError rather than queued.
"""

import time
import logging
import threading

log = logging.getLogger("quotebuilder.tasks")

STATE_IDLE = "idle"
STATE_RUNNING = "running"


class TaskBusyError(RuntimeError):
    """The task already has a run in flight."""


class SingleFlightTask:

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._state = STATE_IDLE
        self._started_at = None
        self.last_error = None
        self.last_duration_ms = None
        self.runs = 0

    @property
    def state(self) -> str:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state == STATE_RUNNING

    def run(self, fn, *args, **kwargs):
        with self._lock:
            if self._state == STATE_RUNNING:
                raise TaskBusyError(f"{self.name} is already running")
            self._state = STATE_RUNNING
            self._started_at = time.time()

        try:
            result = fn(*args, **kwargs)
            self.last_error = None
            return result
        except Exception as e:
            self.last_error = str(e)
            raise
        finally:
            with self._lock:
                self.last_duration_ms = round((time.time() - self._started_at) * 1000, 1)
                self._state = STATE_IDLE
                self._started_at = None
                self.runs += 1
            log.debug("%s finished in %.0fms", self.name, self.last_duration_ms,
                      extra={"task": self.name, "duration_ms": self.last_duration_ms})

    def status(self) -> dict:
        with self._lock:
            return {
                "name": self.name,
                "state": self._state,
                "runs": self.runs,
                "last_error": self.last_error,
                "last_duration_ms": self.last_duration_ms,
            }
