"""Shared run counters and the periodic progress reporter."""
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

DEFAULT_PROGRESS_INTERVAL_MS = 2500


@dataclass(frozen=True)
class ProgressSnapshot:
    """Point-in-time view of the run counters."""
    completed: int
    total: int

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.completed / self.total * 100


class ProgressCounters:
    """``completed``/``total`` pair guarded by a lock; -1 means no active run."""

    def __init__(self):
        self._lock = threading.Lock()
        self._completed = -1
        self._total = -1

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    def reset(self, total: int) -> None:
        with self._lock:
            self._completed = 0
            self._total = total

    def increment(self) -> int:
        with self._lock:
            self._completed += 1
            return self._completed

    def clear(self) -> None:
        with self._lock:
            self._completed = -1
            self._total = -1

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(self._completed, self._total)


class ProgressTicker:
    """Reports a counter snapshot immediately and then on a fixed interval."""

    def __init__(self, counters: ProgressCounters, callback: Callable[[ProgressSnapshot], None],
                 interval_ms: int = DEFAULT_PROGRESS_INTERVAL_MS,
                 logger: Optional[structlog.BoundLogger] = None):
        """Initialize progress ticker.

        Args:
            counters: Counters read on every tick
            callback: Receives one snapshot per tick
            interval_ms: Delay between ticks in milliseconds
            logger: Structured logger instance
        """
        self.counters = counters
        self.callback = callback
        self.interval = interval_ms / 1000.0
        self.logger = logger or structlog.get_logger(__name__)
        self._stop = threading.Event()
        self._tick_lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Progress ticker can only be started once")
        self._thread = threading.Thread(target=self._run, name="recipe-dump-progress", daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        """Stop ticking. No tick fires after this returns."""
        with self._tick_lock:
            self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _run(self) -> None:
        while not self._stop.is_set():
            self._tick()
            if self._stop.wait(self.interval):
                break

    def _tick(self) -> None:
        with self._tick_lock:
            if self._stop.is_set():
                return
            snapshot = self.counters.snapshot()
            try:
                self.callback(snapshot)
            except Exception as e:
                self.logger.warning("Progress callback failed", error=str(e))
            self.ticks += 1
