"""Count-based windowed threshold tracking with a self-resetting window timer."""

from __future__ import annotations

from datetime import timedelta
import logging
import threading
from typing import Callable, Optional

from prometheus_client import Counter, Gauge

from .config import settings
from .metrics import (
    ACTIVE_WINDOWS,
    INCREMENTS_TOTAL,
    SUPPRESSED_TOTAL,
    WINDOWS_BREACHED_TOTAL,
    WINDOWS_OPENED_TOTAL,
)

logger = logging.getLogger("windowguard.counter")
timer_logger = logging.getLogger("windowguard.timer")

BelowThresholdCallback = Callable[[], object]
AboveThresholdCallback = Callable[[int], object]


class InvalidArgument(ValueError):
    """Raised when a counter is built without a required callback."""


def _require_callback(callback: object, param: str) -> Callable:
    if callback is None:
        raise InvalidArgument(f"Param {param} must be provided")
    if not callable(callback):
        raise InvalidArgument(f"Param {param} must be callable")
    return callback


def _as_timedelta(window: timedelta | float) -> timedelta:
    if isinstance(window, timedelta):
        return window
    return timedelta(seconds=float(window))


def _noop() -> None:
    return None


class WindowTimer:
    """Cancellable repeating timer that runs ``callback(timer)`` on a daemon thread.

    The first fire happens ``initial_delay`` seconds after ``start()``, then
    every ``interval`` seconds until ``cancel()``. Cancelling only sets an
    event, so the callback may cancel its own timer.
    """

    def __init__(
        self,
        initial_delay: float,
        interval: float,
        callback: Callable[["WindowTimer"], None],
        *,
        name: str = "windowguard-timer",
    ) -> None:
        self.initial_delay = max(0.0, float(initial_delay))
        self.interval = max(0.0, float(interval))
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run_loop, name=name, daemon=True)

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._stop_event.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is threading.current_thread() or not self._thread.is_alive():
            return
        self._thread.join(timeout=timeout)

    def _run_loop(self) -> None:
        delay = self.initial_delay
        while not self._stop_event.wait(delay):
            try:
                self._callback(self)
            except Exception:
                timer_logger.exception(
                    "Window timer callback failed",
                    extra={"event": "window_timer_failed"},
                )
                return
            delay = self.interval


class WindowedThresholdCounter:
    """Counts occurrences in fixed windows and reports windows that exceed a threshold.

    Every ``increment()`` that keeps the count at or below ``threshold`` calls
    ``on_below_threshold()`` synchronously. Increments beyond the threshold are
    silent; instead, when the window expires, ``on_above_threshold(count)`` is
    called once with the final count.

    The first increment opens a window and schedules a repeating timer whose
    first fire is immediate, then every ``window``. The fire waits for the
    instance lock, so a burst of increments made back to back with the opening
    one normally lands in the same window. Each fire resets the counter to its
    dormant state and cancels the timer, so the next increment opens a fresh
    window. The reset happens before ``on_above_threshold`` runs; an increment made
    from inside that callback opens the next window.

    Example usage: keep warn/error logs from overloading logging infrastructure
    during an incident by logging only while below the threshold and emitting
    one summary per noisy window.
    """

    def __init__(
        self,
        threshold: int,
        window: timedelta | float,
        on_below_threshold: BelowThresholdCallback,
        on_above_threshold: AboveThresholdCallback,
        *,
        name: str = "counter",
    ) -> None:
        self._on_below_threshold = _require_callback(on_below_threshold, "on_below_threshold")
        self._on_above_threshold = _require_callback(on_above_threshold, "on_above_threshold")

        self._threshold = threshold
        self._window = _as_timedelta(window)
        self.name = name

        self._lock = threading.RLock()
        self._count = 0
        self._breached = False
        self._timer: Optional[WindowTimer] = None

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def window(self) -> timedelta:
        return self._window

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    @property
    def breached(self) -> bool:
        with self._lock:
            return self._breached

    @property
    def active(self) -> bool:
        """True while a window is open and its timer is scheduled."""
        with self._lock:
            return self._timer is not None

    def increment(self) -> None:
        """Record one occurrence."""
        self._record(self._on_below_threshold)

    def reset(self) -> None:
        """Cancel the open window, if any, and return to the dormant state."""
        with self._lock:
            self._reset_locked()

    def close(self) -> None:
        """Reset and wait briefly for the window timer thread to exit."""
        with self._lock:
            timer = self._timer
            self._reset_locked()
        if timer is not None:
            timer.join(timeout=settings.timer_join_timeout_seconds)

    def __enter__(self) -> "WindowedThresholdCounter":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    def _record(self, on_below_threshold: BelowThresholdCallback) -> None:
        with self._lock:
            if self._timer is None:
                self._open_window()

            self._count += 1
            self._breached = self._count > self._threshold
            self._observe(INCREMENTS_TOTAL)
            if self._breached:
                self._observe(SUPPRESSED_TOTAL)
                return

            on_below_threshold()

    def _open_window(self) -> None:
        seconds = self._window.total_seconds()
        # First expiry runs as soon as the opening increment releases the lock.
        timer = WindowTimer(
            0,
            seconds,
            self._handle_window_expire,
            name=f"windowguard-{self.name}",
        )
        self._timer = timer
        timer.start()

        self._observe(WINDOWS_OPENED_TOTAL)
        self._observe(ACTIVE_WINDOWS)
        logger.debug(
            "Threshold window opened",
            extra={
                "event": "threshold_window_opened",
                "counter": self.name,
                "threshold": self._threshold,
                "window_seconds": seconds,
            },
        )

    def _handle_window_expire(self, timer: WindowTimer) -> None:
        with self._lock:
            # Superseded by reset() or by a newer window.
            if self._timer is not timer:
                return

            breached = self._breached
            count = self._count
            self._reset_locked()
            if not breached:
                return

            self._observe(WINDOWS_BREACHED_TOTAL)
            logger.info(
                "Threshold exceeded within window",
                extra={
                    "event": "threshold_window_breached",
                    "counter": self.name,
                    "count": count,
                    "threshold": self._threshold,
                    "window_seconds": self._window.total_seconds(),
                },
            )
            self._on_above_threshold(count)

    def _reset_locked(self) -> None:
        self._count = 0
        self._breached = False
        timer = self._timer
        if timer is None:
            return

        timer.cancel()
        self._timer = None
        self._observe(ACTIVE_WINDOWS, -1)
        logger.debug(
            "Threshold window reset",
            extra={"event": "threshold_window_reset", "counter": self.name},
        )

    def _observe(self, metric: Counter | Gauge, amount: float = 1) -> None:
        if settings.enable_prometheus_metrics:
            metric.labels(counter=self.name).inc(amount)


class CountingCircuitBreaker(WindowedThresholdCounter):
    """Windowed counter whose below-threshold callback is fixed at construction."""

    def __init__(
        self,
        threshold: int,
        window: timedelta | float,
        on_below_threshold: BelowThresholdCallback,
        on_above_threshold: AboveThresholdCallback,
        *,
        name: str = "breaker",
    ) -> None:
        super().__init__(threshold, window, on_below_threshold, on_above_threshold, name=name)


class CountingWindowedBuffer(WindowedThresholdCounter):
    """Windowed counter that takes the below-threshold callback per increment."""

    def __init__(
        self,
        threshold: int,
        window: timedelta | float,
        on_above_threshold: AboveThresholdCallback,
        *,
        name: str = "buffer",
    ) -> None:
        super().__init__(threshold, window, _noop, on_above_threshold, name=name)

    def increment(self, on_below_threshold: Optional[BelowThresholdCallback] = None) -> None:
        """Record one occurrence, calling ``on_below_threshold`` if the window is not breached."""
        self._record(_noop if on_below_threshold is None else on_below_threshold)


__all__ = [
    "AboveThresholdCallback",
    "BelowThresholdCallback",
    "CountingCircuitBreaker",
    "CountingWindowedBuffer",
    "InvalidArgument",
    "WindowTimer",
    "WindowedThresholdCounter",
]
