"""Periodic tick scheduler.

Runs a callback on a daemon thread at a fixed interval.  At most one
tick runs at a time: a tick that comes due while the previous one is
still running (for example one started with :meth:`run_now` from
another thread) is skipped, not queued.

Usage::

    scheduler = PeriodicScheduler("expiration-worker", on_tick, interval_seconds=86400)
    scheduler.start()
    ...
    scheduler.stop(timeout=30)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from warrantywatch.metrics.collector import MetricsCollector

log = logging.getLogger(__name__)


class PeriodicScheduler:
    """Daemon thread that invokes ``on_tick(stop_event)`` every interval.

    Parameters
    ----------
    name:
        Thread name, also used as the ``scheduler`` metrics label.
    on_tick:
        Called with the scheduler's stop event so long-running ticks
        can observe cancellation.  Its return value is handed back by
        :meth:`run_now`.
    interval_seconds:
        Delay between the end of one tick and the start of the next.
    initial_delay_seconds:
        Delay before the first tick after :meth:`start`.
    metrics:
        Optional collector for tick / error counters.

    """

    def __init__(
        self,
        name: str,
        on_tick: Callable[[threading.Event], Any],
        interval_seconds: float,
        initial_delay_seconds: float = 0,
        metrics: MetricsCollector | None = None,
    ) -> None:
        if interval_seconds <= 0:
            msg = f"interval_seconds must be positive, got {interval_seconds}"
            raise ValueError(msg)
        self._name = name
        self._on_tick = on_tick
        self._interval = interval_seconds
        self._initial_delay = initial_delay_seconds
        self._metrics = metrics
        self._stop_event = threading.Event()
        self._tick_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._consecutive_failures = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def tick_in_progress(self) -> bool:
        return self._tick_lock.locked()

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    def start(self) -> None:
        """Start the background thread.  No-op if already running."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=self._name,
            daemon=True,
        )
        self._thread.start()
        log.info(
            "Scheduler '%s' started (interval=%ss, initial_delay=%ss)",
            self._name,
            self._interval,
            self._initial_delay,
        )

    def stop(self, timeout: float | None = None) -> None:
        """Signal cancellation and wait for the in-flight tick to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                log.warning(
                    "Scheduler '%s' did not stop within %ss; tick still running",
                    self._name,
                    timeout,
                )
            else:
                log.info("Scheduler '%s' stopped", self._name)

    def run_now(self) -> Any:  # noqa: ANN401
        """Run one tick in the calling thread.

        Returns the tick's result, or ``None`` if another tick is
        already running.  Exceptions from the tick propagate.
        """
        if not self._tick_lock.acquire(blocking=False):
            log.warning("Scheduler '%s': previous tick still running, skipping", self._name)
            self._count("warrantywatch_ticks_skipped_total")
            return None
        try:
            return self._on_tick(self._stop_event)
        finally:
            self._tick_lock.release()

    def _count(self, metric: str) -> None:
        if self._metrics:
            self._metrics.increment(metric, labels={"scheduler": self._name})

    def _run(self) -> None:
        """Main scheduler loop."""
        if self._initial_delay and self._stop_event.wait(timeout=self._initial_delay):
            return

        while not self._stop_event.is_set():
            try:
                self.run_now()
                self._consecutive_failures = 0
                self._count("warrantywatch_ticks_total")
            except Exception:
                self._consecutive_failures += 1
                log.exception(
                    "Scheduler '%s' tick failed (consecutive failures: %d); "
                    "retrying at next interval",
                    self._name,
                    self._consecutive_failures,
                )
                self._count("warrantywatch_tick_errors_total")
            self._stop_event.wait(timeout=self._interval)
