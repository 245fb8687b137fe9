"""Engine metrics: lifetime counters plus last-tick gauges.

Counters accumulate for the life of the process (ticks, deliveries,
suppressions).  Gauges describe the most recently completed tick and
are written together by :meth:`MetricsCollector.record_tick`, so a
scrape never mixes two ticks.  :meth:`MetricsCollector.export` renders
Prometheus text exposition.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from warrantywatch.services.expiration_worker import TickSummary

# (metric name, sorted label pairs)
Series = tuple[str, tuple[tuple[str, str], ...]]

_HELP = {
    "warrantywatch_uptime_seconds": "Seconds since the collector was created",
    "warrantywatch_ticks_total": "Scheduler ticks that completed",
    "warrantywatch_tick_errors_total": "Scheduler ticks that raised",
    "warrantywatch_ticks_skipped_total": "Ticks skipped because the previous one was still running",
    "warrantywatch_candidates_total": "Warranties found inside a notification window",
    "warrantywatch_suppressed_total": "Candidates already notified that day",
    "warrantywatch_notifications_sent_total": "Candidates delivered on at least one channel",
    "warrantywatch_unrecorded_total": "Delivered candidates whose dedup entry could not be written",
    "warrantywatch_deliveries_total": "Channel delivery attempts by channel and status",
    "warrantywatch_last_tick_timestamp_seconds": "Unix time the last tick finished",
    "warrantywatch_last_tick_scanned": "Candidates found by the last tick",
    "warrantywatch_last_tick_outcomes": "Per-outcome candidate counts of the last tick",
    "warrantywatch_last_tick_cancelled": "1 if the last tick stopped early",
}

TICK_OUTCOMES = ("suppressed", "notified", "failed", "skipped", "unrecorded")


def _series(name: str, labels: dict | None = None) -> Series:
    if not labels:
        return (name, ())
    return (name, tuple(sorted((k, str(v)) for k, v in labels.items())))


class MetricsCollector:
    """Thread-safe counters and gauges for one engine process.

    Parameters
    ----------
    clock:
        Monotonic seconds source for the uptime gauge.

    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._lock = threading.Lock()
        self._counters: dict[Series, int] = {}
        self._gauges: dict[Series, float] = {}
        self._clock = clock
        self._started = clock()

    # -- counters ----------------------------------------------------------

    def increment(self, name: str, amount: int = 1, labels: dict | None = None) -> None:
        series = _series(name, labels)
        with self._lock:
            self._counters[series] = self._counters.get(series, 0) + amount

    def get(self, name: str, labels: dict | None = None) -> int:
        series = _series(name, labels)
        with self._lock:
            return self._counters.get(series, 0)

    # -- gauges ------------------------------------------------------------

    def set_gauge(self, name: str, value: float, labels: dict | None = None) -> None:
        series = _series(name, labels)
        with self._lock:
            self._gauges[series] = value

    def gauge(self, name: str, labels: dict | None = None) -> float | None:
        """Current gauge value, or ``None`` if never set."""
        series = _series(name, labels)
        with self._lock:
            return self._gauges.get(series)

    def record_tick(self, summary: TickSummary, finished_at: datetime) -> None:
        """Replace the last-tick gauges with *summary*."""
        gauges: dict[Series, float] = {
            _series("warrantywatch_last_tick_timestamp_seconds"): finished_at.timestamp(),
            _series("warrantywatch_last_tick_scanned"): summary.scanned,
            _series("warrantywatch_last_tick_cancelled"): int(summary.cancelled),
        }
        for outcome in TICK_OUTCOMES:
            gauges[_series("warrantywatch_last_tick_outcomes", {"outcome": outcome})] = getattr(
                summary, outcome,
            )
        with self._lock:
            self._gauges.update(gauges)

    # -- exposition --------------------------------------------------------

    def export(self) -> str:
        """Render every series in Prometheus text format."""
        with self._lock:
            counters = dict(self._counters)
            gauges = dict(self._gauges)
        gauges[_series("warrantywatch_uptime_seconds")] = self._clock() - self._started

        lines = _render(counters, "counter") + _render(gauges, "gauge")
        return "\n".join(lines) + "\n"


def _render(values: dict[Series, float], kind: str) -> list[str]:
    by_name: dict[str, list[tuple[tuple[tuple[str, str], ...], float]]] = {}
    for (name, labels), value in values.items():
        by_name.setdefault(name, []).append((labels, value))

    lines: list[str] = []
    for name in sorted(by_name):
        if name in _HELP:
            lines.append(f"# HELP {name} {_HELP[name]}")
        lines.append(f"# TYPE {name} {kind}")
        for labels, value in sorted(by_name[name]):
            lines.append(f"{name}{_format_labels(labels)} {_format_value(value)}")
    return lines


def _format_labels(labels: tuple[tuple[str, str], ...]) -> str:
    if not labels:
        return ""
    pairs = ",".join(
        '{}="{}"'.format(k, v.replace("\\", "\\\\").replace('"', '\\"')) for k, v in labels
    )
    return "{" + pairs + "}"


def _format_value(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    return f"{value:.3f}"
