"""Tests for the engine's MetricsCollector."""

from __future__ import annotations

import threading
from datetime import UTC, date, datetime

from warrantywatch.metrics.collector import MetricsCollector
from warrantywatch.services.expiration_worker import TickSummary


class _FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------


class TestCounters:
    def test_increment_and_get(self):
        m = MetricsCollector()
        m.increment("warrantywatch_ticks_total")
        m.increment("warrantywatch_ticks_total", 2)
        assert m.get("warrantywatch_ticks_total") == 3

    def test_labels_are_separate_series(self):
        m = MetricsCollector()
        m.increment("warrantywatch_deliveries_total", labels={"channel": "sms", "status": "sent"})
        m.increment("warrantywatch_deliveries_total", labels={"channel": "email", "status": "sent"})
        assert m.get("warrantywatch_deliveries_total", labels={"status": "sent", "channel": "sms"}) == 1
        assert m.get("warrantywatch_deliveries_total") == 0

    def test_thread_safe(self):
        m = MetricsCollector()

        def bump():
            for _ in range(1000):
                m.increment("c")

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert m.get("c") == 8000


# ---------------------------------------------------------------------------
# Gauges
# ---------------------------------------------------------------------------


class TestGauges:
    def test_unset_gauge_is_none(self):
        assert MetricsCollector().gauge("warrantywatch_last_tick_scanned") is None

    def test_set_gauge_overwrites(self):
        m = MetricsCollector()
        m.set_gauge("g", 3)
        m.set_gauge("g", 1)
        assert m.gauge("g") == 1

    def test_record_tick(self):
        m = MetricsCollector()
        finished = datetime(2026, 6, 15, 9, 0, 5, tzinfo=UTC)
        summary = TickSummary(
            tick_id="t1",
            day=date(2026, 6, 15),
            scanned=5,
            suppressed=1,
            notified=3,
            failed=1,
            unrecorded=1,
            cancelled=True,
        )

        m.record_tick(summary, finished)

        assert m.gauge("warrantywatch_last_tick_timestamp_seconds") == finished.timestamp()
        assert m.gauge("warrantywatch_last_tick_scanned") == 5
        assert m.gauge("warrantywatch_last_tick_cancelled") == 1
        assert m.gauge("warrantywatch_last_tick_outcomes", {"outcome": "notified"}) == 3
        assert m.gauge("warrantywatch_last_tick_outcomes", {"outcome": "skipped"}) == 0
        assert m.gauge("warrantywatch_last_tick_outcomes", {"outcome": "unrecorded"}) == 1

    def test_record_tick_replaces_previous(self):
        m = MetricsCollector()
        when = datetime(2026, 6, 15, tzinfo=UTC)
        m.record_tick(TickSummary(tick_id="a", day=when.date(), scanned=9, notified=9), when)
        m.record_tick(TickSummary(tick_id="b", day=when.date(), scanned=2, notified=0), when)
        assert m.gauge("warrantywatch_last_tick_scanned") == 2
        assert m.gauge("warrantywatch_last_tick_outcomes", {"outcome": "notified"}) == 0


# ---------------------------------------------------------------------------
# Exposition
# ---------------------------------------------------------------------------


class TestExport:
    def test_counter_lines(self):
        m = MetricsCollector()
        m.increment("warrantywatch_deliveries_total", labels={"status": "sent", "channel": "sms"})
        text = m.export()
        assert "# HELP warrantywatch_deliveries_total " in text
        assert "# TYPE warrantywatch_deliveries_total counter" in text
        assert 'warrantywatch_deliveries_total{channel="sms",status="sent"} 1' in text

    def test_uptime_from_clock(self):
        clock = _FakeClock()
        m = MetricsCollector(clock=clock)
        clock.now = 142.5
        text = m.export()
        assert "# TYPE warrantywatch_uptime_seconds gauge" in text
        assert "warrantywatch_uptime_seconds 42.500" in text

    def test_tick_gauges_exported(self):
        m = MetricsCollector()
        when = datetime(2026, 6, 15, tzinfo=UTC)
        m.record_tick(TickSummary(tick_id="a", day=when.date(), scanned=4, failed=2), when)
        text = m.export()
        assert "# TYPE warrantywatch_last_tick_outcomes gauge" in text
        assert 'warrantywatch_last_tick_outcomes{outcome="failed"} 2' in text
        assert "warrantywatch_last_tick_scanned 4" in text

    def test_label_values_escaped(self):
        m = MetricsCollector()
        m.increment("x_total", labels={"reason": 'say "hi"'})
        assert 'x_total{reason="say \\"hi\\""} 1' in m.export()

    def test_unknown_metric_has_type_but_no_help(self):
        m = MetricsCollector()
        m.increment("custom_total")
        text = m.export()
        assert "# TYPE custom_total counter" in text
        assert "# HELP custom_total" not in text
