"""Warranty expiration notification worker.

Daemon thread that periodically scans for warranties nearing (or just
past) expiry, suppresses anything already sent today, renders a
message per candidate and fans it out to the user's channels.

Deduplicates through the :class:`NotificationGate`, which is only
marked once at least one channel succeeded.

Usage::

    worker = ExpirationWorker(scanner, gate, dispatcher, renderer, settings.engine)
    worker.start()
    ...
    worker.stop()
"""

from __future__ import annotations

import contextlib
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from warrantywatch.services.scheduler import PeriodicScheduler
from warrantywatch.services.snapshot import ExpiringSnapshot

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import date

    from pypgkit import Database

    from warrantywatch.config.settings import EngineSettings
    from warrantywatch.metrics.collector import MetricsCollector
    from warrantywatch.models.notification import ExpiringWarranty
    from warrantywatch.notifications.renderer import TemplateRenderer
    from warrantywatch.services.dispatcher import NotificationDispatcher
    from warrantywatch.services.gate import NotificationGate
    from warrantywatch.services.scanner import ExpirationScanner

log = logging.getLogger(__name__)

# Per-candidate results
_NOTIFIED = "notified"
_UNRECORDED = "unrecorded"
_FAILED = "failed"
_SKIPPED = "skipped"
_CANCELLED = "cancelled"


@dataclass
class TickSummary:
    """Counters for one tick."""

    tick_id: str
    day: date
    scanned: int = 0
    suppressed: int = 0
    notified: int = 0
    failed: int = 0
    skipped: int = 0
    # Sent, but the dedup entry could not be written; may repeat today
    unrecorded: int = 0
    cancelled: bool = False
    leader: bool = True

    def as_dict(self) -> dict:
        data = asdict(self)
        data["day"] = self.day.isoformat()
        return data


class ExpirationWorker:
    """Daemon thread that sends warranty expiration notifications.

    When a database is provided, uses ``pg_try_advisory_lock`` so only
    one engine instance runs a tick at a time across a deployment.

    Parameters
    ----------
    scanner:
        Finds candidates for a given day.
    gate:
        Per-day dedup of successful sends.
    dispatcher:
        Fans a rendered message out to the user's channels.
    renderer:
        Produces the subject, HTML body and SMS text for a candidate.
    settings:
        The ``engine`` section from :class:`WarrantyWatchSettings`.
    snapshot:
        Refreshed with every tick's scan result.
    clock:
        Returns the current UTC time; the calendar day is taken from it.

    """

    # Advisory lock ID for leader election (arbitrary but stable)
    _ADVISORY_LOCK_ID = 724_001

    def __init__(
        self,
        scanner: ExpirationScanner,
        gate: NotificationGate,
        dispatcher: NotificationDispatcher,
        renderer: TemplateRenderer,
        settings: EngineSettings,
        snapshot: ExpiringSnapshot | None = None,
        metrics: MetricsCollector | None = None,
        db: Database | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._scanner = scanner
        self._gate = gate
        self._dispatcher = dispatcher
        self._renderer = renderer
        self._settings = settings
        self._snapshot = snapshot if snapshot is not None else ExpiringSnapshot()
        self._metrics = metrics
        self._db = db
        self._clock = clock or (lambda: datetime.now(UTC))
        self._last_summary: TickSummary | None = None
        self._scheduler = PeriodicScheduler(
            "expiration-worker",
            self._tick,
            interval_seconds=settings.check_interval_seconds,
            initial_delay_seconds=settings.initial_delay_seconds,
            metrics=metrics,
        )

    # -- lifecycle ---------------------------------------------------------

    @property
    def snapshot(self) -> ExpiringSnapshot:
        return self._snapshot

    @property
    def last_summary(self) -> TickSummary | None:
        return self._last_summary

    @property
    def is_running(self) -> bool:
        return self._scheduler.is_running

    def start(self) -> None:
        """Start the background scheduler."""
        if not self._settings.enabled:
            log.info("Expiration worker disabled by configuration")
            return
        self._scheduler.start()

    def stop(self) -> None:
        """Cancel at the next checkpoint and wait for in-flight sends."""
        self._scheduler.stop(timeout=self._settings.stop_timeout_seconds)

    def run_once(self) -> TickSummary | None:
        """Run one tick now in the calling thread.

        Returns ``None`` if a tick is already running.
        """
        return self._scheduler.run_now()

    # -- leader election ---------------------------------------------------

    def _try_acquire_leader(self) -> bool:
        if self._db is None:
            return True
        try:
            return bool(
                self._db.fetch_value(
                    "SELECT pg_try_advisory_lock(%s)",
                    (self._ADVISORY_LOCK_ID,),
                ),
            )
        except Exception:
            log.debug("Advisory lock check failed, skipping this cycle")
            return False

    def _release_leader(self) -> None:
        if self._db is None:
            return
        with contextlib.suppress(Exception):
            self._db.execute(
                "SELECT pg_advisory_unlock(%s)",
                (self._ADVISORY_LOCK_ID,),
            )

    # -- tick --------------------------------------------------------------

    def _tick(self, stop_event: threading.Event) -> TickSummary:
        now = self._clock()
        summary = TickSummary(tick_id=uuid4().hex[:12], day=now.date())
        extra = {"tick_id": summary.tick_id}

        if not self._try_acquire_leader():
            log.info("Another instance holds the expiration lock; skipping tick", extra=extra)
            summary.leader = False
            self._last_summary = summary
            return summary

        try:
            self._run_tick(summary, now, stop_event)
        finally:
            self._release_leader()

        if self._metrics:
            self._metrics.record_tick(summary, self._clock())

        log.info(
            "Tick finished: scanned=%d suppressed=%d notified=%d failed=%d skipped=%d unrecorded=%d%s",
            summary.scanned,
            summary.suppressed,
            summary.notified,
            summary.failed,
            summary.skipped,
            summary.unrecorded,
            " (cancelled)" if summary.cancelled else "",
            extra=extra,
        )
        self._last_summary = summary
        return summary

    def _run_tick(self, summary: TickSummary, now: datetime, stop_event: threading.Event) -> None:
        today = summary.day
        extra = {"tick_id": summary.tick_id}

        try:
            self._gate.purge_before(today)
        except Exception:
            log.exception("Dedup purge failed; continuing with scan", extra=extra)

        # Scan errors propagate: the tick is abandoned and retried next interval
        candidates = self._scanner.scan(today)
        self._snapshot.replace(candidates, now)
        summary.scanned = len(candidates)
        if self._metrics:
            self._metrics.increment("warrantywatch_candidates_total", len(candidates))

        futures = []
        with ThreadPoolExecutor(
            max_workers=self._settings.max_workers,
            thread_name_prefix="warrantywatch-dispatch",
        ) as executor:
            for candidate in candidates:
                if stop_event.is_set():
                    summary.cancelled = True
                    log.info("Stop requested; no further candidates submitted", extra=extra)
                    break
                try:
                    allowed = self._gate.should_notify(
                        candidate.user_id, candidate.record_id, today,
                    )
                except Exception:
                    log.exception(
                        "Dedup check failed",
                        extra={**extra, "user_id": candidate.user_id, "record_id": str(candidate.record_id)},
                    )
                    summary.failed += 1
                    continue
                if not allowed:
                    summary.suppressed += 1
                    continue
                futures.append(
                    executor.submit(self._notify_one, candidate, today, summary.tick_id, stop_event),
                )

        for future in futures:
            outcome = future.result()
            if outcome == _NOTIFIED:
                summary.notified += 1
            elif outcome == _UNRECORDED:
                summary.notified += 1
                summary.unrecorded += 1
            elif outcome == _FAILED:
                summary.failed += 1
            elif outcome == _SKIPPED:
                summary.skipped += 1
            else:
                summary.cancelled = True

        if self._metrics:
            self._metrics.increment("warrantywatch_suppressed_total", summary.suppressed)
            self._metrics.increment("warrantywatch_notifications_sent_total", summary.notified)
            self._metrics.increment("warrantywatch_unrecorded_total", summary.unrecorded)

    def _notify_one(
        self,
        candidate: ExpiringWarranty,
        today: date,
        tick_id: str,
        stop_event: threading.Event,
    ) -> str:
        """Render, dispatch and mark one candidate.  Never raises."""
        extra = {
            "tick_id": tick_id,
            "user_id": candidate.user_id,
            "record_id": str(candidate.record_id),
        }
        if stop_event.is_set():
            return _CANCELLED

        try:
            message = self._renderer.render(candidate)
        except Exception:
            log.exception("Rendering failed for %s", candidate.record.display_name, extra=extra)
            return _FAILED

        try:
            result = self._dispatcher.dispatch(candidate.user_id, message)
        except Exception:
            log.exception("Dispatch failed", extra=extra)
            return _FAILED

        if result.any_sent:
            return self._record_sent(candidate, today, extra)
        if result.failed:
            return _FAILED
        return _SKIPPED

    def _record_sent(self, candidate: ExpiringWarranty, today: date, extra: dict) -> str:
        """Mark the gate after a send, retrying the write once."""
        try:
            self._gate.mark_notified(candidate.user_id, candidate.record_id, today)
        except Exception:
            log.warning("Recording the dedup entry failed; retrying", exc_info=True, extra=extra)
        else:
            return _NOTIFIED

        try:
            self._gate.mark_notified(candidate.user_id, candidate.record_id, today)
        except Exception:
            log.exception(
                "Sent, but the dedup entry was not recorded; a repeat send today is possible",
                extra=extra,
            )
            return _UNRECORDED
        return _NOTIFIED
