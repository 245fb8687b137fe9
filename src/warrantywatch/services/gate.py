"""Notification gate: at most one successful dispatch per user, record and day."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import date
    from uuid import UUID

    from warrantywatch.core.ports import NotificationLog

log = logging.getLogger(__name__)


class NotificationGate:
    """Answers "was this already sent today?" and records sends.

    The check and the mark are separate calls: the engine checks
    before dispatch and marks only after at least one channel
    succeeded, so a fully failed dispatch stays eligible on the next
    tick.  Concurrent ``mark_notified`` calls for one key create
    exactly one entry.
    """

    def __init__(
        self,
        store: NotificationLog,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now(UTC))

    def should_notify(self, user_id: str, record_id: UUID, today: date) -> bool:
        return not self._store.exists(user_id, record_id, today)

    def mark_notified(self, user_id: str, record_id: UUID, today: date) -> bool:
        """Record a successful send.

        Returns True if this call created the entry, False if it was
        already present.
        """
        created = self._store.insert(user_id, record_id, today, self._clock())
        if not created:
            log.debug(
                "Dedup entry already present",
                extra={"user_id": user_id, "record_id": str(record_id)},
            )
        return created

    def purge_before(self, day: date) -> int:
        """Delete entries for days before *day*."""
        purged = self._store.purge_before(day)
        if purged:
            log.info("Purged %d dedup entries older than %s", purged, day)
        return purged

