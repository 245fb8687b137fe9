"""Most recent scan results, grouped per user.

Lets the rest of the application answer "which of my warranties are
expiring?" without querying the store on every request.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from warrantywatch.models.notification import ExpiringWarranty


class ExpiringSnapshot:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_user: dict[str, list[ExpiringWarranty]] = {}
        self._refreshed_at: datetime | None = None

    @property
    def refreshed_at(self) -> datetime | None:
        with self._lock:
            return self._refreshed_at

    def replace(self, candidates: Iterable[ExpiringWarranty], refreshed_at: datetime) -> None:
        """Swap in a new scan result."""
        by_user: dict[str, list[ExpiringWarranty]] = {}
        for candidate in candidates:
            by_user.setdefault(candidate.user_id, []).append(candidate)
        for entries in by_user.values():
            entries.sort(key=lambda c: (c.expiration_date, str(c.record_id)))
        with self._lock:
            self._by_user = by_user
            self._refreshed_at = refreshed_at

    def for_user(self, user_id: str) -> list[ExpiringWarranty]:
        """The user's entries, soonest expiration first."""
        with self._lock:
            return list(self._by_user.get(user_id, ()))

    def count_for_user(self, user_id: str) -> int:
        with self._lock:
            return len(self._by_user.get(user_id, ()))

    def __len__(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._by_user.values())
