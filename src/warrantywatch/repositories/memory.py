"""In-memory stores for development, dry runs and tests.

Each class satisfies the matching protocol in
:mod:`warrantywatch.core.ports`.  All are guarded by a lock so the
engine's worker pool can use them concurrently.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import timedelta
from typing import TYPE_CHECKING

from warrantywatch.models.notification import NotificationRecord
from warrantywatch.models.warranty import compute_expiration

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date, datetime
    from uuid import UUID

    from warrantywatch.models import NotificationPreference, WarrantyRecord


class InMemoryPreferenceStore:
    """Preferences keyed by user id, plus the set of verified phones."""

    def __init__(
        self,
        preferences: Iterable[NotificationPreference] = (),
        verified_users: Iterable[str] = (),
    ) -> None:
        self._lock = threading.Lock()
        self._preferences = {p.user_id: p for p in preferences}
        self._verified = set(verified_users)

    def put(self, preference: NotificationPreference) -> None:
        with self._lock:
            self._preferences[preference.user_id] = preference

    def set_phone_verified(self, user_id: str, verified: bool = True) -> None:
        with self._lock:
            if verified:
                self._verified.add(user_id)
            else:
                self._verified.discard(user_id)

    def get_preference(self, user_id: str) -> NotificationPreference | None:
        with self._lock:
            return self._preferences.get(user_id)

    def is_phone_verified(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._verified


def _with_expiration(record: WarrantyRecord) -> WarrantyRecord:
    """Fill in a missing expiration from purchase date plus duration."""
    if record.expiration_date is not None:
        return record
    expiration = compute_expiration(record.purchase_date, record.warranty_months)
    return record if expiration is None else replace(record, expiration_date=expiration)


class InMemoryWarrantyStore:
    """Warranty records held in a list.

    Per-user thresholds are read from *preferences* when given.
    """

    def __init__(
        self,
        records: Iterable[WarrantyRecord] = (),
        preferences: InMemoryPreferenceStore | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._records = [_with_expiration(r) for r in records]
        self._preferences = preferences

    def add(self, record: WarrantyRecord) -> None:
        with self._lock:
            self._records.append(_with_expiration(record))

    def _threshold_for(self, user_id: str, default_threshold_days: int) -> int:
        if self._preferences is None:
            return default_threshold_days
        pref = self._preferences.get_preference(user_id)
        return pref.threshold_days if pref is not None else default_threshold_days

    def find_expiring(
        self,
        as_of: date,
        lookahead_days: int | None,
        expired_grace_days: int,
        default_threshold_days: int,
    ) -> list[WarrantyRecord]:
        with self._lock:
            records = list(self._records)

        earliest = as_of - timedelta(days=expired_grace_days)
        result = []
        for record in records:
            if not record.warranty_months:
                continue
            if record.expiration_date is None:
                # Underivable; passed through so the scanner can report it
                result.append(record)
                continue
            window = (
                lookahead_days
                if lookahead_days is not None
                else self._threshold_for(record.user_id, default_threshold_days)
            )
            if earliest <= record.expiration_date <= as_of + timedelta(days=window):
                result.append(record)
        return result


class InMemoryNotificationLog:
    """Dedup entries in a dict keyed by ``(user_id, record_id, day)``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, str, date], NotificationRecord] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def exists(self, user_id: str, record_id: UUID, day: date) -> bool:
        with self._lock:
            return (user_id, str(record_id), day) in self._entries

    def insert(self, user_id: str, record_id: UUID, day: date, notified_at: datetime) -> bool:
        entry = NotificationRecord(
            user_id=user_id,
            record_id=record_id,
            day=day,
            notified_at=notified_at,
        )
        with self._lock:
            if entry.key in self._entries:
                return False
            self._entries[entry.key] = entry
            return True

    def purge_before(self, day: date) -> int:
        with self._lock:
            stale = [k for k, v in self._entries.items() if v.day < day]
            for key in stale:
                del self._entries[key]
            return len(stale)
