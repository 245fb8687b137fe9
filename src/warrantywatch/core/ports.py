"""Ports (interfaces) consumed by the notification engine.

The engine only reads receipts, preferences and contact verification
state; those are owned by other parts of the system.  Any object that
satisfies these protocols can be injected: the PostgreSQL
repositories in :mod:`warrantywatch.repositories` or the in-memory
stores used for development and tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from datetime import date, datetime
    from uuid import UUID

    from warrantywatch.models import NotificationPreference, WarrantyRecord


class WarrantyStore(Protocol):
    """Read-only query over warranty-bearing receipts."""

    def find_expiring(
        self,
        as_of: date,
        lookahead_days: int | None,
        expired_grace_days: int,
        default_threshold_days: int,
    ) -> list[WarrantyRecord]:
        """Return records expiring within each owner's lookahead window.

        When *lookahead_days* is ``None`` the owner's own
        ``threshold_days`` applies (*default_threshold_days* for owners
        without a stored preference).  Records expired for at most
        *expired_grace_days* days are included.
        """
        ...


class PreferenceStore(Protocol):
    def get_preference(self, user_id: str) -> NotificationPreference | None: ...


class ContactVerifier(Protocol):
    def is_phone_verified(self, user_id: str) -> bool: ...


class NotificationLog(Protocol):
    """Backing store for the notification gate."""

    def exists(self, user_id: str, record_id: UUID, day: date) -> bool: ...

    def insert(self, user_id: str, record_id: UUID, day: date, notified_at: datetime) -> bool:
        """Insert the entry; return False if it already existed."""
        ...

    def purge_before(self, day: date) -> int: ...
