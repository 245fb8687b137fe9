"""Repository classes for the WarrantyWatch persistence layer.

PostgreSQL repositories extend :class:`pypgkit.BaseRepository`; the
in-memory stores implement the same ports without a database.
"""

from warrantywatch.repositories.memory import (
    InMemoryNotificationLog,
    InMemoryPreferenceStore,
    InMemoryWarrantyStore,
)
from warrantywatch.repositories.notification import NotificationLogRepository
from warrantywatch.repositories.preference import PreferenceRepository
from warrantywatch.repositories.warranty import WarrantyRepository

__all__ = [
    "InMemoryNotificationLog",
    "InMemoryPreferenceStore",
    "InMemoryWarrantyStore",
    "NotificationLogRepository",
    "PreferenceRepository",
    "WarrantyRepository",
]
