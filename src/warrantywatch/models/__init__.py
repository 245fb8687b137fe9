"""Entity models for the notification engine.

All persisted-shape models are frozen dataclasses.  Use
:func:`dataclasses.replace` for modifications (copy-on-write).
"""

from warrantywatch.models.notification import (
    ChannelOutcome,
    DispatchResult,
    ExpiringWarranty,
    NotificationRecord,
    WarrantyMessage,
)
from warrantywatch.models.preference import DEFAULT_THRESHOLD_DAYS, NotificationPreference
from warrantywatch.models.warranty import WarrantyRecord, compute_expiration

__all__ = [
    "DEFAULT_THRESHOLD_DAYS",
    "ChannelOutcome",
    "DispatchResult",
    "ExpiringWarranty",
    "NotificationPreference",
    "NotificationRecord",
    "WarrantyMessage",
    "WarrantyRecord",
    "compute_expiration",
]
