"""Enumerated types for the notification engine.

All enums inherit from :class:`enum.StrEnum` so their ``.value`` is a
plain string that psycopg serialises as TEXT and JSON round-trips
naturally.
"""

from __future__ import annotations

from enum import StrEnum

# ---------------------------------------------------------------------------
# Urgency
# ---------------------------------------------------------------------------


class UrgencyTier(StrEnum):
    EXPIRED = "expired"
    CRITICAL = "critical"
    WARNING = "warning"
    NORMAL = "normal"


# ---------------------------------------------------------------------------
# Channel preference
# ---------------------------------------------------------------------------


class NotificationChannel(StrEnum):
    """Which delivery channels a user has opted into.

    A closed set rather than independent booleans so that an explicit
    ``NONE`` stays distinguishable from "nothing configured".
    """

    NONE = "none"
    EMAIL_ONLY = "email_only"
    SMS_ONLY = "sms_only"
    EMAIL_AND_SMS = "email_and_sms"

    @property
    def includes_email(self) -> bool:
        return self in (NotificationChannel.EMAIL_ONLY, NotificationChannel.EMAIL_AND_SMS)

    @property
    def includes_sms(self) -> bool:
        return self in (NotificationChannel.SMS_ONLY, NotificationChannel.EMAIL_AND_SMS)


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


class ChannelKind(StrEnum):
    EMAIL = "email"
    SMS = "sms"


class DeliveryStatus(StrEnum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


class GateBackend(StrEnum):
    MEMORY = "memory"
    DATABASE = "database"
