"""Per-user notification preference entity."""

from __future__ import annotations

from dataclasses import dataclass

from warrantywatch.core.types import NotificationChannel

DEFAULT_THRESHOLD_DAYS = 7


@dataclass(frozen=True)
class NotificationPreference:
    user_id: str
    channel: NotificationChannel = NotificationChannel.EMAIL_AND_SMS
    threshold_days: int = DEFAULT_THRESHOLD_DAYS
    opted_out: bool = False
    email: str | None = None
    phone_number: str | None = None

    @property
    def email_enabled(self) -> bool:
        return not self.opted_out and self.channel.includes_email

    @property
    def sms_enabled(self) -> bool:
        return not self.opted_out and self.channel.includes_sms
