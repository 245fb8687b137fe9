"""Notification entities: dedup entries, scan candidates, dispatch results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from warrantywatch.core.types import ChannelKind, DeliveryStatus, UrgencyTier

if TYPE_CHECKING:
    from datetime import date, datetime
    from uuid import UUID

    from warrantywatch.models.warranty import WarrantyRecord


@dataclass(frozen=True)
class NotificationRecord:
    """Dedup entry: one successful dispatch per (user, record, day)."""

    user_id: str
    record_id: UUID
    day: date
    notified_at: datetime

    @property
    def key(self) -> tuple[str, str, date]:
        return (self.user_id, str(self.record_id), self.day)


@dataclass(frozen=True)
class ExpiringWarranty:
    """A scan candidate with its computed urgency."""

    record: WarrantyRecord
    days_left: int
    tier: UrgencyTier

    @property
    def user_id(self) -> str:
        return self.record.user_id

    @property
    def record_id(self) -> UUID:
        return self.record.id

    @property
    def expiration_date(self) -> date:
        # Scanner guarantees this is set
        return self.record.expiration_date  # type: ignore[return-value]


@dataclass(frozen=True)
class WarrantyMessage:
    """Rendered notification content for every channel."""

    subject: str
    html_body: str
    text_body: str
    record_id: UUID | None = None
    tier: UrgencyTier | None = None


@dataclass(frozen=True)
class ChannelOutcome:
    channel: ChannelKind
    status: DeliveryStatus
    reason: str | None = None
    retryable: bool = False


@dataclass
class DispatchResult:
    """Per-channel outcome of a single fan-out."""

    user_id: str
    outcomes: dict[ChannelKind, ChannelOutcome] = field(default_factory=dict)

    def record(self, outcome: ChannelOutcome) -> None:
        self.outcomes[outcome.channel] = outcome

    def status_of(self, channel: ChannelKind) -> DeliveryStatus | None:
        outcome = self.outcomes.get(channel)
        return outcome.status if outcome is not None else None

    def _with_status(self, status: DeliveryStatus) -> list[ChannelKind]:
        return [c for c, o in self.outcomes.items() if o.status == status]

    @property
    def sent(self) -> list[ChannelKind]:
        return self._with_status(DeliveryStatus.SENT)

    @property
    def failed(self) -> list[ChannelKind]:
        return self._with_status(DeliveryStatus.FAILED)

    @property
    def skipped(self) -> list[ChannelKind]:
        return self._with_status(DeliveryStatus.SKIPPED)

    @property
    def any_sent(self) -> bool:
        return bool(self.sent)
