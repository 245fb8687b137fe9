"""Notification dispatcher: fan one message out to a user's channels.

Each channel is attempted independently.  A channel the user has not
enabled, or cannot be reached on, is reported as *skipped*; a channel
that was attempted and did not go through is reported as *failed*.
Nothing raised by a channel escapes :meth:`NotificationDispatcher.dispatch`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from warrantywatch.core.types import ChannelKind, DeliveryStatus, NotificationChannel
from warrantywatch.logging.sanitize import mask_email, mask_phone
from warrantywatch.models.notification import ChannelOutcome, DispatchResult
from warrantywatch.models.preference import NotificationPreference

if TYPE_CHECKING:
    from warrantywatch.channels.base import DeliveryChannel
    from warrantywatch.core.ports import ContactVerifier, PreferenceStore
    from warrantywatch.metrics.collector import MetricsCollector
    from warrantywatch.models.notification import WarrantyMessage

log = logging.getLogger(__name__)


def _skipped(channel: ChannelKind, reason: str) -> ChannelOutcome:
    return ChannelOutcome(channel=channel, status=DeliveryStatus.SKIPPED, reason=reason)


def _failed(channel: ChannelKind, reason: str, *, retryable: bool = False) -> ChannelOutcome:
    return ChannelOutcome(
        channel=channel,
        status=DeliveryStatus.FAILED,
        reason=reason,
        retryable=retryable,
    )


class NotificationDispatcher:
    """Resolve a user's preferences and deliver on each enabled channel.

    Parameters
    ----------
    preferences:
        Source of per-user channel choice and contact details.
    verifier:
        Phone-verification lookup; SMS is only sent to verified numbers.
    channels:
        Loaded channels by kind.  A kind missing from the mapping is
        disabled for everyone.
    metrics:
        Optional collector for per-channel delivery counters.

    """

    def __init__(
        self,
        preferences: PreferenceStore,
        verifier: ContactVerifier,
        channels: dict[ChannelKind, DeliveryChannel],
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._preferences = preferences
        self._verifier = verifier
        self._channels = channels
        self._metrics = metrics

    def dispatch(self, user_id: str, message: WarrantyMessage) -> DispatchResult:
        """Deliver *message* to *user_id* on every applicable channel.

        Raises only if the preference lookup itself fails; every
        channel-level problem is captured in the result.
        """
        pref = self._preferences.get_preference(user_id)
        if pref is None:
            pref = NotificationPreference(user_id=user_id)

        result = DispatchResult(user_id=user_id)
        extra = {
            "user_id": user_id,
            "record_id": str(message.record_id) if message.record_id else None,
        }

        if pref.opted_out or pref.channel == NotificationChannel.NONE:
            reason = "user opted out" if pref.opted_out else "channel preference is none"
            for kind in ChannelKind:
                result.record(_skipped(kind, reason))
        else:
            result.record(self._dispatch_email(pref, message, extra))
            result.record(self._dispatch_sms(pref, message, extra))

        for outcome in result.outcomes.values():
            if self._metrics:
                self._metrics.increment(
                    "warrantywatch_deliveries_total",
                    labels={"channel": outcome.channel.value, "status": outcome.status.value},
                )

        log.info(
            "Dispatch finished: sent=%s failed=%s skipped=%s",
            [c.value for c in result.sent],
            [c.value for c in result.failed],
            [c.value for c in result.skipped],
            extra=extra,
        )
        return result

    # -- per channel -------------------------------------------------------

    def _dispatch_email(
        self,
        pref: NotificationPreference,
        message: WarrantyMessage,
        extra: dict,
    ) -> ChannelOutcome:
        kind = ChannelKind.EMAIL
        if not pref.email_enabled:
            return _skipped(kind, "email not enabled in preferences")
        if not pref.email:
            log.debug("No email address on file; skipping email", extra=extra)
            return _skipped(kind, "no email address")
        return self._deliver(kind, pref.email, mask_email(pref.email), message.subject, message.html_body, extra)

    def _dispatch_sms(
        self,
        pref: NotificationPreference,
        message: WarrantyMessage,
        extra: dict,
    ) -> ChannelOutcome:
        kind = ChannelKind.SMS
        if not pref.sms_enabled:
            return _skipped(kind, "sms not enabled in preferences")
        if not pref.phone_number:
            log.debug("No phone number on file; skipping SMS", extra=extra)
            return _skipped(kind, "no phone number")

        try:
            verified = self._verifier.is_phone_verified(pref.user_id)
        except Exception as exc:
            log.warning("Phone verification lookup failed: %s", exc, exc_info=True, extra=extra)
            return _failed(kind, f"verification lookup failed: {exc}", retryable=True)
        if not verified:
            log.info("Phone %s not verified; skipping SMS", mask_phone(pref.phone_number), extra=extra)
            return _skipped(kind, "phone number not verified")

        return self._deliver(
            kind,
            pref.phone_number,
            mask_phone(pref.phone_number),
            message.subject,
            message.text_body,
            extra,
        )

    def _deliver(
        self,
        kind: ChannelKind,
        recipient: str,
        masked: str,
        subject: str,
        body: str,
        extra: dict,
    ) -> ChannelOutcome:
        channel = self._channels.get(kind)
        if channel is None:
            return _skipped(kind, f"{kind.value} channel disabled")

        try:
            outcome = channel.deliver(recipient, subject, body)
        except Exception as exc:
            log.exception("%s delivery to %s raised", kind.value, masked, extra=extra)
            return _failed(kind, f"{type(exc).__name__}: {exc}")

        if outcome.ok:
            log.info("%s sent to %s", kind.value, masked, extra=extra)
            return ChannelOutcome(channel=kind, status=DeliveryStatus.SENT)

        log.warning(
            "%s delivery to %s failed (retryable=%s): %s",
            kind.value,
            masked,
            outcome.retryable,
            outcome.reason,
            extra=extra,
        )
        return _failed(kind, outcome.reason or "delivery failed", retryable=outcome.retryable)
