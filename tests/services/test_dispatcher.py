"""Tests for NotificationDispatcher skip / fail / send rules."""

from __future__ import annotations

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from warrantywatch.channels.base import DeliveryOutcome
from warrantywatch.core.types import ChannelKind, DeliveryStatus, NotificationChannel
from warrantywatch.metrics.collector import MetricsCollector
from warrantywatch.models import NotificationPreference, WarrantyMessage
from warrantywatch.repositories.memory import InMemoryPreferenceStore
from warrantywatch.services.dispatcher import NotificationDispatcher

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

EMAIL = "alice@example.com"
PHONE = "+15551234567"


def _message() -> WarrantyMessage:
    return WarrantyMessage(
        subject="Warranty Expiring Soon: TV",
        html_body="<p>TV</p>",
        text_body="Warranty Alert: TV",
        record_id=uuid4(),
    )


def _channel(outcome: DeliveryOutcome | Exception | None = None) -> MagicMock:
    channel = MagicMock()
    if isinstance(outcome, Exception):
        channel.deliver.side_effect = outcome
    else:
        channel.deliver.return_value = outcome or DeliveryOutcome.success()
    return channel


def _make_dispatcher(
    pref: NotificationPreference | None = None,
    verified: bool = True,
    email: MagicMock | None = None,
    sms: MagicMock | None = None,
    metrics=None,
):
    store = InMemoryPreferenceStore(
        [pref] if pref else [],
        verified_users=["u1"] if verified else [],
    )
    channels = {}
    channels[ChannelKind.EMAIL] = email if email is not None else _channel()
    channels[ChannelKind.SMS] = sms if sms is not None else _channel()
    return NotificationDispatcher(store, store, channels, metrics=metrics), channels


def _pref(**overrides) -> NotificationPreference:
    defaults = {"user_id": "u1", "email": EMAIL, "phone_number": PHONE}
    defaults.update(overrides)
    return NotificationPreference(**defaults)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestSendBoth:
    def test_both_channels_sent(self):
        dispatcher, channels = _make_dispatcher(_pref())
        message = _message()

        result = dispatcher.dispatch("u1", message)

        assert set(result.sent) == {ChannelKind.EMAIL, ChannelKind.SMS}
        channels[ChannelKind.EMAIL].deliver.assert_called_once_with(EMAIL, message.subject, message.html_body)
        channels[ChannelKind.SMS].deliver.assert_called_once_with(PHONE, message.subject, message.text_body)

    def test_metrics_per_channel(self):
        metrics = MetricsCollector()
        dispatcher, _ = _make_dispatcher(_pref(), metrics=metrics)
        dispatcher.dispatch("u1", _message())
        assert metrics.get("warrantywatch_deliveries_total", labels={"channel": "email", "status": "sent"}) == 1
        assert metrics.get("warrantywatch_deliveries_total", labels={"channel": "sms", "status": "sent"}) == 1


# ---------------------------------------------------------------------------
# Skips
# ---------------------------------------------------------------------------


class TestSkips:
    def test_opted_out_skips_everything(self):
        dispatcher, channels = _make_dispatcher(_pref(opted_out=True))
        result = dispatcher.dispatch("u1", _message())
        assert set(result.skipped) == {ChannelKind.EMAIL, ChannelKind.SMS}
        assert result.outcomes[ChannelKind.EMAIL].reason == "user opted out"
        channels[ChannelKind.EMAIL].deliver.assert_not_called()
        channels[ChannelKind.SMS].deliver.assert_not_called()

    def test_channel_none_skips_everything(self):
        dispatcher, _ = _make_dispatcher(_pref(channel=NotificationChannel.NONE))
        result = dispatcher.dispatch("u1", _message())
        assert set(result.skipped) == {ChannelKind.EMAIL, ChannelKind.SMS}
        assert not result.any_sent

    def test_email_only(self):
        dispatcher, channels = _make_dispatcher(_pref(channel=NotificationChannel.EMAIL_ONLY))
        result = dispatcher.dispatch("u1", _message())
        assert result.sent == [ChannelKind.EMAIL]
        assert result.status_of(ChannelKind.SMS) == DeliveryStatus.SKIPPED
        channels[ChannelKind.SMS].deliver.assert_not_called()

    def test_sms_only(self):
        dispatcher, channels = _make_dispatcher(_pref(channel=NotificationChannel.SMS_ONLY))
        result = dispatcher.dispatch("u1", _message())
        assert result.sent == [ChannelKind.SMS]
        channels[ChannelKind.EMAIL].deliver.assert_not_called()

    def test_no_email_address_skipped(self):
        dispatcher, _ = _make_dispatcher(_pref(email=None))
        result = dispatcher.dispatch("u1", _message())
        assert result.outcomes[ChannelKind.EMAIL].status == DeliveryStatus.SKIPPED
        assert result.outcomes[ChannelKind.EMAIL].reason == "no email address"
        assert result.sent == [ChannelKind.SMS]

    def test_no_phone_skipped(self):
        dispatcher, _ = _make_dispatcher(_pref(phone_number=None))
        result = dispatcher.dispatch("u1", _message())
        assert result.status_of(ChannelKind.SMS) == DeliveryStatus.SKIPPED

    def test_unverified_phone_skipped_not_failed(self):
        dispatcher, channels = _make_dispatcher(_pref(), verified=False)
        result = dispatcher.dispatch("u1", _message())
        assert result.status_of(ChannelKind.SMS) == DeliveryStatus.SKIPPED
        assert result.outcomes[ChannelKind.SMS].reason == "phone number not verified"
        assert result.sent == [ChannelKind.EMAIL]
        assert result.failed == []
        channels[ChannelKind.SMS].deliver.assert_not_called()

    def test_missing_preference_skips_everything(self):
        dispatcher, channels = _make_dispatcher(None)
        result = dispatcher.dispatch("u1", _message())
        assert set(result.skipped) == {ChannelKind.EMAIL, ChannelKind.SMS}
        channels[ChannelKind.EMAIL].deliver.assert_not_called()

    def test_globally_disabled_channel_skipped(self):
        store = InMemoryPreferenceStore([_pref()], verified_users=["u1"])
        email = _channel()
        dispatcher = NotificationDispatcher(store, store, {ChannelKind.EMAIL: email})
        result = dispatcher.dispatch("u1", _message())
        assert result.sent == [ChannelKind.EMAIL]
        assert result.outcomes[ChannelKind.SMS].reason == "sms channel disabled"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailureIsolation:
    def test_sms_failure_does_not_block_email(self):
        sms = _channel(DeliveryOutcome.failure("HTTP 500", retryable=True))
        dispatcher, _ = _make_dispatcher(_pref(), sms=sms)
        result = dispatcher.dispatch("u1", _message())
        assert result.sent == [ChannelKind.EMAIL]
        assert result.failed == [ChannelKind.SMS]
        assert result.outcomes[ChannelKind.SMS].retryable is True
        assert result.any_sent

    def test_adapter_exception_captured(self):
        email = _channel(RuntimeError("smtp exploded"))
        dispatcher, _ = _make_dispatcher(_pref(), email=email)
        result = dispatcher.dispatch("u1", _message())
        assert result.failed == [ChannelKind.EMAIL]
        assert "smtp exploded" in result.outcomes[ChannelKind.EMAIL].reason
        assert result.sent == [ChannelKind.SMS]

    def test_all_fail(self):
        dispatcher, _ = _make_dispatcher(
            _pref(),
            email=_channel(DeliveryOutcome.failure("down")),
            sms=_channel(RuntimeError("down")),
        )
        result = dispatcher.dispatch("u1", _message())
        assert not result.any_sent
        assert set(result.failed) == {ChannelKind.EMAIL, ChannelKind.SMS}

    def test_verification_lookup_error_is_failure(self):
        prefs = MagicMock()
        prefs.get_preference.return_value = _pref()
        verifier = MagicMock()
        verifier.is_phone_verified.side_effect = RuntimeError("users table locked")
        channels = {ChannelKind.EMAIL: _channel(), ChannelKind.SMS: _channel()}
        dispatcher = NotificationDispatcher(prefs, verifier, channels)

        result = dispatcher.dispatch("u1", _message())

        assert result.status_of(ChannelKind.SMS) == DeliveryStatus.FAILED
        assert result.sent == [ChannelKind.EMAIL]
        channels[ChannelKind.SMS].deliver.assert_not_called()

    def test_preference_lookup_error_propagates(self):
        prefs = MagicMock()
        prefs.get_preference.side_effect = RuntimeError("db down")
        dispatcher = NotificationDispatcher(prefs, MagicMock(), {})
        with pytest.raises(RuntimeError):
            dispatcher.dispatch("u1", _message())
