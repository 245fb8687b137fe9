"""Tests for the delivery channels and the channel registry."""

from __future__ import annotations

import io
import smtplib
import urllib.error
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from warrantywatch.channels import (
    DeliveryChannel,
    DeliveryError,
    DeliveryOutcome,
    LogChannel,
    SmtpEmailChannel,
    TwilioSmsChannel,
    build_channels,
    load_channel,
)
from warrantywatch.core.types import ChannelKind

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _smtp_settings(**overrides):
    defaults = {
        "enabled": True,
        "backend": "smtp",
        "host": "smtp.example.com",
        "port": 587,
        "username": "user",
        "password": "pass",
        "use_tls": True,
        "from_address": "warranty@example.com",
        "from_name": "Warranty App",
        "timeout_seconds": 10,
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _sms_settings(**overrides):
    defaults = {
        "enabled": True,
        "backend": "twilio",
        "account_sid": "AC123",
        "auth_token": "tok",
        "from_number": "+15550000000",
        "api_base_url": "https://api.twilio.test/2010-04-01",
        "timeout_seconds": 5,
    }
    defaults.update(overrides)
    ns = SimpleNamespace(**defaults)
    ns.is_configured = bool(ns.account_sid and ns.auth_token and ns.from_number)
    return ns


def _http_error(code: int) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(
        "https://api.twilio.test", code, "err", {}, io.BytesIO(b'{"message": "err"}'),
    )


class _Broken(DeliveryChannel):
    kind = ChannelKind.EMAIL

    def _send(self, recipient, subject, body):
        raise DeliveryError("provider down", retryable=True)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


class TestDeliveryChannelBase:
    def test_delivery_error_becomes_failed_outcome(self):
        outcome = _Broken(settings=None).deliver("a@example.com", "s", "b")
        assert outcome == DeliveryOutcome(ok=False, reason="provider down", retryable=True)

    def test_log_channel_requires_kind(self):
        with pytest.raises(ValueError, match="explicit channel kind"):
            LogChannel(settings=None)

    def test_default_check(self):
        ok, _detail = _Broken(settings=None).check()
        assert ok is True


# ---------------------------------------------------------------------------
# SMTP
# ---------------------------------------------------------------------------


class TestSmtpEmailChannel:
    @patch("warrantywatch.channels.email.smtplib.SMTP")
    def test_sends_with_starttls_and_login(self, mock_smtp_cls):
        server = mock_smtp_cls.return_value.__enter__.return_value
        channel = SmtpEmailChannel(_smtp_settings())

        outcome = channel.deliver("alice@example.com", "Warranty Expiring Soon: TV", "<p>hi</p>")

        assert outcome.ok
        mock_smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=10)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("user", "pass")
        args = server.sendmail.call_args[0]
        assert args[0] == "warranty@example.com"
        assert args[1] == ["alice@example.com"]
        assert "Subject: Warranty Expiring Soon: TV" in args[2]
        assert "Warranty App" in args[2]

    @patch("warrantywatch.channels.email.smtplib.SMTP")
    def test_no_tls_no_login(self, mock_smtp_cls):
        server = mock_smtp_cls.return_value.__enter__.return_value
        SmtpEmailChannel(_smtp_settings(use_tls=False, username="")).deliver("a@b.c", "s", "b")
        server.starttls.assert_not_called()
        server.login.assert_not_called()

    def test_unconfigured_is_non_retryable_failure(self):
        outcome = SmtpEmailChannel(_smtp_settings(host="")).deliver("a@b.c", "s", "b")
        assert not outcome.ok
        assert outcome.retryable is False

    @patch("warrantywatch.channels.email.smtplib.SMTP")
    def test_connection_error_is_retryable(self, mock_smtp_cls):
        mock_smtp_cls.side_effect = OSError("connection refused")
        outcome = SmtpEmailChannel(_smtp_settings()).deliver("a@b.c", "s", "b")
        assert not outcome.ok
        assert outcome.retryable is True

    @patch("warrantywatch.channels.email.smtplib.SMTP")
    def test_auth_error_not_retryable(self, mock_smtp_cls):
        server = mock_smtp_cls.return_value.__enter__.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        outcome = SmtpEmailChannel(_smtp_settings()).deliver("a@b.c", "s", "b")
        assert not outcome.ok
        assert outcome.retryable is False

    @patch("warrantywatch.channels.email.socket.create_connection")
    def test_check_reachable(self, mock_connect):
        ok, detail = SmtpEmailChannel(_smtp_settings()).check()
        assert ok
        mock_connect.assert_called_once_with(("smtp.example.com", 587), timeout=10)
        assert "reachable" in detail

    @patch("warrantywatch.channels.email.socket.create_connection", side_effect=OSError("timeout"))
    def test_check_unreachable(self, _mock_connect):
        ok, detail = SmtpEmailChannel(_smtp_settings()).check()
        assert not ok
        assert "cannot reach" in detail


# ---------------------------------------------------------------------------
# Twilio
# ---------------------------------------------------------------------------


class TestTwilioSmsChannel:
    @patch("warrantywatch.channels.sms.urllib.request.urlopen")
    def test_posts_form_encoded_message(self, mock_urlopen):
        channel = TwilioSmsChannel(_sms_settings())

        outcome = channel.deliver("+15551234567", "ignored", "Warranty Alert: hi")

        assert outcome.ok
        req = mock_urlopen.call_args[0][0]
        assert req.full_url == "https://api.twilio.test/2010-04-01/Accounts/AC123/Messages.json"
        assert req.get_method() == "POST"
        assert req.get_header("Authorization").startswith("Basic ")
        body = req.data.decode()
        assert "To=%2B15551234567" in body
        assert "From=%2B15550000000" in body
        assert "Body=Warranty+Alert%3A+hi" in body
        assert mock_urlopen.call_args[1]["timeout"] == 5

    def test_unconfigured_is_non_retryable_failure(self):
        outcome = TwilioSmsChannel(_sms_settings(auth_token="")).deliver("+1555", "s", "b")
        assert not outcome.ok
        assert outcome.retryable is False

    @pytest.mark.parametrize(("code", "retryable"), [(400, False), (401, False), (429, True), (503, True)])
    @patch("warrantywatch.channels.sms.urllib.request.urlopen")
    def test_http_errors(self, mock_urlopen, code, retryable):
        mock_urlopen.side_effect = _http_error(code)
        outcome = TwilioSmsChannel(_sms_settings()).deliver("+15551234567", "s", "b")
        assert not outcome.ok
        assert outcome.retryable is retryable
        assert str(code) in outcome.reason

    @patch("warrantywatch.channels.sms.urllib.request.urlopen")
    def test_network_error_retryable(self, mock_urlopen):
        mock_urlopen.side_effect = urllib.error.URLError("dns failure")
        outcome = TwilioSmsChannel(_sms_settings()).deliver("+15551234567", "s", "b")
        assert not outcome.ok
        assert outcome.retryable is True

    @patch("warrantywatch.channels.sms.urllib.request.urlopen")
    def test_check_credentials(self, mock_urlopen):
        ok, _ = TwilioSmsChannel(_sms_settings()).check()
        assert ok
        req = mock_urlopen.call_args[0][0]
        assert req.full_url.endswith("/Accounts/AC123.json")
        assert req.get_method() == "GET"

    @patch("warrantywatch.channels.sms.urllib.request.urlopen", side_effect=_http_error(401))
    def test_check_rejected_credentials(self, _mock_urlopen):
        ok, detail = TwilioSmsChannel(_sms_settings()).check()
        assert not ok
        assert "401" in detail


# ---------------------------------------------------------------------------
# Log channel
# ---------------------------------------------------------------------------


class TestLogChannel:
    def test_logs_masked_recipient(self):
        channel = LogChannel(settings=None, kind=ChannelKind.SMS)
        with patch("warrantywatch.channels.log.log") as mock_log:
            outcome = channel.deliver("+15551234567", "subj", "body")
        assert outcome.ok
        args = mock_log.info.call_args[0]
        assert "****4567" in args
        assert "+15551234567" not in args


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestLoadChannel:
    def test_builtin_smtp(self):
        channel = load_channel(ChannelKind.EMAIL, "smtp", _smtp_settings())
        assert isinstance(channel, SmtpEmailChannel)
        assert channel.kind == ChannelKind.EMAIL

    def test_builtin_log_gets_kind(self):
        channel = load_channel(ChannelKind.SMS, "log", _sms_settings())
        assert isinstance(channel, LogChannel)
        assert channel.kind == ChannelKind.SMS

    def test_twilio_not_valid_for_email(self):
        with pytest.raises(ValueError, match="Unknown email backend"):
            load_channel(ChannelKind.EMAIL, "twilio", _smtp_settings())

    def test_ext_backend(self):
        channel = load_channel(ChannelKind.EMAIL, "ext:warrantywatch.channels.log.LogChannel", None)
        assert isinstance(channel, LogChannel)

    def test_ext_must_be_delivery_channel(self):
        with pytest.raises(TypeError, match="subclass"):
            load_channel(ChannelKind.SMS, "ext:json.JSONDecoder", None)

    def test_ext_malformed_path(self):
        with pytest.raises(ValueError, match="Invalid channel class path"):
            load_channel(ChannelKind.SMS, "ext:bad path", None)

    def test_ext_missing_module(self):
        with pytest.raises(ImportError):
            load_channel(ChannelKind.SMS, "ext:no_such_pkg_ww.mod.Cls", None)

    def test_validate_settings_called(self):
        with patch.object(SmtpEmailChannel, "validate_settings") as mock_validate:
            settings = _smtp_settings()
            load_channel(ChannelKind.EMAIL, "smtp", settings)
        mock_validate.assert_called_once_with(settings)


class TestBuildChannels:
    def test_skips_disabled(self):
        settings = SimpleNamespace(
            email=_smtp_settings(backend="log"),
            sms=_sms_settings(enabled=False),
        )
        channels = build_channels(settings)
        assert set(channels) == {ChannelKind.EMAIL}

    def test_both_enabled(self):
        settings = SimpleNamespace(email=_smtp_settings(), sms=_sms_settings())
        channels = build_channels(settings)
        assert isinstance(channels[ChannelKind.EMAIL], SmtpEmailChannel)
        assert isinstance(channels[ChannelKind.SMS], TwilioSmsChannel)


def test_channel_repr():
    assert "SmtpEmailChannel" in repr(SmtpEmailChannel(MagicMock()))
