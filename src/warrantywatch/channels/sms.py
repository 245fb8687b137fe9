"""Twilio SMS channel (REST Messages API)."""

from __future__ import annotations

import base64
import contextlib
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import TYPE_CHECKING

from warrantywatch.channels.base import DeliveryChannel, DeliveryError
from warrantywatch.core.types import ChannelKind
from warrantywatch.logging.sanitize import mask_phone

if TYPE_CHECKING:
    from warrantywatch.config.settings import SmsSettings

log = logging.getLogger(__name__)

_HTTP_TOO_MANY_REQUESTS = 429
_HTTP_SERVER_ERROR = 500


class TwilioSmsChannel(DeliveryChannel):
    """Posts a text message to Twilio's ``Messages.json`` endpoint.

    The subject is ignored; SMS carries the body only.
    """

    kind = ChannelKind.SMS
    name = "twilio"
    settings: SmsSettings

    def _auth_header(self) -> str:
        raw = f"{self.settings.account_sid}:{self.settings.auth_token}".encode()
        return "Basic " + base64.b64encode(raw).decode("ascii")

    def _account_url(self, suffix: str) -> str:
        base = self.settings.api_base_url.rstrip("/")
        sid = urllib.parse.quote(self.settings.account_sid, safe="")
        return f"{base}/Accounts/{sid}{suffix}"

    def _send(self, recipient: str, subject: str, body: str) -> None:  # noqa: ARG002
        if not self.settings.is_configured:
            raise DeliveryError("Twilio credentials are not configured", retryable=False)

        payload = urllib.parse.urlencode(
            {"To": recipient, "From": self.settings.from_number, "Body": body},
        ).encode("utf-8")
        req = urllib.request.Request(
            self._account_url("/Messages.json"),
            data=payload,
            method="POST",
            headers={
                "Authorization": self._auth_header(),
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "application/json",
            },
        )

        try:
            with urllib.request.urlopen(req, timeout=self.settings.timeout_seconds) as resp:
                resp.read()
        except urllib.error.HTTPError as exc:
            detail = ""
            with contextlib.suppress(OSError):
                detail = exc.read().decode("utf-8", errors="replace")[:200]
            retryable = exc.code == _HTTP_TOO_MANY_REQUESTS or exc.code >= _HTTP_SERVER_ERROR
            log.warning(
                "Twilio rejected SMS to %s: HTTP %d (retryable=%s) %s",
                mask_phone(recipient),
                exc.code,
                retryable,
                detail,
            )
            raise DeliveryError(f"Twilio returned HTTP {exc.code}", retryable=retryable) from exc
        except urllib.error.URLError as exc:
            raise DeliveryError(f"Twilio unreachable: {exc.reason}", retryable=True) from exc
        except OSError as exc:
            raise DeliveryError(f"Twilio request failed: {exc}", retryable=True) from exc

        log.debug("SMS sent to %s", mask_phone(recipient))

    def check(self) -> tuple[bool, str]:
        """Fetch the account resource to verify the credentials."""
        if not self.settings.is_configured:
            return False, "sms.account_sid, sms.auth_token and sms.from_number must be set"
        req = urllib.request.Request(
            self._account_url(".json"),
            method="GET",
            headers={"Authorization": self._auth_header(), "Accept": "application/json"},
        )
        try:
            with urllib.request.urlopen(req, timeout=self.settings.timeout_seconds):
                pass
        except urllib.error.HTTPError as exc:
            return False, f"Twilio credential check failed: HTTP {exc.code}"
        except (urllib.error.URLError, OSError) as exc:
            return False, f"Twilio unreachable: {exc}"
        return True, "Twilio credentials accepted"
