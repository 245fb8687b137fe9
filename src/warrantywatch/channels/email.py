"""SMTP email channel."""

from __future__ import annotations

import logging
import smtplib
import socket
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import TYPE_CHECKING

from warrantywatch.channels.base import DeliveryChannel, DeliveryError
from warrantywatch.core.types import ChannelKind
from warrantywatch.logging.sanitize import mask_email

if TYPE_CHECKING:
    from warrantywatch.config.settings import EmailSettings

log = logging.getLogger(__name__)


class SmtpEmailChannel(DeliveryChannel):
    """Sends HTML email through an SMTP relay.

    One connection per message; the engine sends at most a handful of
    messages per user per day.
    """

    kind = ChannelKind.EMAIL
    name = "smtp"
    settings: EmailSettings

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.host and self.settings.from_address)

    def _build_message(self, recipient: str, subject: str, body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.settings.from_name, self.settings.from_address))
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "html", "utf-8"))
        return msg

    def _send(self, recipient: str, subject: str, body: str) -> None:
        if not self.is_configured:
            raise DeliveryError("SMTP transport is not configured", retryable=False)

        msg = self._build_message(recipient, subject, body)
        s = self.settings
        try:
            with smtplib.SMTP(s.host, s.port, timeout=s.timeout_seconds) as server:
                server.ehlo()
                if s.use_tls:
                    server.starttls()
                    server.ehlo()
                if s.username:
                    server.login(s.username, s.password)
                server.sendmail(s.from_address, [recipient], msg.as_string())
        except smtplib.SMTPAuthenticationError as exc:
            raise DeliveryError(f"SMTP authentication failed: {exc.smtp_code}", retryable=False) from exc
        except smtplib.SMTPRecipientsRefused as exc:
            raise DeliveryError("SMTP server refused the recipient", retryable=False) from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"SMTP delivery failed: {exc}", retryable=True) from exc

        log.debug("Email sent to %s", mask_email(recipient))

    def check(self) -> tuple[bool, str]:
        """Open and close a TCP connection to the relay."""
        if not self.is_configured:
            return False, "email.host and email.from_address must be set"
        s = self.settings
        try:
            with socket.create_connection((s.host, s.port), timeout=s.timeout_seconds):
                pass
        except OSError as exc:
            return False, f"cannot reach {s.host}:{s.port}: {exc}"
        return True, f"{s.host}:{s.port} reachable"
