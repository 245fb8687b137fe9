"""Log-only channel for development and dry runs."""

from __future__ import annotations

import logging

from warrantywatch.channels.base import DeliveryChannel
from warrantywatch.core.types import ChannelKind
from warrantywatch.logging.sanitize import mask_email, mask_phone

log = logging.getLogger(__name__)


class LogChannel(DeliveryChannel):
    """Writes the message to the log instead of delivering it."""

    name = "log"

    def _send(self, recipient: str, subject: str, body: str) -> None:
        masked = mask_email(recipient) if self.kind == ChannelKind.EMAIL else mask_phone(recipient)
        log.info(
            "[%s] to=%s subject=%r body_length=%d",
            self.kind,
            masked,
            subject,
            len(body),
        )
        log.debug("[%s] body: %s", self.kind, body)
