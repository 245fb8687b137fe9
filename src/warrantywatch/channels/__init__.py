"""Delivery channels: email, SMS and pluggable custom transports."""

from warrantywatch.channels.base import DeliveryChannel, DeliveryError, DeliveryOutcome
from warrantywatch.channels.email import SmtpEmailChannel
from warrantywatch.channels.log import LogChannel
from warrantywatch.channels.registry import build_channels, load_channel
from warrantywatch.channels.sms import TwilioSmsChannel

__all__ = [
    "DeliveryChannel",
    "DeliveryError",
    "DeliveryOutcome",
    "LogChannel",
    "SmtpEmailChannel",
    "TwilioSmsChannel",
    "build_channels",
    "load_channel",
]
