"""Channel loading by backend name.

Built-in backends are looked up by name; ``ext:package.module.Class``
imports a custom :class:`DeliveryChannel` subclass.  Loading fails
loudly: the engine must not start with a broken transport.
"""

from __future__ import annotations

import importlib
import logging
import re
from typing import TYPE_CHECKING, Any

from warrantywatch.channels.base import DeliveryChannel
from warrantywatch.channels.email import SmtpEmailChannel
from warrantywatch.channels.log import LogChannel
from warrantywatch.channels.sms import TwilioSmsChannel
from warrantywatch.core.types import ChannelKind

if TYPE_CHECKING:
    from warrantywatch.config.settings import WarrantyWatchSettings

log = logging.getLogger(__name__)

_CLASS_PATH_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)+$")

_BUILTIN_BACKENDS: dict[ChannelKind, dict[str, type[DeliveryChannel]]] = {
    ChannelKind.EMAIL: {"smtp": SmtpEmailChannel, "log": LogChannel},
    ChannelKind.SMS: {"twilio": TwilioSmsChannel, "log": LogChannel},
}


def _import_channel_class(class_path: str) -> type[DeliveryChannel]:
    if not _CLASS_PATH_RE.match(class_path):
        msg = (
            f"Invalid channel class path '{class_path}': must match "
            "'package.module.ClassName' (only alphanumerics and underscores)"
        )
        raise ValueError(msg)

    module_path, _, cls_name = class_path.rpartition(".")
    module = importlib.import_module(module_path)
    cls = getattr(module, cls_name)

    if not (isinstance(cls, type) and issubclass(cls, DeliveryChannel)):
        msg = f"Channel '{class_path}' must be a subclass of warrantywatch.channels.DeliveryChannel"
        raise TypeError(msg)
    return cls


def load_channel(kind: ChannelKind, backend: str, settings: Any) -> DeliveryChannel:  # noqa: ANN401
    """Instantiate the channel named by *backend* for *kind*.

    Raises
    ------
    ValueError
        Unknown backend name, malformed class path, or settings the
        channel class rejects.
    TypeError
        The ``ext:`` class is not a :class:`DeliveryChannel`.

    """
    builtins = _BUILTIN_BACKENDS[kind]
    if backend.startswith("ext:"):
        cls = _import_channel_class(backend[4:])
    elif backend in builtins:
        cls = builtins[backend]
    else:
        msg = f"Unknown {kind} backend '{backend}'. Known backends: {sorted(builtins)}"
        raise ValueError(msg)

    cls.validate_settings(settings)
    channel = cls(settings, kind=kind)
    log.info("Loaded %s channel: %s", kind, backend)
    return channel


def build_channels(settings: WarrantyWatchSettings) -> dict[ChannelKind, DeliveryChannel]:
    """Load every enabled channel from the settings tree."""
    channels: dict[ChannelKind, DeliveryChannel] = {}
    if settings.email.enabled:
        channels[ChannelKind.EMAIL] = load_channel(
            ChannelKind.EMAIL, settings.email.backend, settings.email,
        )
    else:
        log.info("Email channel disabled by configuration")
    if settings.sms.enabled:
        channels[ChannelKind.SMS] = load_channel(
            ChannelKind.SMS, settings.sms.backend, settings.sms,
        )
    else:
        log.info("SMS channel disabled by configuration")
    return channels
