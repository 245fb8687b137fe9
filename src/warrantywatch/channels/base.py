"""Abstract base class for delivery channels.

A channel moves one already-rendered message to one recipient.  It
never retries and never decides *whether* to send; that belongs to
the dispatcher.

Custom transports subclass :class:`DeliveryChannel`, implement
:meth:`DeliveryChannel._send`, and are referenced from config as
``backend: ext:package.module.ClassName``::

    class PagerChannel(DeliveryChannel):
        kind = ChannelKind.SMS

        def _send(self, recipient, subject, body):
            pager.page(recipient, body)
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from warrantywatch.core.types import ChannelKind


class DeliveryError(Exception):
    """A transport-level failure.

    ``retryable`` tells the caller whether the same message might go
    through on a later attempt (network trouble, provider throttling)
    or not (bad credentials, rejected recipient, missing config).
    """

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


@dataclass(frozen=True)
class DeliveryOutcome:
    ok: bool
    reason: str | None = None
    retryable: bool = False

    @classmethod
    def success(cls) -> DeliveryOutcome:
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str, *, retryable: bool = False) -> DeliveryOutcome:
        return cls(ok=False, reason=reason, retryable=retryable)


class DeliveryChannel(abc.ABC):
    """Base class for all delivery channels.

    Parameters
    ----------
    settings:
        The ``email`` or ``sms`` settings section this channel was
        loaded from.
    kind:
        Which channel slot this instance fills.  Defaults to the
        class-level :attr:`kind`.

    """

    kind: ChannelKind | None = None
    name: str = "channel"

    def __init__(self, settings: Any, kind: ChannelKind | None = None) -> None:  # noqa: ANN401
        self.settings = settings
        resolved = kind or type(self).kind
        if resolved is None:
            msg = f"{type(self).__name__} needs an explicit channel kind"
            raise ValueError(msg)
        self.kind = resolved

    @classmethod
    def validate_settings(cls, settings: Any) -> None:  # noqa: ANN401
        """Reject unusable settings at load time.

        Raise :class:`ValueError`.  The default accepts anything.
        """

    @abc.abstractmethod
    def _send(self, recipient: str, subject: str, body: str) -> None:
        """Hand the message to the transport or raise :class:`DeliveryError`."""

    def deliver(self, recipient: str, subject: str, body: str) -> DeliveryOutcome:
        """Send one message and report the outcome.

        :class:`DeliveryError` becomes a failed outcome carrying its
        ``retryable`` flag.  Any other exception propagates to the
        dispatcher.
        """
        try:
            self._send(recipient, subject, body)
        except DeliveryError as exc:
            return DeliveryOutcome.failure(str(exc), retryable=exc.retryable)
        return DeliveryOutcome.success()

    def check(self) -> tuple[bool, str]:
        """Probe the transport without sending anything.

        Returns ``(ok, detail)``.
        """
        return True, "no connectivity check for this backend"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind}>"
