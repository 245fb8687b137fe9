"""Process shutdown signalling.

Usage::

    shutdown = GracefulShutdown()
    shutdown.register_signals()
    worker.start()
    shutdown.wait()
    worker.stop()
"""

from __future__ import annotations

import logging
import signal
import threading

log = logging.getLogger(__name__)


class GracefulShutdown:
    """Turns SIGTERM / SIGINT into a waitable event."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def requested(self) -> bool:
        return self._event.is_set()

    def trigger(self) -> None:
        self._event.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until shutdown is requested.  Returns the flag."""
        return self._event.wait(timeout=timeout)

    def register_signals(self) -> None:
        """Register SIGTERM and SIGINT handlers.

        Must be called from the main thread.
        """
        try:
            signal.signal(signal.SIGTERM, self._signal_handler)
            signal.signal(signal.SIGINT, self._signal_handler)
        except (ValueError, OSError):
            # Not in main thread or signals not supported
            log.debug("Could not register signal handlers (not main thread)")

    def _signal_handler(self, signum: int, frame) -> None:  # noqa: ARG002
        log.info("Received %s, stopping", signal.Signals(signum).name)
        self._event.set()
