"""Engine services: scheduling, scanning, dedup and dispatch."""

from warrantywatch.services.dispatcher import NotificationDispatcher
from warrantywatch.services.expiration_worker import ExpirationWorker, TickSummary
from warrantywatch.services.gate import NotificationGate
from warrantywatch.services.scanner import ExpirationScanner
from warrantywatch.services.scheduler import PeriodicScheduler
from warrantywatch.services.snapshot import ExpiringSnapshot

__all__ = [
    "ExpirationScanner",
    "ExpirationWorker",
    "ExpiringSnapshot",
    "NotificationDispatcher",
    "NotificationGate",
    "PeriodicScheduler",
    "TickSummary",
]
