"""Engine factory: wires repositories, channels and services together.

Usage::

    from warrantywatch.app import create_engine

    engine = create_engine(config.settings, database=db)
    engine.worker.start()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from warrantywatch.channels.registry import build_channels
from warrantywatch.core.types import GateBackend
from warrantywatch.metrics.collector import MetricsCollector
from warrantywatch.notifications.renderer import TemplateRenderer
from warrantywatch.repositories.memory import InMemoryNotificationLog
from warrantywatch.repositories.notification import NotificationLogRepository
from warrantywatch.repositories.preference import PreferenceRepository
from warrantywatch.repositories.warranty import WarrantyRepository
from warrantywatch.services.dispatcher import NotificationDispatcher
from warrantywatch.services.expiration_worker import ExpirationWorker
from warrantywatch.services.gate import NotificationGate
from warrantywatch.services.scanner import ExpirationScanner
from warrantywatch.services.snapshot import ExpiringSnapshot

if TYPE_CHECKING:
    from pypgkit import Database

    from warrantywatch.channels.base import DeliveryChannel
    from warrantywatch.config.settings import WarrantyWatchSettings
    from warrantywatch.core.ports import (
        ContactVerifier,
        NotificationLog,
        PreferenceStore,
        WarrantyStore,
    )
    from warrantywatch.core.types import ChannelKind

log = logging.getLogger(__name__)


@dataclass
class Engine:
    """Everything a running engine is made of."""

    worker: ExpirationWorker
    scanner: ExpirationScanner
    gate: NotificationGate
    dispatcher: NotificationDispatcher
    renderer: TemplateRenderer
    channels: dict[ChannelKind, DeliveryChannel]
    snapshot: ExpiringSnapshot
    metrics: MetricsCollector | None


def create_engine(
    settings: WarrantyWatchSettings,
    *,
    database: Database | None = None,
    warranty_store: WarrantyStore | None = None,
    preference_store: PreferenceStore | None = None,
    verifier: ContactVerifier | None = None,
    notification_log: NotificationLog | None = None,
) -> Engine:
    """Build a fully wired :class:`Engine`.

    Stores not passed explicitly are PostgreSQL repositories on
    *database*, which is then required.  The gate store follows
    ``engine.gate_backend``.
    """
    engine_settings = settings.engine

    def _need_db(what: str) -> Database:
        if database is None:
            msg = f"a database is required for the {what}"
            raise ValueError(msg)
        return database

    if warranty_store is None:
        warranty_store = WarrantyRepository(_need_db("warranty store"))
    if preference_store is None:
        preference_store = PreferenceRepository(_need_db("preference store"))
    if verifier is None:
        if isinstance(preference_store, PreferenceRepository):
            verifier = preference_store
        else:
            verifier = PreferenceRepository(_need_db("contact verifier"))
    if notification_log is None:
        if engine_settings.gate_backend == GateBackend.DATABASE:
            notification_log = NotificationLogRepository(_need_db("database gate backend"))
        else:
            notification_log = InMemoryNotificationLog()

    metrics = MetricsCollector() if settings.metrics.enabled else None
    channels = build_channels(settings)
    renderer = TemplateRenderer(
        templates_path=settings.templates.templates_path,
        app_name=settings.templates.app_name,
    )
    scanner = ExpirationScanner(
        warranty_store,
        default_threshold_days=engine_settings.default_threshold_days,
        expired_grace_days=engine_settings.expired_grace_days,
    )
    gate = NotificationGate(notification_log)
    dispatcher = NotificationDispatcher(preference_store, verifier, channels, metrics=metrics)
    snapshot = ExpiringSnapshot()
    worker = ExpirationWorker(
        scanner,
        gate,
        dispatcher,
        renderer,
        engine_settings,
        snapshot=snapshot,
        metrics=metrics,
        db=database,
    )

    log.info(
        "Engine assembled: channels=%s gate=%s workers=%d",
        sorted(k.value for k in channels),
        engine_settings.gate_backend.value,
        engine_settings.max_workers,
    )
    return Engine(
        worker=worker,
        scanner=scanner,
        gate=gate,
        dispatcher=dispatcher,
        renderer=renderer,
        channels=channels,
        snapshot=snapshot,
        metrics=metrics,
    )
