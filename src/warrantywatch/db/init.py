"""Database initialisation from WarrantyWatch configuration.

Usage::

    from warrantywatch.config import get_config
    from warrantywatch.db.init import init_database

    init_database(get_config().settings.database)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pypgkit import Database, DatabaseConfig

if TYPE_CHECKING:
    from warrantywatch.config.settings import DatabaseSettings

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Tables the engine queries; only the first is owned by the engine.
ENGINE_TABLES = ("warranty_notification_log",)
COLLABORATOR_TABLES = ("receipts", "users", "notification_preferences")

log = logging.getLogger(__name__)


def _settings_to_config(settings: DatabaseSettings) -> DatabaseConfig:
    return DatabaseConfig(
        host=settings.host,
        port=settings.port,
        database=settings.database,
        user=settings.user,
        password=settings.password,
        sslmode=settings.sslmode,
        min_connections=settings.min_connections,
        max_connections=settings.max_connections,
        connection_timeout=settings.connection_timeout,
    )


def init_database(settings: DatabaseSettings, *, auto_setup: bool | None = None) -> Database:
    """Initialise the PyPGKit :class:`Database` singleton.

    Parameters
    ----------
    settings:
        The ``database`` section from :class:`WarrantyWatchSettings`.
    auto_setup:
        Overrides ``settings.auto_setup`` when given.  ``db migrate``
        passes ``True`` to apply the bundled schema.

    Returns
    -------
    Database
        The existing instance if one was already initialised, else a
        new one.

    """
    if Database.is_initialized():
        log.debug("Database already initialised, returning existing instance")
        return Database.get_instance()

    setup = settings.auto_setup if auto_setup is None else auto_setup

    log.info(
        "Connecting to PostgreSQL %s@%s:%s/%s (auto_setup=%s)",
        settings.user,
        settings.host,
        settings.port,
        settings.database,
        setup,
    )

    return Database.init(
        config=_settings_to_config(settings),
        schema_path=SCHEMA_PATH if setup else None,
        auto_setup=setup,
        interactive=False,
    )


def table_status(db: Database) -> dict[str, bool]:
    """Report which of the engine and collaborator tables exist."""
    status: dict[str, bool] = {}
    for table in ENGINE_TABLES + COLLABORATOR_TABLES:
        status[table] = bool(
            db.fetch_value(
                "SELECT to_regclass(%s) IS NOT NULL",
                (f"public.{table}",),
            ),
        )
    return status
