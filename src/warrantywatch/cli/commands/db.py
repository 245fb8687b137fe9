"""Database management subcommands."""

from __future__ import annotations

import logging
import sys

from warrantywatch.cli.commands._common import echo, fail

log = logging.getLogger(__name__)


def run_db(config, args) -> None:
    """Handle db subcommands."""
    if args.db_command == "status":
        _db_status(config, args)
    elif args.db_command == "migrate":
        _db_migrate(config, args)
    else:
        fail("expected 'db status' or 'db migrate'")


def _db_status(config, args) -> None:
    """Check connectivity and which tables exist."""
    from warrantywatch.db.init import init_database, table_status

    try:
        db = init_database(config.settings.database)
        db.fetch_value("SELECT 1")
        status = table_status(db)
    except Exception as exc:
        if args.debug:
            raise
        fail(f"database check failed: {exc}")
        return

    echo("connection OK")
    for table, present in status.items():
        echo(f"  {table:<28} {'present' if present else 'MISSING'}")
    if not all(status.values()):
        sys.exit(1)


def _db_migrate(config, args) -> None:
    """Apply the bundled schema (idempotent)."""
    from warrantywatch.db.init import init_database

    try:
        init_database(config.settings.database, auto_setup=True)
    except Exception as exc:
        if args.debug:
            raise
        fail(f"migration failed: {exc}")
        return
    echo("schema applied")
