"""Helpers shared by the subcommands."""

from __future__ import annotations

import sys


def echo(message: str = "") -> None:
    print(message)  # noqa: T201


def fail(message: str, code: int = 1) -> None:
    print(f"warrantywatch: error: {message}", file=sys.stderr)  # noqa: T201
    sys.exit(code)


def open_database(config, args):
    """Initialise the database or exit with an error."""
    from warrantywatch.db import init_database

    try:
        return init_database(config.settings.database)
    except Exception as exc:
        if getattr(args, "debug", False):
            raise
        fail(f"database initialisation failed: {exc}")
        return None
