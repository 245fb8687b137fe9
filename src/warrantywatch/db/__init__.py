"""Database bootstrap for the engine-owned tables."""

from warrantywatch.db.init import init_database

__all__ = ["init_database"]
