"""Logging subsystem for WarrantyWatch.

Public API::

    from warrantywatch.logging import configure_logging

    configure_logging(settings.logging)
"""

from warrantywatch.logging.setup import configure_logging

__all__ = ["configure_logging"]
