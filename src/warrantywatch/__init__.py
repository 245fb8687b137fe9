"""WarrantyWatch: warranty expiration notification engine."""

__version__ = "1.0.0"
