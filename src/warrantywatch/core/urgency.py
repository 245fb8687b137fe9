"""Urgency classification for warranty expirations.

Pure functions, no I/O.  ``days_left == 0`` (expires today) is
classified as CRITICAL, not EXPIRED.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from warrantywatch.core.types import UrgencyTier

if TYPE_CHECKING:
    from datetime import date

CRITICAL_MAX_DAYS = 7
WARNING_MAX_DAYS = 30

TIER_LABELS: dict[UrgencyTier, str] = {
    UrgencyTier.EXPIRED: "Expired",
    UrgencyTier.CRITICAL: "URGENT",
    UrgencyTier.WARNING: "Important",
    UrgencyTier.NORMAL: "Notice",
}

TIER_COLORS: dict[UrgencyTier, str] = {
    UrgencyTier.EXPIRED: "#6c757d",
    UrgencyTier.CRITICAL: "#dc3545",
    UrgencyTier.WARNING: "#ffc107",
    UrgencyTier.NORMAL: "#17a2b8",
}


def classify(days_left: int) -> UrgencyTier:
    """Map days-until-expiry to an :class:`UrgencyTier`."""
    if days_left < 0:
        return UrgencyTier.EXPIRED
    if days_left <= CRITICAL_MAX_DAYS:
        return UrgencyTier.CRITICAL
    if days_left <= WARNING_MAX_DAYS:
        return UrgencyTier.WARNING
    return UrgencyTier.NORMAL


def days_until(expiration_date: date, today: date) -> int:
    """Whole calendar days from *today* to *expiration_date* (negative once past)."""
    return (expiration_date - today).days
