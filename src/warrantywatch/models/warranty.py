"""Warranty record entity (read-only view of a receipt)."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


def compute_expiration(purchase_date: date | None, warranty_months: int | None) -> date | None:
    """Return *purchase_date* plus *warranty_months* calendar months.

    The day is clamped to the end of the target month (Jan 31 + 1 month
    is Feb 28/29).  Returns ``None`` when either input is missing.
    """
    if purchase_date is None or not warranty_months:
        return None
    month_index = purchase_date.month - 1 + warranty_months
    year = purchase_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(purchase_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


@dataclass(frozen=True)
class WarrantyRecord:
    id: UUID
    user_id: str
    purchase_date: date | None = None
    warranty_months: int | None = None
    expiration_date: date | None = None
    product_name: str | None = None
    description: str | None = None
    merchant: str | None = None

    @property
    def display_name(self) -> str:
        return self.product_name or self.description or "Product"
