"""Warranty (receipt) repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pypgkit import BaseRepository, Database

from warrantywatch.models.warranty import WarrantyRecord, compute_expiration

if TYPE_CHECKING:
    from datetime import date


class WarrantyRepository(BaseRepository[WarrantyRecord]):
    table_name = "receipts"
    primary_key = "id"

    def _row_to_entity(self, row: dict) -> WarrantyRecord:
        expiration = row.get("warranty_expiration_date")
        if expiration is None:
            expiration = compute_expiration(row.get("purchase_date"), row.get("warranty_months"))
        return WarrantyRecord(
            id=row["id"],
            user_id=row["user_id"],
            purchase_date=row.get("purchase_date"),
            warranty_months=row.get("warranty_months"),
            expiration_date=expiration,
            product_name=row.get("product_name"),
            description=row.get("description"),
            merchant=row.get("merchant"),
        )

    def _entity_to_row(self, entity: WarrantyRecord) -> dict:
        return {
            "id": entity.id,
            "user_id": entity.user_id,
            "purchase_date": entity.purchase_date,
            "warranty_months": entity.warranty_months,
            "warranty_expiration_date": entity.expiration_date,
            "product_name": entity.product_name,
            "description": entity.description,
            "merchant": entity.merchant,
        }

    def find_expiring(
        self,
        as_of: date,
        lookahead_days: int | None,
        expired_grace_days: int,
        default_threshold_days: int,
    ) -> list[WarrantyRecord]:
        """Find receipts whose warranty ends inside the owner's window.

        The window is ``[as_of - expired_grace_days, as_of + N]`` where
        ``N`` is *lookahead_days* when given, otherwise the owner's
        ``threshold_days`` (or *default_threshold_days* when the owner
        has no preference row).  Rows with a stored duration but no
        stored expiration date are matched on the derived date.
        """
        db = Database.get_instance()
        rows = db.fetch_all(
            "SELECT r.* FROM receipts r "
            "LEFT JOIN notification_preferences p ON p.user_id = r.user_id "
            "WHERE r.warranty_months IS NOT NULL AND r.warranty_months > 0 "
            "AND COALESCE(r.warranty_expiration_date, "
            "    (r.purchase_date + make_interval(months => r.warranty_months))::date) "
            "    BETWEEN %s::date - %s "
            "    AND %s::date + COALESCE(%s::int, p.threshold_days, %s) "
            "ORDER BY r.warranty_expiration_date, r.id",
            (as_of, expired_grace_days, as_of, lookahead_days, default_threshold_days),
            as_dict=True,
        )
        return [self._row_to_entity(r) for r in rows]
