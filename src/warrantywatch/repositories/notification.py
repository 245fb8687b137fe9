"""Notification log repository (gate backing store)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pypgkit import BaseRepository, Database

from warrantywatch.models.notification import NotificationRecord

if TYPE_CHECKING:
    from datetime import date, datetime
    from uuid import UUID


class NotificationLogRepository(BaseRepository[NotificationRecord]):
    table_name = "warranty_notification_log"
    # Composite key (user_id, record_id, day); the methods below never
    # go through the single-column lookups.
    primary_key = "user_id"

    def _row_to_entity(self, row: dict) -> NotificationRecord:
        return NotificationRecord(
            user_id=row["user_id"],
            record_id=row["record_id"],
            day=row["day"],
            notified_at=row["notified_at"],
        )

    def _entity_to_row(self, entity: NotificationRecord) -> dict:
        return {
            "user_id": entity.user_id,
            "record_id": entity.record_id,
            "day": entity.day,
            "notified_at": entity.notified_at,
        }

    def exists(self, user_id: str, record_id: UUID, day: date) -> bool:
        db = Database.get_instance()
        row = db.fetch_one(
            "SELECT 1 FROM warranty_notification_log "
            "WHERE user_id = %s AND record_id = %s AND day = %s",
            (user_id, record_id, day),
        )
        return row is not None

    def insert(self, user_id: str, record_id: UUID, day: date, notified_at: datetime) -> bool:
        """Insert a dedup entry (exactly-once per key).

        Returns True if this call created the row, False if another
        writer got there first.
        """
        db = Database.get_instance()
        inserted = db.execute(
            "INSERT INTO warranty_notification_log (user_id, record_id, day, notified_at) "
            "VALUES (%s, %s, %s, %s) "
            "ON CONFLICT (user_id, record_id, day) DO NOTHING",
            (user_id, record_id, day, notified_at),
        )
        return inserted == 1

    def purge_before(self, day: date) -> int:
        """Delete entries for days before *day*. Returns count deleted."""
        db = Database.get_instance()
        return db.execute(
            "DELETE FROM warranty_notification_log WHERE day < %s",
            (day,),
        )
