"""Notification preference repository.

Also answers phone-verification lookups, since both read the
``users`` table owned by the receipt application.
"""

from __future__ import annotations

from pypgkit import BaseRepository, Database

from warrantywatch.core.types import NotificationChannel
from warrantywatch.models.preference import DEFAULT_THRESHOLD_DAYS, NotificationPreference


class PreferenceRepository(BaseRepository[NotificationPreference]):
    table_name = "notification_preferences"
    primary_key = "user_id"

    def _row_to_entity(self, row: dict) -> NotificationPreference:
        channel = row.get("channel")
        threshold = row.get("threshold_days")
        return NotificationPreference(
            user_id=row["user_id"],
            channel=NotificationChannel(channel) if channel else NotificationChannel.EMAIL_AND_SMS,
            threshold_days=threshold if threshold is not None else DEFAULT_THRESHOLD_DAYS,
            opted_out=bool(row.get("opted_out")),
            email=row.get("email"),
            phone_number=row.get("phone_number"),
        )

    def _entity_to_row(self, entity: NotificationPreference) -> dict:
        # Contact fields live on the users table
        return {
            "user_id": entity.user_id,
            "channel": entity.channel.value,
            "threshold_days": entity.threshold_days,
            "opted_out": entity.opted_out,
        }

    def get_preference(self, user_id: str) -> NotificationPreference | None:
        """Return the user's preference merged with their contact details.

        A user without a preference row gets the defaults; an unknown
        user yields ``None``.
        """
        db = Database.get_instance()
        row = db.fetch_one(
            "SELECT u.id AS user_id, u.email, u.phone_number, "
            "       p.channel, p.threshold_days, p.opted_out "
            "FROM users u "
            "LEFT JOIN notification_preferences p ON p.user_id = u.id "
            "WHERE u.id = %s",
            (user_id,),
            as_dict=True,
        )
        return self._row_to_entity(row) if row else None

    def is_phone_verified(self, user_id: str) -> bool:
        db = Database.get_instance()
        value = db.fetch_value(
            "SELECT phone_verified FROM users WHERE id = %s",
            (user_id,),
        )
        return bool(value)
